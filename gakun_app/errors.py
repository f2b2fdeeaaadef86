"""Exceptions raised by gakun operations."""

from pathlib import Path
from typing import Union


class GakunError(Exception):
    """Base class for all errors reported to the user."""


class CorruptStoreError(GakunError):
    """The registry file exists but does not hold a valid registry."""

    def __init__(self, file_path: Union[str, Path], reason: str) -> None:
        self.file_path = Path(file_path)
        self.reason = reason
        super().__init__(f"Registry file {self.file_path} is corrupt: {reason}")


class ProfileNotFoundError(GakunError, LookupError):
    def __init__(self, profile: str) -> None:
        self.profile = profile
        super().__init__(
            f"Profile '{profile}' not found. Run 'gakun ls' to show your profiles and hosts."
        )


class HostNotFoundError(GakunError, LookupError):
    def __init__(self, profile: str, host: str) -> None:
        self.profile = profile
        self.host = host
        super().__init__(
            f"Host '{host}' not found in profile '{profile}'. "
            "Run 'gakun ls' to show your profiles and hosts."
        )


class UnreadableConfigError(GakunError):
    """The SSH config could not be decoded as UTF-8."""

    def __init__(self, file_path: Union[str, Path], reason: str) -> None:
        self.file_path = Path(file_path)
        self.reason = reason
        super().__init__(
            f"SSH config {self.file_path} is not valid UTF-8 ({reason}); it was left unchanged."
        )


class MalformedSectionError(GakunError):
    """A begin marker was found without a matching end marker.

    ``line_number`` is 1-based so it can be shown to the user as is.
    """

    def __init__(self, line_number: int) -> None:
        self.line_number = line_number
        super().__init__(
            f"Managed section starting at line {line_number} has no end marker; "
            "fix the SSH config file by hand and retry."
        )
