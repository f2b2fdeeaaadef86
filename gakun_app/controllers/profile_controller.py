from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..profiles import HostEntry
from ..services.profile_service import ProfileService


class ProfileController:
    """Controller coordinating profile service calls for the CLI."""

    def __init__(
        self,
        registry_file: Optional[Union[str, Path]] = None,
        ssh_config_file: Optional[Union[str, Path]] = None,
    ) -> None:
        """Initialise the controller with optional registry and SSH config paths."""
        self.service = ProfileService(registry_file, ssh_config_file)

    @property
    def ssh_config_file(self) -> Path:
        return self.service.ssh_config_file

    def add(self, profile_name: str, host: str, identity_file: str) -> HostEntry:
        return self.service.add(profile_name, host, identity_file)

    def use(self, profile_name: str, host: str) -> HostEntry:
        return self.service.use(profile_name, host)

    def list_profiles(self) -> List[Tuple[str, List[HostEntry]]]:
        return self.service.list_profiles()

    def active_profile(self) -> Optional[str]:
        return self.service.active_profile()

    def detach(self) -> bool:
        return self.service.detach()

    def overview(self) -> Tuple[List[Tuple[str, List[HostEntry]]], Optional[str]]:
        return self.service.overview()
