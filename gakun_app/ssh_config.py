"""Utilities for maintaining the gakun block inside an SSH client config.

The managed block is delimited by :data:`BEGIN_MARKER` and
:data:`END_MARKER`.  The text functions in this module are pure: they take
the current file content and return the new content, leaving every line
outside the block untouched.  :func:`read_config` and :func:`write_config`
perform the file I/O and default to :data:`SSH_CONFIG_FILE`, while allowing
an explicit file to be supplied for tests.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .errors import MalformedSectionError, UnreadableConfigError
from .files import write_text_atomic

SSH_CONFIG_FILE = Path.home() / ".ssh" / "config"

BEGIN_MARKER = "###### gakun begin"
END_MARKER = "###### gakun end"


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _split_lines(text: str) -> List[str]:
    # only "\n" ends a line; "".join() gives back the exact original text
    lines = [f"{line}\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def locate_section(lines: Sequence[str]) -> Optional[Tuple[int, int]]:
    """Return the inclusive ``(begin, end)`` line indexes of the block.

    Parameters
    ----------
    lines: sequence of str
        File lines, with or without their line endings.  Markers must match
        a whole line exactly; only the line ending is ignored.

    Returns
    -------
    tuple[int, int] | None
        ``None`` when no begin marker is present.  An end marker without a
        preceding begin marker does not count as a section.

    Raises
    ------
    MalformedSectionError
        If a begin marker is not followed by an end marker.
    """
    begin = None
    for index, line in enumerate(lines):
        content = _strip_eol(line)
        if begin is None:
            if content == BEGIN_MARKER:
                begin = index
        elif content == END_MARKER:
            return begin, index
    if begin is not None:
        raise MalformedSectionError(begin + 1)
    return None


def render_block(host: str, identity_file: str) -> List[str]:
    """Return the five lines of the managed block, without line endings."""
    return [
        BEGIN_MARKER,
        f"Host {host}",
        f"  Hostname {host}",
        f"  IdentityFile {identity_file}",
        END_MARKER,
    ]


def upsert_section(text: str, host: str, identity_file: str) -> str:
    """Place the block for ``host`` into ``text`` and return the new text.

    An existing block is replaced where it stands.  Without one, the block
    is put at the top of the file followed by a blank separator line, unless
    the file is empty.  Applying the function twice gives the same result as
    applying it once.
    """
    lines = _split_lines(text)
    block = [f"{line}\n" for line in render_block(host, identity_file)]
    span = locate_section(lines)
    if span is not None:
        begin, end = span
        new_lines = lines[:begin] + block + lines[end + 1:]
    elif not text:
        new_lines = block
    else:
        new_lines = block + ["\n"] + lines
    return "".join(new_lines)


def remove_section(text: str) -> str:
    """Return ``text`` without the managed block.

    When the block is the first thing in the file, the blank separator line
    written by :func:`upsert_section` right after it is dropped too.  Text
    without a block is returned unchanged.
    """
    lines = _split_lines(text)
    span = locate_section(lines)
    if span is None:
        return text
    begin, end = span
    rest = lines[end + 1:]
    if begin == 0 and rest and _strip_eol(rest[0]) == "":
        rest = rest[1:]
    return "".join(lines[:begin] + rest)


def read_config(
    config_file: Union[str, Path] = SSH_CONFIG_FILE,
    logger: logging.Logger = logging.getLogger(__name__),
) -> str:
    """Return the content of the SSH config, or ``""`` if it does not exist.

    Line endings are returned as stored so that rewriting the file does not
    alter lines outside the managed block.
    """
    path = Path(config_file)
    if not path.exists():
        logger.info("SSH config %s not found; treating it as empty", path)
        return ""
    try:
        with open(path, "r", encoding="utf-8", newline="") as handle:
            text = handle.read()
    except UnicodeDecodeError as exc:
        logger.error("SSH config %s is not valid UTF-8: %s", path, exc)
        raise UnreadableConfigError(path, str(exc)) from exc
    logger.debug("Read %d lines from %s", len(_split_lines(text)), path)
    return text


def write_config(
    text: str,
    config_file: Union[str, Path] = SSH_CONFIG_FILE,
    logger: logging.Logger = logging.getLogger(__name__),
) -> None:
    """Replace the SSH config with ``text``."""
    path = Path(config_file)
    try:
        write_text_atomic(path, text)
    except OSError as exc:
        logger.error("Failed to write SSH config %s: %s", path, exc)
        raise
    logger.info("Updated SSH config %s", path)
