"""Whole-file writes that never leave a truncated target behind."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Union


def write_text_atomic(file_path: Union[str, Path], text: str) -> None:
    """Write ``text`` to ``file_path`` through a temporary sibling file.

    The content is flushed to a temporary file in the same directory which
    then replaces the target in one rename.  Permissions of an existing
    target are carried over; new files keep the ``0600`` mode of the
    temporary file.  Parent directories are created as needed.

    Parameters
    ----------
    file_path: str | Path
        Destination file.
    text: str
        Full new content.  Written with ``newline=""`` so line endings are
        stored exactly as given.
    """
    logger = logging.getLogger(__name__)
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="",
        delete=False,
        dir=path.parent,
        prefix=path.name + ".",
    ) as handle:
        tmp_name = handle.name
        try:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            handle.close()
            os.unlink(tmp_name)
            raise
    try:
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    logger.debug("Wrote %d characters to %s", len(text), path)
