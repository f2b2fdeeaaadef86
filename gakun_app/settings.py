"""User settings for gakun.

Settings live in an INI file, ``~/.config/gakun/gakun.ini`` unless the
``GAKUN_SETTINGS`` environment variable points elsewhere.  Every value has a
default so the file is optional.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Optional, Union

from .profiles import REGISTRY_FILE
from .ssh_config import SSH_CONFIG_FILE

SETTINGS_FILE = Path.home() / ".config" / "gakun" / "gakun.ini"
SETTINGS_ENV = "GAKUN_SETTINGS"

DEFAULTS = {
    "paths": {
        "registry": str(REGISTRY_FILE),
        "ssh_config": str(SSH_CONFIG_FILE),
    },
    "logging": {
        "level": "WARNING",
        "file": "",
    },
}


def default_settings_file() -> Path:
    """Return the settings path, honouring ``GAKUN_SETTINGS``."""
    override = os.environ.get(SETTINGS_ENV)
    if override:
        return Path(override).expanduser()
    return SETTINGS_FILE


def load_settings(file_path: Optional[Union[str, Path]] = None) -> configparser.ConfigParser:
    """Read settings from ``file_path`` on top of :data:`DEFAULTS`.

    A missing file is not an error.  A file that cannot be parsed raises
    :class:`configparser.Error`.
    """
    logger = logging.getLogger(__name__)
    path = Path(file_path) if file_path is not None else default_settings_file()
    cfg = configparser.ConfigParser()
    cfg.read_dict(DEFAULTS)
    if path.exists():
        with open(path, "r", encoding="utf-8") as handle:
            cfg.read_file(handle, source=str(path))
        logger.debug("Loaded settings from %s", path)
    else:
        logger.debug("Settings file %s not found; using defaults", path)
    return cfg


def registry_path(cfg: configparser.ConfigParser) -> Path:
    return Path(cfg.get("paths", "registry")).expanduser()


def ssh_config_path(cfg: configparser.ConfigParser) -> Path:
    return Path(cfg.get("paths", "ssh_config")).expanduser()
