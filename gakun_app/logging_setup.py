"""Logging setup for gakun.

- Logs to stderr, and to a file when ``[logging] file`` is set.
- Default level: WARNING, so command output stays readable.  Overridden by
  the ``GAKUN_LOG_LEVEL`` environment variable, or by ``verbose``.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import List

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_LEVEL_ENV = "GAKUN_LOG_LEVEL"


def setup_logging(cfg: configparser.ConfigParser, verbose: bool = False) -> None:
    """Configure the root logger from settings."""
    if verbose:
        level_name = "DEBUG"
    else:
        level_name = os.environ.get(LOG_LEVEL_ENV) or cfg.get(
            "logging", "level", fallback="WARNING"
        )
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = cfg.get("logging", "file", fallback="").strip()
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.getLogger(__name__).debug("Logging initialized at level %s", level_name)
