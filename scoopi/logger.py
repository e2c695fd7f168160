"""Logging setup for **scoopi**.

Every module logs through a child of the ``scoopi`` logger::

    from scoopi.logger import get_logger
    logger = get_logger(__name__)          # -> "scoopi.crawler.crawler"
    logger.info("Crawling %s", url)

Only the root ``scoopi`` logger owns handlers: a console handler on stdout
and, when asked, a size-rotated log file that also records the emitting
module. :func:`configure` rebuilds them; :func:`set_level` is what
``crawl --verbose`` uses to switch to ``DEBUG`` mid-invocation.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Union

# --------------------------------------------------------------------------- #
# Constants                                                                   #
# --------------------------------------------------------------------------- #

LOGGER_NAME: Final[str] = "scoopi"
CONSOLE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(message)s"
FILE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Handlers                                                                    #
# --------------------------------------------------------------------------- #


def _console_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(file: Union[str, Path], fmt: str) -> logging.Handler:
    path = Path(file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ``scoopi`` logger or one of its children.

    ``name`` may be a module ``__name__`` (already under ``scoopi.``) or a
    short suffix such as ``"crawler"``.
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    console_format: str = CONSOLE_FORMAT,
    file_format: str = FILE_FORMAT,
) -> logging.Logger:
    """(Re)build the handlers of the ``scoopi`` logger.

    Parameters
    ----------
    level
        Numeric or textual level applied to the whole ``scoopi`` tree.
    log_file
        Optional path of a rotating log file; parent directories are created.
    console_format, file_format
        :class:`logging.Formatter` strings for the two destinations.
    """
    root = get_logger()
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(_console_handler(console_format))
    if log_file is not None:
        root.addHandler(_rotating_handler(log_file, file_format))

    root.propagate = False
    return root


def set_level(level: _LevelT) -> None:
    """Change the level of the ``scoopi`` tree, keeping its handlers."""
    get_logger().setLevel(level)


logger: logging.Logger = configure()

__all__ = ["LOGGER_NAME", "configure", "get_logger", "logger", "set_level"]
