# ================================================================
# FEDORAGRAPH
# Logging setup for applications embedding fedoragraph
# ================================================================

import logging
import os
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "fedoragraph"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED = False

_NAMED_LEVELS = {"silent": 0, "info": 1, "debug": 2}


def configure_logging(level: Union[int, str, None] = None, log_file=None, force=False) -> Optional[logging.Handler]:
    """
    Send the ``fedoragraph`` loggers (repository calls, saves, resets) to a
    file.

    ``level`` is 0/"silent", 1/"info" or 2+/"debug" and defaults to the
    ``LOG_LEVEL`` environment variable; ``log_file`` defaults to
    ``LOG_FILE``. Runs once per process unless ``force`` is given. Returns
    the handler that was installed, or None when logging stays off.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return None
    _CONFIGURED = True

    if level is None:
        level = os.getenv("LOG_LEVEL", "0")
    verbosity = _read_level(level)
    log_path = log_file or os.getenv("LOG_FILE")
    if verbosity is None or verbosity <= 0 or not log_path:
        return None

    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    logger.setLevel(_map_level(verbosity))
    return handler


def _read_level(raw) -> Optional[int]:
    if isinstance(raw, int):
        return raw
    raw = str(raw).strip().lower()
    if raw in _NAMED_LEVELS:
        return _NAMED_LEVELS[raw]
    try:
        return int(raw)
    except ValueError:
        return None


def _map_level(verbosity: int) -> int:
    return logging.DEBUG if verbosity >= 2 else logging.INFO
