"""Logging setup for texheaders tools."""

import logging
import logging.handlers
import os
import threading

logger = logging.getLogger("texheaders")

# 5 MB max per log file, keep 3 rotated backups
_LOG_MAX_BYTES = 5 * 1024 * 1024
_LOG_BACKUP_COUNT = 3
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [T%(thread)d]: %(message)s"
_setup_lock = threading.Lock()


def _level_number(level) -> int:
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        logger.warning("Invalid log level '%s', defaulting to INFO", level)
        return logging.INFO
    return numeric_level


def _has_file_handler(log_file: str) -> bool:
    """True when root or the texheaders logger already writes to ``log_file``."""
    target = os.path.abspath(log_file)
    for owner in (logging.getLogger(), logger):
        for handler in owner.handlers:
            if getattr(handler, "baseFilename", None) == target:
                return True
    return False


def _file_handler(log_file: str) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_file, maxBytes=_LOG_MAX_BYTES, backupCount=_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


def setup_logging(level: str = "INFO", log_file: str = None, force: bool = False):
    """Configure console and optional rotating file logging.

    With no root handlers (or ``force``) the root logger is configured.
    Otherwise only the ``texheaders`` logger is touched, so a host
    application's handlers stay as they are. A file already being written
    by either logger is never attached twice.
    """
    with _setup_lock:
        numeric_level = _level_number(level)
        root = logging.getLogger()
        if force or not root.handlers:
            handlers = [logging.StreamHandler()]
            if log_file:
                handlers.append(_file_handler(log_file))
            logging.basicConfig(
                level=numeric_level, format=_LOG_FORMAT, handlers=handlers, force=force,
            )
            logger.debug("Initialized logging with %d handler(s)", len(handlers))
            return

        logger.setLevel(numeric_level)
        if log_file and not _has_file_handler(log_file):
            handler = _file_handler(log_file)
            handler.setFormatter(logging.Formatter(_LOG_FORMAT))
            logger.addHandler(handler)
            logger.info("Adding file handler: %s", handler.baseFilename)
