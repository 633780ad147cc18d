# ============================================
#   RoomRelay — Central logger
# ============================================

import os
import sys
import logging
from logging.handlers import TimedRotatingFileHandler

from relay.config import LOG_FILE


ROOT_LOGGER_NAME = os.getenv("RELAY_LOGGER_NAME", "relay")
LOG_LEVEL = os.getenv("RELAY_LOG_LEVEL", "INFO").upper()

# Rotated files kept (one per day)
LOG_BACKUP_DAYS = int(os.getenv("RELAY_LOG_BACKUP_DAYS", "14"))

# Also write to stdout (containers, dev shells)
LOG_TO_STDOUT = os.getenv("RELAY_LOG_STDOUT", "false").lower() in ("1", "true", "yes", "on")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _build_handlers():
    handlers = [
        TimedRotatingFileHandler(
            LOG_FILE,
            when="midnight",
            backupCount=LOG_BACKUP_DAYS,
            encoding="utf-8",
        )
    ]
    if LOG_TO_STDOUT:
        handlers.append(logging.StreamHandler(sys.stdout))
    return handlers


def _root_logger() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Already wired (reloader, repeated imports)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers():
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Keep relay records out of werkzeug / engineio root output
    logger.propagate = False
    return logger


def get_logger(component: str) -> logging.Logger:
    """relay.<component>, e.g. get_logger("presence") → relay.presence"""
    return _root_logger().getChild(component)


def log_info(component: str, message: str):
    get_logger(component).info(message)


def log_warning(component: str, message: str):
    get_logger(component).warning(message)


def log_error(component: str, message: str):
    get_logger(component).error(message)


def log_exception(component: str, message: str):
    """Error plus the active traceback; call from inside an except block."""
    get_logger(component).exception(message)
