"""Logging configuration for the application."""

import logging
import sys

from lbd_events.core.config import get_settings

HANDLER_NAME = "lbd_events.console"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_NOISY_LOGGERS = (
    "google.auth",
    "google.api_core",
    "urllib3",
    "botocore",
    "PIL",
)


def setup_logging() -> None:
    """Configure the root logger once; repeated calls only adjust the level."""
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not any(handler.get_name() == HANDLER_NAME for handler in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler.set_name(HANDLER_NAME)
        root_logger.addHandler(console_handler)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
