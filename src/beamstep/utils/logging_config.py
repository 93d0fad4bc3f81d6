import logging
import logging.config
import os
from typing import Any

LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stdout",
        }
    },
    "loggers": {
        "beamstep": {
            "handlers": ["console"],
            "propagate": False,
            "level": "INFO",
        }
    },
}

VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def setup_logging(level: str | None = None) -> None:
    """Configure the package logger.

    The level is taken from ``level`` if given, otherwise from the
    ``BEAMSTEP_LOG_LEVEL`` environment variable, falling back to INFO.
    """
    log_level = (level or os.getenv("BEAMSTEP_LOG_LEVEL", "INFO")).upper()

    if log_level not in VALID_LEVELS:
        print(f"Invalid log level {log_level}, defaulting to INFO")
        log_level = "INFO"

    LOGGING_CONFIG["loggers"]["beamstep"]["level"] = log_level

    logging.config.dictConfig(LOGGING_CONFIG)


logger = logging.getLogger("beamstep")
