import logging
import logging.config
import os
from typing import Optional


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
        },
    },
    "loggers": {
        "markov_asset": {
            "level": "DEBUG",
            "handlers": ["console"],
            "propagate": False,
        },
    },
}


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> dict:
    """Configure the ``markov_asset`` logger tree and return the applied config.

    The console handler logs at ``level``; when ``log_file`` is given a
    rotating file handler is added that captures DEBUG output as well.
    """
    config = {
        **LOGGING_CONFIG,
        "handlers": {
            name: dict(handler) for name, handler in LOGGING_CONFIG["handlers"].items()
        },
        "loggers": {
            name: dict(logger) for name, logger in LOGGING_CONFIG["loggers"].items()
        },
    }
    config["handlers"]["console"]["level"] = level.upper()

    if log_file is not None:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10_485_760,
            "backupCount": 5,
            "formatter": "standard",
            "level": "DEBUG",
        }
        config["loggers"]["markov_asset"]["handlers"] = ["console", "file"]

    logging.config.dictConfig(config)
    return config
