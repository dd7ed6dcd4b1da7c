import logging.config
from typing import Any

from beanroute.configs import configs

LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "beanroute": {"handlers": ["default"], "level": configs.Logging.Level.upper(), "propagate": False},
        "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
    },
}


def setup_logging(level: str | None = None) -> None:
    """Apply ``LOGGING_CONFIG``, optionally overriding the beanroute log level."""
    config = LOGGING_CONFIG
    if level:
        config = {**LOGGING_CONFIG, "loggers": {**LOGGING_CONFIG["loggers"]}}
        config["loggers"]["beanroute"] = {**config["loggers"]["beanroute"], "level": level.upper()}
    logging.config.dictConfig(config)
