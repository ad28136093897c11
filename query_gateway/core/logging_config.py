"""
Logging configuration for the Query Gateway.
Supports both JSON and text logging formats.
"""

import logging
import logging.config
import sys
from typing import Dict, Any
from pythonjsonlogger import jsonlogger

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

FORMATTERS = {
    "json": {
        "()": jsonlogger.JsonFormatter,
        "format": "%(asctime)s %(name)s %(levelname)s %(message)s %(module)s %(funcName)s %(lineno)d",
        "datefmt": DATE_FORMAT
    },
    "standard": {
        "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s (%(filename)s:%(lineno)d)",
        "datefmt": DATE_FORMAT
    },
    "detailed": {
        "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s [in %(pathname)s:%(lineno)d]",
        "datefmt": DATE_FORMAT
    }
}


def setup_logging(log_level: str = "INFO", log_format: str = "json", debug: bool = False) -> None:
    """Setup structured logging for the application; ``debug`` forces DEBUG level."""
    level = "DEBUG" if debug else log_level.upper()

    logging.config.dictConfig(get_logging_config(level, log_format))
    logging.getLogger().setLevel(getattr(logging, level))

    # Reduce noise from external libraries
    for noisy in ("httpx", "httpcore", "redis"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logging_config(level: str, log_format: str) -> Dict[str, Any]:
    """Build a dictConfig for the console handler."""
    if log_format == "json":
        formatter = "json"
    else:
        formatter = "standard" if level == "INFO" else "detailed"

    logger_config = {
        "handlers": ["console"],
        "level": level,
        "propagate": False
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter: FORMATTERS[formatter]},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter,
                "stream": sys.stdout
            }
        },
        "loggers": {
            "": dict(logger_config),
            "app": dict(logger_config)
        }
    }


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(f"app.{name}")


def create_logger(module_name: str) -> logging.Logger:
    """Create a logger for a specific module."""
    return get_logger(module_name)
