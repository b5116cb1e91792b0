"""
Logging bootstrap for the InspectSync service.

Levels come from ``settings.log_level``. The ``inspectsync`` package logs at
that level through a single stdout handler on the root logger. Library
loggers listed in ``LIBRARY_LOGGERS`` are held at WARNING unless the
service itself runs at DEBUG.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

from inspectsync.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LIBRARY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "python_multipart", "multipart")

_configured_level: Optional[str] = None


def build_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping for ``level`` (defaults to ``settings.log_level``)."""
    log_level = (level or settings.log_level or "INFO").upper()
    library_level = "DEBUG" if log_level == "DEBUG" else "WARNING"

    loggers: Dict[str, Any] = {name: {"level": library_level} for name in LIBRARY_LOGGERS}
    loggers["inspectsync"] = {"level": log_level}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "service": {"format": LOG_FORMAT, "datefmt": LOG_DATE_FORMAT},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "service",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"handlers": ["stdout"], "level": log_level},
        "loggers": loggers,
    }


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> str:
    """
    Apply the service logging configuration once per process.

    Later calls are no-ops unless ``force`` is set. Returns the level in effect.
    """
    global _configured_level

    if _configured_level is not None and not force:
        return _configured_level

    config = build_logging_config(level)
    dictConfig(config)
    _configured_level = config["root"]["level"]
    logging.getLogger(__name__).debug("Logging configured at %s", _configured_level)
    return _configured_level
