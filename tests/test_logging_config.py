import logging

import pytest

from inspectsync.core import logging_config
from inspectsync.core.logging_config import build_logging_config, configure_logging


@pytest.fixture
def restore_logging():
    yield
    configure_logging("INFO", force=True)


def test_library_loggers_stay_quiet_below_debug():
    config = build_logging_config("info")

    assert config["root"]["level"] == "INFO"
    assert config["loggers"]["inspectsync"] == {"level": "INFO"}
    assert config["loggers"]["sqlalchemy.engine"] == {"level": "WARNING"}
    assert config["loggers"]["uvicorn.access"] == {"level": "WARNING"}


def test_debug_level_opens_library_loggers():
    config = build_logging_config("DEBUG")

    assert config["loggers"]["sqlalchemy.engine"] == {"level": "DEBUG"}


def test_level_defaults_to_settings(monkeypatch):
    monkeypatch.setattr(logging_config.settings, "log_level", "error")

    assert build_logging_config()["loggers"]["inspectsync"] == {"level": "ERROR"}


def test_configure_logging_applies_once_unless_forced(restore_logging):
    assert configure_logging("WARNING", force=True) == "WARNING"
    assert logging.getLogger("inspectsync").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    assert configure_logging("DEBUG") == "WARNING"
    assert logging.getLogger("inspectsync").level == logging.WARNING
