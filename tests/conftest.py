import logging

import pytest

from team_buddy.config.constants import LOGGER_NAME


@pytest.fixture(autouse=True)
def restore_app_logger():
    """Undo configure_logging() calls made inside a test"""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield logger
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def api_key(monkeypatch):
    """Server-held OpenAI key for relay tests"""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return "sk-test"
