import logging

import pytest

from command_api.config import Settings, configure_logging, get_settings

CONFIGURED_LOGGERS = (
    "command_api",
    "uvicorn.access",
    "uvicorn.error",
    "sqlalchemy.engine",
    "mcp",
)

@pytest.fixture
def restore_logging():
    """Undo configure_logging's changes to the process-wide logging state."""
    root = logging.getLogger()
    root_level, root_handlers = root.level, list(root.handlers)
    levels = {name: logging.getLogger(name).level for name in CONFIGURED_LOGGERS}
    yield
    for handler in root.handlers:
        if handler not in root_handlers:
            root.removeHandler(handler)
    root.setLevel(root_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)

def test_reads_prefixed_environment_variables(monkeypatch):
    monkeypatch.setenv("COMMAND_API_ENVIRONMENT", "Staging")
    monkeypatch.setenv("COMMAND_API_PORT", "9001")

    settings = Settings(_env_file=None)

    assert settings.environment == "Staging"
    assert settings.port == 9001

def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.environment == "Production"
    assert settings.auth_enabled is False
    assert settings.is_development is False

def test_authority_joins_instance_and_tenant():
    settings = Settings(_env_file=None, instance="https://login.example.test/", tenant_id="abc")

    assert settings.authority == "https://login.example.test/abc"

def test_get_settings_is_cached():
    get_settings.cache_clear()

    assert get_settings() is get_settings()

def test_configure_logging_sets_package_level(restore_logging):
    configure_logging("debug")

    assert logging.getLogger("command_api").level == logging.DEBUG
    assert logging.getLogger("command_api.service").getEffectiveLevel() == logging.DEBUG

def test_configure_logging_changes_are_undone_between_tests():
    assert logging.getLogger("command_api").level == logging.NOTSET
