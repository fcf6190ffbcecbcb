"""Shared fixtures: keep every test away from the real home directory."""

import logging

import pytest

CONFIG_ENV_KEYS = ("GROQ_API_KEY", "DEFAULT_MODEL", "MAX_TOKENS", "TEMPERATURE", "TIMEOUT")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path_factory, monkeypatch):
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("LAZYDOCS_CONFIG", str(home / ".lazydocs"))
    monkeypatch.setenv("LAZYDOCS_LOG_DIR", str(home / "logs"))
    for key in CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield home

    # setup_logging() detaches the package logger from the root logger
    package_logger = logging.getLogger("lazydocs")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def test_logger():
    """A logger that propagates to caplog, for injection into analyze()."""
    logger = logging.getLogger("lazydocs-test")
    logger.setLevel(logging.DEBUG)
    return logger
