"""
Shared pytest fixtures for the keyloader test suite.

Autouse fixtures below isolate tests from the machine they run on:
  - KEYLOADER_* environment -> unset        (no settings leak in or out)
  - Working directory       -> tmp_path     (no stray .env is picked up)
  - Logging                 -> reset        (CLI tests install a handler)
"""

import logging

import pytest

_SETTINGS_VARS = (
    "KEYLOADER_PROVIDER",
    "KEYLOADER_BASE_URL",
    "KEYLOADER_TIMEOUT",
    "KEYLOADER_OUTPUT",
)


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Unset KEYLOADER_* for every test and undo whatever it sets.

    ``load_dotenv()`` writes straight into ``os.environ``. Registering
    each variable with monkeypatch first means anything a test loads is
    removed again afterwards.
    """
    for name in _SETTINGS_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Drop the handler configure_logging() installs and restore levels.

    Without this, a CLI test leaves a handler bound to a captured (and
    later closed) stderr on the root logger.
    """
    package_logger = logging.getLogger("keyloader")
    old_level = package_logger.level

    yield

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_keyloader_handler", False):
            root_logger.removeHandler(handler)
    package_logger.setLevel(old_level)
