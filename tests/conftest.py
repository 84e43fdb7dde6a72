"""
Shared test fixtures.

Every test runs inside its own temporary working directory so config files,
logs and file storage never leak between tests.
"""

import pytest

from supply_admin.config import reset_config_manager
from supply_admin.data import create_initial_state
from supply_admin.services import reset_default_hub, reset_memory_storage
from supply_admin.utils import reset_loggers


def _reset_singletons():
    reset_loggers()
    reset_config_manager()
    reset_default_hub()
    reset_memory_storage()


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Run each test from a fresh directory with fresh module singletons."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SUPPLY_ADMIN_CONFIG_DIR", raising=False)
    monkeypatch.delenv("SUPPLY_ADMIN_API_BASE_URL", raising=False)
    _reset_singletons()
    yield tmp_path
    _reset_singletons()


@pytest.fixture
def seed_state():
    """A fresh seed dataset."""
    return create_initial_state()
