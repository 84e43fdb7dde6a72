"""
Tests for configuration management and logging setup.
"""

import os

import pytest

from supply_admin.config import ConfigManager, get_config_manager, reset_config_manager
from supply_admin.utils import get_logger, reset_loggers


class TestConfigManager:
    """Tests for ConfigManager."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.config_dir = tmp_path / "cfg"
        self.config = ConfigManager(config_dir=str(self.config_dir))

    def test_defaults_written_on_first_run(self):
        assert (self.config_dir / "app_config.json").exists()
        assert self.config.get("repository.backend") == "remote"
        assert self.config.get("repository.timeout_seconds") == 10
        assert self.config.get("sync.transport") == "auto"
        assert self.config.get("inventory.default_units_per_box") == 10

    def test_dot_notation_get_and_set(self):
        assert self.config.get("no.such.key", "fallback") == "fallback"
        self.config.set("sync.transport", "broadcast")
        self.config.set("brand.new.section", 3)

        reloaded = ConfigManager(config_dir=str(self.config_dir))
        assert reloaded.get("sync.transport") == "broadcast"
        assert reloaded.get("brand.new.section") == 3

    def test_env_overrides_base_url(self, monkeypatch):
        assert self.config.get_api_base_url() == "http://localhost:4000/api"
        monkeypatch.setenv("SUPPLY_ADMIN_API_BASE_URL", "https://supplies.example/api")
        assert self.config.get_api_base_url() == "https://supplies.example/api"

    def test_cipher_key_created_once(self):
        cipher = self.config.get_cipher()
        key_file = self.config_dir / ".key"
        assert key_file.exists()
        if os.name != "nt":
            assert key_file.stat().st_mode & 0o777 == 0o600

        token = cipher.encrypt(b"secret")
        reloaded = ConfigManager(config_dir=str(self.config_dir))
        assert reloaded.get_cipher().decrypt(token) == b"secret"

    def test_reset_export_import(self, tmp_path):
        self.config.set("sync.transport", "none")
        export_path = tmp_path / "export.json"
        self.config.export_config(str(export_path))

        self.config.reset_to_defaults()
        assert self.config.get("sync.transport") == "auto"

        self.config.import_config(str(export_path))
        assert self.config.get("sync.transport") == "none"

    def test_config_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUPPLY_ADMIN_CONFIG_DIR", str(tmp_path / "from-env"))
        assert ConfigManager().config_dir == tmp_path / "from-env"

    def test_global_instance(self):
        first = get_config_manager()
        assert get_config_manager() is first
        reset_config_manager()
        assert get_config_manager() is not first


class TestLogging:
    """Tests for logger setup."""

    def test_component_loggers_share_root(self, tmp_path):
        logger = get_logger("repository")
        assert logger.name == "supply_admin.repository"
        logger.info("hello from the repository")

        log_file = tmp_path / "logs" / "supply_admin.log"
        assert "hello from the repository" in log_file.read_text(encoding="utf-8")

    def test_reset_closes_handlers(self):
        root = get_logger()
        assert root.handlers
        reset_loggers()
        assert root.handlers == []
