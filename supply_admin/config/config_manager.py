"""
Configuration management for the supply admin client core.

Handles repository, storage, sync and logging settings, plus the key used
to encrypt the local state snapshot.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet

CONFIG_DIR_ENV = "SUPPLY_ADMIN_CONFIG_DIR"


class ConfigManager:
    """
    Manages application configuration and settings.

    Settings live in a JSON file; the snapshot encryption key lives next to
    it and is only created when first requested.
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory for configuration files (defaults to
                $SUPPLY_ADMIN_CONFIG_DIR, then "config")
        """
        self.config_dir = Path(config_dir or os.environ.get(CONFIG_DIR_ENV, "config"))
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / "app_config.json"
        self.key_file = self.config_dir / ".key"

        self.config: Dict[str, Any] = {}
        self._cipher: Optional[Fernet] = None

        self.load_config()

    def load_config(self) -> None:
        """Load configuration from file, writing defaults on first run."""
        if self.config_file.exists():
            with open(self.config_file, 'r', encoding='utf-8') as f:
                self.config = json.load(f)
        else:
            self.config = self._get_default_config()
            self.save_config()

    def save_config(self) -> None:
        """Save configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=2)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app_version": "0.1.0",
            "repository": {
                "backend": "remote",  # "remote" or "local"
                "base_url": "http://localhost:4000/api",
                "base_url_env": "SUPPLY_ADMIN_API_BASE_URL",
                "timeout_seconds": 10,
            },
            "storage": {
                "data_dir": "data",
                "encrypted": False,
            },
            "sync": {
                "transport": "auto",  # "auto", "broadcast", "storage" or "none"
                "channel_name": "supply-admin:sync-channel",
            },
            "inventory": {
                "default_units_per_box": 10,
            },
            "dashboard": {
                "recent_activity_limit": 6,
            },
            "logging": {
                "level": "INFO",
                "log_dir": "logs",
                "max_file_size_mb": 10,
                "backup_count": 5,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key (supports dot notation, e.g., "repository.base_url")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any, save: bool = True) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
            save: Whether to save immediately
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

        if save:
            self.save_config()

    def get_api_base_url(self) -> str:
        """
        Resolve the blob-store base URL.

        The environment variable named by ``repository.base_url_env`` wins
        over the configured value.
        """
        env_name = self.get("repository.base_url_env")
        if env_name and os.environ.get(env_name):
            return os.environ[env_name]
        return self.get("repository.base_url", "http://localhost:4000/api")

    def get_cipher(self) -> Fernet:
        """
        Get the Fernet cipher used for the local state snapshot.

        Returns:
            Fernet instance backed by the key file (created on first use)
        """
        if self._cipher is not None:
            return self._cipher

        if self.key_file.exists():
            with open(self.key_file, 'rb') as f:
                key = f.read()
        else:
            key = Fernet.generate_key()
            with open(self.key_file, 'wb') as f:
                f.write(key)
            # Restrict file permissions (Unix-like systems)
            if os.name != 'nt':
                os.chmod(self.key_file, 0o600)

        self._cipher = Fernet(key)
        return self._cipher

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self.config = self._get_default_config()
        self.save_config()

    def export_config(self, export_path: str) -> None:
        """
        Export configuration to file.

        Args:
            export_path: Path to export file
        """
        with open(export_path, 'w', encoding='utf-8') as f:
            json.dump({"config": self.config}, f, indent=2)

    def import_config(self, import_path: str) -> None:
        """
        Import configuration from file.

        Args:
            import_path: Path to import file
        """
        with open(import_path, 'r', encoding='utf-8') as f:
            import_data = json.load(f)

        if "config" in import_data:
            self.config = import_data["config"]
            self.save_config()


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """
    Get global configuration manager instance.

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config_manager() -> None:
    """Reset global configuration manager (mainly for testing)."""
    global _config_manager
    _config_manager = None
