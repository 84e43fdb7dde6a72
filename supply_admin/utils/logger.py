"""
Logging infrastructure for the supply admin client core.

Provides file and console logging with rotation, and mirrors in-state
audit entries to a dedicated audit logger.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

from supply_admin.config.config_manager import get_config_manager

ROOT_LOGGER_NAME = "supply_admin"


class SupplyAdminLogger:
    """
    Root logger setup for the supply admin package.

    Provides both file and console logging with proper formatting.
    """

    def __init__(
        self,
        name: str = ROOT_LOGGER_NAME,
        log_dir: Optional[str] = None,
        log_file: str = "supply_admin.log"
    ) -> None:
        """
        Initialize logger.

        Args:
            name: Logger name
            log_dir: Directory for log files (defaults to logging.log_dir)
            log_file: Log file name
        """
        config = get_config_manager()
        self.log_level = config.get("logging.level", "INFO")
        self.max_file_size_mb = config.get("logging.max_file_size_mb", 10)
        self.backup_count = config.get("logging.backup_count", 5)

        self.name = name
        self.log_dir = Path(log_dir or config.get("logging.log_dir", "logs"))
        self.log_file = self.log_dir / log_file

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        # Remove existing handlers
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        self.file_formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        self.console_formatter = logging.Formatter(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        self._setup_file_handler()
        self._setup_console_handler()

    def _setup_file_handler(self) -> None:
        """Set up rotating file handler."""
        max_bytes = self.max_file_size_mb * 1024 * 1024

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=max_bytes,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)  # File gets all logs
        file_handler.setFormatter(self.file_formatter)

        self.logger.addHandler(file_handler)

    def _setup_console_handler(self) -> None:
        """Set up console handler."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, self.log_level))
        console_handler.setFormatter(self.console_formatter)

        self.logger.addHandler(console_handler)

    def get_child(self, name: str) -> logging.Logger:
        """
        Get a component logger below the package root.

        Args:
            name: Component name (e.g. "repository")

        Returns:
            logging.Logger instance
        """
        return self.logger.getChild(name)

    def close(self) -> None:
        """Close and detach all handlers."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


class AuditTrailLogger:
    """
    Mirrors audit-log entries from the application state to the log files.

    The in-state audit trail stays the source of truth; this only gives
    operators a greppable copy.
    """

    def __init__(self) -> None:
        """Initialize audit trail logger."""
        self.file_logger = get_logger("audit")

    def log_entry(self, entry) -> None:
        """
        Write a single audit entry.

        Args:
            entry: AuditLog model instance
        """
        self.file_logger.info(
            f"AUDIT: {entry.action} on {entry.target} by {entry.actor_id} [{entry.category.value}]",
            extra={"audit": entry.model_dump(mode="json", by_alias=True)}
        )

    def log_entries(self, entries: Iterable) -> None:
        """Write several audit entries, oldest first."""
        for entry in reversed(list(entries)):
            self.log_entry(entry)


# Global logger instance
_logger: Optional[SupplyAdminLogger] = None
_audit_logger: Optional[AuditTrailLogger] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get application logger.

    Args:
        name: Optional component name; None returns the package root logger

    Returns:
        Logger instance
    """
    global _logger
    if _logger is None:
        _logger = SupplyAdminLogger()
    if name is None:
        return _logger.logger
    return _logger.get_child(name)


def get_audit_logger() -> AuditTrailLogger:
    """
    Get audit trail logger instance.

    Returns:
        AuditTrailLogger instance
    """
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditTrailLogger()
    return _audit_logger


def reset_loggers() -> None:
    """Reset global logger instances (mainly for testing)."""
    global _logger, _audit_logger
    if _logger is not None:
        _logger.close()
    _logger = None
    _audit_logger = None
