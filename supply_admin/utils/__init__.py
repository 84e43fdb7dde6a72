"""
Utility functions for the supply admin client core.
"""

from .clock import advance_timestamp, now_iso, parse_iso
from .encryption import decrypt_text, encrypt_text
from .ids import new_id
from .logger import (
    AuditTrailLogger,
    SupplyAdminLogger,
    get_audit_logger,
    get_logger,
    reset_loggers,
)

__all__ = [
    # Identifiers and time
    "new_id",
    "now_iso",
    "parse_iso",
    "advance_timestamp",
    # Encryption
    "encrypt_text",
    "decrypt_text",
    # Logging
    "SupplyAdminLogger",
    "AuditTrailLogger",
    "get_logger",
    "get_audit_logger",
    "reset_loggers",
]
