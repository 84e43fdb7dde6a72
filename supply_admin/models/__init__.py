"""
Data models for the supply admin client core.

This module exports all data models for easy import.
"""

from .actions import (
    Action,
    AddItem,
    AdjustInventory,
    ClearAuditLogs,
    DeleteAuditLog,
    DeleteIssueRequest,
    DeleteItem,
    DeletePurchaseRequest,
    Hydrate,
    RemoveUser,
    SetItems,
    UpdateItem,
    UpsertIssueRequest,
    UpsertPurchaseRequest,
    UpsertUser,
)
from .app_state import (
    ActivitySummary,
    ActivityType,
    AppState,
    AuditCategory,
    AuditLog,
    IssueRequest,
    IssueStatus,
    Item,
    ItemOption,
    PurchaseRequest,
    PurchaseStatus,
    RequestLineItem,
    Role,
    UnitType,
    User,
)
from .sync import (
    STATE_UPDATED,
    LoadResult,
    SessionPayload,
    SyncInfo,
    SyncMessage,
    SyncSource,
)

__all__ = [
    # State models
    "AppState",
    "User",
    "Role",
    "Item",
    "ItemOption",
    "UnitType",
    "RequestLineItem",
    "IssueRequest",
    "IssueStatus",
    "PurchaseRequest",
    "PurchaseStatus",
    "AuditLog",
    "AuditCategory",
    "ActivitySummary",
    "ActivityType",
    # Actions
    "Action",
    "Hydrate",
    "AddItem",
    "UpdateItem",
    "DeleteItem",
    "SetItems",
    "AdjustInventory",
    "UpsertIssueRequest",
    "UpsertPurchaseRequest",
    "DeleteIssueRequest",
    "DeletePurchaseRequest",
    "UpsertUser",
    "RemoveUser",
    "DeleteAuditLog",
    "ClearAuditLogs",
    # Sync models
    "STATE_UPDATED",
    "SyncSource",
    "LoadResult",
    "SyncInfo",
    "SyncMessage",
    "SessionPayload",
]
