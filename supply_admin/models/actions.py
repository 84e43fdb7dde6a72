"""
Store actions.

The closed set of named mutations the reducer understands. Every action
except Hydrate carries the id of the acting user for the audit trail.
"""

from dataclasses import dataclass
from typing import ClassVar, List, Optional, Union

from supply_admin.models.app_state import AppState, IssueRequest, Item, PurchaseRequest, User


@dataclass(frozen=True)
class Hydrate:
    """Replace the whole aggregate (after load, refresh or reset)."""
    type: ClassVar[str] = "HYDRATE"
    state: AppState


@dataclass(frozen=True)
class AddItem:
    type: ClassVar[str] = "ADD_ITEM"
    item: Item
    actor_id: str


@dataclass(frozen=True)
class UpdateItem:
    type: ClassVar[str] = "UPDATE_ITEM"
    item: Item
    actor_id: str


@dataclass(frozen=True)
class DeleteItem:
    type: ClassVar[str] = "DELETE_ITEM"
    id: str
    actor_id: str


@dataclass(frozen=True)
class SetItems:
    """Bulk replacement of the item list (CSV import)."""
    type: ClassVar[str] = "SET_ITEMS"
    items: List[Item]
    actor_id: str


@dataclass(frozen=True)
class AdjustInventory:
    type: ClassVar[str] = "ADJUST_INVENTORY"
    item_id: str
    stock: int
    actor_id: str
    note: Optional[str] = None


@dataclass(frozen=True)
class UpsertIssueRequest:
    type: ClassVar[str] = "UPSERT_ISSUE_REQUEST"
    request: IssueRequest
    actor_id: str
    description: str


@dataclass(frozen=True)
class UpsertPurchaseRequest:
    type: ClassVar[str] = "UPSERT_PURCHASE_REQUEST"
    request: PurchaseRequest
    actor_id: str
    description: str


@dataclass(frozen=True)
class DeleteIssueRequest:
    type: ClassVar[str] = "DELETE_ISSUE_REQUEST"
    id: str
    actor_id: str


@dataclass(frozen=True)
class DeletePurchaseRequest:
    type: ClassVar[str] = "DELETE_PURCHASE_REQUEST"
    id: str
    actor_id: str


@dataclass(frozen=True)
class UpsertUser:
    type: ClassVar[str] = "UPSERT_USER"
    user: User
    actor_id: str
    description: str


@dataclass(frozen=True)
class RemoveUser:
    type: ClassVar[str] = "REMOVE_USER"
    id: str
    actor_id: str


@dataclass(frozen=True)
class DeleteAuditLog:
    type: ClassVar[str] = "DELETE_AUDIT_LOG"
    id: str
    actor_id: str


@dataclass(frozen=True)
class ClearAuditLogs:
    type: ClassVar[str] = "CLEAR_AUDIT_LOGS"
    actor_id: str


Action = Union[
    Hydrate,
    AddItem,
    UpdateItem,
    DeleteItem,
    SetItems,
    AdjustInventory,
    UpsertIssueRequest,
    UpsertPurchaseRequest,
    DeleteIssueRequest,
    DeletePurchaseRequest,
    UpsertUser,
    RemoveUser,
    DeleteAuditLog,
    ClearAuditLogs,
]
