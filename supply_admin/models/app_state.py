"""
Application state data models.

Defines the entities held in the single AppState aggregate. Field names are
snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict in wire format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Role(str, Enum):
    """User roles."""
    ADMIN = "admin"
    USER = "user"


class UnitType(str, Enum):
    """Units an item is tracked or requested in."""
    EACH = "each"
    BOX = "box"


class IssueStatus(str, Enum):
    """Issue (stock-draw) request status."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


class PurchaseStatus(str, Enum):
    """Purchase request status."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    ORDERED = "ordered"


class AuditCategory(str, Enum):
    """Area of the system an audit entry belongs to."""
    ITEM = "item"
    INVENTORY = "inventory"
    ISSUE = "issue"
    PURCHASE = "purchase"
    USER = "user"
    SYSTEM = "system"


class ActivityType(str, Enum):
    """Dashboard activity feed entry type."""
    ISSUE = "issue"
    PURCHASE = "purchase"
    INVENTORY = "inventory"
    USER = "user"


class User(WireModel):
    """
    An account that can sign in.

    Passwords are stored in plain text, as in the system this core serves;
    that is not acceptable for a real deployment.
    """

    id: str = ""
    username: str
    name: str
    password: str
    role: Role = Role.USER
    process: Optional[str] = None  # department / process label

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class ItemOption(WireModel):
    """Size/color variant of an item."""

    size: Optional[str] = None
    color: Optional[str] = None


class Item(WireModel):
    """A stocked supply item. Stock is always counted in "each" units."""

    id: str = ""
    name: str
    description: str = ""
    category: str = ""
    unit: UnitType = UnitType.EACH
    units_per_box: Optional[int] = Field(None, gt=0)
    option: Optional[ItemOption] = None
    photo: Optional[str] = None
    sku: str = ""
    threshold: int = Field(default=0, ge=0)
    stock: int = Field(default=0, ge=0)


class RequestLineItem(WireModel):
    """One requested item; item_id may point at an item that no longer exists."""

    item_id: str
    quantity: int = Field(..., gt=0)
    unit: UnitType = UnitType.EACH
    note: Optional[str] = None


class IssueRequest(WireModel):
    """A request to draw stock."""

    id: str = ""
    created_at: str = ""
    updated_at: str = ""
    requested_by: str
    status: IssueStatus = IssueStatus.DRAFT
    line_items: List[RequestLineItem] = Field(default_factory=list)
    memo: Optional[str] = None


class PurchaseRequest(WireModel):
    """A request to buy stock."""

    id: str = ""
    created_at: str = ""
    updated_at: str = ""
    requested_by: str
    status: PurchaseStatus = PurchaseStatus.DRAFT
    line_items: List[RequestLineItem] = Field(default_factory=list)
    memo: Optional[str] = None
    attachment_name: Optional[str] = None


class AuditLog(WireModel):
    """A record of a state-changing action."""

    id: str
    actor_id: str
    action: str
    target: str
    timestamp: str
    category: AuditCategory = AuditCategory.SYSTEM
    meta: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('meta', mode='before')
    @classmethod
    def default_meta(cls, v: Any) -> Any:
        """Older payloads omit meta or send null."""
        return {} if v is None else v


class ActivitySummary(WireModel):
    """A human-readable dashboard feed entry."""

    id: str
    type: ActivityType
    description: str
    timestamp: str


class AppState(WireModel):
    """
    The single in-memory aggregate of all domain entities.

    Audit logs and activities are kept newest-first.
    """

    users: List[User] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)
    issue_requests: List[IssueRequest] = Field(default_factory=list)
    purchase_requests: List[PurchaseRequest] = Field(default_factory=list)
    audit_logs: List[AuditLog] = Field(default_factory=list)
    activities: List[ActivitySummary] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "AppState":
        """
        Build an AppState from a decoded JSON payload.

        Raises:
            pydantic.ValidationError: If the payload does not match the shape
        """
        return cls.model_validate(payload)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "users": [{"id": "admin-1", "username": "admin", "name": "Administrator",
                       "password": "admin1234", "role": "admin"}],
            "items": [{"id": "item-1", "name": "A4 Paper", "unit": "box", "unitsPerBox": 10,
                       "sku": "ST-001", "threshold": 5, "stock": 12}],
            "issueRequests": [],
            "purchaseRequests": [],
            "auditLogs": [],
            "activities": [],
        }
    })
