"""
Seed dataset.

A fresh default AppState used on first run, after a failed load and on
factory reset.
"""

from datetime import datetime, timedelta

from supply_admin.models import (
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


def _days_ago(days: int) -> str:
    return (datetime.now().astimezone() - timedelta(days=days)).isoformat(timespec="milliseconds")


def create_initial_state() -> AppState:
    """
    Build the default dataset.

    Returns:
        A new AppState; callers may mutate copies freely
    """
    return AppState(
        users=[
            User(
                id="admin-1",
                username="admin",
                name="System Administrator",
                password="admin1234",
                role=Role.ADMIN,
                process="Administration",
            ),
            User(
                id="user-1",
                username="jdoe",
                name="John Doe",
                password="password1",
                role=Role.USER,
                process="Assembly",
            ),
        ],
        items=[
            Item(
                id="item-1",
                name="A4 Copy Paper",
                description="A4 copy paper, 80gsm",
                category="Stationery",
                unit=UnitType.BOX,
                units_per_box=10,
                option=ItemOption(size="A4", color="White"),
                photo="",
                sku="ST-001",
                threshold=5,
                stock=12,
            ),
            Item(
                id="item-2",
                name="Ballpoint Pen",
                description="0.5mm black ballpoint pen",
                category="Stationery",
                unit=UnitType.EACH,
                option=ItemOption(color="Black"),
                photo="",
                sku="ST-002",
                threshold=20,
                stock=50,
            ),
        ],
        issue_requests=[
            IssueRequest(
                id="issue-1",
                created_at=_days_ago(5),
                updated_at=_days_ago(3),
                requested_by="user-1",
                status=IssueStatus.APPROVED,
                line_items=[
                    RequestLineItem(item_id="item-1", quantity=1, unit=UnitType.BOX),
                    RequestLineItem(item_id="item-2", quantity=10, unit=UnitType.EACH),
                ],
                memo="For the meeting room",
            )
        ],
        purchase_requests=[
            PurchaseRequest(
                id="purchase-1",
                created_at=_days_ago(10),
                updated_at=_days_ago(2),
                requested_by="user-1",
                status=PurchaseStatus.ORDERED,
                line_items=[RequestLineItem(item_id="item-1", quantity=20, unit=UnitType.BOX)],
                memo="Quarterly stock replenishment",
                attachment_name="quote.xlsx",
            )
        ],
        audit_logs=[
            AuditLog(
                id="log-1",
                actor_id="admin-1",
                action="system initialized",
                target="system",
                timestamp=_days_ago(15),
                category=AuditCategory.SYSTEM,
                meta={},
            )
        ],
        activities=[
            ActivitySummary(
                id="act-1",
                type=ActivityType.ISSUE,
                description="John Doe submitted a supply issue request.",
                timestamp=_days_ago(3),
            )
        ],
    )
