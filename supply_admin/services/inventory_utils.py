"""
Inventory helpers and read-only selectors over AppState.

Every lookup tolerates request lines that point at deleted items: they
render as a placeholder instead of raising.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from supply_admin.config import get_config_manager
from supply_admin.models import (
    ActivitySummary,
    AppState,
    AuditCategory,
    IssueStatus,
    Item,
    PurchaseStatus,
    RequestLineItem,
    UnitType,
)

UNKNOWN_ITEM_LABEL = "unknown item"
NO_ITEMS_LABEL = "no requested items"
DEFAULT_UNITS_PER_BOX = 10


@dataclass
class StockBreakdown:
    """Stock expressed as boxes plus loose units."""
    boxes: Optional[int]
    remainder: Optional[int]
    units_per_box: Optional[int]
    total_each: int


@dataclass
class InventoryMovement:
    """A stock change extracted from the audit trail."""
    id: str
    item: str
    delta: int
    note: Optional[str]
    timestamp: str


def find_item(items: Sequence[Item], item_id: str) -> Optional[Item]:
    """Return the item with ``item_id``, or None when it no longer exists."""
    for item in items:
        if item.id == item_id:
            return item
    return None


def item_display_name(items: Sequence[Item], item_id: str) -> str:
    """Item name for display; dangling ids render as a placeholder."""
    item = find_item(items, item_id)
    return item.name if item is not None else UNKNOWN_ITEM_LABEL


def describe_request_target(
    line_items: Sequence[RequestLineItem],
    items: Sequence[Item],
) -> Tuple[str, List[str]]:
    """
    Build the audit target label for a request.

    Args:
        line_items: Request lines, in order
        items: Current item list

    Returns:
        (label, resolved item names). The label is the first item's name,
        with an "and N more" suffix when there are further lines.
    """
    if not line_items:
        return NO_ITEMS_LABEL, []

    item_names = [item_display_name(items, line.item_id) for line in line_items]
    extra = len(item_names) - 1
    label = f"{item_names[0]} and {extra} more" if extra > 0 else item_names[0]
    return label, item_names


def get_stock_breakdown(item: Item) -> StockBreakdown:
    """Split an item's stock into boxes and loose units when it has a box size."""
    units_per_box = item.units_per_box if item.units_per_box and item.units_per_box > 0 else None
    if units_per_box is None:
        return StockBreakdown(boxes=None, remainder=None, units_per_box=None, total_each=item.stock)
    boxes, remainder = divmod(item.stock, units_per_box)
    return StockBreakdown(
        boxes=boxes,
        remainder=remainder,
        units_per_box=units_per_box,
        total_each=item.stock,
    )


def format_stock_summary(item: Item) -> str:
    """Human-readable stock, e.g. "1 box 2 each (12 each total)"."""
    breakdown = get_stock_breakdown(item)
    if breakdown.units_per_box is None:
        return f"{breakdown.total_each} each"
    return f"{breakdown.boxes} box {breakdown.remainder} each ({breakdown.total_each} each total)"


def convert_request_line_to_each(line: RequestLineItem, item: Optional[Item]) -> int:
    """
    Quantity of a request line in "each" units.

    Lines for unknown items, or box lines for items without a box size,
    are taken at face value.
    """
    if item is None:
        return line.quantity
    if line.unit == UnitType.BOX and item.units_per_box and item.units_per_box > 0:
        return line.quantity * item.units_per_box
    return line.quantity


def calculate_total_quantity(
    line_items: Sequence[RequestLineItem],
    items: Sequence[Item],
    unit: UnitType = UnitType.EACH,
    default_units_per_box: int = DEFAULT_UNITS_PER_BOX,
) -> int:
    """
    Sum request quantities in the requested unit.

    Lines for deleted items are skipped. Box lines counted in "each" use
    the item's box size, or ``default_units_per_box`` when it has none.
    """
    total = 0
    for line in line_items:
        item = find_item(items, line.item_id)
        if item is None:
            continue
        if line.unit == unit:
            total += line.quantity
            continue
        conversion = 1
        if item.unit == UnitType.BOX and unit == UnitType.EACH:
            conversion = item.units_per_box or default_units_per_box
        total += line.quantity * conversion
    return total


def is_low_stock(item: Item) -> bool:
    """An item is low once stock falls to its reorder threshold."""
    return item.stock <= item.threshold


def low_stock_items(state: AppState) -> List[Item]:
    """Items at or below their reorder threshold, in list order."""
    return [item for item in state.items if is_low_stock(item)]


def recent_activities(state: AppState, limit: int = 6) -> List[ActivitySummary]:
    """Newest activity feed entries."""
    return state.activities[:limit]


def inventory_movements(state: AppState, limit: int = 10) -> List[InventoryMovement]:
    """Recent stock adjustments, newest first."""
    movements = []
    for log in state.audit_logs:
        if log.category != AuditCategory.INVENTORY:
            continue
        try:
            delta = int(log.meta.get("delta", 0) or 0)
        except (TypeError, ValueError):
            delta = 0
        note = log.meta.get("note")
        movements.append(InventoryMovement(
            id=log.id,
            item=log.target,
            delta=delta,
            note=note if isinstance(note, str) else None,
            timestamp=log.timestamp,
        ))
        if len(movements) >= limit:
            break
    return movements


def pending_request_counts(state: AppState) -> Dict[str, int]:
    """Requests waiting for an admin decision or fulfilment."""
    return {
        "issue_submitted": sum(1 for r in state.issue_requests if r.status == IssueStatus.SUBMITTED),
        "issue_approved": sum(1 for r in state.issue_requests if r.status == IssueStatus.APPROVED),
        "purchase_submitted": sum(
            1 for r in state.purchase_requests if r.status == PurchaseStatus.SUBMITTED
        ),
        "purchase_approved": sum(
            1 for r in state.purchase_requests if r.status == PurchaseStatus.APPROVED
        ),
    }


@dataclass
class DashboardSummary:
    """Everything the admin dashboard shows, computed in one pass."""
    low_stock: List[Item]
    recent_activities: List[ActivitySummary]
    movements: List[InventoryMovement]
    pending_counts: Dict[str, int]
    pending_issue_each: int


def build_dashboard_summary(state: AppState, config=None) -> DashboardSummary:
    """
    Build the dashboard view of the state.

    Args:
        state: Current aggregate
        config: ConfigManager supplying dashboard.recent_activity_limit and
            inventory.default_units_per_box (defaults to the global one)

    Returns:
        DashboardSummary
    """
    config = config or get_config_manager()

    limit = config.get("dashboard.recent_activity_limit", 6)
    units_per_box = config.get("inventory.default_units_per_box", DEFAULT_UNITS_PER_BOX)

    # Stock still to be drawn for submitted and approved issue requests
    open_statuses = (IssueStatus.SUBMITTED, IssueStatus.APPROVED)
    pending_each = sum(
        calculate_total_quantity(request.line_items, state.items, UnitType.EACH, units_per_box)
        for request in state.issue_requests
        if request.status in open_statuses
    )

    return DashboardSummary(
        low_stock=low_stock_items(state),
        recent_activities=recent_activities(state, limit),
        movements=inventory_movements(state),
        pending_counts=pending_request_counts(state),
        pending_issue_each=pending_each,
    )
