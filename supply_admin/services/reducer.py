"""
State reducer.

Pure transformation ``(AppState, Action) -> AppState``. Each mutation
prepends an audit entry and, for user-facing changes, an activity entry.
Actions whose target does not exist return the input state unchanged (the
same object), so callers can detect a no-op with ``is``.
"""

from typing import Any, Callable, Dict, List, Optional, Type

from supply_admin.models import (
    ActivitySummary,
    ActivityType,
    AddItem,
    AdjustInventory,
    AppState,
    AuditCategory,
    AuditLog,
    ClearAuditLogs,
    DeleteAuditLog,
    DeleteIssueRequest,
    DeleteItem,
    DeletePurchaseRequest,
    Hydrate,
    RemoveUser,
    Role,
    SetItems,
    UpdateItem,
    UpsertIssueRequest,
    UpsertPurchaseRequest,
    UpsertUser,
)
from supply_admin.services.inventory_utils import describe_request_target
from supply_admin.utils import advance_timestamp, new_id, now_iso


def _audit(
    actor_id: str,
    action: str,
    target: str,
    category: AuditCategory,
    timestamp: str,
    meta: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    return AuditLog(
        id=new_id(),
        actor_id=actor_id,
        action=action,
        target=target,
        timestamp=timestamp,
        category=category,
        meta=meta or {},
    )


def _activity(activity_type: ActivityType, description: str, timestamp: str) -> ActivitySummary:
    return ActivitySummary(
        id=new_id(),
        type=activity_type,
        description=description,
        timestamp=timestamp,
    )


def _prepend(state: AppState, audit: AuditLog, activity: Optional[ActivitySummary] = None,
             **changes: Any) -> AppState:
    changes["audit_logs"] = [audit, *state.audit_logs]
    if activity is not None:
        changes["activities"] = [activity, *state.activities]
    return state.model_copy(update=changes)


def _hydrate(state: AppState, action: Hydrate) -> AppState:
    return action.state


def _add_item(state: AppState, action: AddItem) -> AppState:
    item = action.item if action.item.id else action.item.model_copy(update={"id": new_id()})
    now = now_iso()
    audit = _audit(action.actor_id, "item registered", item.name, AuditCategory.ITEM, now,
                   {"sku": item.sku})
    activity = _activity(ActivityType.INVENTORY, f"{item.name} was added to the item list.", now)
    return _prepend(state, audit, activity, items=[*state.items, item])


def _set_items(state: AppState, action: SetItems) -> AppState:
    count = len(action.items)
    audit = _audit(action.actor_id, "items bulk uploaded", f"{count} items", AuditCategory.ITEM,
                   now_iso(), {"count": count})
    return _prepend(state, audit, items=list(action.items))


def _update_item(state: AppState, action: UpdateItem) -> AppState:
    updated = action.item
    if not any(item.id == updated.id for item in state.items):
        return state
    audit = _audit(action.actor_id, "item updated", updated.name, AuditCategory.ITEM, now_iso(),
                   {"stock": updated.stock})
    items = [updated if item.id == updated.id else item for item in state.items]
    return _prepend(state, audit, items=items)


def _delete_item(state: AppState, action: DeleteItem) -> AppState:
    deleted = next((item for item in state.items if item.id == action.id), None)
    if deleted is None:
        return state
    audit = _audit(action.actor_id, "item deleted", deleted.name, AuditCategory.ITEM, now_iso(),
                   {"sku": deleted.sku})
    return _prepend(state, audit, items=[item for item in state.items if item.id != action.id])


def _adjust_inventory(state: AppState, action: AdjustInventory) -> AppState:
    item = next((candidate for candidate in state.items if candidate.id == action.item_id), None)
    if item is None:
        return state

    now = now_iso()
    delta = action.stock - item.stock
    if delta > 0:
        direction = "inbound"
    elif delta < 0:
        direction = "outbound"
    else:
        direction = "adjusted"

    audit = _audit(action.actor_id, f"stock {direction}", item.name, AuditCategory.INVENTORY, now,
                   {"stock": action.stock, "note": action.note, "delta": delta})
    if delta == 0:
        description = f"{item.name} stock was adjusted to {action.stock}."
    else:
        sign = "+" if delta > 0 else ""
        description = f"{item.name} stock {direction} recorded. ({sign}{delta} -> {action.stock})"
    activity = _activity(ActivityType.INVENTORY, description, now)

    updated = item.model_copy(update={"stock": action.stock})
    items = [updated if candidate.id == item.id else candidate for candidate in state.items]
    return _prepend(state, audit, activity, items=items)


def _upsert_request(
    state: AppState,
    request,
    existing_list: List,
    actor_id: str,
    description: str,
    category: AuditCategory,
    activity_type: ActivityType,
    field_name: str,
) -> AppState:
    existing = next((req for req in existing_list if request.id and req.id == request.id), None)
    if existing is not None:
        stamped = request.model_copy(update={
            "created_at": existing.created_at,
            "updated_at": advance_timestamp(existing.updated_at),
        })
        updated_list = [stamped if req.id == stamped.id else req for req in existing_list]
    else:
        now = now_iso()
        stamped = request.model_copy(update={"id": new_id(), "created_at": now, "updated_at": now})
        updated_list = [stamped, *existing_list]

    label, item_names = describe_request_target(stamped.line_items, state.items)
    audit = _audit(actor_id, description, label, category, stamped.updated_at,
                   {"status": stamped.status.value, "items": item_names})
    activity = _activity(activity_type, description, stamped.updated_at)
    return _prepend(state, audit, activity, **{field_name: updated_list})


def _upsert_issue_request(state: AppState, action: UpsertIssueRequest) -> AppState:
    return _upsert_request(state, action.request, state.issue_requests, action.actor_id,
                           action.description, AuditCategory.ISSUE, ActivityType.ISSUE,
                           "issue_requests")


def _upsert_purchase_request(state: AppState, action: UpsertPurchaseRequest) -> AppState:
    return _upsert_request(state, action.request, state.purchase_requests, action.actor_id,
                           action.description, AuditCategory.PURCHASE, ActivityType.PURCHASE,
                           "purchase_requests")


def _delete_request(
    state: AppState,
    request_id: str,
    existing_list: List,
    actor_id: str,
    label_prefix: str,
    category: AuditCategory,
    activity_type: ActivityType,
    field_name: str,
) -> AppState:
    target = next((req for req in existing_list if req.id == request_id), None)
    if target is None:
        return state
    now = now_iso()
    label, item_names = describe_request_target(target.line_items, state.items)
    audit = _audit(actor_id, f"{label_prefix} deleted", label, category, now,
                   {"status": target.status.value, "items": item_names})
    activity = _activity(activity_type, f"A {label_prefix} for {label} was deleted.", now)
    remaining = [req for req in existing_list if req.id != request_id]
    return _prepend(state, audit, activity, **{field_name: remaining})


def _delete_issue_request(state: AppState, action: DeleteIssueRequest) -> AppState:
    return _delete_request(state, action.id, state.issue_requests, action.actor_id,
                           "issue request", AuditCategory.ISSUE, ActivityType.ISSUE,
                           "issue_requests")


def _delete_purchase_request(state: AppState, action: DeletePurchaseRequest) -> AppState:
    return _delete_request(state, action.id, state.purchase_requests, action.actor_id,
                           "purchase request", AuditCategory.PURCHASE, ActivityType.PURCHASE,
                           "purchase_requests")


def _is_last_admin(state: AppState, user_id: str) -> bool:
    admins = [user for user in state.users if user.role == Role.ADMIN]
    return len(admins) == 1 and admins[0].id == user_id


def _upsert_user(state: AppState, action: UpsertUser) -> AppState:
    existing = next((u for u in state.users if action.user.id and u.id == action.user.id), None)
    if existing is not None:
        # Demoting the only admin would lock everyone out of admin functions
        if action.user.role != Role.ADMIN and _is_last_admin(state, existing.id):
            return state
        user = action.user
        users = [user if u.id == user.id else u for u in state.users]
    else:
        user = action.user.model_copy(update={"id": new_id()})
        users = [*state.users, user]

    now = now_iso()
    audit = _audit(action.actor_id, action.description, user.name, AuditCategory.USER, now,
                   {"role": user.role.value, "process": user.process})
    activity = _activity(ActivityType.USER, action.description, now)
    return _prepend(state, audit, activity, users=users)


def _remove_user(state: AppState, action: RemoveUser) -> AppState:
    user = next((u for u in state.users if u.id == action.id), None)
    if user is None or _is_last_admin(state, user.id):
        return state
    audit = _audit(action.actor_id, "user deleted", user.name, AuditCategory.USER, now_iso(),
                   {"role": user.role.value, "process": user.process})
    return _prepend(state, audit, users=[u for u in state.users if u.id != action.id])


def _delete_audit_log(state: AppState, action: DeleteAuditLog) -> AppState:
    removed = next((log for log in state.audit_logs if log.id == action.id), None)
    if removed is None:
        return state
    audit = _audit(action.actor_id, "audit entry deleted", removed.action, AuditCategory.SYSTEM,
                   now_iso(), {"removedLogId": removed.id})
    remaining = [log for log in state.audit_logs if log.id != action.id]
    return state.model_copy(update={"audit_logs": [audit, *remaining]})


def _clear_audit_logs(state: AppState, action: ClearAuditLogs) -> AppState:
    audit = _audit(action.actor_id, "audit log cleared", "audit-log", AuditCategory.SYSTEM,
                   now_iso(), {"removedCount": len(state.audit_logs)})
    return state.model_copy(update={"audit_logs": [audit]})


_HANDLERS: Dict[Type, Callable[[AppState, Any], AppState]] = {
    Hydrate: _hydrate,
    AddItem: _add_item,
    SetItems: _set_items,
    UpdateItem: _update_item,
    DeleteItem: _delete_item,
    AdjustInventory: _adjust_inventory,
    UpsertIssueRequest: _upsert_issue_request,
    UpsertPurchaseRequest: _upsert_purchase_request,
    DeleteIssueRequest: _delete_issue_request,
    DeletePurchaseRequest: _delete_purchase_request,
    UpsertUser: _upsert_user,
    RemoveUser: _remove_user,
    DeleteAuditLog: _delete_audit_log,
    ClearAuditLogs: _clear_audit_logs,
}


def reduce(state: AppState, action) -> AppState:
    """
    Apply an action to the state.

    Args:
        state: Current aggregate (never mutated)
        action: One of the actions in supply_admin.models.actions

    Returns:
        New aggregate, or ``state`` itself when the action changes nothing
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action)
