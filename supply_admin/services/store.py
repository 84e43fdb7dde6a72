"""
Application state store.

Owns the single live AppState. All mutations go through ``dispatch``;
subscribers are told about every change after it is applied.
"""

import threading
from typing import Callable, List, Optional

from supply_admin.data import create_initial_state
from supply_admin.models import (
    AddItem,
    AdjustInventory,
    AppState,
    ClearAuditLogs,
    DeleteAuditLog,
    DeleteIssueRequest,
    DeleteItem,
    DeletePurchaseRequest,
    Hydrate,
    IssueRequest,
    Item,
    PurchaseRequest,
    RemoveUser,
    SetItems,
    UpdateItem,
    UpsertIssueRequest,
    UpsertPurchaseRequest,
    UpsertUser,
    User,
)
from supply_admin.services.inventory_utils import find_item
from supply_admin.services.reducer import reduce
from supply_admin.utils import new_id

# listener(previous, current, action)
StoreListener = Callable[[AppState, AppState, object], None]


class AppStore:
    """
    Single-instance store for the application state.

    Reduction is synchronous and serialized by a lock, so two actions never
    interleave. Listeners run after the lock is released, on the
    dispatching thread.
    """

    def __init__(self, initial_state: Optional[AppState] = None) -> None:
        """
        Initialize the store.

        Args:
            initial_state: Starting aggregate (defaults to the seed dataset)
        """
        self._state = initial_state if initial_state is not None else create_initial_state()
        self._lock = threading.RLock()
        self._listeners: List[StoreListener] = []

    @property
    def state(self) -> AppState:
        """Current aggregate. Treat it as read-only."""
        return self._state

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Called with (previous, current, action)

        Returns:
            Function that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action) -> AppState:
        """
        Apply an action and notify listeners.

        No-op actions leave the state untouched and notify nobody, except
        Hydrate, which always notifies so subscribers can settle their
        hydration bookkeeping.

        Returns:
            The resulting aggregate
        """
        with self._lock:
            previous = self._state
            current = reduce(previous, action)
            if current is previous and not isinstance(action, Hydrate):
                return current
            self._state = current
            listeners = list(self._listeners)

        for listener in listeners:
            listener(previous, current, action)
        return current

    def hydrate(self, state: AppState) -> AppState:
        """Replace the whole aggregate."""
        return self.dispatch(Hydrate(state=state))

    # Items

    def get_item(self, item_id: str) -> Optional[Item]:
        return find_item(self._state.items, item_id)

    def add_item(self, item: Item, actor_id: str) -> AppState:
        if not item.id:
            item = item.model_copy(update={"id": new_id()})
        return self.dispatch(AddItem(item=item, actor_id=actor_id))

    def update_item(self, item: Item, actor_id: str) -> AppState:
        return self.dispatch(UpdateItem(item=item, actor_id=actor_id))

    def delete_item(self, item_id: str, actor_id: str) -> AppState:
        return self.dispatch(DeleteItem(id=item_id, actor_id=actor_id))

    def import_items(self, items: List[Item], actor_id: str) -> AppState:
        """Replace the item list wholesale (CSV import); items without ids get one."""
        prepared = [item if item.id else item.model_copy(update={"id": new_id()}) for item in items]
        return self.dispatch(SetItems(items=prepared, actor_id=actor_id))

    def adjust_inventory(
        self,
        item_id: str,
        stock: int,
        actor_id: str,
        note: Optional[str] = None
    ) -> AppState:
        """Set an item's stock; negative or fractional input is clamped to a whole count >= 0."""
        clamped = max(0, int(stock))
        return self.dispatch(AdjustInventory(item_id=item_id, stock=clamped,
                                             actor_id=actor_id, note=note))

    # Requests

    def upsert_issue_request(self, request: IssueRequest, actor_id: str,
                             description: str) -> AppState:
        return self.dispatch(UpsertIssueRequest(request=request, actor_id=actor_id,
                                                description=description))

    def upsert_purchase_request(self, request: PurchaseRequest, actor_id: str,
                                description: str) -> AppState:
        return self.dispatch(UpsertPurchaseRequest(request=request, actor_id=actor_id,
                                                   description=description))

    def remove_issue_request(self, request_id: str, actor_id: str) -> AppState:
        return self.dispatch(DeleteIssueRequest(id=request_id, actor_id=actor_id))

    def remove_purchase_request(self, request_id: str, actor_id: str) -> AppState:
        return self.dispatch(DeletePurchaseRequest(id=request_id, actor_id=actor_id))

    # Users

    def upsert_user(self, user: User, actor_id: str, description: str) -> AppState:
        return self.dispatch(UpsertUser(user=user, actor_id=actor_id, description=description))

    def remove_user(self, user_id: str, actor_id: str) -> AppState:
        return self.dispatch(RemoveUser(id=user_id, actor_id=actor_id))

    # Audit trail

    def delete_audit_log(self, log_id: str, actor_id: str) -> AppState:
        return self.dispatch(DeleteAuditLog(id=log_id, actor_id=actor_id))

    def clear_audit_logs(self, actor_id: str) -> AppState:
        return self.dispatch(ClearAuditLogs(actor_id=actor_id))
