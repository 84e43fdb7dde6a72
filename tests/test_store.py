"""
Tests for AppStore dispatch, subscriptions and helpers.
"""

import pytest

from supply_admin.models import AppState, Hydrate, Item, UpdateItem
from supply_admin.services import AppStore


class TestAppStore:
    """Tests for the application store."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.store = AppStore()
        self.calls = []
        self.unsubscribe = self.store.subscribe(
            lambda previous, current, action: self.calls.append((previous, current, action))
        )

    def test_starts_with_seed(self):
        assert [item.id for item in self.store.state.items] == ["item-1", "item-2"]

    def test_dispatch_notifies_with_previous_and_current(self):
        before = self.store.state
        after = self.store.adjust_inventory("item-2", 45, "admin-1")

        assert self.store.state is after
        assert len(self.calls) == 1
        previous, current, action = self.calls[0]
        assert previous is before
        assert current is after
        assert action.stock == 45

    def test_noop_does_not_notify(self):
        before = self.store.state
        self.store.dispatch(UpdateItem(item=Item(id="missing", name="x"), actor_id="a"))
        assert self.store.state is before
        assert self.calls == []

    def test_hydrate_always_notifies(self):
        same = self.store.state
        self.store.hydrate(same)
        assert len(self.calls) == 1
        assert isinstance(self.calls[0][2], Hydrate)

        replacement = AppState()
        self.store.hydrate(replacement)
        assert self.store.state is replacement

    def test_unsubscribe(self):
        self.unsubscribe()
        self.store.delete_item("item-1", "admin-1")
        assert self.calls == []
        # Removing twice is harmless
        self.unsubscribe()

    def test_adjust_inventory_clamps_negative_stock(self):
        self.store.adjust_inventory("item-2", -5, "admin-1")
        assert self.store.get_item("item-2").stock == 0
        assert self.store.state.audit_logs[0].meta["delta"] == -50

    def test_add_item_assigns_id(self):
        self.store.add_item(Item(name="Scissors"), "admin-1")
        added = self.store.state.items[-1]
        assert added.name == "Scissors"
        assert added.id
        assert self.store.get_item(added.id) == added

    def test_import_items_assigns_missing_ids(self):
        self.store.import_items([Item(id="keep", name="Tape"), Item(name="Glue")], "admin-1")
        ids = [item.id for item in self.store.state.items]
        assert ids[0] == "keep"
        assert ids[1]
        assert self.store.state.audit_logs[0].meta == {"count": 2}

    def test_audit_helpers(self):
        self.store.clear_audit_logs("admin-1")
        entry_id = self.store.state.audit_logs[0].id
        self.store.delete_audit_log(entry_id, "admin-1")
        assert self.store.state.audit_logs[0].meta == {"removedLogId": entry_id}
