"""
Tests for wire models and small utilities.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from supply_admin.models import AppState, AuditLog, Item, SyncMessage
from supply_admin.utils import advance_timestamp, new_id, now_iso, parse_iso


class TestWireFormat:
    """Tests for camelCase serialization."""

    def test_payload_uses_camel_case(self, seed_state):
        payload = seed_state.to_payload()
        assert set(payload) == {"users", "items", "issueRequests", "purchaseRequests",
                                "auditLogs", "activities"}
        assert payload["items"][0]["unitsPerBox"] == 10
        assert payload["issueRequests"][0]["lineItems"][0]["itemId"] == "item-1"
        assert payload["auditLogs"][0]["actorId"] == "admin-1"

    def test_payload_parses_back(self, seed_state):
        assert AppState.from_payload(seed_state.to_payload()) == seed_state

    def test_missing_meta_defaults_to_empty(self):
        log = AuditLog.model_validate({"id": "x", "actorId": "a", "action": "act",
                                       "target": "t", "timestamp": now_iso(), "meta": None})
        assert log.meta == {}

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            Item(name="Broken", stock=-1)

    def test_sync_message_requires_origin(self):
        with pytest.raises(ValidationError):
            SyncMessage.model_validate({"type": "state-updated", "at": now_iso()})
        with pytest.raises(ValidationError):
            SyncMessage.model_validate({"type": "other", "at": now_iso(), "originId": "a"})


class TestUtilities:
    """Tests for ids and timestamps."""

    def test_new_id(self):
        first, second = new_id(), new_id()
        assert len(first) == 12
        assert first != second
        assert first.isalnum()

    def test_parse_iso(self):
        assert parse_iso("") is None
        assert parse_iso("yesterday") is None
        assert parse_iso(now_iso()).tzinfo is not None

    def test_advance_timestamp_moves_past_future_value(self):
        future = parse_iso(now_iso()) + timedelta(seconds=30)
        advanced = advance_timestamp(future.isoformat(timespec="milliseconds"))
        assert parse_iso(advanced) == future + timedelta(milliseconds=1)

    def test_advance_timestamp_without_previous(self):
        assert parse_iso(advance_timestamp(None)) is not None

    def test_advance_timestamp_within_same_millisecond(self):
        previous = now_iso()
        for _ in range(2000):
            advanced = advance_timestamp(previous)
            assert parse_iso(advanced) > parse_iso(previous)
            previous = advanced
