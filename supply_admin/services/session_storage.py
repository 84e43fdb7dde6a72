"""
Session marker persistence.

Remembers which user is signed in across restarts. Read and written by the
authentication layer; kept here next to the other storage helpers.
"""

import json
from typing import Optional

from pydantic import ValidationError

from supply_admin.models import AppState, SessionPayload, User
from supply_admin.services.storage import PersistentStorage
from supply_admin.utils import get_logger

SESSION_KEY = "supply-admin:session"


class SessionStorage:
    """Load/save/clear the ``{userId}`` session marker."""

    def __init__(self, storage: PersistentStorage, key: str = SESSION_KEY) -> None:
        self.storage = storage
        self.key = key
        self.logger = get_logger("session_storage")

    def load(self) -> Optional[SessionPayload]:
        """
        Read the session marker.

        Returns:
            SessionPayload, or None when absent or unreadable (an unreadable
            marker is cleared)
        """
        raw = self.storage.get_item(self.key)
        if not raw:
            return None
        try:
            return SessionPayload.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            self.logger.error(f"Failed to parse session marker: {e}")
            self.clear()
            return None

    def save(self, payload: SessionPayload) -> None:
        self.storage.set_item(self.key, json.dumps(payload.to_payload()))

    def clear(self) -> None:
        self.storage.remove_item(self.key)


def resolve_session_user(state: AppState, payload: Optional[SessionPayload]) -> Optional[User]:
    """The user a session points at, or None when it is missing or was deleted."""
    if payload is None:
        return None
    return next((user for user in state.users if user.id == payload.user_id), None)
