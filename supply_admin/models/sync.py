"""
Sync data models.

Value types exchanged between the repository layer, the sync channel and
the orchestrator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from supply_admin.models.app_state import AppState, WireModel

STATE_UPDATED = "state-updated"


class SyncSource(str, Enum):
    """Where the currently loaded state came from."""
    REMOTE = "remote"
    LOCAL = "local"
    SEED = "seed"
    REALTIME = "realtime"
    CACHE = "cache"
    CUSTOM = "custom"


@dataclass
class LoadResult:
    """Outcome of a repository load."""
    state: AppState
    source: SyncSource
    error: Optional[str] = None  # set when the load fell back after a failure


class SyncInfo(WireModel):
    """Sync status surfaced to the UI."""

    is_syncing: bool = False
    last_synced_at: Optional[str] = None
    source: SyncSource = SyncSource.SEED
    error: Optional[str] = None


class SyncMessage(WireModel):
    """Cross-context notification that persisted state changed."""

    type: Literal["state-updated"] = STATE_UPDATED
    at: str
    origin_id: str = Field(..., min_length=1)


class SessionPayload(WireModel):
    """Persisted marker of the signed-in user."""

    user_id: str
