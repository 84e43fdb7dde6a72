"""
Services for the supply admin client core.
"""

from .data_sync_service import DataSyncService, create_data_sync_service
from .inventory_utils import (
    DEFAULT_UNITS_PER_BOX,
    DashboardSummary,
    InventoryMovement,
    StockBreakdown,
    build_dashboard_summary,
    calculate_total_quantity,
    convert_request_line_to_each,
    describe_request_target,
    find_item,
    format_stock_summary,
    get_stock_breakdown,
    inventory_movements,
    is_low_stock,
    item_display_name,
    low_stock_items,
    pending_request_counts,
    recent_activities,
)
from .reducer import reduce
from .repository import (
    STATE_STORAGE_KEY,
    DataRepository,
    DataRepositoryManager,
    HttpRepository,
    InMemoryRepository,
    LocalStorageRepository,
    RepositoryError,
    RepositoryUnreachableError,
)
from .session_storage import SESSION_KEY, SessionStorage, resolve_session_user
from .storage import (
    FileStorage,
    MemoryStorage,
    PersistentStorage,
    get_persistent_storage,
    reset_memory_storage,
)
from .store import AppStore
from .sync_channel import (
    CHANNEL_NAME,
    BroadcastHub,
    BroadcastSyncChannel,
    NullSyncChannel,
    StorageEventSyncChannel,
    SyncChannel,
    create_sync_channel,
    get_default_hub,
    reset_default_hub,
)

__all__ = [
    # Store
    "AppStore",
    "reduce",
    # Selectors
    "DEFAULT_UNITS_PER_BOX",
    "StockBreakdown",
    "InventoryMovement",
    "DashboardSummary",
    "build_dashboard_summary",
    "find_item",
    "item_display_name",
    "describe_request_target",
    "get_stock_breakdown",
    "format_stock_summary",
    "convert_request_line_to_each",
    "calculate_total_quantity",
    "is_low_stock",
    "low_stock_items",
    "recent_activities",
    "inventory_movements",
    "pending_request_counts",
    # Storage
    "PersistentStorage",
    "FileStorage",
    "MemoryStorage",
    "get_persistent_storage",
    "reset_memory_storage",
    "SESSION_KEY",
    "SessionStorage",
    "resolve_session_user",
    # Repositories
    "STATE_STORAGE_KEY",
    "RepositoryError",
    "RepositoryUnreachableError",
    "DataRepository",
    "HttpRepository",
    "LocalStorageRepository",
    "InMemoryRepository",
    "DataRepositoryManager",
    # Sync
    "CHANNEL_NAME",
    "SyncChannel",
    "NullSyncChannel",
    "BroadcastHub",
    "BroadcastSyncChannel",
    "StorageEventSyncChannel",
    "create_sync_channel",
    "get_default_hub",
    "reset_default_hub",
    "DataSyncService",
    "create_data_sync_service",
]
