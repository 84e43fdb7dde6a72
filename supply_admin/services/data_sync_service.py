"""
Data sync service.

Lifecycle glue between the store, the repository chain and the sync
channel: hydrates on start, persists every later change, pulls state when
another context announces an update, and reports sync status.
"""

import threading
from typing import Callable, Optional

from supply_admin.config import ConfigManager, get_config_manager
from supply_admin.data import create_initial_state
from supply_admin.models import (
    STATE_UPDATED,
    AppState,
    Hydrate,
    SyncInfo,
    SyncMessage,
    SyncSource,
)
from supply_admin.services.repository import (
    DataRepository,
    DataRepositoryManager,
    HttpRepository,
    LocalStorageRepository,
)
from supply_admin.services.storage import get_persistent_storage
from supply_admin.services.store import AppStore
from supply_admin.services.sync_channel import (
    CHANNEL_NAME,
    BroadcastHub,
    SyncChannel,
    SyncHandler,
    create_sync_channel,
)
from supply_admin.utils import get_audit_logger, get_logger, now_iso

ChannelFactory = Callable[[SyncHandler], SyncChannel]


class DataSyncService:
    """
    Keeps the store and the persisted state in step.

    Two one-shot flags prevent feedback loops: ``_skip_persist`` swallows
    the store change caused by a hydration, and ``_skip_broadcast``
    suppresses the notification for a save that only echoes state another
    context already announced.
    """

    def __init__(
        self,
        manager: DataRepositoryManager,
        store: Optional[AppStore] = None,
        channel_factory: Optional[ChannelFactory] = None,
    ) -> None:
        """
        Initialize data sync service.

        Args:
            manager: Repository manager used for load/save/clear
            store: Store to drive (a new seeded store by default)
            channel_factory: Builds the sync channel from a message handler
        """
        self.manager = manager
        self.store = store or AppStore()
        self.channel_factory = channel_factory or (lambda handler: create_sync_channel(handler))

        self.logger = get_logger("data_sync_service")
        self.audit_logger = get_audit_logger()

        self._lock = threading.RLock()
        self._channel: Optional[SyncChannel] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._started = False
        self._closed = False

        # Sync status
        self._is_hydrated = False
        self._is_syncing = False
        self._last_synced_at: Optional[str] = None
        self._source = SyncSource.SEED
        self._error: Optional[str] = None

        self._skip_persist = False
        self._skip_broadcast = False

    def __enter__(self) -> "DataSyncService":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_hydrated(self) -> bool:
        return self._is_hydrated

    @property
    def state(self) -> AppState:
        return self.store.state

    @property
    def sync_info(self) -> SyncInfo:
        """Snapshot of the current sync status."""
        return SyncInfo(
            is_syncing=self._is_syncing,
            last_synced_at=self._last_synced_at,
            source=self._source,
            error=self._error,
        )

    @property
    def channel(self) -> Optional[SyncChannel]:
        return self._channel

    def start(self) -> None:
        """
        Hydrate the store from the repository and open the sync channel.

        A failed load never leaves the service unusable: the store is
        seeded and the error is recorded in sync_info.
        """
        with self._lock:
            if self._started:
                return
            self._started = True
            self._unsubscribe = self.store.subscribe(self._on_store_change)

            self._is_syncing = True
            try:
                result = self.manager.load_data_state()
            except Exception as e:
                self.logger.error(f"Failed to load state, starting from seed: {e}")
                self._hydrate(create_initial_state())
                self._source = SyncSource.SEED
                self._last_synced_at = now_iso()
                self._error = str(e)
            else:
                self._hydrate(result.state)
                self._source = result.source
                self._last_synced_at = now_iso()
                self._error = result.error
                self.logger.info(f"Hydrated state from {result.source.value}")
            finally:
                self._is_hydrated = True
                self._is_syncing = False

            self._channel = self.channel_factory(self._on_sync_message)

    def close(self) -> None:
        """Dispose the sync channel and detach from the store."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            channel, self._channel = self._channel, None
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None

        # Outside the lock: disposing joins the observer thread, which may be
        # waiting on the lock in _on_sync_message
        if channel is not None:
            channel.dispose()

    def refresh(self) -> None:
        """
        Reload from the repository and re-hydrate.

        Raises:
            Exception: The load failure, after recording it in sync_info
        """
        with self._lock:
            self._is_syncing = True
            try:
                result = self.manager.load_data_state()
                self._skip_broadcast = True
                self._hydrate(result.state)
                self._source = result.source
                self._last_synced_at = now_iso()
                self._error = result.error
                self._is_hydrated = True
            except Exception as e:
                self.logger.error(f"Failed to refresh state: {e}")
                self._error = str(e)
                raise
            finally:
                self._clear_skip_flags()
                self._is_syncing = False

    def reset(self) -> None:
        """
        Factory reset: seed the store, clear the repository, save the seed.

        Raises:
            Exception: The repository failure, after recording it in sync_info
        """
        with self._lock:
            seeded = create_initial_state()
            self._hydrate(seeded)
            self._source = SyncSource.SEED
            self._is_hydrated = True
            self._is_syncing = True
            try:
                self.manager.clear_data_state()
                self.manager.save_data_state(seeded)
                synced_at = now_iso()
                self._last_synced_at = synced_at
                self._error = None
                self.logger.info("State reset to seed data")
            except Exception as e:
                self.logger.error(f"Failed to reset state: {e}")
                self._error = str(e)
                raise
            finally:
                self._is_syncing = False
            channel = self._channel

        if channel is not None:
            channel.notify(synced_at)

    def _hydrate(self, state: AppState) -> None:
        self._skip_persist = True
        self.store.hydrate(state)

    def _clear_skip_flags(self) -> None:
        self._skip_persist = False
        self._skip_broadcast = False

    def _on_store_change(self, previous: AppState, current: AppState, action) -> None:
        with self._lock:
            if not isinstance(action, Hydrate):
                known = {log.id for log in previous.audit_logs}
                self.audit_logger.log_entries(
                    [log for log in current.audit_logs if log.id not in known]
                )

            if self._skip_persist:
                self._clear_skip_flags()
                return
            if not self._is_hydrated or self._closed:
                return
            synced_at = self._persist(current)
            channel = self._channel

        # Notify outside the lock: a peer's handler takes its own lock
        if synced_at is not None and channel is not None:
            channel.notify(synced_at)

    def _persist(self, state: AppState) -> Optional[str]:
        """
        Save the state and record the outcome.

        Returns:
            Timestamp to announce to other contexts, or None when the save
            failed or only echoed a remote update
        """
        self._is_syncing = True
        try:
            self.manager.save_data_state(state)
        except Exception as e:
            self.logger.error(f"Failed to save state: {e}")
            self._error = str(e)
            return None
        else:
            synced_at = now_iso()
            self._last_synced_at = synced_at
            self._error = None
            if self._skip_broadcast:
                self._skip_broadcast = False
                return None
            return synced_at
        finally:
            self._is_syncing = False

    def _on_sync_message(self, message: SyncMessage) -> None:
        if message.type != STATE_UPDATED:
            return
        with self._lock:
            if self._closed:
                return
            self._is_syncing = True
            try:
                result = self.manager.load_data_state()
                self._skip_broadcast = True
                self._hydrate(result.state)
                if result.source in (SyncSource.SEED, SyncSource.CACHE):
                    self._source = result.source
                else:
                    self._source = SyncSource.REALTIME
                self._last_synced_at = message.at
                self._error = result.error
                self._is_hydrated = True
            except Exception as e:
                self.logger.error(f"Failed to apply remote update: {e}")
                self._error = str(e)
            finally:
                self._clear_skip_flags()
                self._is_syncing = False


def create_data_sync_service(
    config: Optional[ConfigManager] = None,
    session=None,
    hub: Optional[BroadcastHub] = None,
    store: Optional[AppStore] = None,
) -> DataSyncService:
    """
    Build a DataSyncService from configuration.

    Args:
        config: Configuration (defaults to the global ConfigManager)
        session: requests-style session for the HTTP repository
        hub: Broadcast hub for the broadcast transport
        store: Store to drive

    Returns:
        DataSyncService, not yet started

    Raises:
        ValueError: If repository.backend is unknown
    """
    config = config or get_config_manager()
    storage = get_persistent_storage(config.get("storage.data_dir"))

    backend = config.get("repository.backend", "remote")
    repository: DataRepository
    if backend == "remote":
        repository = HttpRepository(
            config.get_api_base_url(),
            session=session,
            timeout=config.get("repository.timeout_seconds", 10),
        )
        source = SyncSource.REMOTE
    elif backend == "local":
        cipher = config.get_cipher() if config.get("storage.encrypted", False) else None
        repository = LocalStorageRepository(storage, cipher=cipher)
        source = SyncSource.LOCAL
    else:
        raise ValueError(f"Unknown repository backend: {backend}")

    transport = config.get("sync.transport", "auto")
    name = config.get("sync.channel_name", CHANNEL_NAME)

    def channel_factory(on_message: SyncHandler) -> SyncChannel:
        return create_sync_channel(on_message, transport=transport, storage=storage,
                                   hub=hub, name=name)

    return DataSyncService(DataRepositoryManager(repository, source), store=store,
                           channel_factory=channel_factory)
