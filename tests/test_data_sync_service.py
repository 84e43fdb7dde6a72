"""
Tests for the data sync service.

Two services sharing one repository and one broadcast hub stand in for two
open clients.
"""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from supply_admin.api import create_app
from supply_admin.config import ConfigManager
from supply_admin.models import AppState, Item, SyncSource
from supply_admin.services import (
    STATE_STORAGE_KEY,
    AppStore,
    BroadcastHub,
    BroadcastSyncChannel,
    DataRepository,
    DataRepositoryManager,
    DataSyncService,
    FileStorage,
    InMemoryRepository,
    LocalStorageRepository,
    RepositoryError,
    StorageEventSyncChannel,
    create_data_sync_service,
    get_persistent_storage,
)


class BrokenRepository(DataRepository):
    """Repository that cannot load or save."""

    def load(self):
        raise RepositoryError("backend offline")

    def save(self, state):
        raise RepositoryError("backend offline")

    def clear(self):
        raise RepositoryError("backend offline")


class TestDataSyncService:
    """Tests for hydration, persistence and cross-client updates."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.hub = BroadcastHub()
        self.repository = InMemoryRepository()
        self.services = []

        yield

        for service in self.services:
            service.close()

    def _service(self, repository=None) -> DataSyncService:
        manager = DataRepositoryManager(repository or self.repository)
        service = DataSyncService(
            manager,
            channel_factory=lambda handler: BroadcastSyncChannel(handler, hub=self.hub),
        )
        self.services.append(service)
        return service

    def test_start_seeds_empty_repository(self):
        service = self._service()
        assert not service.is_hydrated

        service.start()

        assert service.is_hydrated
        info = service.sync_info
        assert info.source == SyncSource.SEED
        assert info.last_synced_at
        assert info.error is None
        assert not info.is_syncing
        # Seed saved once by the repository manager, hydration itself not persisted
        assert self.repository.save_count == 1

    def test_start_reports_stored_state(self):
        stored = AppState(items=[Item(id="x", name="Tape")])
        self.repository.state = stored
        service = self._service()
        service.start()
        assert service.state is stored
        assert service.sync_info.source == SyncSource.REMOTE
        assert self.repository.save_count == 0

    def test_changes_are_persisted(self):
        service = self._service()
        service.start()

        service.store.adjust_inventory("item-2", 44, "admin-1")

        assert self.repository.save_count == 2
        assert self.repository.state is service.state
        assert service.sync_info.error is None

    def test_change_reaches_other_client(self):
        first = self._service()
        second = self._service()
        first.start()
        second.start()
        saves_before = self.repository.save_count

        first.store.adjust_inventory("item-2", 7, "admin-1")

        assert second.store.get_item("item-2").stock == 7
        assert second.sync_info.source == SyncSource.REALTIME
        # Only the originating client writes
        assert self.repository.save_count == saves_before + 1

        # The receiving client keeps working normally afterwards
        second.store.adjust_inventory("item-2", 9, "admin-1")
        assert first.store.get_item("item-2").stock == 9
        assert self.repository.save_count == saves_before + 2

    def test_failed_start_falls_back_to_seed(self):
        service = self._service(BrokenRepository())
        service.start()
        info = service.sync_info
        assert service.is_hydrated
        assert info.source == SyncSource.SEED
        assert "backend offline" in info.error
        assert [item.id for item in service.state.items] == ["item-1", "item-2"]

    def test_failed_save_keeps_local_change(self):
        service = self._service(BrokenRepository())
        service.start()
        service.store.adjust_inventory("item-1", 1, "admin-1")
        assert service.store.get_item("item-1").stock == 1
        assert "backend offline" in service.sync_info.error
        assert not service.sync_info.is_syncing

    def test_refresh_picks_up_external_changes(self):
        service = self._service()
        service.start()
        external = AppState(items=[Item(id="ext", name="External")])
        self.repository.state = external

        service.refresh()

        assert service.state is external
        assert service.sync_info.source == SyncSource.REMOTE
        # Hydration from refresh is not written back
        assert self.repository.state is external

    def test_refresh_failure_is_raised_and_recorded(self):
        service = self._service()
        service.start()
        service.manager.set_repository(BrokenRepository())

        with pytest.raises(RepositoryError):
            service.refresh()
        assert "backend offline" in service.sync_info.error

        # Flags are cleared, so the next change still persists
        service.manager.set_repository(None)
        service.store.adjust_inventory("item-2", 3, "admin-1")
        assert self.repository.state is service.state

    def test_reset_restores_seed_and_notifies(self):
        first = self._service()
        second = self._service()
        first.start()
        second.start()
        first.store.delete_item("item-1", "admin-1")
        assert second.store.get_item("item-1") is None

        first.reset()

        assert [item.id for item in first.state.items] == ["item-1", "item-2"]
        assert len(first.state.audit_logs) == 1
        assert self.repository.state is first.state
        assert second.store.get_item("item-1") is not None
        assert first.sync_info.source == SyncSource.SEED

    def test_reset_failure_is_raised(self):
        service = self._service(BrokenRepository())
        service.start()
        with pytest.raises(RepositoryError):
            service.reset()
        assert service.sync_info.error

    def test_close_detaches(self):
        first = self._service()
        second = self._service()
        first.start()
        second.start()
        assert self.hub.subscriber_count(first.channel.name) == 2

        second.close()
        assert self.hub.subscriber_count(first.channel.name) == 1
        assert second.channel is None

        saves_before = self.repository.save_count
        second.store.adjust_inventory("item-2", 1, "admin-1")
        assert self.repository.save_count == saves_before

    def test_context_manager(self):
        service = self._service()
        with service as running:
            assert running.is_hydrated
        assert self.hub.subscriber_count("supply-admin:sync-channel") == 0

    def test_start_is_idempotent(self):
        service = self._service()
        service.start()
        service.start()
        assert self.hub.subscriber_count(service.channel.name) == 1

    def test_shared_store(self):
        store = AppStore(AppState())
        service = DataSyncService(DataRepositoryManager(self.repository), store=store,
                                  channel_factory=lambda handler: BroadcastSyncChannel(
                                      handler, hub=self.hub))
        self.services.append(service)
        service.start()
        assert service.store is store

    def test_audit_entries_are_mirrored_to_log(self, tmp_path):
        service = self._service()
        service.start()
        service.store.adjust_inventory("item-2", 60, "admin-1")

        log_text = (tmp_path / "logs" / "supply_admin.log").read_text(encoding="utf-8")
        assert "AUDIT: stock inbound on Ballpoint Pen by admin-1 [inventory]" in log_text

    def test_concurrent_dispatch_on_two_clients(self):
        first = self._service()
        second = self._service()
        first.start()
        second.start()

        def adjust(service, item_id):
            for stock in range(200):
                service.store.adjust_inventory(item_id, stock, "admin-1")

        threads = [
            threading.Thread(target=adjust, args=(first, "item-1"), daemon=True),
            threading.Thread(target=adjust, args=(second, "item-2"), daemon=True),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert not any(thread.is_alive() for thread in threads)
        assert not first.sync_info.is_syncing
        assert not second.sync_info.is_syncing


class TestStorageEventSync:
    """Tests for two clients sharing a data directory, watched by real observers."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.storage = FileStorage(str(tmp_path / "shared"))
        self.services = []

        yield

        for service in self.services:
            service.close()

    def _service(self) -> DataSyncService:
        service = DataSyncService(
            DataRepositoryManager(LocalStorageRepository(self.storage), SyncSource.LOCAL),
            channel_factory=lambda handler: StorageEventSyncChannel(handler, self.storage),
        )
        self.services.append(service)
        service.start()
        return service

    def _wait_for_stock(self, service, item_id, stock, timeout=10.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if service.store.get_item(item_id).stock == stock:
                return True
            time.sleep(0.05)
        return False

    def test_change_reaches_other_client_through_observer(self):
        first = self._service()
        second = self._service()

        first.store.adjust_inventory("item-2", 77, "admin-1")
        assert self._wait_for_stock(second, "item-2", 77)
        assert second.sync_info.source == SyncSource.REALTIME

        first.store.adjust_inventory("item-2", 78, "admin-1")
        assert self._wait_for_stock(second, "item-2", 78)

        second.store.adjust_inventory("item-1", 3, "admin-1")
        assert self._wait_for_stock(first, "item-1", 3)


class TestCreateDataSyncService:
    """Tests for building the service from configuration."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.config = ConfigManager(config_dir=str(tmp_path / "config"))
        self.hub = BroadcastHub()
        self.services = []

        yield

        for service in self.services:
            service.close()

    def _create(self, **kwargs) -> DataSyncService:
        service = create_data_sync_service(self.config, hub=self.hub, **kwargs)
        self.services.append(service)
        return service

    def test_local_backend_in_memory(self):
        self.config.set("repository.backend", "local")
        self.config.set("storage.data_dir", None)

        first = self._create()
        first.start()
        assert first.sync_info.source == SyncSource.SEED
        first.store.adjust_inventory("item-2", 5, "admin-1")

        second = self._create()
        second.start()
        assert second.sync_info.source == SyncSource.LOCAL
        assert second.store.get_item("item-2").stock == 5

    def test_local_backend_encrypted(self):
        self.config.set("repository.backend", "local")
        self.config.set("storage.data_dir", None)
        self.config.set("storage.encrypted", True)

        service = self._create()
        service.start()

        raw = get_persistent_storage(None).get_item(STATE_STORAGE_KEY)
        assert raw
        assert "admin1234" not in raw
        assert (self.config.config_dir / ".key").exists()

    def test_remote_backend(self, tmp_path):
        self.config.set("repository.base_url", "http://testserver/api")
        self.config.set("sync.transport", "none")
        client = TestClient(create_app(tmp_path / "server" / "app-state.json"))

        service = self._create(session=client)
        service.start()
        service.store.adjust_inventory("item-1", 30, "admin-1")

        response = client.get("/api/app-state")
        assert response.status_code == 200
        assert response.json()["items"][0]["stock"] == 30

    def test_unreachable_remote_backend(self):
        self.config.set("repository.base_url", "http://127.0.0.1:9/api")
        self.config.set("repository.timeout_seconds", 1)
        self.config.set("sync.transport", "none")

        service = self._create()
        service.start()
        assert service.sync_info.source == SyncSource.SEED
        assert service.sync_info.error

    def test_unknown_backend(self):
        self.config.set("repository.backend", "ftp")
        with pytest.raises(ValueError):
            create_data_sync_service(self.config)
