"""
Tests for persistent storage and the session marker.
"""

import json

import pytest

from supply_admin.models import SessionPayload
from supply_admin.services import (
    FileStorage,
    MemoryStorage,
    SessionStorage,
    get_persistent_storage,
    reset_memory_storage,
    resolve_session_user,
)
from supply_admin.services.session_storage import SESSION_KEY


class TestFileStorage:
    """Tests for directory-backed storage."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.root = tmp_path / "store"
        self.storage = FileStorage(str(self.root))

    def test_creates_directory(self):
        assert self.root.is_dir()

    def test_set_get_remove(self):
        assert self.storage.get_item("supply-admin:app-state") is None
        self.storage.set_item("supply-admin:app-state", '{"a": 1}')
        assert self.storage.get_item("supply-admin:app-state") == '{"a": 1}'
        assert self.storage.keys() == ["supply-admin:app-state"]

        self.storage.remove_item("supply-admin:app-state")
        assert self.storage.get_item("supply-admin:app-state") is None
        # Absent keys are ignored
        self.storage.remove_item("supply-admin:app-state")

    def test_keys_are_encoded_in_file_names(self):
        path = self.storage.path_for("a/b:c")
        assert path.parent == self.root
        assert self.storage.key_for(str(path)) == "a/b:c"

    def test_temp_and_foreign_files_are_not_keys(self):
        (self.root / ".tmp-abc").write_text("x")
        (self.root / "notes.txt").write_text("x")
        assert self.storage.key_for(str(self.root / ".tmp-abc")) is None
        assert self.storage.key_for(str(self.root / "notes.txt")) is None
        assert self.storage.keys() == []

    def test_shared_between_instances(self):
        self.storage.set_item("k", "v")
        assert FileStorage(str(self.root)).get_item("k") == "v"

    def test_clear(self):
        self.storage.set_item("a", "1")
        self.storage.set_item("b", "2")
        self.storage.clear()
        assert self.storage.keys() == []


class TestMemoryStorage:
    """Tests for process-local storage."""

    def test_round_trip_and_clear(self):
        storage = MemoryStorage()
        storage.set_item("a", "1")
        assert storage.get_item("a") == "1"
        assert storage.keys() == ["a"]
        storage.clear()
        assert storage.get_item("a") is None

    def test_default_storage_selection(self, tmp_path):
        assert isinstance(get_persistent_storage(str(tmp_path / "d")), FileStorage)
        memory = get_persistent_storage(None)
        assert isinstance(memory, MemoryStorage)
        assert get_persistent_storage() is memory

        reset_memory_storage()
        assert get_persistent_storage() is not memory


class TestSessionStorage:
    """Tests for the session marker."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.storage = MemoryStorage()
        self.session = SessionStorage(self.storage)

    def test_save_load_clear(self):
        assert self.session.load() is None
        self.session.save(SessionPayload(user_id="user-1"))
        assert json.loads(self.storage.get_item(SESSION_KEY)) == {"userId": "user-1"}
        assert self.session.load() == SessionPayload(user_id="user-1")

        self.session.clear()
        assert self.session.load() is None

    def test_unreadable_marker_is_cleared(self):
        self.storage.set_item(SESSION_KEY, "{not json")
        assert self.session.load() is None
        assert self.storage.get_item(SESSION_KEY) is None

        self.storage.set_item(SESSION_KEY, '{"user": "x"}')
        assert self.session.load() is None
        assert self.storage.get_item(SESSION_KEY) is None

    def test_resolve_session_user(self, seed_state):
        user = resolve_session_user(seed_state, SessionPayload(user_id="user-1"))
        assert user.username == "jdoe"
        assert resolve_session_user(seed_state, SessionPayload(user_id="gone")) is None
        assert resolve_session_user(seed_state, None) is None
