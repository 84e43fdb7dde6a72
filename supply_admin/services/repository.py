"""
Data repositories.

Uniform load/save/clear contract over the HTTP blob store, local persistent
storage or a caller-supplied implementation, plus the fallback chain that
decides which one satisfies a read.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests
from cryptography.fernet import Fernet
from pydantic import ValidationError

from supply_admin.data import create_initial_state
from supply_admin.models import AppState, LoadResult, SyncSource
from supply_admin.services.storage import PersistentStorage
from supply_admin.utils import decrypt_text, encrypt_text, get_logger

STATE_STORAGE_KEY = "supply-admin:app-state"


class RepositoryError(Exception):
    """Raised when a repository operation fails."""
    pass


class RepositoryUnreachableError(RepositoryError):
    """Raised when the backing store cannot be reached at all."""
    pass


class DataRepository(ABC):
    """Abstract persistence contract for the application state."""

    @abstractmethod
    def load(self) -> Optional[AppState]:
        """
        Load the stored state.

        Returns:
            AppState, or None when nothing has been stored yet
        """
        pass

    @abstractmethod
    def save(self, state: AppState) -> None:
        """
        Persist the state.

        Args:
            state: Aggregate to store
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored state."""
        pass


def _parse_state(payload: Any, origin: str) -> Optional[AppState]:
    """Validate a decoded payload; malformed data counts as no data."""
    if not isinstance(payload, dict):
        get_logger("repository").warning(f"Ignoring non-object state payload from {origin}")
        return None
    try:
        return AppState.from_payload(payload)
    except ValidationError as e:
        get_logger("repository").warning(f"Ignoring malformed state payload from {origin}: {e}")
        return None


class HttpRepository(DataRepository):
    """
    Repository backed by the HTTP blob store.

    The session only needs requests-style ``get``/``put``/``delete``, so a
    test client can stand in for ``requests.Session``.
    """

    def __init__(self, base_url: str, session: Any = None, timeout: float = 10) -> None:
        """
        Initialize HTTP repository.

        Args:
            base_url: API prefix URL, e.g. "http://localhost:4000/api"
            session: requests.Session or compatible object
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.logger = get_logger("http_repository")

    @property
    def state_url(self) -> str:
        return f"{self.base_url}/app-state"

    def load(self) -> Optional[AppState]:
        try:
            response = self.session.get(
                self.state_url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RepositoryUnreachableError(f"Failed to load remote state: {e}") from e

        if response.status_code in (204, 404):
            return None
        if not 200 <= response.status_code < 300:
            raise RepositoryError(f"Failed to load remote state: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            self.logger.warning(f"Remote state is not valid JSON: {e}")
            return None
        return _parse_state(payload, self.state_url)

    def save(self, state: AppState) -> None:
        try:
            response = self.session.put(
                self.state_url,
                json=state.to_payload(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RepositoryUnreachableError(f"Failed to save remote state: {e}") from e

        if not 200 <= response.status_code < 300:
            raise RepositoryError(f"Failed to save remote state: {response.status_code}")

    def clear(self) -> None:
        try:
            response = self.session.delete(self.state_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RepositoryUnreachableError(f"Failed to clear remote state: {e}") from e

        if response.status_code != 404 and not 200 <= response.status_code < 300:
            raise RepositoryError(f"Failed to clear remote state: {response.status_code}")


class LocalStorageRepository(DataRepository):
    """Repository that keeps one JSON snapshot in persistent storage."""

    def __init__(
        self,
        storage: PersistentStorage,
        key: str = STATE_STORAGE_KEY,
        cipher: Optional[Fernet] = None,
    ) -> None:
        """
        Initialize local repository.

        Args:
            storage: Backing key-value store
            key: Storage key of the snapshot
            cipher: Optional Fernet cipher; when set the snapshot is encrypted
        """
        self.storage = storage
        self.key = key
        self.cipher = cipher
        self.logger = get_logger("local_repository")

    def load(self) -> Optional[AppState]:
        try:
            raw = self.storage.get_item(self.key)
        except OSError as e:
            raise RepositoryError(f"Failed to read local snapshot: {e}") from e
        if not raw:
            return None

        if self.cipher is not None:
            decrypted = decrypt_text(raw, self.cipher)
            if decrypted is None:
                self.logger.warning("Discarding local snapshot that cannot be decrypted")
                self.storage.remove_item(self.key)
                return None
            raw = decrypted

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Discarding corrupt local snapshot: {e}")
            self.storage.remove_item(self.key)
            return None

        state = _parse_state(payload, f"storage key {self.key}")
        if state is None:
            self.storage.remove_item(self.key)
        return state

    def save(self, state: AppState) -> None:
        raw = json.dumps(state.to_payload(), ensure_ascii=False)
        if self.cipher is not None:
            raw = encrypt_text(raw, self.cipher)
        try:
            self.storage.set_item(self.key, raw)
        except OSError as e:
            raise RepositoryError(f"Failed to write local snapshot: {e}") from e

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except OSError as e:
            raise RepositoryError(f"Failed to remove local snapshot: {e}") from e


class InMemoryRepository(DataRepository):
    """Repository holding the state in memory; handy as an injected custom repository."""

    def __init__(self, state: Optional[AppState] = None) -> None:
        self.state = state
        self.save_count = 0

    def load(self) -> Optional[AppState]:
        return self.state

    def save(self, state: AppState) -> None:
        self.state = state
        self.save_count += 1

    def clear(self) -> None:
        self.state = None


class DataRepositoryManager:
    """
    Resolves which repository serves reads and writes.

    A custom repository, when set, is used exclusively. Otherwise the
    default repository is tried first, falling back to the last state seen
    in this session and finally to a fresh seed.
    """

    def __init__(
        self,
        default_repository: DataRepository,
        default_source: SyncSource = SyncSource.REMOTE,
    ) -> None:
        """
        Initialize repository manager.

        Args:
            default_repository: Repository used when no custom one is set
            default_source: Source tag reported for successful default loads
        """
        self.default_repository = default_repository
        self.default_source = default_source
        self.custom_repository: Optional[DataRepository] = None
        self.cached_state: Optional[AppState] = None
        self.logger = get_logger("repository")

    def set_repository(self, repository: Optional[DataRepository]) -> None:
        """
        Inject a custom repository, or pass None to go back to the default.

        Args:
            repository: Custom repository or None
        """
        self.custom_repository = repository

    def load_data_state(self) -> LoadResult:
        """
        Load the state through the fallback chain.

        Returns:
            LoadResult naming the source that satisfied the read. After a
            failed load with nothing cached, a seed is returned with the
            failure message in ``error`` and is not written back, so a
            transient read error never overwrites stored data.

        Raises:
            Exception: Whatever a custom repository's load raises
        """
        if self.custom_repository is not None:
            state = self.custom_repository.load()
            if state is None:
                state = create_initial_state()
            self.cached_state = state
            return LoadResult(state=state, source=SyncSource.CUSTOM)

        try:
            stored = self.default_repository.load()
        except RepositoryError as e:
            if self.cached_state is not None:
                self.logger.warning(f"Load failed, serving cached state: {e}")
                return LoadResult(state=self.cached_state, source=SyncSource.CACHE, error=str(e))
            self.logger.error(f"Load failed with no cached state, seeding defaults: {e}")
            seeded = create_initial_state()
            self.cached_state = seeded
            return LoadResult(state=seeded, source=SyncSource.SEED, error=str(e))

        if stored is not None:
            self.cached_state = stored
            return LoadResult(state=stored, source=self.default_source)

        self.logger.info("No stored state yet, seeding defaults")
        seeded = create_initial_state()
        self.cached_state = seeded
        try:
            self.default_repository.save(seeded)
        except RepositoryError as e:
            self.logger.warning(f"Could not persist seed state: {e}")
        return LoadResult(state=seeded, source=SyncSource.SEED)

    def save_data_state(self, state: AppState) -> None:
        """
        Persist the state.

        The cache is updated before the write so a later failed load still
        sees the latest intended state.

        Raises:
            RepositoryError: If the write fails
        """
        self.cached_state = state
        if self.custom_repository is not None:
            self.custom_repository.save(state)
            return
        self.default_repository.save(state)

    def clear_data_state(self) -> None:
        """Remove stored state and forget the cache."""
        if self.custom_repository is not None:
            self.custom_repository.clear()
        else:
            self.default_repository.clear()
        self.cached_state = None
