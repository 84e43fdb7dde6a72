"""
Persistent key-value storage.

A small string-keyed store in the spirit of browser localStorage. The
file-backed variant is shared by every process pointed at the same
directory; the memory variant only lives as long as the process.
"""

import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote, unquote

KEY_SUFFIX = ".json"


class PersistentStorage(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys."""
        pass

    def clear(self) -> None:
        """Remove every key."""
        for key in self.keys():
            self.remove_item(key)


class MemoryStorage(PersistentStorage):
    """Process-local storage."""

    def __init__(self) -> None:
        self._store: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._store[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store)


class FileStorage(PersistentStorage):
    """
    Directory-backed storage, one file per key.

    Writes go to a temporary file first and are moved into place, so a
    reader never sees a half-written value.
    """

    def __init__(self, root_dir: str) -> None:
        """
        Initialize file storage.

        Args:
            root_dir: Directory holding the key files (created if missing)
        """
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """File path that holds ``key``."""
        return self.root_dir / f"{quote(key, safe='')}{KEY_SUFFIX}"

    def key_for(self, path: str) -> Optional[str]:
        """Inverse of path_for; None for files that are not key files."""
        name = Path(path).name
        if not name.endswith(KEY_SUFFIX) or name.startswith("."):
            return None
        return unquote(name[:-len(KEY_SUFFIX)])

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.root_dir, prefix=".tmp-")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def remove_item(self, key: str) -> None:
        try:
            os.unlink(self.path_for(key))
        except FileNotFoundError:
            pass

    def keys(self) -> List[str]:
        found = []
        for path in self.root_dir.iterdir():
            key = self.key_for(str(path))
            if key is not None and path.is_file():
                found.append(key)
        return found


# Process-wide fallback storage
_memory_storage: Optional[MemoryStorage] = None


def get_persistent_storage(data_dir: Optional[str] = None) -> PersistentStorage:
    """
    Get persistent storage.

    Args:
        data_dir: Shared directory; None selects the process-wide memory store

    Returns:
        PersistentStorage instance
    """
    global _memory_storage
    if data_dir:
        return FileStorage(data_dir)
    if _memory_storage is None:
        _memory_storage = MemoryStorage()
    return _memory_storage


def reset_memory_storage() -> None:
    """Drop the process-wide memory store (mainly for testing)."""
    global _memory_storage
    _memory_storage = None
