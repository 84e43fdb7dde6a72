"""
Cross-context sync channel.

Best-effort "state was updated at time T" notifications between clients
sharing the same persisted state. Two backends share one contract:

- broadcast: a named in-process publish/subscribe hub
- storage: a sentinel key in shared FileStorage, observed with watchdog

Every message carries the sender's instance id; a channel never hands its
own messages to its handler.
"""

import json
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from supply_admin.models import SyncMessage
from supply_admin.services.storage import FileStorage, PersistentStorage
from supply_admin.utils import get_logger, now_iso

CHANNEL_NAME = "supply-admin:sync-channel"

SyncHandler = Callable[[SyncMessage], None]


class SyncChannel(ABC):
    """Abstract notify/dispose contract."""

    def __init__(self, on_message: SyncHandler, instance_id: Optional[str] = None) -> None:
        """
        Initialize sync channel.

        Args:
            on_message: Called for every message from another instance
            instance_id: Sender id stamped on outgoing messages
        """
        self.on_message = on_message
        self.instance_id = instance_id or uuid.uuid4().hex
        self.disposed = False
        self.logger = get_logger("sync_channel")

    def _build_message(self, at: Optional[str]) -> SyncMessage:
        return SyncMessage(at=at or now_iso(), origin_id=self.instance_id)

    def _deliver(self, payload: Dict) -> None:
        """Validate an incoming payload and hand it to the handler."""
        if self.disposed:
            return
        try:
            message = SyncMessage.model_validate(payload)
        except ValidationError as e:
            self.logger.warning(f"Ignoring unreadable sync message: {e}")
            return
        if message.origin_id == self.instance_id:
            return
        try:
            self.on_message(message)
        except Exception as e:
            self.logger.error(f"Sync handler failed: {e}")

    @abstractmethod
    def notify(self, at: Optional[str] = None) -> None:
        """
        Tell other contexts that the state was updated.

        Args:
            at: ISO timestamp of the update (defaults to now)
        """
        pass

    @abstractmethod
    def dispose(self) -> None:
        """Unregister every listener and handle."""
        pass


class NullSyncChannel(SyncChannel):
    """Channel that neither sends nor receives."""

    def notify(self, at: Optional[str] = None) -> None:
        pass

    def dispose(self) -> None:
        self.disposed = True


class BroadcastHub:
    """
    Named publish/subscribe hub.

    Posting delivers to every subscriber of the channel name except the
    sender, synchronously on the posting thread.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List["BroadcastSyncChannel"]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, channel: "BroadcastSyncChannel") -> None:
        with self._lock:
            self._subscribers.setdefault(name, []).append(channel)

    def unsubscribe(self, name: str, channel: "BroadcastSyncChannel") -> None:
        with self._lock:
            subscribers = self._subscribers.get(name, [])
            if channel in subscribers:
                subscribers.remove(channel)
            if not subscribers:
                self._subscribers.pop(name, None)

    def subscriber_count(self, name: str) -> int:
        with self._lock:
            return len(self._subscribers.get(name, []))

    def post(self, name: str, sender: "BroadcastSyncChannel", payload: Dict) -> None:
        with self._lock:
            targets = [c for c in self._subscribers.get(name, []) if c is not sender]
        for channel in targets:
            channel._deliver(dict(payload))


# Process-wide default hub
_default_hub: Optional[BroadcastHub] = None


def get_default_hub() -> BroadcastHub:
    """Get the process-wide broadcast hub."""
    global _default_hub
    if _default_hub is None:
        _default_hub = BroadcastHub()
    return _default_hub


def reset_default_hub() -> None:
    """Drop the process-wide hub (mainly for testing)."""
    global _default_hub
    _default_hub = None


class BroadcastSyncChannel(SyncChannel):
    """Channel on a BroadcastHub."""

    def __init__(
        self,
        on_message: SyncHandler,
        hub: Optional[BroadcastHub] = None,
        name: str = CHANNEL_NAME,
        instance_id: Optional[str] = None,
    ) -> None:
        super().__init__(on_message, instance_id)
        self.hub = hub or get_default_hub()
        self.name = name
        self.hub.subscribe(self.name, self)

    def notify(self, at: Optional[str] = None) -> None:
        if self.disposed:
            return
        message = self._build_message(at)
        self.hub.post(self.name, self, message.to_payload())

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.hub.unsubscribe(self.name, self)


class _SentinelEventHandler(FileSystemEventHandler):
    """Forwards changes of the sentinel key file to its channel."""

    def __init__(self, channel: "StorageEventSyncChannel") -> None:
        super().__init__()
        self.channel = channel

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.channel.handle_storage_change(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.channel.handle_storage_change(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Atomic writes land as a rename onto the key file
        if not event.is_directory:
            self.channel.handle_storage_change(event.dest_path)


class StorageEventSyncChannel(SyncChannel):
    """
    Channel over a sentinel key in shared file storage.

    The sentinel is overwritten on every notify and left in place: a
    filesystem observer may read the file after the event fires, so a
    write-then-remove would race the reader.
    """

    def __init__(
        self,
        on_message: SyncHandler,
        storage: FileStorage,
        name: str = CHANNEL_NAME,
        instance_id: Optional[str] = None,
        start_observer: bool = True,
    ) -> None:
        """
        Initialize storage-event channel.

        Args:
            on_message: Called for every message from another instance
            storage: Shared file storage
            name: Channel name; the sentinel key is "<name>:storage"
            instance_id: Sender id stamped on outgoing messages
            start_observer: Start the watchdog observer thread
        """
        super().__init__(on_message, instance_id)
        self.storage = storage
        self.key = f"{name}:storage"
        self._last_raw: Optional[str] = None
        self._lock = threading.Lock()
        self._observer: Optional[Observer] = None

        if start_observer:
            self._observer = Observer()
            self._observer.schedule(_SentinelEventHandler(self), str(storage.root_dir),
                                    recursive=False)
            self._observer.daemon = True
            self._observer.start()

    def handle_storage_change(self, path: str) -> None:
        """
        React to a change of a file in the storage directory.

        Args:
            path: Changed file path
        """
        if self.disposed or self.storage.key_for(path) != self.key:
            return
        raw = self.storage.get_item(self.key)
        if not raw:
            return
        with self._lock:
            # One write can surface as several filesystem events
            if raw == self._last_raw:
                return
            self._last_raw = raw
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Unreadable sync sentinel: {e}")
            return
        if isinstance(payload, dict):
            self._deliver(payload)

    def notify(self, at: Optional[str] = None) -> None:
        if self.disposed:
            return
        message = self._build_message(at)
        raw = json.dumps(message.to_payload())
        with self._lock:
            self._last_raw = raw
        try:
            self.storage.set_item(self.key, raw)
        except OSError as e:
            self.logger.warning(f"Failed to send sync notification: {e}")

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None


def create_sync_channel(
    on_message: SyncHandler,
    transport: str = "auto",
    storage: Optional[PersistentStorage] = None,
    hub: Optional[BroadcastHub] = None,
    name: str = CHANNEL_NAME,
    instance_id: Optional[str] = None,
) -> SyncChannel:
    """
    Create a sync channel for the current platform.

    Args:
        on_message: Handler for messages from other instances
        transport: "auto", "broadcast", "storage" or "none"
        storage: Shared persistent storage, when there is one
        hub: Broadcast hub (defaults to the process-wide hub)
        name: Channel name
        instance_id: Sender id (random by default)

    Returns:
        SyncChannel. With "auto", shared file storage means other processes
        may be listening, so the storage backend is chosen; otherwise every
        peer is in this process and the broadcast hub reaches them all.

    Raises:
        ValueError: If transport is unknown, or "storage" without FileStorage
    """
    if transport == "none":
        return NullSyncChannel(on_message, instance_id)

    if transport == "auto":
        transport = "storage" if isinstance(storage, FileStorage) else "broadcast"

    if transport == "broadcast":
        return BroadcastSyncChannel(on_message, hub=hub, name=name, instance_id=instance_id)

    if transport == "storage":
        if not isinstance(storage, FileStorage):
            raise ValueError("storage transport requires a FileStorage")
        return StorageEventSyncChannel(on_message, storage, name=name, instance_id=instance_id)

    raise ValueError(f"Unknown sync transport: {transport}")
