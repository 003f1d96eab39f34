"""
SyncBus: change notification within one context and across contexts.

notify() runs every local subscriber, then writes a fresh marker under the
wake-up key. The marker's value carries no data; other contexts only care
that it changed. A context learns about foreign markers three ways:

  - the storage change signal (same storage instance, e.g. MemoryStorage
    shared between two apps),
  - StorageWatcher, a watchdog observer on the SQLite file (other processes),
  - an explicit check() poll.

Each foreign marker re-runs the local subscribers with remote=True, but
only on the thread that owns the bus. A change signal arriving on any other
thread, and every watcher event, just marks the bus pending; the owning
context applies it with drain() (AtlasApp.pump()). The store is therefore
never reloaded underneath an edit in progress.
Delivery is at-least-once; subscribers must be idempotent.
"""
import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .storage import Storage

logger = logging.getLogger(__name__)

SYNC_KEY = "atlas_sync"

Subscriber = Callable[..., None]


class SyncBus:
    """Routes store changes to subscribers in this and other contexts."""

    def __init__(self, storage: Storage, key: str = SYNC_KEY):
        self.storage = storage
        self.key = key
        self.subscribers: List[Subscriber] = []
        self._lock = threading.RLock()
        self._last_marker = 0
        self._seen: Optional[str] = storage.get_item(key)
        self._watcher: Optional["StorageWatcher"] = None
        self._owner = threading.get_ident()
        self._pending = threading.Event()
        storage.add_change_listener(self._on_storage_change)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        if callback not in self.subscribers:
            self.subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self.subscribers:
            self.subscribers.remove(callback)

    def notify(self) -> None:
        """Run local subscribers and wake every other context."""
        self._dispatch(remote=False)
        marker = self._next_marker()
        with self._lock:
            self._seen = marker
        try:
            self.storage.set_item(self.key, marker)
        except Exception as e:
            logger.error("Cannot write sync marker: %s", e)

    def check(self) -> bool:
        """Poll the marker; dispatch if another context moved it."""
        try:
            value = self.storage.get_item(self.key)
        except Exception as e:
            logger.warning("Cannot read sync marker: %s", e)
            return False
        return self._observe(value)

    def signal(self) -> None:
        """Mark a possible foreign change for the owning context to drain."""
        self._pending.set()

    @property
    def pending(self) -> bool:
        return self._pending.is_set()

    def drain(self) -> bool:
        """Apply a pending wake-up, if any. Call from the owning thread."""
        if not self._pending.is_set():
            return False
        self._pending.clear()
        return self.check()

    def _next_marker(self) -> str:
        stored = self.storage.get_item(self.key)
        try:
            floor = int(stored) if stored is not None else 0
        except ValueError:
            floor = 0
        marker = max(time.time_ns(), floor + 1, self._last_marker + 1)
        self._last_marker = marker
        return str(marker)

    def _on_storage_change(self, key: str, value: Optional[str]) -> None:
        if key != self.key:
            return
        if threading.get_ident() == self._owner:
            self._observe(value)
        else:
            self.signal()

    def _observe(self, value: Optional[str]) -> bool:
        with self._lock:
            if value is None or value == self._seen:
                return False
            self._seen = value
        logger.debug("Sync marker changed to %s", value)
        self._dispatch(remote=True)
        return True

    def _dispatch(self, remote: bool) -> None:
        with self._lock:
            for callback in list(self.subscribers):
                try:
                    callback(remote=remote)
                except Exception:
                    logger.exception("Error in sync subscriber %r", callback)

    # -------------------- file watching --------------------

    def watch(self) -> Optional["StorageWatcher"]:
        """Start a watchdog observer when the storage lives in a file."""
        db_path = getattr(self.storage, "db_path", None)
        if not db_path or self._watcher is not None:
            return self._watcher
        self._watcher = StorageWatcher(self, db_path)
        self._watcher.start()
        return self._watcher

    def close(self) -> None:
        self.storage.remove_change_listener(self._on_storage_change)
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None


class _StorageFileHandler(FileSystemEventHandler):
    """Flags the bus whenever the database or its WAL/SHM files change.

    Runs on the observer thread, so it never dispatches; not debounced,
    since the marker write lands after the collection writes.
    """

    def __init__(self, bus: SyncBus, db_path: Path):
        self.bus = bus
        self.db_name = db_path.name

    def on_any_event(self, fs_event):
        if fs_event.is_directory:
            return
        if not Path(str(fs_event.src_path)).name.startswith(self.db_name):
            return
        self.bus.signal()


class StorageWatcher:
    """watchdog observer on the directory holding an SQLite storage file."""

    def __init__(self, bus: SyncBus, db_path: str):
        self.db_path = Path(db_path).resolve()
        self.handler = _StorageFileHandler(bus, self.db_path)
        self.observer = Observer()

    def start(self) -> None:
        self.observer.schedule(self.handler, str(self.db_path.parent), recursive=False)
        self.observer.daemon = True
        self.observer.start()
        logger.info("Watching %s for changes from other contexts", self.db_path)

    def stop(self) -> None:
        self.observer.stop()
        self.observer.join(timeout=2)
