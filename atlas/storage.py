"""
Persistent key/value storage region.

One logical record per key, string values. Two backends:

  SqliteStorage  - a `local_storage` table in an SQLite file; every process
                   that opens the same file shares the region.
  MemoryStorage  - a plain dict; every context holding the same instance
                   shares the region.

Both deliver a change signal `(key, value)` to registered listeners after
each write made through the instance. Writes from other processes are only
visible to the SQLite backend and are picked up by sync.StorageWatcher.
"""
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, Optional[str]], None]


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode so readers never block the writer."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class Storage(ABC):
    """Key/value region with a change signal."""

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def _write(self, key: str, value: Optional[str]) -> None:
        """Store `value` under `key`; None removes the key."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All keys currently stored."""

    def set_item(self, key: str, value: str) -> None:
        self._write(key, str(value))
        self._fire(key, str(value))

    def remove_item(self, key: str) -> None:
        self._write(key, None)
        self._fire(key, None)

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)

    def add_change_listener(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _fire(self, key: str, value: Optional[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(key, value)
            except Exception:
                logger.exception("Storage change listener failed for key %s", key)


class MemoryStorage(Storage):
    """In-process storage region."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__()
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def keys(self) -> List[str]:
        return list(self._data)


class SqliteStorage(Storage):
    """SQLite-backed storage region shared through the database file."""

    def __init__(self, db_path: Optional[str] = None):
        super().__init__()
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "atlas" / "atlas.db")
        self.db_path = str(Path(db_path).expanduser())
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        with _connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM local_storage WHERE key = ? LIMIT 1", (key,)
            ).fetchone()
        return row["value"] if row else None

    def _write(self, key: str, value: Optional[str]) -> None:
        with _connect(self.db_path) as conn:
            if value is None:
                conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
            else:
                now = datetime.now(timezone.utc).isoformat()
                conn.execute("""
                    INSERT INTO local_storage (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (key, value, now))
            conn.commit()

    def keys(self) -> List[str]:
        with _connect(self.db_path) as conn:
            rows = conn.execute("SELECT key FROM local_storage ORDER BY key").fetchall()
        return [r["key"] for r in rows]


def open_storage(backend: str = "sqlite", db_path: Optional[str] = None) -> Storage:
    """Build the storage backend named in the config."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "sqlite":
        return SqliteStorage(db_path)
    raise ValueError(f"Unknown storage backend: {backend}")
