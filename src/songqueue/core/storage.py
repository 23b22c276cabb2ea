"""
Durable key-value storage for persisted playback state.

Values are opaque strings (JSON blobs written by the playback domain).
The SQLite store follows the same connection handling as the rest of the
core layer: one short-lived connection per operation, WAL journal.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol

from loguru import logger

# Database schema version for migrations
SCHEMA_VERSION = 1


class PersistenceFailure(Exception):
    """Raised when durable storage cannot be read or written."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{message} (key={key!r})")


class KeyValueStore(Protocol):
    """Minimal get/set string store consumed by the playback coordinator."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if the key was never written."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...


class MemoryKeyValueStore:
    """In-process store, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class SQLiteKeyValueStore:
    """Key-value store backed by a single SQLite table."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._initialized = False
        self._init_lock = threading.Lock()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper cleanup and concurrency support."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
        finally:
            conn.close()

    def init_database(self) -> None:
        """Create the schema if needed. Safe to call repeatedly."""
        with self._init_lock:
            if self._initialized:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                with self._connection() as conn:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS kv_store (
                            key TEXT PRIMARY KEY,
                            value TEXT NOT NULL,
                            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                        )
                    """)
                    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
                    conn.commit()
            except (sqlite3.Error, OSError) as e:
                raise PersistenceFailure("*", f"Failed to initialize {self.db_path}: {e}") from e
            self._initialized = True
            logger.debug(f"Key-value store ready: {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        self.init_database()
        try:
            with self._connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(key, f"Failed to read value: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.init_database()
        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (key, value),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(key, f"Failed to write value: {e}") from e
