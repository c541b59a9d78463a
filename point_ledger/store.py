"""
Ledger Store Module

Provides the abstract key-value interface the ledger engine persists through,
with an in-memory implementation (testing) and a SQLite implementation
(persistence). Values are opaque bytes; the store never interprets them.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union
from datetime import datetime, timezone
import sqlite3
import threading
from pathlib import Path
from contextlib import contextmanager

from .errors import StoreUnavailable


class LedgerStore(ABC):
    """Abstract interface for ledger store backends"""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under key, or None if absent"""
        pass

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close store connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a store transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager committing all writes of the block as one unit"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


class InMemoryLedgerStore(LedgerStore):
    """In-memory store implementation for testing"""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._pending: Optional[Dict[str, bytes]] = None
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[bytes]:
        """Load a value from memory, seeing writes pending in the open transaction"""
        with self._lock:
            if self._pending is not None and key in self._pending:
                return self._pending[key]
            return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        """Save a value to memory"""
        # Copy to immutable bytes to prevent external mutation
        value = bytes(value)
        with self._lock:
            if self._pending is not None:
                self._pending[key] = value
            else:
                self._data[key] = value

    def keys(self) -> List[str]:
        """List stored keys for inspection"""
        with self._lock:
            return sorted(self._data)

    def begin_transaction(self) -> None:
        with self._lock:
            if self._pending is None:
                self._pending = {}

    def commit(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._data.update(self._pending)
                self._pending = None

    def rollback(self) -> None:
        with self._lock:
            self._pending = None

    def close(self) -> None:
        """Close store (no-op for in-memory)"""
        pass


class SQLiteLedgerStore(LedgerStore):
    """SQLite store implementation for persistence"""

    TABLE = "ledger_state"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self._in_transaction = False

        try:
            # Set isolation_level to 'DEFERRED' to enable manual transaction control
            self._connection = sqlite3.connect(
                self.db_path, check_same_thread=False, isolation_level='DEFERRED'
            )
            self._connection.row_factory = sqlite3.Row

            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

            self._connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.TABLE} (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._connection.commit()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Failed to open ledger store {self.db_path}: {e}") from e

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise StoreUnavailable("Ledger store is closed")
        return self._connection

    def get(self, key: str) -> Optional[bytes]:
        """Load a value from SQLite"""
        with self._lock:
            connection = self._require_connection()
            try:
                cursor = connection.execute(f"""
                    SELECT value FROM {self.TABLE} WHERE key = ?
                """, (key,))
                row = cursor.fetchone()
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Failed to get state for {key}: {e}") from e
            if row:
                return bytes(row['value'])
            return None

    def put(self, key: str, value: bytes) -> None:
        """Save a value to SQLite"""
        with self._lock:
            connection = self._require_connection()
            now = datetime.now(timezone.utc).isoformat()
            try:
                connection.execute(f"""
                    INSERT OR REPLACE INTO {self.TABLE} (key, value, updated_at)
                    VALUES (?, ?, ?)
                """, (key, sqlite3.Binary(value), now))

                # Only commit if not in transaction
                if not self._in_transaction:
                    connection.commit()
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Failed to put state for {key}: {e}") from e

    def count(self) -> int:
        """Count stored keys"""
        with self._lock:
            connection = self._require_connection()
            try:
                cursor = connection.execute(f"SELECT COUNT(*) AS count FROM {self.TABLE}")
                return cursor.fetchone()['count']
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Failed to count ledger state: {e}") from e

    def begin_transaction(self) -> None:
        """Start a store transaction"""
        with self._lock:
            if not self._in_transaction:
                # SQLite with isolation_level='DEFERRED' automatically starts transactions
                # We just need to track the state
                self._in_transaction = True

    def commit(self) -> None:
        """Commit current transaction"""
        with self._lock:
            if self._in_transaction:
                try:
                    self._require_connection().commit()
                except sqlite3.Error as e:
                    raise StoreUnavailable(f"Failed to commit ledger state: {e}") from e
                self._in_transaction = False

    def rollback(self) -> None:
        """Rollback current transaction"""
        with self._lock:
            if self._in_transaction:
                self._in_transaction = False
                if self._connection is not None:
                    try:
                        self._connection.rollback()
                    except sqlite3.Error as e:
                        raise StoreUnavailable(f"Failed to roll back ledger state: {e}") from e

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_store(config) -> LedgerStore:
    """Build the store backend selected by a LedgerConfig"""
    backend = config.store_backend.lower()
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "sqlite":
        return SQLiteLedgerStore(config.sqlite_path)
    raise ValueError(f"Unknown store backend: {config.store_backend}")
