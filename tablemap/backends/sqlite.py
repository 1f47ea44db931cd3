"""SQLite storage backend."""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..exceptions import ConfigurationError, StorageClosed, StorageIOError
from .base import StorageBackend


logger = logging.getLogger(__name__)

AUTONUM_TABLE = "internal::autonum"

# Rows fetched per round trip while scanning a table.
SCAN_BATCH_SIZE = 500

_JOURNAL_MODES = {"delete", "truncate", "persist", "memory", "wal", "off"}
_SYNCHRONOUS_MODES = {"off", "normal", "full", "extra", "0", "1", "2", "3"}


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class SQLiteBackend(StorageBackend):
    """SQLite storage backend.

    Stores one collection per table. Several collections may share a
    database file, each through its own connection. Zero configuration
    required.

    The connection runs in autocommit mode, so every single-row write is
    its own atomic statement; begin_transaction() groups several writes.
    An internal lock serialises access to the connection when a backend
    is shared between threads.

    Example:
        backend = SQLiteBackend()
        backend.connect(path="data/tablemap.sqlite", table="users")

        # Or in-memory
        backend.connect(path=":memory:", table="scratch")
    """

    def __init__(self):
        self._conn: Optional[sqlite3.Connection] = None
        self._path: Optional[str] = None
        self._lock = threading.RLock()
        self.table = ""

    def connect(
        self,
        path: str = ":memory:",
        table: str = "default",
        timeout: float = 5.0,
        journal_mode: Optional[str] = None,
        synchronous: Optional[str] = None,
        cache_size: Optional[int] = None,
        **kwargs,
    ) -> None:
        """Connect to a SQLite database.

        Args:
            path: Database file path, or ":memory:" for in-memory database
            table: Table holding this collection's rows
            timeout: Seconds to wait on a locked database
            journal_mode: SQLite journal mode (default "wal" for files)
            synchronous: SQLite synchronous setting (default "normal")
            cache_size: SQLite page cache size

        Raises:
            ConfigurationError: If an option is not recognised
            StorageIOError: If the database cannot be opened
        """
        if kwargs:
            raise ConfigurationError(
                f"Unknown SQLite storage options: {', '.join(sorted(kwargs))}"
            )
        pragmas = self._pragmas(path, journal_mode, synchronous, cache_size)

        self._path = path
        self.table = table
        try:
            self._conn = sqlite3.connect(
                path,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            for name, value in pragmas.items():
                self._conn.execute(f"PRAGMA {name} = {value}")
            self._create_tables()
        except sqlite3.Error as e:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            raise StorageIOError(f"Cannot open SQLite database {path!r}: {e}") from e
        logger.debug("Opened table %r in %s", table, path)

    @staticmethod
    def _pragmas(
        path: str,
        journal_mode: Optional[str],
        synchronous: Optional[str],
        cache_size: Optional[int],
    ) -> Dict[str, Any]:
        pragmas: Dict[str, Any] = {}
        if path != ":memory:":
            mode = (journal_mode or "wal").lower()
            if mode not in _JOURNAL_MODES:
                raise ConfigurationError(f"Unknown journal_mode: {journal_mode!r}")
            pragmas["journal_mode"] = mode
        sync = str(synchronous or "normal").lower()
        if sync not in _SYNCHRONOUS_MODES:
            raise ConfigurationError(f"Unknown synchronous setting: {synchronous!r}")
        pragmas["synchronous"] = sync
        if cache_size is not None:
            if not isinstance(cache_size, int) or isinstance(cache_size, bool):
                raise ConfigurationError(f"cache_size must be an int, got {cache_size!r}")
            pragmas["cache_size"] = cache_size
        return pragmas

    def _create_tables(self) -> None:
        """Create the collection table and autonum table if they don't exist."""
        self._conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {_quote(self.table)} (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {_quote(AUTONUM_TABLE)} (
                name TEXT PRIMARY KEY,
                lastnum INTEGER NOT NULL
            )
            """
        )

    @contextmanager
    def _guard(self) -> Iterator[sqlite3.Connection]:
        """Hold the connection lock and translate SQLite failures."""
        with self._lock:
            if self._conn is None:
                raise StorageClosed(self.table)
            try:
                yield self._conn
            except sqlite3.Error as e:
                raise StorageIOError(f"SQLite error on table '{self.table}': {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.debug("Closed table %r in %s", self.table, self._path)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def get(self, key: str) -> Optional[str]:
        with self._guard() as conn:
            row = conn.execute(
                f"SELECT value FROM {_quote(self.table)} WHERE key = ?", (key,)
            ).fetchone()
        return None if row is None else row["value"]

    def put(self, key: str, data: str) -> None:
        with self._guard() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {_quote(self.table)} (key, value) VALUES (?, ?)",
                (key, data),
            )

    def delete(self, key: str) -> bool:
        with self._guard() as conn:
            cursor = conn.execute(
                f"DELETE FROM {_quote(self.table)} WHERE key = ?", (key,)
            )
        return cursor.rowcount > 0

    def exists(self, key: str) -> bool:
        with self._guard() as conn:
            row = conn.execute(
                f"SELECT 1 FROM {_quote(self.table)} WHERE key = ?", (key,)
            ).fetchone()
        return row is not None

    def count(self) -> int:
        with self._guard() as conn:
            row = conn.execute(f"SELECT count(*) FROM {_quote(self.table)}").fetchone()
        return row[0]

    def _scan(self, columns: str) -> Iterator[sqlite3.Row]:
        # Keyset pagination: the lock is only held per batch, and a write
        # between batches cannot make the scan repeat or skip other keys.
        table = _quote(self.table)
        last: Optional[str] = None
        while True:
            with self._guard() as conn:
                if last is None:
                    rows = conn.execute(
                        f"SELECT {columns} FROM {table} ORDER BY key LIMIT ?",
                        (SCAN_BATCH_SIZE,),
                    ).fetchall()
                else:
                    rows = conn.execute(
                        f"SELECT {columns} FROM {table} WHERE key > ? ORDER BY key LIMIT ?",
                        (last, SCAN_BATCH_SIZE),
                    ).fetchall()
            yield from rows
            if len(rows) < SCAN_BATCH_SIZE:
                return
            last = rows[-1]["key"]

    def keys(self) -> Iterator[str]:
        for row in self._scan("key"):
            yield row["key"]

    def entries(self) -> Iterator[Tuple[str, str]]:
        for row in self._scan("key, value"):
            yield row["key"], row["value"]

    def clear(self) -> None:
        with self._guard() as conn:
            conn.execute(f"DELETE FROM {_quote(self.table)}")

    def random(self, count: int = 1) -> List[Tuple[str, str]]:
        with self._guard() as conn:
            rows = conn.execute(
                f"SELECT key, value FROM {_quote(self.table)} ORDER BY RANDOM() LIMIT ?",
                (count,),
            ).fetchall()
        return [(row["key"], row["value"]) for row in rows]

    def next_counter(self) -> int:
        with self._guard() as conn:
            conn.execute(
                f"""
                INSERT INTO {_quote(AUTONUM_TABLE)} (name, lastnum) VALUES (?, 1)
                ON CONFLICT(name) DO UPDATE SET lastnum = lastnum + 1
                """,
                (self.table,),
            )
            row = conn.execute(
                f"SELECT lastnum FROM {_quote(AUTONUM_TABLE)} WHERE name = ?",
                (self.table,),
            ).fetchone()
        return row["lastnum"]

    # Transaction support

    def begin_transaction(self) -> Any:
        """Begin a transaction."""
        with self._guard() as conn:
            conn.execute("BEGIN IMMEDIATE")
        return True

    def commit_transaction(self, handle: Any) -> None:
        """Commit transaction."""
        with self._guard() as conn:
            conn.execute("COMMIT")

    def rollback_transaction(self, handle: Any) -> None:
        """Rollback transaction."""
        with self._guard() as conn:
            conn.execute("ROLLBACK")

    @property
    def supports_transactions(self) -> bool:
        """SQLite supports transactions."""
        return True
