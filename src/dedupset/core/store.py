"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/store.py
Durable, transactional container holding every index, backed by SQLite.

Layout:
    indexes     - one row per index name
    namespaces  - nested keyspaces of an index (currently only "hashes")
    records     - (index, namespace, key) -> value, ordered by key bytes

Features:
- Single writer (BEGIN IMMEDIATE), many concurrent readers on a WAL snapshot
- All writes inside one transaction commit together or not at all
- Missing index levels are created on demand in write transactions only
"""

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar
import logging
import os
import sqlite3

from dedupset.core import codec
from dedupset.core.errors import (
    IndexMalformedError,
    IndexNotFoundError,
    NotInitializedError,
    ReadOnlyTransactionError,
    StoreAlreadyExistsError,
    StoreError,
)
from dedupset.core.models import HASHES_NAMESPACE, Entry, StoreConfig, TxMode

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
PAGE_SIZE = 512  # rows fetched per cursor page

T = TypeVar("T")

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS indexes (
    name        TEXT PRIMARY KEY
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS namespaces (
    index_name  TEXT NOT NULL REFERENCES indexes(name) ON DELETE CASCADE,
    name        TEXT NOT NULL,
    PRIMARY KEY (index_name, name)
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS records (
    index_name  TEXT NOT NULL,
    namespace   TEXT NOT NULL,
    key         BLOB NOT NULL,
    value       BLOB NOT NULL,
    PRIMARY KEY (index_name, namespace, key),
    FOREIGN KEY (index_name, namespace) REFERENCES namespaces(index_name, name) ON DELETE CASCADE
) WITHOUT ROWID;
"""


class Namespace:
    """
    Handle to one nested keyspace of an index, valid for the life of its transaction.
    Keys are bytes and iterate in ascending byte order.
    """

    def __init__(self, tx: "Transaction", index_name: str, name: str):
        self._tx = tx
        self.index_name = index_name
        self.name = name

    def get_raw(self, key: bytes) -> Optional[bytes]:
        self._check_key(key)
        row = self._tx.execute(
            "SELECT value FROM records WHERE index_name = ? AND namespace = ? AND key = ?",
            (self.index_name, self.name, key),
        ).fetchone()
        return None if row is None else bytes(row[0])

    def get(self, key: bytes) -> Optional[Entry]:
        """Returns the decoded entry for `key`, or None if absent."""
        value = self.get_raw(key)
        if value is None:
            return None
        return codec.decode(value)

    def put_raw(self, key: bytes, value: bytes) -> None:
        self._check_key(key)
        self._tx.check_writable()
        if not value:
            raise StoreError("Cannot store an empty value")
        self._tx.execute(
            "INSERT OR REPLACE INTO records (index_name, namespace, key, value) VALUES (?, ?, ?, ?)",
            (self.index_name, self.name, key, value),
        )

    def put(self, key: bytes, entry: Entry) -> None:
        self.put_raw(key, codec.encode(entry))

    def raw_items(self) -> Iterator[Tuple[bytes, bytes]]:
        """
        Yields (key, value) in ascending key order.
        Pages through the keyspace, so writes to other namespaces during iteration are safe.
        """
        last_key = None
        while True:
            if last_key is None:
                rows = self._tx.execute(
                    "SELECT key, value FROM records WHERE index_name = ? AND namespace = ? "
                    "ORDER BY key LIMIT ?",
                    (self.index_name, self.name, PAGE_SIZE),
                ).fetchall()
            else:
                rows = self._tx.execute(
                    "SELECT key, value FROM records WHERE index_name = ? AND namespace = ? AND key > ? "
                    "ORDER BY key LIMIT ?",
                    (self.index_name, self.name, last_key, PAGE_SIZE),
                ).fetchall()
            if not rows:
                return
            for key, value in rows:
                yield bytes(key), bytes(value)
            last_key = rows[-1][0]

    def items(self) -> Iterator[Tuple[bytes, Entry]]:
        for key, value in self.raw_items():
            yield key, codec.decode(value)

    def keys(self) -> Iterator[bytes]:
        for key, _ in self.raw_items():
            yield key

    def __contains__(self, key: bytes) -> bool:
        return self.get_raw(key) is not None

    def __len__(self) -> int:
        row = self._tx.execute(
            "SELECT COUNT(*) FROM records WHERE index_name = ? AND namespace = ?",
            (self.index_name, self.name),
        ).fetchone()
        return int(row[0])

    @staticmethod
    def _check_key(key: bytes) -> None:
        if not key:
            raise StoreError("Key cannot be empty")

    def __repr__(self):
        return f"<Namespace index={self.index_name!r}, name={self.name!r}>"


class Transaction:
    """
    A read-only snapshot or the single read-write transaction of a store.
    Obtained from IndexStore.transaction(); unusable once the block exits.
    """

    def __init__(self, conn: sqlite3.Connection, mode: TxMode):
        self._conn = conn
        self.mode = mode
        self._closed = False

    @property
    def writable(self) -> bool:
        return self.mode is TxMode.WRITE

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._closed:
            raise StoreError("Transaction is closed")
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Store operation failed: {e}") from e

    def check_writable(self) -> None:
        if not self.writable:
            raise ReadOnlyTransactionError("Cannot write inside a read transaction")

    def exists(self, index_name: str) -> bool:
        """Non-throwing existence check."""
        if not index_name:
            return False
        row = self.execute("SELECT 1 FROM indexes WHERE name = ?", (index_name,)).fetchone()
        return row is not None

    def index_names(self) -> List[str]:
        rows = self.execute("SELECT name FROM indexes ORDER BY name").fetchall()
        return [row[0] for row in rows]

    def namespace(self, index_name: str, sub: str = HASHES_NAMESPACE) -> Namespace:
        """
        Returns the handle for `index_name`.`sub`.
        Write transactions create missing levels; read transactions raise
        IndexNotFoundError / IndexMalformedError instead.
        """
        if not index_name:
            raise ValueError("Index name cannot be empty")
        if not sub:
            raise ValueError("Namespace name cannot be empty")

        if self.writable:
            self.execute("INSERT OR IGNORE INTO indexes (name) VALUES (?)", (index_name,))
            self.execute(
                "INSERT OR IGNORE INTO namespaces (index_name, name) VALUES (?, ?)",
                (index_name, sub),
            )
            return Namespace(self, index_name, sub)

        if not self.exists(index_name):
            raise IndexNotFoundError(index_name)
        row = self.execute(
            "SELECT 1 FROM namespaces WHERE index_name = ? AND name = ?",
            (index_name, sub),
        ).fetchone()
        if row is None:
            raise IndexMalformedError(index_name, sub)
        return Namespace(self, index_name, sub)

    def delete(self, index_name: str) -> None:
        """Removes an index and everything nested under it."""
        if not index_name:
            raise ValueError("Index name cannot be empty")
        self.check_writable()
        if not self.exists(index_name):
            raise IndexNotFoundError(index_name)
        self.execute("DELETE FROM records WHERE index_name = ?", (index_name,))
        self.execute("DELETE FROM namespaces WHERE index_name = ?", (index_name,))
        self.execute("DELETE FROM indexes WHERE name = ?", (index_name,))

    def close(self) -> None:
        self._closed = True

    def __repr__(self):
        return f"<Transaction mode={self.mode!r}, closed={self._closed}>"


class IndexStore:
    """
    The single durable container of all indexes.

    Usage:
        IndexStore.initialize(config).close()

        with IndexStore.open(config) as store:
            with store.transaction(TxMode.WRITE) as tx:
                tx.namespace("photos").put(digest, entry)
    """

    def __init__(self, conn: sqlite3.Connection, config: StoreConfig):
        self._conn = conn
        self.config = config
        self._active: Optional[Transaction] = None

    @classmethod
    def initialize(cls, config: StoreConfig) -> "IndexStore":
        """Creates a new, empty store. Fails if the file already exists."""
        try:
            fd = os.open(config.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, config.file_mode)
        except FileExistsError as e:
            raise StoreAlreadyExistsError(config.path) from e
        except OSError as e:
            raise StoreError(f"Failed to create store '{config.path}': {e}") from e
        os.close(fd)

        conn = None
        try:
            conn = cls._connect(config)
            conn.executescript(_SCHEMA_SQL)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        except sqlite3.Error as e:
            # A half-created file would block both initialize and open
            if conn is not None:
                conn.close()
            cls._remove_files(config.path)
            raise StoreError(f"Failed to initialize store '{config.path}': {e}") from e

        logger.info(f"Store created: {config.path}")
        return cls(conn, config)

    @classmethod
    def open(cls, config: StoreConfig) -> "IndexStore":
        """Opens an existing store. Raises NotInitializedError if it is absent."""
        if not os.path.exists(config.path):
            raise NotInitializedError(config.path)

        try:
            conn = cls._connect(config)
            version = conn.execute("PRAGMA user_version").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open store '{config.path}': {e}") from e

        if version != SCHEMA_VERSION:
            conn.close()
            raise StoreError(
                f"Unsupported store schema version {version} in '{config.path}' "
                f"(expected {SCHEMA_VERSION})"
            )
        logger.debug(f"Store opened: {config.path}")
        return cls(conn, config)

    @staticmethod
    def _remove_files(path: str) -> None:
        for name in (path, path + "-wal", path + "-shm"):
            try:
                os.remove(name)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to remove {name}: {e}")

    @staticmethod
    def _connect(config: StoreConfig) -> sqlite3.Connection:
        # Autocommit mode: transactions are managed explicitly below
        conn = sqlite3.connect(config.path, timeout=config.busy_timeout, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def transaction(self, mode: TxMode) -> Iterator[Transaction]:
        """
        Runs the enclosed block inside one transaction.
        Commits on normal exit; rolls back and re-raises on any exception.
        """
        if self._conn is None:
            raise StoreError("Store is closed")
        if self._active is not None:
            raise StoreError("A transaction is already active on this store handle")

        try:
            if mode is TxMode.WRITE:
                self._conn.execute("BEGIN IMMEDIATE")
            else:
                self._conn.execute("BEGIN DEFERRED")
                # Pin the snapshot now rather than at the first real read
                self._conn.execute("SELECT 1 FROM indexes LIMIT 1").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to begin {mode.value} transaction: {e}") from e

        tx = Transaction(self._conn, mode)
        self._active = tx
        try:
            yield tx
        except BaseException:
            tx.close()
            self._active = None
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            logger.debug(f"{mode.value} transaction rolled back")
            raise

        tx.close()
        self._active = None
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise StoreError(f"Failed to commit transaction: {e}") from e

    def run(self, mode: TxMode, body: Callable[[Transaction], T]) -> T:
        """Calls body(tx) inside a transaction and returns its result."""
        with self.transaction(mode) as tx:
            return body(tx)

    def exists(self, index_name: str) -> bool:
        return self.run(TxMode.READ, lambda tx: tx.exists(index_name))

    def delete(self, index_name: str) -> None:
        self.run(TxMode.WRITE, lambda tx: tx.delete(index_name))

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "IndexStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self):
        return f"<IndexStore path={self.config.path}>"
