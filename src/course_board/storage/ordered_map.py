"""
Durable Ordered Map - string-keyed persistent storage.

Backs every registry with a sqlite table. Each named map is a
``WITHOUT ROWID`` table keyed by ``key TEXT PRIMARY KEY``, so rows live in
a B-tree ordered by key: get/insert/remove are O(log n) and range scans
come back in key order. Data survives process restarts when the store
is file-backed.
"""

import logging
import re
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generic, Iterator, TypeVar

from pydantic import BaseModel, ValidationError

from course_board.core.exceptions import ConfigurationError, StorageError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MEMORY = ":memory:"

_MAP_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


class DurableStore:
    """
    A sqlite database holding any number of named ordered maps.

    One connection per store, serialized by an RLock. The store is
    created at application startup, passed to the registries that use
    it, and closed at shutdown.
    """

    SCHEMA_VERSION = 1

    def __init__(self, path: Path | str = MEMORY):
        """
        Open (or create) a store.

        Args:
            path: Database file path, or ":memory:" for a throwaway store
        """
        self._path = str(path)
        if self._path != MEMORY:
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._maps: dict[str, DurableOrderedMap[Any]] = {}
        self._conn: sqlite3.Connection | None = self._get_connection()
        try:
            self._init_db()
        except Exception:
            self.close()
            raise

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_closed(self) -> bool:
        return self._conn is None

    def _get_connection(self) -> sqlite3.Connection:
        """Create the database connection."""
        conn = None
        try:
            conn = sqlite3.connect(
                self._path,
                check_same_thread=False,
                isolation_level=None,  # explicit BEGIN/COMMIT
            )
            if self._path != MEMORY:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error as e:
            if conn is not None:
                conn.close()
            raise StorageError(
                f"Cannot open store at '{self._path}'", details={"error": str(e)}
            ) from e
        return conn

    @property
    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Store is closed", details={"path": self._path})
        return self._conn

    @contextmanager
    def transaction(self, immediate: bool = False) -> Iterator[sqlite3.Cursor]:
        """
        Run a block of statements atomically.

        Nested calls join the outer transaction. With ``immediate`` the
        write lock on the database file is taken up front, so other
        processes sharing the file wait until the block commits.
        """
        with self._lock:
            conn = self._connection
            if conn.in_transaction:
                yield conn.cursor()
                return

            cursor = conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
                yield cursor
                cursor.execute("COMMIT")
            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise StorageError(
                    "Store transaction failed",
                    details={"path": self._path, "error": str(e)},
                ) from e
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    def fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> tuple[Any, ...] | None:
        with self._lock:
            try:
                return self._connection.execute(sql, params).fetchone()
            except sqlite3.Error as e:
                raise StorageError("Store read failed", details={"error": str(e)}) from e

    def fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        with self._lock:
            try:
                return self._connection.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError("Store read failed", details={"error": str(e)}) from e

    def _init_db(self) -> None:
        """Create the metadata table and check the schema version."""
        with self.transaction() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS store_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """
            )
            cur.execute("SELECT value FROM store_meta WHERE key = 'schema_version'")
            row = cur.fetchone()
            if row is None:
                cur.execute(
                    "INSERT INTO store_meta (key, value) VALUES ('schema_version', ?)",
                    (str(self.SCHEMA_VERSION),),
                )
            elif int(row[0]) > self.SCHEMA_VERSION:
                raise StorageError(
                    "Store was written by a newer schema version",
                    details={"stored": row[0], "supported": self.SCHEMA_VERSION},
                )

    @property
    def schema_version(self) -> int:
        row = self.fetchone("SELECT value FROM store_meta WHERE key = 'schema_version'")
        return int(row[0])

    def open_map(self, name: str, value_model: type[ModelT]) -> "DurableOrderedMap[ModelT]":
        """
        Open the named map, creating its table on first use.

        Raises:
            ConfigurationError: If the name is not a lowercase identifier,
                or the map is already open with a different value model
        """
        if not _MAP_NAME.match(name):
            raise ConfigurationError(
                f"Invalid map name '{name}'", config_key="map_name"
            )

        with self._lock:
            existing = self._maps.get(name)
            if existing is not None:
                if existing.value_model is not value_model:
                    raise ConfigurationError(
                        f"Map '{name}' is already open with model "
                        f"{existing.value_model.__name__}",
                        config_key="map_name",
                    )
                return existing

            with self.transaction() as cur:
                cur.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS "map_{name}" (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    ) WITHOUT ROWID
                """
                )
            ordered_map = DurableOrderedMap(self, name, value_model)
            self._maps[name] = ordered_map
            logger.debug(f"Opened map '{name}' in store {self._path}")
            return ordered_map

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug(f"Closed store {self._path}")

    def __enter__(self) -> "DurableStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DurableOrderedMap(Generic[ModelT]):
    """
    A persistent map from string key to pydantic model.

    Values are stored as JSON using field aliases and validated back
    into ``value_model`` on read.
    """

    def __init__(self, store: DurableStore, name: str, value_model: type[ModelT]):
        self._store = store
        self._name = name
        self._table = f'"map_{name}"'
        self.value_model = value_model

    @property
    def name(self) -> str:
        return self._name

    def _encode(self, value: ModelT) -> str:
        return value.model_dump_json(by_alias=True)

    def _decode(self, key: str, raw: str) -> ModelT:
        try:
            return self.value_model.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(
                "Stored value cannot be decoded",
                map_name=self._name,
                key=key,
                details={"error": str(e)},
            ) from e

    def get(self, key: str) -> ModelT | None:
        """Return the value stored under key, or None."""
        row = self._store.fetchone(
            f"SELECT value FROM {self._table} WHERE key = ?", (key,)
        )
        return self._decode(key, row[0]) if row else None

    def contains_key(self, key: str) -> bool:
        row = self._store.fetchone(
            f"SELECT 1 FROM {self._table} WHERE key = ?", (key,)
        )
        return row is not None

    def insert(self, key: str, value: ModelT) -> ModelT | None:
        """Store value under key. Returns the value it replaced, if any."""
        with self._store.transaction() as cur:
            cur.execute(f"SELECT value FROM {self._table} WHERE key = ?", (key,))
            previous = cur.fetchone()
            cur.execute(
                f"INSERT OR REPLACE INTO {self._table} (key, value) VALUES (?, ?)",
                (key, self._encode(value)),
            )
        return self._decode(key, previous[0]) if previous else None

    def remove(self, key: str) -> ModelT | None:
        """Delete key. Returns the removed value, or None if absent."""
        with self._store.transaction() as cur:
            cur.execute(f"SELECT value FROM {self._table} WHERE key = ?", (key,))
            previous = cur.fetchone()
            if previous is None:
                return None
            cur.execute(f"DELETE FROM {self._table} WHERE key = ?", (key,))
        return self._decode(key, previous[0])

    def keys(self) -> list[str]:
        rows = self._store.fetchall(f"SELECT key FROM {self._table} ORDER BY key")
        return [row[0] for row in rows]

    def values(self) -> list[ModelT]:
        return [value for _, value in self.items()]

    def items(self) -> list[tuple[str, ModelT]]:
        rows = self._store.fetchall(
            f"SELECT key, value FROM {self._table} ORDER BY key"
        )
        return [(key, self._decode(key, raw)) for key, raw in rows]

    def range(
        self, start: str | None = None, end: str | None = None
    ) -> list[tuple[str, ModelT]]:
        """Return items with start <= key < end, in key order."""
        clauses = []
        params: list[str] = []
        if start is not None:
            clauses.append("key >= ?")
            params.append(start)
        if end is not None:
            clauses.append("key < ?")
            params.append(end)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._store.fetchall(
            f"SELECT key, value FROM {self._table}{where} ORDER BY key",
            tuple(params),
        )
        return [(key, self._decode(key, raw)) for key, raw in rows]

    def __len__(self) -> int:
        row = self._store.fetchone(f"SELECT COUNT(*) FROM {self._table}")
        return int(row[0])

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
