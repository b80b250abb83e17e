from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from chocogui.domain.errors import StoreUnavailableError
from chocogui.domain.ports import CollectionName, Document, DocumentStorePort, RecordKey

DEFAULT_FILENAME = "data.db"

# version -> statements that bring the previous version up to it
_MIGRATIONS: Dict[int, Tuple[str, ...]] = {
    1: (
        """
        CREATE TABLE IF NOT EXISTS documents (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            collection TEXT NOT NULL,
            key TEXT NOT NULL,
            body TEXT NOT NULL,
            UNIQUE (collection, key)
        )
        """,
    ),
    2: ("CREATE INDEX IF NOT EXISTS ix_documents_collection ON documents (collection, id)",),
}
SCHEMA_VERSION = max(_MIGRATIONS)


class _ReadWriteLock:
    """Many readers or one writer; a waiting writer blocks new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SqliteDocumentStore(DocumentStorePort):
    """Single-file document store for the local configuration mirror.

    Documents are JSON objects keyed by ``(collection, key)``. Readers ignore
    fields they do not know, so older documents stay readable as the record
    types grow. The file is held with an exclusive lock for the lifetime of
    the instance and upgraded to ``SCHEMA_VERSION`` on open.

    Any ``sqlite3``/OS failure marks the instance unusable and surfaces as
    ``StoreUnavailableError``; there is no in-memory fallback.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._log = logging.getLogger(__name__)
        self.path = Path(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._conn_lock = threading.Lock()
        self._locks: Dict[CollectionName, _ReadWriteLock] = {}
        self._locks_guard = threading.Lock()
        self._failure: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
            self._conn.execute("PRAGMA locking_mode=EXCLUSIVE")
            self._migrate()
        except (sqlite3.Error, OSError) as exc:
            self._close_quietly()
            raise StoreUnavailableError(
                f"Cannot open local store {self.path}: {exc}", path=str(self.path)
            ) from exc

    # ---- lifecycle ----
    def __enter__(self) -> "SqliteDocumentStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @property
    def schema_version(self) -> int:
        with self._guard():
            return self._user_version()

    # ---- DocumentStorePort ----
    def upsert(self, collection: CollectionName, key: RecordKey, document: Mapping[str, Any]) -> None:
        body = json.dumps(dict(document), ensure_ascii=False, sort_keys=True)
        with self._lock_for(collection).write(), self._guard() as conn:
            with conn:
                conn.execute(
                    "INSERT INTO documents (collection, key, body) VALUES (?, ?, ?) "
                    "ON CONFLICT (collection, key) DO UPDATE SET body = excluded.body",
                    (collection, key, body),
                )

    def get_all(self, collection: CollectionName) -> List[Document]:
        with self._lock_for(collection).read(), self._guard() as conn:
            rows = conn.execute(
                "SELECT key, body FROM documents WHERE collection = ? ORDER BY id",
                (collection,),
            ).fetchall()
            return [self._decode(collection, key, body) for key, body in rows]

    def get(self, collection: CollectionName, key: RecordKey) -> Optional[Document]:
        with self._lock_for(collection).read(), self._guard() as conn:
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            ).fetchone()
            if row is None:
                return None
            return self._decode(collection, key, row[0])

    def keys(self, collection: CollectionName) -> List[RecordKey]:
        with self._lock_for(collection).read(), self._guard() as conn:
            rows = conn.execute(
                "SELECT key FROM documents WHERE collection = ? ORDER BY id",
                (collection,),
            ).fetchall()
            return [row[0] for row in rows]

    def delete(self, collection: CollectionName, key: RecordKey) -> None:
        with self._lock_for(collection).write(), self._guard() as conn:
            with conn:
                conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND key = ?",
                    (collection, key),
                )

    # ---- internals ----
    def _lock_for(self, collection: CollectionName) -> _ReadWriteLock:
        with self._locks_guard:
            lock = self._locks.get(collection)
            if lock is None:
                lock = self._locks[collection] = _ReadWriteLock()
            return lock

    @contextmanager
    def _guard(self) -> Iterator[sqlite3.Connection]:
        """Serialize connection use and translate failures into StoreUnavailableError."""
        with self._conn_lock:
            if self._failure is not None:
                raise StoreUnavailableError(
                    f"Local store {self.path} is unavailable: {self._failure}",
                    path=str(self.path),
                )
            if self._conn is None:
                raise StoreUnavailableError(f"Local store {self.path} is closed.", path=str(self.path))
            try:
                yield self._conn
            except (sqlite3.Error, OSError) as exc:
                self._failure = str(exc) or type(exc).__name__
                self._log.error("Local store %s failed: %s", self.path, exc)
                raise StoreUnavailableError(
                    f"Local store {self.path} failed: {exc}", path=str(self.path)
                ) from exc

    def _decode(self, collection: str, key: str, body: str) -> Document:
        try:
            document = json.loads(body)
        except ValueError as exc:
            self._failure = f"corrupt document {collection}/{key}"
            raise StoreUnavailableError(
                f"Local store {self.path} holds a corrupt document {collection}/{key}",
                path=str(self.path),
            ) from exc
        if not isinstance(document, dict):
            self._failure = f"corrupt document {collection}/{key}"
            raise StoreUnavailableError(
                f"Local store {self.path} holds a non-object document {collection}/{key}",
                path=str(self.path),
            )
        return document

    def _user_version(self) -> int:
        assert self._conn is not None
        return int(self._conn.execute("PRAGMA user_version").fetchone()[0])

    def _migrate(self) -> None:
        assert self._conn is not None
        current = self._user_version()
        if current > SCHEMA_VERSION:
            raise sqlite3.DatabaseError(
                f"store schema version {current} is newer than supported {SCHEMA_VERSION}"
            )
        if current == SCHEMA_VERSION:
            return
        for version in range(current + 1, SCHEMA_VERSION + 1):
            with self._conn:
                for statement in _MIGRATIONS[version]:
                    self._conn.execute(statement)
                # PRAGMA does not accept bound parameters
                self._conn.execute(f"PRAGMA user_version = {int(version)}")
        self._log.info("Local store %s upgraded from v%d to v%d", self.path, current, SCHEMA_VERSION)

    def _close_quietly(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except sqlite3.Error:
            self._log.debug("Ignoring close failure for %s", self.path)
        self._conn = None


__all__ = ["DEFAULT_FILENAME", "SCHEMA_VERSION", "SqliteDocumentStore"]
