"""
Nabha Shiksha: Durable Local Store

Key/value + indexed record store with four named collections:
lessons, conversations, progress, sync_queue.

Every operation is a coroutine. The SQLAlchemy work runs in a worker thread
and one lock serialises it, so each call is atomic on its own. There are no
cross-call transactions: "read then write" is two steps and another writer
may run in between.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import SQLAlchemyError

from shiksha.database import make_engine, make_session_factory, init_schema
from shiksha.errors import StorageUnavailable, MalformedRecord, UnknownCollection
from shiksha.offline.models import (
    LessonRow, ConversationRow, ProgressRow, SyncQueueRow, STORE_TABLES,
)

logger = logging.getLogger(__name__)

LESSONS = "lessons"
CONVERSATIONS = "conversations"
PROGRESS = "progress"
SYNC_QUEUE = "sync_queue"


@dataclass(frozen=True)
class Collection:
    name: str
    model: type
    key_field: str
    auto_increment: bool = False
    # index name -> record field (same name as the ORM column)
    indexes: tuple = field(default=())

    @property
    def key_column(self):
        return getattr(self.model, self.key_field)


COLLECTIONS = {
    LESSONS: Collection(LESSONS, LessonRow, "id", indexes=("topic", "level")),
    CONVERSATIONS: Collection(CONVERSATIONS, ConversationRow, "id", auto_increment=True, indexes=("timestamp",)),
    PROGRESS: Collection(PROGRESS, ProgressRow, "user_id"),
    SYNC_QUEUE: Collection(SYNC_QUEUE, SyncQueueRow, "id", auto_increment=True, indexes=("type",)),
}

# version -> SQL statements applied when upgrading to that version
MIGRATIONS: dict = {}


def _collection(name: str) -> Collection:
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise UnknownCollection(f"unknown collection '{name}'") from None


def _decode(coll: Collection, row) -> dict:
    data = row.data
    if not isinstance(data, dict):
        raise MalformedRecord(
            f"{coll.name}/{getattr(row, coll.key_field)}: expected object, got {type(data).__name__}"
        )
    record = dict(data)
    record[coll.key_field] = getattr(row, coll.key_field)
    return record


class LocalStore:
    """Async facade over the SQLAlchemy-backed collections."""

    def __init__(self, url: str, version: int = 1, migrations: Optional[dict] = None):
        self.url = url
        self.version = version
        self.migrations = MIGRATIONS if migrations is None else migrations
        self._engine = None
        self._sessions = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def in_memory(self) -> bool:
        return self.url in ("sqlite://", "sqlite:///:memory:")

    # ─── Lifecycle ───────────────────────────────────────────────────────────

    async def open(self) -> "LocalStore":
        """Create or reuse the schema. Idempotent."""
        if self.is_open:
            return self
        try:
            await run_in_threadpool(self._open_sync)
        except (SQLAlchemyError, OSError) as e:
            raise StorageUnavailable(f"cannot open local store {self.url}: {e}") from e
        return self

    def _open_sync(self) -> None:
        engine = make_engine(self.url)
        try:
            previous = init_schema(engine, STORE_TABLES, self.version, self.migrations)
        except Exception:
            engine.dispose()
            raise
        self._engine = engine
        self._sessions = make_session_factory(engine)
        logger.info(f"Local store open: {self.url} (v{previous or self.version})")

    async def close(self) -> None:
        if self._engine is not None:
            engine, self._engine, self._sessions = self._engine, None, None
            await run_in_threadpool(engine.dispose)

    async def _run(self, fn, *args):
        if not self.is_open:
            raise StorageUnavailable("local store is not open")

        def locked():
            with self._lock:
                with self._sessions() as db:
                    try:
                        return fn(db, *args)
                    except json.JSONDecodeError as e:
                        raise MalformedRecord(f"undecodable record: {e}") from e

        return await run_in_threadpool(locked)

    # ─── Operations ──────────────────────────────────────────────────────────

    async def put(self, collection: str, record: dict) -> Any:
        """Insert or replace a record. Returns its key."""
        coll = _collection(collection)
        return await self._run(self._put, coll, dict(record))

    @staticmethod
    def _put(db, coll: Collection, record: dict):
        key = record.get(coll.key_field)
        if key is None and not coll.auto_increment:
            raise ValueError(f"{coll.name} records need a '{coll.key_field}'")
        columns = {idx: record.get(idx) for idx in coll.indexes}
        data = {k: v for k, v in record.items() if k != coll.key_field}
        if key is None:
            row = coll.model(data=data, **columns)
            db.add(row)
        else:
            row = db.merge(coll.model(data=data, **{coll.key_field: key}, **columns))
        db.commit()
        return getattr(row, coll.key_field)

    async def update(self, collection: str, record: dict) -> bool:
        """Rewrite an existing record. Returns False, writing nothing, if the key is gone."""
        coll = _collection(collection)
        record = dict(record)
        key = record.get(coll.key_field)
        if key is None:
            raise ValueError(f"{coll.name} updates need a '{coll.key_field}'")
        values = {idx: record.get(idx) for idx in coll.indexes}
        values["data"] = {k: v for k, v in record.items() if k != coll.key_field}

        def _update(db):
            result = db.execute(
                update(coll.model).where(coll.key_column == key).values(**values)
            )
            db.commit()
            return result.rowcount > 0

        return await self._run(_update)

    async def get(self, collection: str, key) -> Optional[dict]:
        coll = _collection(collection)

        def _get(db):
            row = db.get(coll.model, key)
            return _decode(coll, row) if row is not None else None

        return await self._run(_get)

    async def get_all(
        self,
        collection: str,
        index_name: Optional[str] = None,
        limit: Optional[int] = None,
        index_value: Any = None,
        descending: bool = False,
    ) -> list:
        """
        All records of a collection, ordered by key or by `index_name`.
        `index_value` restricts to records whose index equals it.
        """
        coll = _collection(collection)
        if index_name is not None and index_name not in coll.indexes:
            raise UnknownCollection(f"{coll.name} has no index '{index_name}'")

        def _get_all(db):
            stmt = select(coll.model)
            order = [coll.key_column]
            if index_name is not None:
                column = getattr(coll.model, index_name)
                if index_value is not None:
                    stmt = stmt.where(column == index_value)
                order.insert(0, column)
            if descending:
                order = [c.desc() for c in order]
            stmt = stmt.order_by(*order)
            if limit is not None:
                stmt = stmt.limit(limit)
            return [_decode(coll, row) for row in db.scalars(stmt)]

        return await self._run(_get_all)

    async def delete(self, collection: str, key) -> bool:
        """Remove a record. Deleting a missing key is a no-op (returns False)."""
        coll = _collection(collection)

        def _delete(db):
            result = db.execute(delete(coll.model).where(coll.key_column == key))
            db.commit()
            return result.rowcount > 0

        return await self._run(_delete)

    async def clear(self, collection: str) -> None:
        coll = _collection(collection)

        def _clear(db):
            db.execute(delete(coll.model))
            db.commit()

        await self._run(_clear)

    async def count(self, collection: str) -> int:
        coll = _collection(collection)

        def _count(db):
            return db.scalar(select(func.count()).select_from(coll.model)) or 0

        return await self._run(_count)
