"""
Nabha Shiksha: Response Cache

Named caches of HTTP responses, stored in their own database (never the
local durable store). Entries are keyed by request identity: METHOD + URL.
A newer put for the same key replaces the old entry.
"""

import hashlib
import logging
import threading
from typing import Optional

import httpx
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError

from shiksha.database import make_engine, make_session_factory, init_schema
from shiksha.errors import StorageUnavailable
from shiksha.offline.models import CachedResponse, CACHE_TABLES

logger = logging.getLogger(__name__)

# Body is stored decoded, so these no longer describe it
_DROP_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


def get_cache_key(method: str, url: str) -> str:
    """Generate cache key from request method + URL."""
    return hashlib.md5(f"{method.upper()}:{url}".encode()).hexdigest()


def request_key(request: httpx.Request) -> str:
    return get_cache_key(request.method, str(request.url))


class ResponseCache:
    def __init__(self, url: str = "sqlite://"):
        self.url = url
        self._engine = None
        self._sessions = None
        self._lock = threading.Lock()

    @property
    def in_memory(self) -> bool:
        return self.url in ("sqlite://", "sqlite:///:memory:")

    async def open(self) -> "ResponseCache":
        if self._engine is not None:
            return self

        def _open():
            engine = make_engine(self.url)
            init_schema(engine, CACHE_TABLES, version=1)
            self._sessions = make_session_factory(engine)
            self._engine = engine

        try:
            await run_in_threadpool(_open)
        except (SQLAlchemyError, OSError) as e:
            raise StorageUnavailable(f"cannot open response cache {self.url}: {e}") from e
        return self

    async def close(self) -> None:
        if self._engine is not None:
            engine, self._engine, self._sessions = self._engine, None, None
            await run_in_threadpool(engine.dispose)

    async def _run(self, fn):
        if self._engine is None:
            raise StorageUnavailable("response cache is not open")

        def locked():
            with self._lock:
                with self._sessions() as db:
                    return fn(db)

        return await run_in_threadpool(locked)

    # ─── Entries ─────────────────────────────────────────────────────────────

    async def put(self, cache_name: str, request: httpx.Request, response: httpx.Response) -> None:
        """Store an already-read response. Upsert: replaces an existing entry."""
        key = request_key(request)
        headers = [
            [name, value] for name, value in response.headers.multi_items()
            if name.lower() not in _DROP_HEADERS
        ]
        body = response.content

        def _put(db):
            db.merge(CachedResponse(
                cache_name=cache_name,
                cache_key=key,
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                headers=headers,
                body=body,
            ))
            db.commit()

        await self._run(_put)
        logger.debug(f"Cached {request.method} {request.url} in {cache_name} ({len(body)} bytes)")

    async def match(self, request: httpx.Request, cache_name: Optional[str] = None) -> Optional[httpx.Response]:
        """Cached response for this request, searching every cache unless one is named."""
        key = request_key(request)

        def _match(db):
            stmt = select(CachedResponse).where(CachedResponse.cache_key == key)
            if cache_name is not None:
                stmt = stmt.where(CachedResponse.cache_name == cache_name)
            return db.scalars(stmt.order_by(CachedResponse.cache_name)).first()

        entry = await self._run(_match)
        if entry is None:
            return None
        return httpx.Response(
            status_code=entry.status_code,
            headers=[tuple(h) for h in entry.headers],
            content=entry.body,
            request=request,
            extensions={"from_cache": True},
        )

    async def delete(self, request: httpx.Request, cache_name: Optional[str] = None) -> bool:
        key = request_key(request)

        def _delete(db):
            stmt = delete(CachedResponse).where(CachedResponse.cache_key == key)
            if cache_name is not None:
                stmt = stmt.where(CachedResponse.cache_name == cache_name)
            result = db.execute(stmt)
            db.commit()
            return result.rowcount > 0

        return await self._run(_delete)

    # ─── Named caches ────────────────────────────────────────────────────────

    async def keys(self) -> list:
        """Names of all caches holding at least one entry."""
        def _keys(db):
            return list(db.scalars(select(CachedResponse.cache_name).distinct().order_by(CachedResponse.cache_name)))

        return await self._run(_keys)

    async def delete_cache(self, cache_name: str) -> int:
        def _drop(db):
            result = db.execute(delete(CachedResponse).where(CachedResponse.cache_name == cache_name))
            db.commit()
            return result.rowcount

        return await self._run(_drop)

    async def count(self, cache_name: Optional[str] = None) -> int:
        def _count(db):
            stmt = select(func.count()).select_from(CachedResponse)
            if cache_name is not None:
                stmt = stmt.where(CachedResponse.cache_name == cache_name)
            return db.scalar(stmt) or 0

        return await self._run(_count)

