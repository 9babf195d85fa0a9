"""
Nabha Shiksha: Sync Queue Processor

Replays queued mutations against /api/{type} once connectivity returns.

Rules:
- 2xx response: item deleted.
- Anything else (network error, timeout, non-2xx): retry_count + 1.
  Below the retry bound the item goes back in the queue; at the bound it
  is dropped and reported through `on_exhausted`.
- Items are independent. One failure never stops the rest of the batch.
- Overlapping runs are allowed. An item being replayed by one run is
  skipped by the others, and an item already deleted is skipped too.
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Optional

import httpx

from shiksha.errors import NetworkUnreachable, UpstreamServiceError, SyncExhausted
from shiksha.offline.records import SyncQueueItem
from shiksha.offline.store import LocalStore, SYNC_QUEUE

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    total: int = 0
    synced: int = 0
    retried: int = 0
    dropped: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class SyncQueueProcessor:
    def __init__(
        self,
        store: LocalStore,
        client: httpx.AsyncClient,
        max_retries: int = 3,
        timeout: float = 15.0,
        on_exhausted: Optional[Callable[[SyncExhausted], Any]] = None,
    ):
        self.store = store
        self.client = client
        self.max_retries = max_retries
        self.timeout = timeout
        self.on_exhausted = on_exhausted
        self._in_flight: set = set()

    async def process_queue(self) -> SyncReport:
        report = SyncReport()
        items = await self.store.get_all(SYNC_QUEUE)
        report.total = len(items)
        logger.info(f"Syncing {len(items)} pending items")

        for raw in items:
            item_id = raw["id"]
            if item_id in self._in_flight:
                report.skipped += 1
                continue
            self._in_flight.add(item_id)
            try:
                # Another run may have finished this item since our snapshot
                current = await self.store.get(SYNC_QUEUE, item_id)
                if current is None:
                    report.skipped += 1
                    continue
                await self._process_item(SyncQueueItem.from_dict(current), report)
            finally:
                self._in_flight.discard(item_id)

        logger.info(f"Sync finished: {report.to_dict()}")
        return report

    async def _process_item(self, item: SyncQueueItem, report: SyncReport) -> None:
        try:
            await self.replay(item)
        except (NetworkUnreachable, UpstreamServiceError) as e:
            logger.error(f"Failed to sync item {item.id}: {e}")
            item.retry_count += 1
            if item.retry_count < self.max_retries:
                if await self.store.update(SYNC_QUEUE, item.to_dict()):
                    report.retried += 1
                else:
                    # removed by another writer while we were replaying
                    report.skipped += 1
            else:
                await self.store.delete(SYNC_QUEUE, item.id)
                report.dropped += 1
                self._exhausted(item)
            return

        await self.store.delete(SYNC_QUEUE, item.id)
        report.synced += 1
        logger.info(f"Synced item: {item.id}")

    async def replay(self, item: SyncQueueItem) -> Any:
        """Send one item. Raises NetworkUnreachable or UpstreamServiceError."""
        try:
            response = await asyncio.wait_for(
                self.client.request(
                    item.method,
                    f"/api/{item.type}",
                    json=item.payload,
                    timeout=self.timeout,
                ),
                timeout=self.timeout,
            )
        except (httpx.RequestError, asyncio.TimeoutError) as e:
            raise NetworkUnreachable(f"{item.method} /api/{item.type}: {e!r}") from e

        if not response.is_success:
            raise UpstreamServiceError(f"HTTP error! status: {response.status_code}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _exhausted(self, item: SyncQueueItem) -> None:
        error = SyncExhausted(item.to_dict(), item.retry_count)
        logger.warning(f"Max retries reached, removing item: {item.id} ({error})")
        if self.on_exhausted is not None:
            try:
                self.on_exhausted(error)
            except Exception:
                logger.exception("on_exhausted hook failed")
