"""
Nabha Shiksha: Offline Service

What the UI layer talks to. Writes go through the local store; mutations
that can't reach the network become exactly one sync queue item each.
"""

import logging
import time
from typing import Any, Optional

from shiksha.errors import NetworkUnreachable
from shiksha.offline.cache import ResponseCache
from shiksha.offline.reachability import ReachabilityMonitor
from shiksha.offline.records import (
    ConversationRecord, LessonRecord, ProgressRecord, SyncQueueItem, now_iso,
)
from shiksha.offline.store import (
    LocalStore, COLLECTIONS, LESSONS, CONVERSATIONS, PROGRESS, SYNC_QUEUE,
)
from shiksha.offline.sync import SyncQueueProcessor, SyncReport

logger = logging.getLogger(__name__)


class OfflineService:
    def __init__(
        self,
        store: LocalStore,
        monitor: ReachabilityMonitor,
        processor: SyncQueueProcessor,
        cache: Optional[ResponseCache] = None,
    ):
        self.store = store
        self.monitor = monitor
        self.processor = processor
        self.cache = cache

    def is_online(self) -> bool:
        return self.monitor.is_online

    # ─── Lessons ─────────────────────────────────────────────────────────────

    async def store_lesson(self, lesson_data: dict) -> str:
        typed = LessonRecord.from_dict({
            **lesson_data,
            "id": str(lesson_data.get("id") or int(time.time() * 1000)),
            "stored_at": now_iso(),
            "is_offline": True,
        })
        # extra fields ride along untouched
        key = await self.store.put(LESSONS, {**lesson_data, **typed.to_dict()})
        logger.info(f"Lesson stored offline: {key}")
        return key

    async def get_lesson(self, lesson_id: str) -> Optional[dict]:
        return await self.store.get(LESSONS, lesson_id)

    async def get_all_lessons(self, topic: str = None, level: str = None) -> list:
        if topic is not None:
            return await self.store.get_all(LESSONS, "topic", index_value=topic)
        if level is not None:
            return await self.store.get_all(LESSONS, "level", index_value=level)
        return await self.store.get_all(LESSONS)

    # ─── Conversations ───────────────────────────────────────────────────────

    async def store_conversation(self, transcription: str, response: Any) -> int:
        record = ConversationRecord(transcription=transcription, response=response)
        key = await self.store.put(CONVERSATIONS, record.to_dict())
        logger.info("Conversation stored offline")
        return key

    async def get_conversations(self, limit: int = 50) -> list:
        """Newest first."""
        return await self.store.get_all(CONVERSATIONS, "timestamp", limit=limit, descending=True)

    # ─── Progress ────────────────────────────────────────────────────────────

    async def store_progress(self, user_id: str, progress_data: dict) -> dict:
        """Upsert: new fields are merged over whatever is stored."""
        existing = await self.store.get(PROGRESS, user_id) or {"user_id": user_id}
        merged = ProgressRecord.from_dict({**existing, **progress_data, "user_id": user_id})
        merged.updated_at = now_iso()
        record = merged.to_dict()
        await self.store.put(PROGRESS, record)
        logger.info(f"Progress stored offline for user: {user_id}")
        return record

    async def get_progress(self, user_id: str) -> Optional[dict]:
        return await self.store.get(PROGRESS, user_id)

    # ─── Sync queue ──────────────────────────────────────────────────────────

    async def add_to_sync_queue(self, resource_type: str, payload: Any, method: str = "POST") -> int:
        item = SyncQueueItem(type=resource_type, method=method.upper(), payload=payload)
        key = await self.store.put(SYNC_QUEUE, item.to_dict())
        logger.info(f"Item added to sync queue: {key} ({method.upper()} {resource_type})")
        return key

    async def submit(self, resource_type: str, payload: Any, method: str = "POST") -> dict:
        """
        Send a mutation now, or queue it when the network can't be reached.
        Returns {"queued": bool, "result"|"queue_id": ...}.
        Server-side rejections (non-2xx) are raised, not queued.
        """
        if self.monitor.is_online:
            try:
                result = await self.processor.replay(
                    SyncQueueItem(type=resource_type, method=method.upper(), payload=payload)
                )
                return {"queued": False, "result": result}
            except NetworkUnreachable as e:
                logger.info(f"Network unreachable, queueing {resource_type}: {e}")
                self.monitor.set_online(False)
        queue_id = await self.add_to_sync_queue(resource_type, payload, method)
        return {"queued": True, "queue_id": queue_id}

    async def sync_pending_data(self) -> Optional[SyncReport]:
        if not self.monitor.is_online:
            logger.info("Not online, skipping sync")
            return None
        return await self.processor.process_queue()

    async def get_sync_queue_length(self) -> int:
        return await self.store.count(SYNC_QUEUE)

    # ─── Housekeeping ────────────────────────────────────────────────────────

    async def is_data_available_offline(self, collection: str, key) -> bool:
        return await self.store.get(collection, key) is not None

    async def get_storage_stats(self) -> dict:
        stats = {name: await self.store.count(name) for name in COLLECTIONS}
        stats["memory_only"] = self.store.in_memory
        if self.cache is not None:
            stats["cached_responses"] = await self.cache.count()
            stats["cache_memory_only"] = self.cache.in_memory
        return stats

    async def clear_all_data(self) -> None:
        for name in COLLECTIONS:
            await self.store.clear(name)
        logger.info("All offline data cleared")

