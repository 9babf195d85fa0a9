"""
Nabha Shiksha: Offline Service + Context Tests

Lessons, conversations, progress, submit/queue, and the full
offline -> online -> sync cycle through OfflineContext.
"""

import httpx
import pytest

from shiksha.config import OfflineSettings
from shiksha.offline import OfflineContext, OfflineService, ReachabilityMonitor, SyncQueueProcessor
from shiksha.offline.store import LESSONS, SYNC_QUEUE

pytestmark = pytest.mark.asyncio

BASE_URL = "http://shiksha.test"


@pytest.fixture
async def client(network):
    async with httpx.AsyncClient(transport=network.transport, base_url=BASE_URL) as c:
        yield c


@pytest.fixture
def service(store, client):
    processor = SyncQueueProcessor(store, client, max_retries=3, timeout=1.0)
    monitor = ReachabilityMonitor(initial_online=True, on_online=processor.process_queue)
    return OfflineService(store, monitor, processor)


def settings_for(tmp_path, **overrides):
    values = dict(
        store_url=f"sqlite:///{tmp_path / 'offline.db'}",
        cache_url=f"sqlite:///{tmp_path / 'cache.db'}",
        api_base_url=BASE_URL,
        static_urls=("/", "/static/js/bundle.js"),
        probe_interval=0,
        sync_timeout=1.0,
    )
    values.update(overrides)
    return OfflineSettings(**values)


# ─── Lessons ─────────────────────────────────────────────────────────────────

class TestLessons:
    async def test_store_and_get(self, service):
        key = await service.store_lesson({"id": "add-1", "topic": "ਜੋੜ", "level": "beginner", "content": {}})
        lesson = await service.get_lesson(key)
        assert lesson["topic"] == "ਜੋੜ"
        assert lesson["is_offline"] is True
        assert "stored_at" in lesson

    async def test_generated_id(self, service):
        key = await service.store_lesson({"topic": "ਗੁਣਾ"})
        assert key.isdigit()

    async def test_filter_by_topic_and_level(self, service):
        await service.store_lesson({"id": "a", "topic": "ਜੋੜ", "level": "beginner"})
        await service.store_lesson({"id": "b", "topic": "ਗੁਣਾ", "level": "beginner"})
        await service.store_lesson({"id": "c", "topic": "ਗੁਣਾ", "level": "advanced"})
        assert {l["id"] for l in await service.get_all_lessons(topic="ਗੁਣਾ")} == {"b", "c"}
        assert {l["id"] for l in await service.get_all_lessons(level="beginner")} == {"a", "b"}
        assert len(await service.get_all_lessons()) == 3


# ─── Conversations / progress ────────────────────────────────────────────────

class TestConversations:
    async def test_newest_first_with_limit(self, service):
        for i in range(5):
            await service.store_conversation(f"q{i}", {"answer": i})
        latest = await service.get_conversations(limit=2)
        assert [c["transcription"] for c in latest] == ["q4", "q3"]


class TestProgress:
    async def test_upsert_merges(self, service):
        await service.store_progress("u1", {"completed_lessons": 2, "achievements": ["first_lesson"]})
        merged = await service.store_progress("u1", {"total_time_spent": 30})
        assert merged["completed_lessons"] == 2
        assert merged["total_time_spent"] == 30
        assert merged["achievements"] == ["first_lesson"]
        assert (await service.get_progress("u1"))["total_time_spent"] == 30

    async def test_missing_progress(self, service):
        assert await service.get_progress("nobody") is None


# ─── Submit / sync ───────────────────────────────────────────────────────────

class TestSubmit:
    async def test_offline_mutation_queues_exactly_one_item(self, service):
        service.monitor.set_online(False)
        result = await service.submit("progress", {"lessonId": "l1"})
        assert result["queued"] is True
        assert await service.get_sync_queue_length() == 1

    async def test_each_offline_mutation_queues_one_fresh_item(self, store, service):
        service.monitor.set_online(False)
        for i in range(5):
            await service.submit("progress", {"lessonId": f"l{i}"})

        queued = await store.get_all(SYNC_QUEUE)
        assert len(queued) == 5
        assert [q["payload"]["lessonId"] for q in queued] == [f"l{i}" for i in range(5)]
        assert all(q["retry_count"] == 0 for q in queued)

    async def test_online_mutation_is_sent(self, network, service):
        network.route("POST", "/api/progress", json={"success": True})
        result = await service.submit("progress", {"lessonId": "l1"})
        assert result == {"queued": False, "result": {"success": True}}
        assert await service.get_sync_queue_length() == 0

    async def test_unreachable_network_queues_and_marks_offline(self, network, service):
        network.online = False
        result = await service.submit("progress", {"lessonId": "l1"})
        assert result["queued"] is True
        assert not service.is_online()
        assert await service.get_sync_queue_length() == 1

    async def test_sync_pending_data_skipped_when_offline(self, service):
        service.monitor.set_online(False)
        assert await service.sync_pending_data() is None

    async def test_sync_pending_data_when_online(self, network, service):
        network.route("POST", "/api/progress", json={})
        await service.add_to_sync_queue("progress", {"lessonId": "l1"})
        report = await service.sync_pending_data()
        assert report.synced == 1


# ─── Housekeeping ────────────────────────────────────────────────────────────

class TestHousekeeping:
    async def test_stats_and_clear(self, service):
        await service.store_lesson({"id": "a"})
        await service.add_to_sync_queue("progress", {})
        stats = await service.get_storage_stats()
        assert stats[LESSONS] == 1
        assert stats[SYNC_QUEUE] == 1
        assert stats["memory_only"] is True

        assert await service.is_data_available_offline(LESSONS, "a")
        await service.clear_all_data()
        assert not await service.is_data_available_offline(LESSONS, "a")


# ─── Context ─────────────────────────────────────────────────────────────────

class TestContext:
    async def test_bad_store_path_falls_back_to_memory(self, network, tmp_path):
        settings = settings_for(tmp_path, store_url=f"sqlite:///{tmp_path / 'no' / 'such' / 'dir.db'}")
        ctx = await OfflineContext.create(settings, transport=network.transport)
        try:
            assert ctx.store.in_memory
            assert (await ctx.service.get_storage_stats())["memory_only"] is True
            await ctx.service.store_lesson({"id": "x"})
            assert await ctx.service.get_lesson("x") is not None
        finally:
            await ctx.shutdown()

    async def test_default_cache_is_durable(self):
        assert OfflineSettings().cache_url != "sqlite://"
        assert OfflineSettings().cache_url.endswith("nabha_cache.db")

    async def test_bad_cache_path_falls_back_to_memory(self, network, tmp_path):
        settings = settings_for(tmp_path, cache_url=f"sqlite:///{tmp_path / 'no' / 'such' / 'cache.db'}")
        ctx = await OfflineContext.create(settings, transport=network.transport)
        try:
            stats = await ctx.service.get_storage_stats()
            assert stats["cache_memory_only"] is True
            assert stats["memory_only"] is False
        finally:
            await ctx.shutdown()

    async def test_cached_shell_survives_restart(self, network, tmp_path):
        network.route("GET", "/", content=b"<html>shell</html>")
        ctx = await OfflineContext.create(settings_for(tmp_path), transport=network.transport)
        try:
            await ctx.start()
            assert (await ctx.service.get_storage_stats())["cache_memory_only"] is False
        finally:
            await ctx.shutdown()

        network.online = False
        ctx = await OfflineContext.create(settings_for(tmp_path), transport=network.transport)
        try:
            resp = await ctx.client.get("/lessons/3", headers={"Sec-Fetch-Mode": "navigate"})
            assert resp.status_code == 200
            assert resp.content == b"<html>shell</html>"
        finally:
            await ctx.shutdown()

    async def test_start_precaches_static_urls(self, network, tmp_path):
        network.route("GET", "/", content=b"<html>shell</html>")
        network.route("GET", "/static/js/bundle.js", content=b"js")
        ctx = await OfflineContext.create(settings_for(tmp_path), transport=network.transport)
        try:
            await ctx.start()
            network.online = False
            resp = await ctx.client.get("/static/js/bundle.js")
            assert resp.content == b"js"
        finally:
            await ctx.shutdown()

    async def test_start_warms_api_cache(self, network, tmp_path):
        network.route("GET", "/api/content/topics", json={"success": True, "data": []})
        ctx = await OfflineContext.create(settings_for(tmp_path), transport=network.transport)
        try:
            await ctx.start()
            network.online = False
            resp = await ctx.client.get("/api/content/topics")
            assert resp.status_code == 200
            assert resp.json()["success"] is True
        finally:
            await ctx.shutdown()

    async def test_queued_work_syncs_when_back_online(self, network, tmp_path):
        network.route("POST", "/api/progress", json={"success": True})
        ctx = await OfflineContext.create(settings_for(tmp_path), transport=network.transport)
        try:
            ctx.monitor.set_online(False)
            await ctx.service.submit("progress", {"lessonId": "l1"})
            await ctx.service.submit("progress", {"lessonId": "l2"})
            assert await ctx.service.get_sync_queue_length() == 2

            ctx.monitor.set_online(True)
            await ctx.monitor.drain()
            assert await ctx.service.get_sync_queue_length() == 0
            assert network.count("POST", "/api/progress") == 2
        finally:
            await ctx.shutdown()

    async def test_probe_ignores_cached_health(self, network, tmp_path):
        network.route("GET", "/api/health", json={"status": "OK"})
        ctx = await OfflineContext.create(settings_for(tmp_path), transport=network.transport)
        try:
            await ctx.client.get("/api/health")
            network.online = False
            assert await ctx.monitor.probe() is False
        finally:
            await ctx.shutdown()

    async def test_exhausted_items_are_recorded(self, network, tmp_path):
        seen = []
        ctx = await OfflineContext.create(
            settings_for(tmp_path, max_retries=1), transport=network.transport, on_exhausted=seen.append,
        )
        try:
            await ctx.service.add_to_sync_queue("progress", {"lessonId": "l1"})
            network.online = False
            await ctx.processor.process_queue()
            assert len(ctx.exhausted) == 1
            assert seen == ctx.exhausted
        finally:
            await ctx.shutdown()
