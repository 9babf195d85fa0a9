"""
Nabha Shiksha: Local Store Tests
Collections, indexes, auto-increment keys, schema versioning, failure modes.
"""

import pytest

from shiksha.database import get_schema_version
from shiksha.errors import StorageUnavailable, UnknownCollection, MalformedRecord
from shiksha.offline.models import LessonRow
from shiksha.offline.store import (
    LocalStore, LESSONS, CONVERSATIONS, PROGRESS, SYNC_QUEUE,
)

pytestmark = pytest.mark.asyncio


# ─── Basic operations ────────────────────────────────────────────────────────

class TestPutGet:
    async def test_put_returns_key_and_get_round_trips(self, store):
        key = await store.put(LESSONS, {"id": "l1", "topic": "ਜੋੜ", "level": "beginner", "content": {"a": 1}})
        assert key == "l1"
        lesson = await store.get(LESSONS, "l1")
        assert lesson == {"id": "l1", "topic": "ਜੋੜ", "level": "beginner", "content": {"a": 1}}

    async def test_put_replaces_existing_record(self, store):
        await store.put(PROGRESS, {"user_id": "u1", "completed_lessons": 1})
        await store.put(PROGRESS, {"user_id": "u1", "completed_lessons": 4})
        assert (await store.get(PROGRESS, "u1"))["completed_lessons"] == 4
        assert await store.count(PROGRESS) == 1

    async def test_get_missing_returns_none(self, store):
        assert await store.get(LESSONS, "nope") is None

    async def test_keyed_collection_requires_key(self, store):
        with pytest.raises(ValueError):
            await store.put(LESSONS, {"topic": "ਜੋੜ"})

    async def test_auto_increment_keys_are_unique(self, store):
        first = await store.put(SYNC_QUEUE, {"type": "progress", "payload": {}})
        second = await store.put(SYNC_QUEUE, {"type": "progress", "payload": {}})
        assert isinstance(first, int)
        assert second > first

    async def test_deleted_keys_are_not_reused(self, store):
        first = await store.put(SYNC_QUEUE, {"type": "a"})
        second = await store.put(SYNC_QUEUE, {"type": "b"})
        await store.delete(SYNC_QUEUE, second)
        third = await store.put(SYNC_QUEUE, {"type": "c"})
        assert third not in (first, second)


class TestUpdate:
    async def test_update_existing(self, store):
        key = await store.put(SYNC_QUEUE, {"type": "progress", "retry_count": 0})
        assert await store.update(SYNC_QUEUE, {"id": key, "type": "settings", "retry_count": 1}) is True
        assert await store.get(SYNC_QUEUE, key) == {"id": key, "type": "settings", "retry_count": 1}
        assert [r["id"] for r in await store.get_all(SYNC_QUEUE, "type", index_value="settings")] == [key]

    async def test_update_missing_writes_nothing(self, store):
        assert await store.update(LESSONS, {"id": "ghost", "topic": "ਜੋੜ"}) is False
        assert await store.count(LESSONS) == 0

    async def test_update_requires_key(self, store):
        with pytest.raises(ValueError):
            await store.update(SYNC_QUEUE, {"type": "progress"})


class TestDelete:
    async def test_delete_existing(self, store):
        await store.put(LESSONS, {"id": "l1"})
        assert await store.delete(LESSONS, "l1") is True
        assert await store.get(LESSONS, "l1") is None

    async def test_delete_missing_is_noop(self, store):
        assert await store.delete(LESSONS, "ghost") is False

    async def test_clear(self, store):
        for i in range(3):
            await store.put(CONVERSATIONS, {"transcription": str(i), "response": "", "timestamp": f"2024-01-0{i + 1}"})
        await store.clear(CONVERSATIONS)
        assert await store.count(CONVERSATIONS) == 0


# ─── Indexes ─────────────────────────────────────────────────────────────────

class TestGetAll:
    async def _seed_conversations(self, store):
        for day in ("2024-01-02", "2024-01-01", "2024-01-03"):
            await store.put(CONVERSATIONS, {"transcription": day, "response": "", "timestamp": day})

    async def test_ordered_by_key_by_default(self, store):
        await self._seed_conversations(store)
        rows = await store.get_all(CONVERSATIONS)
        assert [r["transcription"] for r in rows] == ["2024-01-02", "2024-01-01", "2024-01-03"]

    async def test_ordered_by_index(self, store):
        await self._seed_conversations(store)
        rows = await store.get_all(CONVERSATIONS, "timestamp")
        assert [r["timestamp"] for r in rows] == ["2024-01-01", "2024-01-02", "2024-01-03"]

    async def test_descending_with_limit(self, store):
        await self._seed_conversations(store)
        rows = await store.get_all(CONVERSATIONS, "timestamp", limit=2, descending=True)
        assert [r["timestamp"] for r in rows] == ["2024-01-03", "2024-01-02"]

    async def test_index_value_filters(self, store):
        await store.put(LESSONS, {"id": "a", "topic": "ਜੋੜ", "level": "beginner"})
        await store.put(LESSONS, {"id": "b", "topic": "ਗੁਣਾ", "level": "intermediate"})
        await store.put(LESSONS, {"id": "c", "topic": "ਜੋੜ", "level": "advanced"})
        rows = await store.get_all(LESSONS, "topic", index_value="ਜੋੜ")
        assert sorted(r["id"] for r in rows) == ["a", "c"]

    async def test_unknown_index_raises(self, store):
        with pytest.raises(UnknownCollection):
            await store.get_all(LESSONS, "colour")


# ─── Failure modes ───────────────────────────────────────────────────────────

class TestFailures:
    async def test_unknown_collection(self, store):
        with pytest.raises(UnknownCollection):
            await store.get("videos", 1)
        # also usable as a KeyError
        with pytest.raises(KeyError):
            await store.put("videos", {"id": 1})

    async def test_closed_store_is_unavailable(self):
        s = LocalStore("sqlite://")
        with pytest.raises(StorageUnavailable):
            await s.get(LESSONS, "x")

    async def test_unopenable_path_raises_storage_unavailable(self, tmp_path):
        s = LocalStore(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'store.db'}")
        with pytest.raises(StorageUnavailable):
            await s.open()
        assert not s.is_open

    async def test_non_object_record_is_malformed(self, store):
        def _insert(db):
            db.add(LessonRow(id="bad", data=[1, 2, 3]))
            db.commit()

        await store._run(_insert)
        with pytest.raises(MalformedRecord):
            await store.get(LESSONS, "bad")


# ─── Lifecycle / schema ──────────────────────────────────────────────────────

class TestSchema:
    async def test_open_is_idempotent(self, store):
        await store.put(LESSONS, {"id": "keep"})
        await store.open()
        assert await store.get(LESSONS, "keep") is not None

    async def test_data_survives_reopen(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'store.db'}"
        first = await LocalStore(url).open()
        await first.put(LESSONS, {"id": "l1", "topic": "ਜੋੜ"})
        await first.close()

        second = await LocalStore(url).open()
        try:
            assert (await second.get(LESSONS, "l1"))["topic"] == "ਜੋੜ"
        finally:
            await second.close()

    async def test_upgrade_runs_migrations_and_keeps_rows(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'store.db'}"
        v1 = await LocalStore(url, version=1).open()
        await v1.put(LESSONS, {"id": "l1"})
        assert get_schema_version(v1._engine) == 1
        await v1.close()

        migrations = {2: ["ALTER TABLE lessons ADD COLUMN subject VARCHAR(50)"]}
        v2 = await LocalStore(url, version=2, migrations=migrations).open()
        try:
            assert get_schema_version(v2._engine) == 2
            assert await v2.get(LESSONS, "l1") is not None
        finally:
            await v2.close()

    async def test_in_memory_flag(self, store, tmp_path):
        assert store.in_memory
        assert not LocalStore(f"sqlite:///{tmp_path / 'x.db'}").in_memory
