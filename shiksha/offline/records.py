"""
Nabha Shiksha: Offline Record Types

Typed views over the dict records kept in the local store.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Optional

from shiksha.errors import MalformedRecord


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require(data: dict, *keys: str) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise MalformedRecord(f"record missing {', '.join(missing)}: {data!r:.120}")


@dataclass
class LessonRecord:
    id: str
    topic: Optional[str] = None
    level: Optional[str] = None
    content: Any = None
    stored_at: str = field(default_factory=now_iso)
    is_offline: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "LessonRecord":
        _require(data, "id")
        return cls(
            id=data["id"],
            topic=data.get("topic"),
            level=data.get("level"),
            content=data.get("content"),
            stored_at=data.get("stored_at") or now_iso(),
            is_offline=data.get("is_offline", True),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ConversationRecord:
    transcription: str
    response: Any
    timestamp: str = field(default_factory=now_iso)
    is_offline: bool = True
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationRecord":
        _require(data, "transcription", "response")
        return cls(
            id=data.get("id"),
            transcription=data["transcription"],
            response=data["response"],
            timestamp=data.get("timestamp") or now_iso(),
            is_offline=data.get("is_offline", True),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["id"] is None:
            del data["id"]
        return data


@dataclass
class ProgressRecord:
    user_id: str
    completed_lessons: int = 0
    total_time_spent: int = 0
    current_streak: int = 0
    achievements: list = field(default_factory=list)
    updated_at: str = field(default_factory=now_iso)

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressRecord":
        _require(data, "user_id")
        achievements = data.get("achievements") or []
        if not isinstance(achievements, list):
            raise MalformedRecord(f"achievements must be a list for user {data['user_id']}")
        return cls(
            user_id=data["user_id"],
            completed_lessons=int(data.get("completed_lessons", 0)),
            total_time_spent=int(data.get("total_time_spent", 0)),
            current_streak=int(data.get("current_streak", 0)),
            achievements=list(achievements),
            updated_at=data.get("updated_at") or now_iso(),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SyncQueueItem:
    """A mutation waiting to be replayed against /api/{type}."""
    type: str
    method: str = "POST"
    payload: Any = None
    created_at: str = field(default_factory=now_iso)
    retry_count: int = 0
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "SyncQueueItem":
        _require(data, "type")
        return cls(
            id=data.get("id"),
            type=data["type"],
            method=(data.get("method") or "POST").upper(),
            payload=data.get("payload"),
            created_at=data.get("created_at") or now_iso(),
            retry_count=int(data.get("retry_count") or 0),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["id"] is None:
            del data["id"]
        return data
