"""
Nabha Shiksha: Offline ORM Models
One table per local collection. Key and index columns are real columns;
the full record lives in `data` as JSON.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, Text, DateTime, JSON, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from shiksha.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─── Lessons ─────────────────────────────────────────────────────────────────

class LessonRow(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    topic: Mapped[Optional[str]] = mapped_column(String(100), index=True, nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(20), index=True, nullable=True)
    data: Mapped[dict] = mapped_column(JSON)


# ─── Conversations ───────────────────────────────────────────────────────────

class ConversationRow(Base):
    __tablename__ = "conversations"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[Optional[str]] = mapped_column(String(40), index=True, nullable=True)
    data: Mapped[dict] = mapped_column(JSON)


# ─── Progress ────────────────────────────────────────────────────────────────

class ProgressRow(Base):
    __tablename__ = "progress"

    user_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON)


# ─── Sync Queue ──────────────────────────────────────────────────────────────

class SyncQueueRow(Base):
    __tablename__ = "sync_queue"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[Optional[str]] = mapped_column(String(100), index=True, nullable=True)
    data: Mapped[dict] = mapped_column(JSON)


# ─── Response Cache (separate database) ──────────────────────────────────────

class CachedResponse(Base):
    """One cached HTTP response, keyed by cache name + request identity."""
    __tablename__ = "response_cache"

    cache_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    cache_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    method: Mapped[str] = mapped_column(String(10))
    url: Mapped[str] = mapped_column(Text)
    status_code: Mapped[int] = mapped_column(Integer)
    headers: Mapped[list] = mapped_column(JSON)
    body: Mapped[bytes] = mapped_column(LargeBinary)
    stored_at: Mapped[datetime] = mapped_column(DateTime, default=_now, onupdate=_now)


STORE_TABLES = [
    LessonRow.__table__,
    ConversationRow.__table__,
    ProgressRow.__table__,
    SyncQueueRow.__table__,
]
CACHE_TABLES = [CachedResponse.__table__]
