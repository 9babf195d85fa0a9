"""
Nabha Shiksha: Database Engine
SQLAlchemy setup shared by the local durable store and the response cache.
Works with a SQLite file (durable) or in-memory SQLite (fallback / tests).
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy import create_engine, event, inspect, select, text, Engine, String, Table
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# ─── Engine Setup ────────────────────────────────────────────────────────────

def make_engine(url: str) -> Engine:
    """Build an engine. SQLite gets a single shared connection."""
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
        in_memory = url in ("sqlite://", "sqlite:///:memory:")

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            if not in_memory:
                # WAL for better concurrent read performance on file databases
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(url, pool_pre_ping=True, echo=False)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


# ─── Base Class ──────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class StoreMeta(Base):
    """Key/value bookkeeping, e.g. schema_version."""
    __tablename__ = "store_meta"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[str] = mapped_column(String(200))


# ─── Versioned Schema ────────────────────────────────────────────────────────

def get_schema_version(engine: Engine) -> Optional[int]:
    if "store_meta" not in inspect(engine).get_table_names():
        return None
    with make_session_factory(engine)() as db:
        row = db.scalar(select(StoreMeta).where(StoreMeta.key == "schema_version"))
        return int(row.value) if row else None


def _set_schema_version(engine: Engine, version: int) -> None:
    with make_session_factory(engine)() as db:
        row = db.get(StoreMeta, "schema_version")
        if row:
            row.value = str(version)
        else:
            db.add(StoreMeta(key="schema_version", value=str(version)))
        db.commit()


def init_schema(
    engine: Engine,
    tables: Iterable[Table],
    version: int,
    migrations: Optional[Mapping[int, Sequence[str]]] = None,
) -> int:
    """
    Create tables and bring the schema up to `version`.
    Safe to run multiple times: existing tables and rows are left alone.
    Returns the version found before this call (0 for a fresh database).
    """
    migrations = migrations or {}
    previous = get_schema_version(engine) or 0

    Base.metadata.create_all(bind=engine, tables=[StoreMeta.__table__, *tables])

    if previous == 0:
        # Fresh database: create_all already produced the current shape
        _set_schema_version(engine, version)
        logger.info(f"Local schema created at version {version}")
        return previous

    if previous < version:
        with engine.begin() as conn:
            for step in range(previous + 1, version + 1):
                for sql in migrations.get(step, ()):
                    try:
                        conn.execute(text(sql))
                        logger.info(f"Migration v{step}: {sql}")
                    except Exception as e:
                        logger.warning(f"Migration v{step} skipped, may already be applied: {e}")
        _set_schema_version(engine, version)
        logger.info(f"Local schema upgraded v{previous} -> v{version}")

    return previous
