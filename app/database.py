"""Async database access for the canvas service.

Engine and session factory are built from DATABASE_URL (SQLite through
aiosqlite by default, PostgreSQL through asyncpg). Two ways to get a session:

- get_session: FastAPI dependency for plain reads and whole-job writes
- graph_session(job_id): read-modify-write of one job graph; holds that
  job's lock until the session has committed, so two edits of the same job
  never read the same snapshot
"""

from __future__ import annotations

import asyncio
import logging
import os
import weakref
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

import sqlalchemy
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


def _async_url(url: str) -> str:
    """Point postgres URLs at the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


DATABASE_URL = _async_url(os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./flowcanvas.db"))
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": os.getenv("DB_ECHO", "false").lower() == "true"}
    if not IS_SQLITE:
        options.update(pool_size=5, max_overflow=10)
    return options


engine: AsyncEngine = create_async_engine(DATABASE_URL, **_engine_options())

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# --- Per-job graph locks ---

# Entries disappear once no request holds or waits on the lock
_graph_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def graph_lock(job_id: str) -> asyncio.Lock:
    lock = _graph_locks.get(job_id)
    if lock is None:
        lock = asyncio.Lock()
        _graph_locks[job_id] = lock
    return lock


@asynccontextmanager
async def graph_session(job_id: str) -> AsyncGenerator[AsyncSession, None]:
    """Session for editing one job graph, serialized per job.

    The lock is taken before the graph is read and released after commit
    (or rollback). Serialization is per process; the revision check in
    JobRepository.replace_graph catches writers in other processes.
    """
    lock = graph_lock(job_id)
    if lock.locked():
        logger.debug(f"Job {job_id}: waiting for graph lock")
    async with lock:
        async with async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


# --- Lifecycle ---


async def init_db():
    """Create all tables. Use for development/testing only."""
    async with engine.begin() as conn:
        if IS_SQLITE:
            await conn.execute(sqlalchemy.text("PRAGMA journal_mode=WAL"))
            await conn.execute(sqlalchemy.text("PRAGMA busy_timeout=5000"))
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    await engine.dispose()
