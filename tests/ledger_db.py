"""In-memory SQLite helpers shared by fixtures and property tests."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.db.base import Base
import app.models  # noqa: F401  registers models on Base.metadata
from app.services.ledger_service import LedgerService

T = TypeVar("T")


async def create_test_engine() -> AsyncEngine:
    """Create an in-memory SQLite engine with the ledger schema.

    StaticPool keeps the single in-memory database alive across sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    return engine


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def make_settings(**overrides) -> Settings:
    """Test settings with no retry backoff and no .env lookup."""
    values = {"LEDGER_RETRY_BACKOFF_SECONDS": 0.0}
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def with_ledger(scenario: Callable[[AsyncSession, LedgerService], Awaitable[T]], **overrides) -> T:
    """Run ``scenario`` against a fresh in-memory ledger and tear it down."""
    engine = await create_test_engine()
    try:
        async with make_session_maker(engine)() as session:
            return await scenario(session, LedgerService(settings=make_settings(**overrides)))
    finally:
        await engine.dispose()


def run_with_ledger(scenario: Callable[[AsyncSession, LedgerService], Awaitable[T]], **overrides) -> T:
    """Synchronous entry point for hypothesis tests; one event loop per example."""
    return asyncio.run(with_ledger(scenario, **overrides))
