"""Shared test fixtures.

The environment is populated before any ``app`` import so that modules
reading settings at import time (the Celery app) load a test configuration.
Ledger tests run against in-memory SQLite through aiosqlite.
"""

import os

os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "testuser")
os.environ.setdefault("POSTGRES_PASSWORD", "testpass")
os.environ.setdefault("POSTGRES_DB", "testdb")
os.environ.setdefault("MARKETPLACE_SECRET_KEY", "test-marketplace-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncIterator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402

from app.core.config import Settings  # noqa: E402
from app.services.ledger_service import LedgerService  # noqa: E402
from tests.ledger_db import create_test_engine, make_session_maker, make_settings  # noqa: E402


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    engine = await create_test_engine()
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Session with no transaction in progress; ledger calls open their own."""
    async with make_session_maker(async_engine)() as session:
        yield session


@pytest.fixture
def ledger(test_settings: Settings) -> LedgerService:
    return LedgerService(settings=test_settings)
