"""API dependency injection.

Provides FastAPI dependencies for database sessions, the calling
consumer's identity and the ledger services.
"""

from collections.abc import AsyncGenerator
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_async_session
from app.services.bank_account_service import BankAccountService
from app.services.ledger_service import LedgerService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides an async database session.

    This wraps the session management from app.db.session
    for use as a FastAPI dependency.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async for session in get_async_session():
        yield session


async def get_consumer_id(
    x_consumer_id: Annotated[Optional[str], Header()] = None,
) -> str:
    """Authenticated consumer id, forwarded by the sign-in layer as X-Consumer-Id."""
    if not x_consumer_id or not x_consumer_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_consumer_id.strip()


def get_ledger_service() -> LedgerService:
    return LedgerService()


def get_bank_account_service() -> BankAccountService:
    return BankAccountService()


# Type aliases for cleaner dependency injection syntax
DBSession = Annotated[AsyncSession, Depends(get_db)]
ConsumerId = Annotated[str, Depends(get_consumer_id)]
Ledger = Annotated[LedgerService, Depends(get_ledger_service)]
BankAccounts = Annotated[BankAccountService, Depends(get_bank_account_service)]
