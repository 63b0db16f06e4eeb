# Ledger database engine, sessions and declarative base

from app.db.base import Base
from app.db.session import (
    dispose_engine,
    get_async_engine,
    get_async_session,
    get_async_session_maker,
)

__all__ = [
    "Base",
    "dispose_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_maker",
]
