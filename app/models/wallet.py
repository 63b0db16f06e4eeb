"""Wallet SQLAlchemy ORM model."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.currency import Currency
from app.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Wallet(Base):
    """Custodial wallet holding a consumer's marketplace earnings.

    Attributes:
        id: Unique identifier (UUID)
        consumer_id: Owning consumer (unique, one wallet per consumer)
        address: Chain-style hex address, immutable
        eth_balance: Gas currency balance, 6 decimal places
        usdc_balance: Stable currency balance, 2 decimal places
        version: Optimistic locking version, bumped by every balance change
        created_at: Record creation timestamp
        updated_at: Last balance mutation timestamp
    """

    __tablename__ = "wallets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    consumer_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )
    address: Mapped[str] = mapped_column(
        String(42),
        unique=True,
        nullable=False
    )
    eth_balance: Mapped[Decimal] = mapped_column(
        Numeric(24, 6),
        nullable=False,
        default=Decimal("0.000000")
    )
    usdc_balance: Mapped[Decimal] = mapped_column(
        Numeric(24, 6),
        nullable=False,
        default=Decimal("0.00")
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("eth_balance >= 0", name="ck_wallets_eth_balance_non_negative"),
        CheckConstraint("usdc_balance >= 0", name="ck_wallets_usdc_balance_non_negative"),
    )

    @staticmethod
    def balance_column(currency: Currency) -> str:
        """Name of the balance column holding ``currency``."""
        return f"{currency.value}_balance"

    def balance_of(self, currency: Currency) -> Decimal:
        return getattr(self, self.balance_column(currency))
