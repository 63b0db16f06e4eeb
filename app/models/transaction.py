"""Transaction SQLAlchemy ORM model."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.currency import Currency
from app.db.base import Base
from app.models.wallet import utcnow


class TransactionStatus(str, enum.Enum):
    """Transaction status enum.

    Values:
        PENDING: Awaiting settlement confirmation
        COMPLETED: Settled; completed_at is set
        FAILED: Settlement failed or timed out
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TransactionKind(str, enum.Enum):
    """What produced a ledger entry."""

    DATA_SALE = "data_sale"
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class Transaction(Base):
    """Ledger entry justifying a wallet balance change.

    Attributes:
        id: Unique identifier (UUID)
        wallet_id: Foreign key to the Wallet whose balance changed
        wallet_version: Wallet version produced by this entry; orders a
            wallet's history by insertion
        kind: data_sale, withdrawal or deposit
        from_address: Paying address, if any (display only)
        to_address: Receiving address, if any (display only)
        amount: Amount moved, quantized to the currency precision
        currency: Upper-case currency code (ETH, USDC)
        status: pending, completed or failed
        description: Human readable summary
        details: Kind-specific attributes, stored in the ``metadata`` column
        failure_reason: Why a pending entry moved to failed
        created_at: Entry timestamp
        completed_at: Set on the transition to completed
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("wallets.id"),
        nullable=False
    )
    wallet_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False
    )
    kind: Mapped[TransactionKind] = mapped_column(
        String(20),
        nullable=False
    )
    from_address: Mapped[str | None] = mapped_column(
        String(42),
        nullable=True
    )
    to_address: Mapped[str | None] = mapped_column(
        String(42),
        nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(24, 6),
        nullable=False
    )
    currency: Mapped[str] = mapped_column(
        String(10),
        nullable=False
    )
    status: Mapped[TransactionStatus] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=""
    )
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict
    )
    failure_reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    __table_args__ = (
        Index("ix_transactions_wallet_id", "wallet_id"),
        Index("ix_transactions_status_created_at", "status", "created_at"),
        UniqueConstraint("wallet_id", "wallet_version", name="uq_transactions_wallet_version"),
    )

    @property
    def currency_enum(self) -> Currency:
        return Currency.parse(self.currency)
