"""BankAccount SQLAlchemy ORM model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.wallet import utcnow


class BankAccount(Base):
    """Bank account linked by a consumer as an off-ramp destination.

    Only the last four digits of the account number are kept.
    """

    __tablename__ = "bank_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    consumer_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True
    )
    account_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False
    )
    last4: Mapped[str] = mapped_column(
        String(4),
        nullable=False
    )
    bank_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
