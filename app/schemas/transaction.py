"""Transaction Pydantic schemas for response serialization."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from app.core.currency import format_amount
from app.models.transaction import Transaction, TransactionKind, TransactionStatus
from app.schemas.wallet import CamelModel


class TransactionRead(CamelModel):
    """Schema for reading a ledger entry.

    Amount is a fixed-precision decimal string in the entry's currency.
    """

    id: uuid.UUID
    wallet_id: uuid.UUID
    kind: TransactionKind
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    amount: str
    currency: str
    status: TransactionStatus
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, transaction: Transaction) -> "TransactionRead":
        currency = transaction.currency_enum
        return cls(
            id=transaction.id,
            wallet_id=transaction.wallet_id,
            kind=TransactionKind(transaction.kind),
            from_address=transaction.from_address,
            to_address=transaction.to_address,
            amount=format_amount(transaction.amount, currency),
            currency=currency.code,
            status=TransactionStatus(transaction.status),
            description=transaction.description,
            metadata=transaction.details or {},
            failure_reason=transaction.failure_reason,
            created_at=transaction.created_at,
            completed_at=transaction.completed_at,
        )


class TransactionListResponse(CamelModel):
    transactions: list[TransactionRead]
