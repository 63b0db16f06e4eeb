# SQLAlchemy ORM Models
"""Model package exports for Alembic discovery and application use.

All models must be imported here to ensure Alembic can discover them
for automatic migration generation.
"""

from app.models.bank_account import BankAccount
from app.models.transaction import Transaction, TransactionKind, TransactionStatus
from app.models.wallet import Wallet

__all__ = [
    "BankAccount",
    "Wallet",
    "Transaction",
    "TransactionKind",
    "TransactionStatus",
]
