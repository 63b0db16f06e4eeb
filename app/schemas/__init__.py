# Pydantic Data Transfer Objects

from app.schemas.bank_account import BankAccountCreate, BankAccountRead
from app.schemas.transaction import TransactionListResponse, TransactionRead
from app.schemas.wallet import BalanceRead, WalletRead, WalletStatusResponse

__all__ = [
    "BalanceRead",
    "BankAccountCreate",
    "BankAccountRead",
    "TransactionListResponse",
    "TransactionRead",
    "WalletRead",
    "WalletStatusResponse",
]
