"""Wallet Pydantic schemas for request/response validation."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.currency import Currency, format_amount
from app.models.wallet import Wallet


class CamelModel(BaseModel):
    """Base schema emitting camelCase keys and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BalanceRead(CamelModel):
    """Balances as fixed-precision decimal strings."""

    eth: str
    usdc: str

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "BalanceRead":
        return cls(
            eth=format_amount(wallet.eth_balance, Currency.ETH),
            usdc=format_amount(wallet.usdc_balance, Currency.USDC),
        )


class WalletRead(CamelModel):
    """Schema for reading Wallet data."""

    id: uuid.UUID
    consumer_id: str
    address: str
    balance: BalanceRead
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, wallet: Wallet) -> "WalletRead":
        return cls(
            id=wallet.id,
            consumer_id=wallet.consumer_id,
            address=wallet.address,
            balance=BalanceRead.from_wallet(wallet),
            created_at=wallet.created_at,
            updated_at=wallet.updated_at,
        )


class WalletCreateResponse(CamelModel):
    success: bool = True
    wallet: WalletRead


class WalletStatusResponse(CamelModel):
    """Response for GET /wallet; wallet is omitted when has_wallet is false."""

    has_wallet: bool
    wallet: Optional[WalletRead] = None


class FundRequest(CamelModel):
    """Request schema for the testnet faucet simulation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"example": {"cdpWalletId": "mock-wallet-1730000000000"}},
    )

    cdp_wallet_id: Optional[str] = None


class FundResponse(CamelModel):
    success: bool = True
    message: str
    transaction_hash: str
    balance: BalanceRead
    faucet_amount: str
    transaction_ids: list[uuid.UUID]


class WithdrawRequest(CamelModel):
    """Request schema for a withdrawal.

    Values are kept as strings; the ledger validates and normalizes them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "amount": "3.00",
                "currency": "usdc",
                "method": "wallet",
                "walletAddress": "0xabc0000000000000000000000000000000000000",
            }
        },
    )

    amount: str = Field(..., description="Decimal amount to withdraw")
    currency: str = Field(..., description="eth or usdc")
    method: str = Field(..., description="wallet or bank")
    wallet_address: Optional[str] = None
    bank_account_id: Optional[str] = None


class WithdrawResponse(CamelModel):
    success: bool = True
    transaction_id: uuid.UUID
    status: str
    estimated_time: str
