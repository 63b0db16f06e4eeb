"""Withdrawal limits, fee estimates and destination checks."""

import enum
from dataclasses import dataclass
from decimal import Decimal

from app.core.crypto import is_valid_wallet_address
from app.core.currency import Currency, format_amount, quantize
from app.core.exceptions import ValidationError


class WithdrawalMethod(str, enum.Enum):
    """Where withdrawn funds are sent."""

    WALLET = "wallet"
    BANK = "bank"


@dataclass(frozen=True)
class WithdrawalLimit:
    minimum: Decimal
    maximum: Decimal


WITHDRAWAL_LIMITS: dict[Currency, WithdrawalLimit] = {
    Currency.ETH: WithdrawalLimit(Decimal("0.001"), Decimal("10.0")),
    Currency.USDC: WithdrawalLimit(Decimal("1.00"), Decimal("10000.00")),
}

NETWORK_FEE_RATES: dict[Currency, Decimal] = {
    Currency.ETH: Decimal("0.001"),
    Currency.USDC: Decimal("0.005"),
}


@dataclass(frozen=True)
class Destination:
    """Validated withdrawal target; exactly one field is set."""

    wallet_address: str | None = None
    bank_account_id: str | None = None


def validate_withdrawal_limits(amount: Decimal, currency: Currency) -> None:
    """Reject amounts outside the per-currency withdrawal window."""
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    limit = WITHDRAWAL_LIMITS[currency]
    if amount < limit.minimum:
        raise ValidationError(f"Minimum withdrawal is {limit.minimum} {currency.code}")
    if amount > limit.maximum:
        raise ValidationError(f"Maximum withdrawal is {limit.maximum} {currency.code}")


def resolve_destination(
    method: "WithdrawalMethod | str",
    wallet_address: str | None = None,
    bank_account_id: str | None = None,
) -> tuple[WithdrawalMethod, Destination]:
    try:
        method = WithdrawalMethod(method)
    except ValueError:
        raise ValidationError(f"Unsupported withdrawal method: {method}") from None

    if method is WithdrawalMethod.WALLET:
        if not is_valid_wallet_address(wallet_address):
            raise ValidationError(f"Invalid destination wallet address: {wallet_address!r}")
        return method, Destination(wallet_address=wallet_address)

    if not bank_account_id:
        raise ValidationError("Bank withdrawals require a bank account id")
    return method, Destination(bank_account_id=bank_account_id)


def calculate_network_fee(amount: Decimal, currency: Currency) -> str:
    return format_amount(quantize(amount * NETWORK_FEE_RATES[currency], currency), currency)


def estimate_withdrawal_time(method: WithdrawalMethod) -> str:
    if method is WithdrawalMethod.WALLET:
        return "2-5 minutes"
    return "1-3 business days"
