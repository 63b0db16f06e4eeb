"""Supported currencies and fixed-precision amount handling."""

import enum
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.core.exceptions import ValidationError

# Balances and amounts are stored as Numeric(24, 6)
MAX_INTEGER_DIGITS = 18


class Currency(str, enum.Enum):
    """Wallet currencies.

    Values:
        ETH: Gas currency, 6 decimal places
        USDC: Stable currency, 2 decimal places
    """

    ETH = "eth"
    USDC = "usdc"

    @property
    def places(self) -> int:
        return 6 if self is Currency.ETH else 2

    @property
    def quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.places)

    @property
    def code(self) -> str:
        """Upper-case display code stored on transactions."""
        return self.value.upper()

    @classmethod
    def parse(cls, value: "str | Currency") -> "Currency":
        if isinstance(value, Currency):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unsupported currency: {value}") from None


def quantize(amount: Decimal, currency: Currency) -> Decimal:
    """Round to the currency precision."""
    return amount.quantize(currency.quantum, rounding=ROUND_HALF_UP)


def parse_amount(value: "str | Decimal | int | float", currency: Currency) -> Decimal:
    """Parse a positive amount and quantize it to the currency precision.

    Raises:
        ValidationError: If the value is not a finite decimal greater than
            zero after rounding, or has more integer digits than a balance
            column holds.
    """
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Malformed amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Malformed amount: {value!r}")
    if amount.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValidationError(f"Amount too large: {value!r}")
    try:
        amount = quantize(amount, currency)
    except InvalidOperation:
        raise ValidationError(f"Malformed amount: {value!r}") from None
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    return amount


def format_amount(amount: Decimal, currency: Currency) -> str:
    """Fixed-precision string form, e.g. ``"5.25"`` or ``"0.000000"``."""
    return f"{quantize(amount, currency):.{currency.places}f}"
