"""Price list for consumer data sold to brokers."""

from decimal import ROUND_HALF_UP, Decimal

from app.core.exceptions import ValidationError

# USD per data point, per source
DATA_SOURCE_PRICES: dict[str, Decimal] = {
    "netflix": Decimal("1.25"),
    "spotify": Decimal("1.00"),
    "instagram": Decimal("1.75"),
    "apple-music": Decimal("0.75"),
    "facebook": Decimal("2.00"),
}

BULK_DISCOUNT_THRESHOLD = 10
BULK_DISCOUNT_RATE = Decimal("0.10")
MAX_QUANTITY = 1000


def calculate_total_cost(sources: list[str], quantity: int) -> Decimal:
    """Total USD price of ``quantity`` data points covering ``sources``.

    Orders above ten points get ten percent off.

    Raises:
        ValidationError: On an empty or unknown source list, or a quantity
            outside 1-1000.
    """
    if not sources:
        raise ValidationError("Invalid or missing data sources")
    unknown = sorted(set(sources) - DATA_SOURCE_PRICES.keys())
    if unknown:
        raise ValidationError(f"Unknown data sources: {', '.join(unknown)}")
    if quantity < 1 or quantity > MAX_QUANTITY:
        raise ValidationError(f"Quantity must be between 1 and {MAX_QUANTITY}")

    total = sum((DATA_SOURCE_PRICES[source] for source in sources), Decimal("0")) * quantity
    if quantity > BULK_DISCOUNT_THRESHOLD:
        total *= 1 - BULK_DISCOUNT_RATE
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
