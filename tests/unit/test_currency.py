"""Unit tests for currency precision and wallet address helpers."""

from decimal import Decimal

import pytest

from app.core.crypto import derive_wallet_address, is_valid_wallet_address
from app.core.currency import Currency, format_amount, parse_amount, quantize
from app.core.exceptions import ValidationError


class TestCurrency:

    def test_precision_per_currency(self) -> None:
        assert Currency.ETH.places == 6
        assert Currency.USDC.places == 2
        assert Currency.USDC.quantum == Decimal("0.01")

    @pytest.mark.parametrize("value", ["eth", "ETH", " Usdc ", Currency.USDC])
    def test_parse_accepts_any_case(self, value) -> None:
        assert Currency.parse(value) in (Currency.ETH, Currency.USDC)

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValidationError):
            Currency.parse("btc")

    def test_quantize_rounds_half_up(self) -> None:
        assert quantize(Decimal("2.345"), Currency.USDC) == Decimal("2.35")
        assert quantize(Decimal("0.0000005"), Currency.ETH) == Decimal("0.000001")

    def test_format_amount_fixed_precision(self) -> None:
        assert format_amount(Decimal("0"), Currency.ETH) == "0.000000"
        assert format_amount(Decimal("0"), Currency.USDC) == "0.00"
        assert format_amount(Decimal("5.25"), Currency.USDC) == "5.25"
        assert format_amount(Decimal("5.250000"), Currency.USDC) == "5.25"

    def test_parse_amount(self) -> None:
        assert parse_amount("5.25", Currency.USDC) == Decimal("5.25")
        assert parse_amount(3, Currency.ETH) == Decimal("3.000000")

    @pytest.mark.parametrize("value", ["", "abc", "-1", "0", "0.004", "Infinity"])
    def test_parse_amount_rejects(self, value) -> None:
        with pytest.raises(ValidationError):
            parse_amount(value, Currency.USDC)

    @pytest.mark.parametrize("currency", [Currency.ETH, Currency.USDC])
    @pytest.mark.parametrize("value", ["1e30", "1e18", "1E+40", Decimal("1e100"), "1" + "0" * 30])
    def test_parse_amount_rejects_oversized_values(self, value, currency: Currency) -> None:
        with pytest.raises(ValidationError, match="too large"):
            parse_amount(value, currency)

    def test_parse_amount_accepts_largest_storable_magnitude(self) -> None:
        value = "9" * 18 + ".5"

        assert parse_amount(value, Currency.ETH) == Decimal(value)
        assert parse_amount(value, Currency.USDC) == Decimal("999999999999999999.50")


class TestWalletAddress:

    def test_derived_address_format(self) -> None:
        address = derive_wallet_address("secret", "c1", timestamp_ms=1700000000000)

        assert is_valid_wallet_address(address)
        assert address == derive_wallet_address("secret", "c1", timestamp_ms=1700000000000)

    def test_seed_components_change_address(self) -> None:
        base = derive_wallet_address("secret", "c1", timestamp_ms=1)

        assert base != derive_wallet_address("other", "c1", timestamp_ms=1)
        assert base != derive_wallet_address("secret", "c2", timestamp_ms=1)
        assert base != derive_wallet_address("secret", "c1", timestamp_ms=2)

    @pytest.mark.parametrize("address", [None, "", "0x", "0xAbC" + "0" * 36, "1x" + "0" * 40])
    def test_invalid_addresses(self, address) -> None:
        assert not is_valid_wallet_address(address)
