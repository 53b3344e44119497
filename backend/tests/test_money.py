"""Tests for Decimal money helpers."""

from decimal import Decimal

import pytest

from vetbilling.core.errors import InvalidRate
from vetbilling.core.money import (
    from_usd,
    money_equal,
    quantize_money,
    quantize_rate,
    to_decimal,
    to_local,
    to_usd,
    validate_rate,
)
from vetbilling.models.currency import Currency


class TestToDecimal:
    def test_float_has_no_binary_noise(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_none_is_zero(self):
        assert to_decimal(None) == 0

    def test_decimal_passes_through(self):
        value = Decimal("1.005")
        assert to_decimal(value) is value


class TestQuantize:
    def test_rounds_half_up(self):
        assert quantize_money("2.345") == Decimal("2.35")
        assert quantize_money("2.344") == Decimal("2.34")
        assert quantize_money("-2.345") == Decimal("-2.35")

    def test_money_equal_at_cent_granularity(self):
        assert money_equal("0.004", 0)
        assert not money_equal("0.005", 0)


class TestRates:
    def test_validate_rate(self):
        assert validate_rate("36.5") == Decimal("36.5")

    def test_quantize_rate_to_four_places(self):
        assert quantize_rate("40.00005") == Decimal("40.0001")
        assert quantize_rate("36.5") == Decimal("36.5000")
        assert quantize_rate(None) is None
        assert quantize_rate("NaN").is_nan()

    @pytest.mark.parametrize("rate", [None, 0, "-3", "NaN", "Infinity"])
    def test_invalid_rates(self, rate):
        with pytest.raises(InvalidRate):
            validate_rate(rate)


class TestConversion:
    def test_usd_passes_through(self):
        assert to_usd("12.345", Currency.USD) == Decimal("12.35")

    def test_local_divides_by_rate(self):
        assert to_usd(2000, Currency.LOCAL, 40) == Decimal("50.00")
        assert to_usd("100", "LOCAL", "36.50") == Decimal("2.74")

    def test_local_without_rate_fails(self):
        with pytest.raises(InvalidRate):
            to_usd(100, Currency.LOCAL)

    def test_to_local(self):
        assert to_local(50, 40) == Decimal("2000.00")

    def test_from_usd(self):
        assert from_usd(50, Currency.USD) == Decimal("50.00")
        assert from_usd(50, Currency.LOCAL, "36.5") == Decimal("1825.00")
