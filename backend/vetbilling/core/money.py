"""Decimal money helpers shared by the settlement engine and reporting.

Amounts are kept as ``Decimal`` end to end. Values are rounded half-up to
cents only when they cross a currency boundary or are persisted, so sums of
already-stored amounts stay exact.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from vetbilling.core.errors import InvalidRate
from vetbilling.models.currency import Currency

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0")

# Tolerance for near-equal USD comparisons.
EPSILON = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and Decimals to Decimal without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    """Round to cents using round-half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_rate(value: Any) -> Decimal | None:
    """Round a rate to its four stored places. None and non-finite values pass through."""
    if value is None:
        return None
    rate = to_decimal(value)
    if not rate.is_finite():
        return rate
    return rate.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def money_equal(a: Any, b: Any) -> bool:
    """Compare two amounts at cent granularity."""
    return quantize_money(a) == quantize_money(b)


def validate_rate(rate: Any) -> Decimal:
    """Return the rate as a Decimal, raising InvalidRate unless it is positive."""
    if rate is None:
        raise InvalidRate("An exchange rate is required to convert local currency")
    value = to_decimal(rate)
    if not value.is_finite() or value <= 0:
        raise InvalidRate(f"Exchange rate must be greater than zero, got {rate}")
    return value


def to_usd(amount: Any, currency: Currency | str, rate: Any = None) -> Decimal:
    """Convert an amount in ``currency`` to its USD equivalent.

    USD amounts pass through (rounded). LOCAL amounts are divided by the rate.
    """
    if Currency(currency) == Currency.USD:
        return quantize_money(amount)
    return quantize_money(to_decimal(amount) / validate_rate(rate))


def to_local(amount: Any, rate: Any) -> Decimal:
    """Convert a USD amount to local currency."""
    return quantize_money(to_decimal(amount) * validate_rate(rate))


def from_usd(amount: Any, currency: Currency | str, rate: Any = None) -> Decimal:
    """Express a USD amount in ``currency``."""
    if Currency(currency) == Currency.USD:
        return quantize_money(amount)
    return to_local(amount, rate)
