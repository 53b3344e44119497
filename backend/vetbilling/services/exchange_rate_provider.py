"""Exchange rate providers (Bs per USD).

The settlement engine only needs a positive rate; where it comes from and how
failures degrade is decided here:

1. a manual override, when one is set;
2. the last fetched rate while it is younger than the cache window;
3. a fresh rate from the official-rate API;
4. the last fetched rate even if stale, when the API is unreachable;
5. a configured default as last resort.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import httpx

from vetbilling.core.config import settings
from vetbilling.core.money import quantize_money, validate_rate

logger = logging.getLogger(__name__)


class RateSource(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"
    CACHED = "cached"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Rate:
    """A rate snapshot. ``value`` is always positive."""

    value: Decimal
    source: RateSource
    fetched_at: datetime | None = None


class ExchangeRateProviderBase(ABC):
    """Abstract base class for exchange rate providers."""

    @abstractmethod
    def get_rate(self) -> Rate:
        """Return the rate currently in effect."""
        pass  # pragma: no cover

    @property
    def mode(self) -> str:
        return "manual"


class FixedRateProvider(ExchangeRateProviderBase):
    """Always returns the same rate. Used for manual setups and tests."""

    def __init__(self, value: Any, source: RateSource = RateSource.MANUAL):
        self._rate = Rate(value=validate_rate(value), source=source)

    def get_rate(self) -> Rate:
        return self._rate


class DolarApiRateProvider(ExchangeRateProviderBase):
    """Official BCV rate from dolarapi.com, with manual override and caching."""

    def __init__(
        self,
        url: str | None = None,
        cache_seconds: int | None = None,
        default_rate: Decimal | None = None,
        timeout: float | None = None,
        manual_rate: Decimal | None = None,
    ):
        self.url = url or settings.EXCHANGE_RATE_URL
        self.cache_ttl = timedelta(
            seconds=settings.EXCHANGE_RATE_CACHE_SECONDS if cache_seconds is None else cache_seconds
        )
        self.default_rate = validate_rate(default_rate or settings.EXCHANGE_RATE_DEFAULT)
        self.timeout = timeout or settings.EXCHANGE_RATE_TIMEOUT_SECONDS
        self._lock = threading.Lock()
        self._manual_rate: Decimal | None = None
        self._cached_rate: Decimal | None = None
        self._last_fetch: datetime | None = None
        if manual_rate is not None:
            self.set_manual_rate(manual_rate)

    @property
    def mode(self) -> str:
        return "manual" if self._manual_rate is not None else "auto"

    @property
    def manual_rate(self) -> Decimal | None:
        return self._manual_rate

    def set_manual_rate(self, rate: Any) -> Decimal:
        """Override the automatic rate until ``clear_manual_rate`` is called."""
        value = quantize_money(validate_rate(rate))
        with self._lock:
            self._manual_rate = value
        logger.info("Manual exchange rate set to %s", value)
        return value

    def clear_manual_rate(self) -> None:
        with self._lock:
            self._manual_rate = None
        logger.info("Exchange rate switched to automatic mode")

    def fetch_rate(self) -> Decimal:
        """Fetch the official average rate. Raises on any HTTP or payload error."""
        with httpx.Client(timeout=self.timeout) as client:
            response = client.get(self.url)
            response.raise_for_status()
            payload = response.json()
        return quantize_money(validate_rate(payload["promedio"]))

    def get_rate(self, now: datetime | None = None) -> Rate:
        now = now or datetime.now(UTC)
        with self._lock:
            if self._manual_rate is not None:
                return Rate(value=self._manual_rate, source=RateSource.MANUAL)

            if (
                self._cached_rate is not None
                and self._last_fetch is not None
                and now - self._last_fetch < self.cache_ttl
            ):
                return Rate(
                    value=self._cached_rate, source=RateSource.CACHED, fetched_at=self._last_fetch
                )

            try:
                rate = self.fetch_rate()
            except (httpx.HTTPError, InvalidOperation, KeyError, TypeError, ValueError):
                logger.exception("Failed to fetch exchange rate from %s", self.url)
                if self._cached_rate is not None:
                    logger.warning("Using stale cached exchange rate %s", self._cached_rate)
                    return Rate(
                        value=self._cached_rate,
                        source=RateSource.CACHED,
                        fetched_at=self._last_fetch,
                    )
                logger.warning("Using default exchange rate %s", self.default_rate)
                return Rate(value=self.default_rate, source=RateSource.FALLBACK)

            self._cached_rate = rate
            self._last_fetch = now
            return Rate(value=rate, source=RateSource.AUTO, fetched_at=now)


_provider: ExchangeRateProviderBase | None = None


def get_exchange_rate_provider() -> ExchangeRateProviderBase:
    """Get the process-wide exchange rate provider."""
    global _provider
    if _provider is None:
        _provider = DolarApiRateProvider(manual_rate=settings.EXCHANGE_RATE_MANUAL)
    return _provider


def set_exchange_rate_provider(provider: ExchangeRateProviderBase | None) -> None:
    """Swap the process-wide provider (``None`` resets to the default)."""
    global _provider
    _provider = provider
