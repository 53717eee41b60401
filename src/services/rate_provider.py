"""Exchange rate sources consumed by the currency normalizer."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any, Protocol

from src.models.price_data import Currency, parse_currency
from src.services.pricing_errors import InvalidExchangeRate, MissingExchangeRate
from src.utils.logger import StructuredLogger
from src.utils.money import require_positive

# Placeholder rates used until a live provider is configured
DEFAULT_RATES: dict[Currency, Decimal] = {
    Currency.USD: Decimal("1"),
    Currency.EUR: Decimal("1.10"),
    Currency.CNY: Decimal("0.14"),
    Currency.RUB: Decimal("0.011"),
    Currency.GBP: Decimal("1.27"),
    Currency.BRL: Decimal("0.20"),
}

DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60


class RateProvider(Protocol):
    """Anything that can tell how many USD one unit of a currency is worth."""

    def get_rate(self, currency: Currency | str) -> Decimal: ...


def _parse_rate_table(rates: Mapping[Any, Any]) -> dict[Currency, Decimal]:
    table: dict[Currency, Decimal] = {}
    for code, rate in rates.items():
        currency = parse_currency(code.value if isinstance(code, Currency) else code)
        table[currency] = require_positive(rate, InvalidExchangeRate, f"rate[{currency.value}]")
    table[Currency.USD] = Decimal("1")
    return table


class StaticRateProvider:
    """Rate provider backed by a fixed table."""

    def __init__(self, rates: Mapping[Any, Any] | None = None):
        """
        Initialize the provider.

        Args:
            rates: Currency -> USD rate; defaults to DEFAULT_RATES

        Raises:
            InvalidExchangeRate: If any rate is not positive
        """
        self._rates = _parse_rate_table(DEFAULT_RATES if rates is None else rates)

    @property
    def rates(self) -> dict[Currency, Decimal]:
        return dict(self._rates)

    def get_rate(self, currency: Currency | str) -> Decimal:
        code = parse_currency(currency)
        rate = self._rates.get(code)
        if rate is None:
            raise MissingExchangeRate(
                f"No exchange rate available for {code.value}",
                details={"currency": code.value},
            )
        return rate


@dataclass(frozen=True)
class ExchangeRateCache:
    """A loaded rate table and its expiry."""

    rates: dict[Currency, Decimal]
    last_updated: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class CachedRateProvider:
    """
    Keeps a rate table from a loader for a fixed TTL.

    The loader is whatever actually knows the rates (a database row, an
    external service client); this class only decides when to call it.
    """

    def __init__(
        self,
        loader: Callable[[], Mapping[Any, Any]],
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the cached provider.

        Args:
            loader: Callable returning a currency -> rate mapping
            ttl_seconds: How long a loaded table stays valid
            clock: Optional clock, defaults to the current UTC time
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.loader = loader
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = StructuredLogger("CachedRateProvider")
        self._cache: ExchangeRateCache | None = None

    def get_rate(self, currency: Currency | str) -> Decimal:
        code = parse_currency(currency)
        rate = self._current_table().get(code)
        if rate is None:
            raise MissingExchangeRate(
                f"No exchange rate available for {code.value}",
                details={"currency": code.value},
            )
        return rate

    def get_cache(self) -> ExchangeRateCache | None:
        return self._cache

    def clear_cache(self) -> None:
        self._cache = None

    def _current_table(self) -> dict[Currency, Decimal]:
        now = self.clock()
        if self._cache is None or self._cache.is_expired(now):
            rates = _parse_rate_table(self.loader())
            self._cache = ExchangeRateCache(
                rates=rates, last_updated=now, expires_at=now + self.ttl
            )
            self.logger.info(
                "Exchange rate table loaded",
                context={
                    "currencies": sorted(c.value for c in rates),
                    "expires_at": self._cache.expires_at.isoformat(),
                },
            )
        return self._cache.rates
