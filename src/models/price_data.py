"""Price data models for marketplace quotes and aggregated views."""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from src.services.pricing_errors import (
    InvalidAmount,
    InvalidCurrencyFormat,
    InvalidFeePercent,
    InvalidFixedFee,
    UnsupportedCurrency,
    UnsupportedPlatform,
)
from src.utils.money import ZERO, require_non_negative, to_decimal

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


class Platform(str, Enum):
    """Supported marketplaces."""

    STEAM = "steam"
    CSFLOAT = "csfloat"
    CSMONEY = "csmoney"
    TRADEIT = "tradeit"
    BUFF163 = "buff163"
    DMARKET = "dmarket"

    @property
    def display_name(self) -> str:
        return PLATFORM_NAMES[self]


PLATFORM_NAMES: dict[Platform, str] = {
    Platform.STEAM: "Steam Market",
    Platform.CSFLOAT: "CSFloat",
    Platform.CSMONEY: "CS.MONEY",
    Platform.TRADEIT: "TradeIt.gg",
    Platform.BUFF163: "Buff163",
    Platform.DMARKET: "DMarket",
}


class Currency(str, Enum):
    """ISO 4217 codes accepted for conversion to USD."""

    USD = "USD"
    EUR = "EUR"
    CNY = "CNY"
    RUB = "RUB"
    GBP = "GBP"
    BRL = "BRL"


SUPPORTED_CURRENCIES: frozenset[str] = frozenset(c.value for c in Currency)


class FreshnessStatus(str, Enum):
    """Data freshness tiers shown next to prices."""

    LIVE = "Live"
    STALE = "Stale"
    PAUSED = "Paused"


def parse_platform(value: Platform | str) -> Platform:
    """
    Resolve a platform identifier.

    Raises:
        UnsupportedPlatform: If the identifier is not a known marketplace
    """
    if isinstance(value, Platform):
        return value
    try:
        return Platform(str(value).strip().lower())
    except ValueError as e:
        raise UnsupportedPlatform(
            f"Unsupported platform: {value}",
            details={"platform": str(value)},
        ) from e


def parse_currency(value: Currency | str) -> Currency:
    """
    Resolve a currency code.

    Malformed codes and well-formed but unsupported codes raise different
    errors so callers can tell the two apart.

    Raises:
        InvalidCurrencyFormat: If the code is not three uppercase letters
        UnsupportedCurrency: If the code is not in SUPPORTED_CURRENCIES
    """
    if isinstance(value, Currency):
        return value
    if not isinstance(value, str) or not CURRENCY_CODE_PATTERN.match(value):
        raise InvalidCurrencyFormat(
            f"Invalid currency code: {value!r}",
            details={"currency": repr(value)},
        )
    if value not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrency(
            f"Unsupported currency: {value}",
            details={"currency": value},
        )
    return Currency(value)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@dataclass(frozen=True)
class QuoteFees:
    """Fee schedule applied to a single quote, percentages as 2.0 for 2%."""

    seller_percent: Decimal = ZERO
    buyer_percent: Decimal = ZERO
    fixed_amount: Decimal = ZERO  # USD

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "seller_percent",
            require_non_negative(self.seller_percent, InvalidFeePercent, "seller_percent"),
        )
        object.__setattr__(
            self,
            "buyer_percent",
            require_non_negative(self.buyer_percent, InvalidFeePercent, "buyer_percent"),
        )
        fixed = ZERO if self.fixed_amount is None else self.fixed_amount
        object.__setattr__(
            self, "fixed_amount", require_non_negative(fixed, InvalidFixedFee, "fixed_amount")
        )

    @property
    def total_percent(self) -> Decimal:
        return self.seller_percent + self.buyer_percent


@dataclass(frozen=True)
class Quote:
    """
    One marketplace's offer for one item at one point in time.

    Quotes are immutable. Positivity of price and total_cost is not enforced
    here; the aggregator rejects whole batches containing bad quotes instead.
    """

    platform: Platform
    price: Decimal
    currency: Currency
    fees: QuoteFees
    total_cost: Decimal
    last_updated: datetime
    available_quantity: int | None = None
    listing_url: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "platform", parse_platform(self.platform))
        object.__setattr__(self, "currency", parse_currency(self.currency))
        for name in ("price", "total_cost"):
            raw = getattr(self, name)
            try:
                object.__setattr__(self, name, to_decimal(raw))
            except (TypeError, ValueError) as e:
                raise InvalidAmount(
                    f"{name} must be a number, received: {raw!r}",
                    details={"field": name, "value": repr(raw)},
                ) from e
        if self.available_quantity is not None and self.available_quantity < 0:
            raise ValueError("available_quantity must be >= 0 when provided")
        object.__setattr__(self, "last_updated", as_utc(self.last_updated))


@dataclass(frozen=True)
class DataFreshness:
    """Freshness tier for a quote set; timestamps are None when there is no data."""

    status: FreshnessStatus
    last_updated: datetime | None = None
    minutes_ago: int | None = None


@dataclass(frozen=True)
class AggregatedView:
    """Ranked comparison of every quote for one item."""

    item_id: str
    item_name: str
    all_quotes: tuple[Quote, ...]
    lowest: Quote | None
    savings: Decimal
    freshness: DataFreshness
    aggregated_at: datetime
    outliers: tuple[Platform, ...] = ()

    @property
    def highest(self) -> Quote | None:
        return self.all_quotes[-1] if self.all_quotes else None


@dataclass(frozen=True)
class BulkItem:
    """Input for bulk aggregation: one catalog item and its quotes."""

    item_id: str
    item_name: str
    quotes: list[Quote] = field(default_factory=list)


@dataclass(frozen=True)
class BulkPriceResponse:
    """Aggregated views for many items plus loadout-level totals."""

    items: tuple[AggregatedView, ...]
    total_lowest_cost: Decimal
    total_savings: Decimal


@dataclass(frozen=True)
class PlatformComparison:
    """One row of a cross-platform price comparison table."""

    platform: Platform
    base_price: Decimal
    currency: Currency
    fee_percent: Decimal
    total_cost: Decimal
    savings_vs_highest: Decimal
    is_best_price: bool


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting a marketplace price to USD."""

    original_amount: Decimal
    original_currency: Currency
    converted_amount: Decimal
    exchange_rate: Decimal
    display_format: str
    timestamp: datetime
    target_currency: str = "USD"
