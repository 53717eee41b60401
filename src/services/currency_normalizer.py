"""Currency normalization of marketplace prices to USD."""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from src.models.price_data import ConversionResult, Currency, parse_currency
from src.services.pricing_errors import InvalidAmount, InvalidExchangeRate
from src.services.rate_provider import RateProvider
from src.utils.logger import StructuredLogger
from src.utils.money import require_positive, round_money

USD_RATE = Decimal("1")


def normalize_to_usd(amount: Any, currency: Currency | str, rate: Any) -> Decimal:
    """
    Convert an amount in a supported currency to USD.

    Rounding (half away from zero, 2 dp) happens once, after multiplying,
    so no intermediate rounding error reaches the fee calculation.

    Args:
        amount: Positive amount in the original currency
        currency: ISO 4217 code from the supported set
        rate: Positive USD value of one unit of the currency

    Returns:
        USD amount rounded to cents

    Raises:
        InvalidCurrencyFormat: If the code is not three uppercase letters
        UnsupportedCurrency: If the code is well-formed but unsupported
        InvalidAmount: If amount <= 0
        InvalidExchangeRate: If rate <= 0
    """
    code = parse_currency(currency)
    value = require_positive(amount, InvalidAmount, "amount")
    exchange_rate = require_positive(rate, InvalidExchangeRate, "rate")

    # USD is a no-op; skipping the multiplication avoids drift from a rate like 1.0000001
    if code is Currency.USD:
        return round_money(value)

    return round_money(value * exchange_rate)


def format_display(currency: Currency | str) -> str:
    """Label a converted price, e.g. "USD (from CNY)"."""
    code = parse_currency(currency)
    if code is Currency.USD:
        return "USD"
    return f"USD (from {code.value})"


class CurrencyNormalizer:
    """Converts prices to USD using an injected rate source."""

    def __init__(
        self,
        rate_provider: RateProvider,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the normalizer.

        Args:
            rate_provider: Source of USD exchange rates
            clock: Optional clock used to timestamp results
        """
        self.rate_provider = rate_provider
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = StructuredLogger("CurrencyNormalizer")

    def to_usd(self, amount: Any, currency: Currency | str) -> ConversionResult:
        """
        Convert one amount to USD with full conversion metadata.

        Raises:
            PricingError: For any invalid amount, currency or rate
        """
        code = parse_currency(currency)
        rate = USD_RATE if code is Currency.USD else self.rate_provider.get_rate(code)
        return self._convert(amount, code, rate)

    def convert_batch(
        self, prices: Iterable[tuple[Any, Currency | str]]
    ) -> list[ConversionResult]:
        """
        Convert many prices, looking each distinct currency's rate up once.

        Args:
            prices: (amount, currency) pairs

        Returns:
            Conversion results in input order
        """
        pairs = [(amount, parse_currency(currency)) for amount, currency in prices]

        rates: dict[Currency, Decimal] = {}
        for _, code in pairs:
            if code not in rates:
                rates[code] = (
                    USD_RATE if code is Currency.USD else self.rate_provider.get_rate(code)
                )

        self.logger.debug(
            "Converting price batch",
            context={"count": len(pairs), "currencies": sorted(c.value for c in rates)},
        )
        return [self._convert(amount, code, rates[code]) for amount, code in pairs]

    def _convert(self, amount: Any, code: Currency, rate: Decimal) -> ConversionResult:
        converted = normalize_to_usd(amount, code, rate)
        return ConversionResult(
            original_amount=require_positive(amount, InvalidAmount, "amount"),
            original_currency=code,
            converted_amount=converted,
            exchange_rate=require_positive(rate, InvalidExchangeRate, "rate"),
            display_format=format_display(code),
            timestamp=self.clock(),
        )
