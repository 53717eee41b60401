"""Turns raw marketplace observations into fee-inclusive USD quotes."""

from datetime import datetime
from typing import Any

from src.models.price_data import Currency, Platform, Quote, parse_currency, parse_platform
from src.services.currency_normalizer import CurrencyNormalizer
from src.services.fee_calculator import FeeCalculator, compute_total_cost


class QuoteBuilder:
    """Runs a listing through currency normalization and the fee schedule."""

    def __init__(self, normalizer: CurrencyNormalizer, fee_calculator: FeeCalculator):
        self.normalizer = normalizer
        self.fee_calculator = fee_calculator

    def build(
        self,
        platform: Platform | str,
        price: Any,
        currency: Currency | str,
        last_updated: datetime,
        available_quantity: int | None = None,
        listing_url: str | None = None,
    ) -> Quote:
        """
        Build an immutable quote for one listing.

        The price stays in its original currency on the quote; total_cost is
        the USD-converted price with the platform's fees applied. Fixed fees
        in the schedule are USD.

        Raises:
            PricingError: For an unknown platform, bad currency, non-positive
                price or missing exchange rate
        """
        platform = parse_platform(platform)
        code = parse_currency(currency)
        conversion = self.normalizer.to_usd(price, code)
        fees = self.fee_calculator.fees_for(platform)

        return Quote(
            platform=platform,
            price=conversion.original_amount,
            currency=code,
            fees=fees,
            total_cost=compute_total_cost(conversion.converted_amount, fees),
            last_updated=last_updated,
            available_quantity=available_quantity,
            listing_url=listing_url,
        )
