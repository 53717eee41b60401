"""FastAPI dependencies wiring the pricing services."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from src.database.db import get_db
from src.services.currency_normalizer import CurrencyNormalizer
from src.services.fee_calculator import FeeCalculator
from src.services.price_aggregator import PriceAggregator
from src.services.price_repository import PriceRepository
from src.services.quote_builder import QuoteBuilder
from src.services.rate_provider import DEFAULT_RATES, CachedRateProvider, RateProvider
from src.utils.config import config


def load_configured_rates() -> dict:
    """Placeholder rates with any RATE_<CODE> overrides from the environment."""
    rates = {currency.value: rate for currency, rate in DEFAULT_RATES.items()}
    rates.update(config.rates.rate_overrides)
    return rates


@lru_cache(maxsize=1)
def get_rate_provider() -> RateProvider:
    """Process-wide rate provider, so the rate cache outlives single requests."""
    return CachedRateProvider(
        loader=load_configured_rates,
        ttl_seconds=config.rates.cache_ttl_seconds,
    )


def get_price_repository(db: Session = Depends(get_db)) -> PriceRepository:
    return PriceRepository(db)


def get_fee_calculator(
    repository: PriceRepository = Depends(get_price_repository),
) -> FeeCalculator:
    """Fee calculator using the default schedule plus stored overrides."""
    return FeeCalculator(repository.get_fee_schedule())


def get_currency_normalizer(
    rate_provider: RateProvider = Depends(get_rate_provider),
) -> CurrencyNormalizer:
    return CurrencyNormalizer(rate_provider)


def get_quote_builder(
    normalizer: CurrencyNormalizer = Depends(get_currency_normalizer),
    fee_calculator: FeeCalculator = Depends(get_fee_calculator),
) -> QuoteBuilder:
    return QuoteBuilder(normalizer, fee_calculator)


def get_price_aggregator() -> PriceAggregator:
    return PriceAggregator()
