"""Data freshness classification for marketplace quotes."""

from collections.abc import Iterable
from datetime import datetime

from src.models.price_data import DataFreshness, FreshnessStatus, Quote, as_utc

STALE_AFTER_MINUTES = 5
PAUSED_AFTER_MINUTES = 15


def classify(last_updated: datetime, now: datetime) -> DataFreshness:
    """
    Classify how recent a price observation is.

    Elapsed time is floored to whole minutes, so 4m59s is still Live.
    Each boundary belongs to the next tier: 5 minutes is Stale and
    15 minutes is Paused. Timestamps in the future (clock skew) count
    as 0 minutes ago.

    Args:
        last_updated: When the data was observed
        now: Current time, supplied by the caller

    Returns:
        DataFreshness with status and whole minutes elapsed
    """
    last_updated = as_utc(last_updated)
    elapsed_seconds = (as_utc(now) - last_updated).total_seconds()
    minutes_ago = max(0, int(elapsed_seconds // 60))

    if minutes_ago < STALE_AFTER_MINUTES:
        status = FreshnessStatus.LIVE
    elif minutes_ago < PAUSED_AFTER_MINUTES:
        status = FreshnessStatus.STALE
    else:
        status = FreshnessStatus.PAUSED

    return DataFreshness(status=status, last_updated=last_updated, minutes_ago=minutes_ago)


def freshest_update(quotes: Iterable[Quote]) -> datetime | None:
    """Most recent last_updated among quotes, or None when there are none."""
    return max((quote.last_updated for quote in quotes), default=None)


def classify_quotes(quotes: Iterable[Quote], now: datetime) -> DataFreshness:
    """
    Freshness of a quote set, decided by its freshest quote.

    A lagging platform does not downgrade an item that has a fresh quote
    elsewhere. With no quotes the set is Paused and carries no timestamp.
    """
    latest = freshest_update(quotes)
    if latest is None:
        return DataFreshness(status=FreshnessStatus.PAUSED)
    return classify(latest, now)
