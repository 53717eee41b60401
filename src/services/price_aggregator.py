"""Price aggregator ranking marketplace quotes per item."""

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from src.models.price_data import (
    AggregatedView,
    BulkItem,
    BulkPriceResponse,
    Platform,
    PlatformComparison,
    Quote,
    as_utc,
    parse_platform,
)
from src.services.freshness import classify_quotes
from src.services.outlier_detection import detect_outliers_by
from src.services.pricing_errors import InvalidQuoteInBatch
from src.utils.logger import StructuredLogger, get_current_trace
from src.utils.money import ZERO, round_money


def _sort_key(quote: Quote) -> tuple[Decimal, str]:
    return quote.total_cost, quote.platform.value


def _validate_quotes(item_id: str, quotes: Sequence[Quote]) -> None:
    """Reject the whole batch if any quote has a non-positive price or total cost."""
    for index, quote in enumerate(quotes):
        for name in ("price", "total_cost"):
            value = getattr(quote, name)
            if not value.is_finite() or value <= ZERO:
                raise InvalidQuoteInBatch(
                    f"Quote from {quote.platform.value} for item {item_id} has invalid "
                    f"{name}: {value}",
                    details={
                        "item_id": item_id,
                        "index": index,
                        "platform": quote.platform.value,
                        "field": name,
                        "value": str(value),
                    },
                )


def compute_savings(sorted_quotes: Sequence[Quote]) -> Decimal:
    """Highest minus lowest total cost of an already sorted list; 0 for fewer than two."""
    if len(sorted_quotes) < 2:
        return round_money(ZERO)
    return max(round_money(sorted_quotes[-1].total_cost - sorted_quotes[0].total_cost), ZERO)


def platform_comparison(view: AggregatedView) -> list[PlatformComparison]:
    """
    Build comparison rows for every quote in a view, cheapest first.

    savings_vs_highest is how much each platform saves compared with the
    most expensive one; only the view's lowest quote is the best price.
    """
    highest = view.highest
    rows = []
    for quote in view.all_quotes:
        rows.append(
            PlatformComparison(
                platform=quote.platform,
                base_price=quote.price,
                currency=quote.currency,
                fee_percent=quote.fees.total_percent,
                total_cost=quote.total_cost,
                savings_vs_highest=round_money(highest.total_cost - quote.total_cost),
                is_best_price=quote is view.lowest,
            )
        )
    return rows


class PriceAggregator:
    """Combines quotes from several marketplaces into comparable views."""

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        flag_outliers: bool = True,
    ):
        """
        Initialize the aggregator.

        Args:
            clock: Source of "now" when callers do not pass one
            flag_outliers: Annotate views with IQR price outliers
        """
        self.clock = clock or (lambda: datetime.now(UTC))
        self.flag_outliers = flag_outliers
        self.logger = StructuredLogger("PriceAggregator")

    def aggregate(
        self,
        item_id: str,
        item_name: str,
        quotes: Iterable[Quote],
        now: datetime | None = None,
    ) -> AggregatedView:
        """
        Rank every quote for one item by total cost.

        The caller's list is never reordered; quotes are copied into a new
        sorted tuple. Ties on total cost are broken by platform identifier
        so the order is reproducible.

        Args:
            item_id: Catalog item identifier (passed through)
            item_name: Display name (passed through)
            quotes: Quotes for this item, possibly empty
            now: Time used for freshness and aggregated_at

        Returns:
            AggregatedView for the item

        Raises:
            InvalidQuoteInBatch: If any quote has a non-positive price or total cost
        """
        snapshot = list(quotes)
        now = as_utc(now if now is not None else self.clock())
        trace_id = get_current_trace()

        try:
            _validate_quotes(item_id, snapshot)
        except InvalidQuoteInBatch as e:
            self.logger.warning(
                "Rejected quote batch",
                context={"trace_id": trace_id, "item_id": item_id, **e.details},
            )
            raise

        ranked = tuple(sorted(snapshot, key=_sort_key))
        lowest = ranked[0] if ranked else None
        savings = compute_savings(ranked)

        outliers: tuple[Platform, ...] = ()
        if self.flag_outliers and ranked:
            detection = detect_outliers_by(ranked, lambda q: q.total_cost)
            outliers = tuple(q.platform for q in detection.outliers)
            if outliers:
                self.logger.warning(
                    "Price outliers detected",
                    context={
                        "trace_id": trace_id,
                        "item_id": item_id,
                        "platforms": [p.value for p in outliers],
                        "lower_bound": str(detection.stats.lower_bound),
                        "upper_bound": str(detection.stats.upper_bound),
                    },
                )

        view = AggregatedView(
            item_id=item_id,
            item_name=item_name,
            all_quotes=ranked,
            lowest=lowest,
            savings=savings,
            freshness=classify_quotes(ranked, now),
            aggregated_at=now,
            outliers=outliers,
        )

        self.logger.info(
            "Aggregated item prices",
            context={
                "trace_id": trace_id,
                "item_id": item_id,
                "quote_count": len(ranked),
                "lowest_platform": lowest.platform.value if lowest else None,
                "savings": str(savings),
                "freshness": view.freshness.status.value,
            },
        )
        return view

    def aggregate_bulk(
        self,
        items: Iterable[BulkItem],
        platform: Platform | str | None = None,
        now: datetime | None = None,
    ) -> BulkPriceResponse:
        """
        Aggregate many items independently and total them up.

        total_lowest_cost sums each item's lowest total cost (items without
        quotes add 0). total_savings sums the per-item savings; it is not
        (sum of highest) - (sum of lowest), which differs whenever items
        reach their extremes on different platforms.

        Args:
            items: Items and their quotes
            platform: Optionally keep only this marketplace's quotes
            now: Shared time for every item in the batch

        Raises:
            InvalidQuoteInBatch: If any item contains an invalid quote
        """
        now = as_utc(now if now is not None else self.clock())
        only = parse_platform(platform) if platform is not None else None

        views = []
        for item in items:
            quotes = [q for q in item.quotes if only is None or q.platform is only]
            views.append(self.aggregate(item.item_id, item.item_name, quotes, now=now))

        total_lowest = sum((v.lowest.total_cost for v in views if v.lowest), ZERO)
        total_savings = sum((v.savings for v in views), ZERO)

        self.logger.info(
            "Aggregated bulk prices",
            context={
                "trace_id": get_current_trace(),
                "item_count": len(views),
                "platform": only.value if only else None,
                "total_lowest_cost": str(round_money(total_lowest)),
            },
        )
        return BulkPriceResponse(
            items=tuple(views),
            total_lowest_cost=round_money(total_lowest),
            total_savings=round_money(total_savings),
        )
