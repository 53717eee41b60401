"""API routes for price aggregation, fees and currency conversion."""

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_currency_normalizer,
    get_fee_calculator,
    get_price_aggregator,
    get_price_repository,
    get_quote_builder,
)
from src.api.error_handlers import create_not_found_error
from src.models.price_data import BulkItem, Quote, QuoteFees, parse_platform
from src.models.price_schemas import (
    AggregatedViewOut,
    AggregateRequest,
    BulkAggregateRequest,
    BulkPriceOut,
    BuyerFeeRequest,
    ConversionOut,
    ConvertRequest,
    FeeBreakdownOut,
    QuoteIn,
    SellerFeeRequest,
    SellerProceedsOut,
    StoreListingsRequest,
)
from src.services.currency_normalizer import CurrencyNormalizer
from src.services.fee_calculator import FeeCalculator, compute_total_cost
from src.services.price_aggregator import PriceAggregator, platform_comparison
from src.services.price_repository import PriceRepository
from src.services.quote_builder import QuoteBuilder

router = APIRouter()


def _quote_from_request(
    quote_in: QuoteIn,
    normalizer: CurrencyNormalizer,
    fee_calculator: FeeCalculator,
) -> Quote:
    """
    Convert a submitted quote, deriving total_cost when it is not supplied.

    A supplied total_cost is taken as-is so the aggregator can reject
    non-positive values for the whole batch.
    """
    platform = parse_platform(quote_in.platform)
    if quote_in.fees is None:
        fees = fee_calculator.fees_for(platform)
    else:
        fees = QuoteFees(
            seller_percent=quote_in.fees.seller_percent,
            buyer_percent=quote_in.fees.buyer_percent,
            fixed_amount=quote_in.fees.fixed_amount,
        )

    total_cost = quote_in.total_cost
    if total_cost is None:
        conversion = normalizer.to_usd(quote_in.price, quote_in.currency)
        total_cost = compute_total_cost(conversion.converted_amount, fees)

    return Quote(
        platform=platform,
        price=quote_in.price,
        currency=quote_in.currency,
        fees=fees,
        total_cost=total_cost,
        last_updated=quote_in.last_updated,
        available_quantity=quote_in.available_quantity,
        listing_url=quote_in.listing_url,
    )


@router.get("/items/{item_id}/prices", response_model=AggregatedViewOut)
async def get_item_prices(
    item_id: str,
    repository: PriceRepository = Depends(get_price_repository),
    aggregator: PriceAggregator = Depends(get_price_aggregator),
):
    """
    Aggregate the stored quotes of one catalog item.

    Returns:
        Ranked quotes with lowest price, savings and freshness
    """
    item = repository.get_item(item_id)
    if item is None:
        raise create_not_found_error("Item", item_id).to_http_exception()

    view = aggregator.aggregate(item.id, item.name, repository.get_quotes(item_id))
    return AggregatedViewOut.from_view(view, platform_comparison(view))


@router.post("/items/{item_id}/prices", response_model=AggregatedViewOut)
async def store_item_prices(
    item_id: str,
    request: StoreListingsRequest,
    repository: PriceRepository = Depends(get_price_repository),
    builder: QuoteBuilder = Depends(get_quote_builder),
    aggregator: PriceAggregator = Depends(get_price_aggregator),
):
    """
    Store synced marketplace listings for an item and return its new view.

    Every listing is converted and priced before anything is written, so a
    bad listing leaves the stored quotes untouched. Several listings for one
    platform collapse to the cheapest.
    """
    quotes = [
        builder.build(
            platform=listing.platform,
            price=listing.price,
            currency=listing.currency,
            last_updated=listing.last_updated,
            available_quantity=listing.available_quantity,
            listing_url=listing.listing_url,
        )
        for listing in request.listings
    ]

    item = repository.store_item_quotes(item_id, request.item_name, quotes)

    view = aggregator.aggregate(item.id, item.name, repository.get_quotes(item_id))
    return AggregatedViewOut.from_view(view, platform_comparison(view))


@router.post("/prices/aggregate", response_model=AggregatedViewOut)
async def aggregate_prices(
    request: AggregateRequest,
    normalizer: CurrencyNormalizer = Depends(get_currency_normalizer),
    fee_calculator: FeeCalculator = Depends(get_fee_calculator),
    aggregator: PriceAggregator = Depends(get_price_aggregator),
):
    """Aggregate quotes supplied in the request body."""
    quotes = [_quote_from_request(q, normalizer, fee_calculator) for q in request.quotes]
    view = aggregator.aggregate(request.item_id, request.item_name, quotes, now=request.now)
    return AggregatedViewOut.from_view(view, platform_comparison(view))


@router.post("/prices/bulk", response_model=BulkPriceOut)
async def aggregate_bulk_prices(
    request: BulkAggregateRequest,
    normalizer: CurrencyNormalizer = Depends(get_currency_normalizer),
    fee_calculator: FeeCalculator = Depends(get_fee_calculator),
    aggregator: PriceAggregator = Depends(get_price_aggregator),
):
    """
    Aggregate many items at once for loadout building.

    Returns:
        Per-item views plus total lowest cost and total savings
    """
    items = [
        BulkItem(
            item_id=item.item_id,
            item_name=item.item_name,
            quotes=[_quote_from_request(q, normalizer, fee_calculator) for q in item.quotes],
        )
        for item in request.items
    ]
    response = aggregator.aggregate_bulk(items, platform=request.platform, now=request.now)
    return BulkPriceOut.from_response(
        response, [platform_comparison(view) for view in response.items]
    )


@router.post("/fees/buyer", response_model=FeeBreakdownOut)
async def calculate_buyer_fees(
    request: BuyerFeeRequest,
    fee_calculator: FeeCalculator = Depends(get_fee_calculator),
):
    """Total cost and fee breakdown for buying at a USD base price on a platform."""
    return FeeBreakdownOut.from_breakdown(
        fee_calculator.buyer_fees(request.base_price, request.platform)
    )


@router.post("/fees/seller", response_model=SellerProceedsOut)
async def calculate_seller_proceeds(
    request: SellerFeeRequest,
    fee_calculator: FeeCalculator = Depends(get_fee_calculator),
):
    """What a seller receives after the platform's fee."""
    return SellerProceedsOut.from_proceeds(
        fee_calculator.seller_fees(request.sale_price, request.platform)
    )


@router.post("/currency/convert", response_model=ConversionOut)
async def convert_currency(
    request: ConvertRequest,
    normalizer: CurrencyNormalizer = Depends(get_currency_normalizer),
):
    """Convert an amount to USD with the configured exchange rates."""
    return ConversionOut.from_result(normalizer.to_usd(request.amount, request.currency))
