"""Pydantic schemas for pricing request/response validation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.models.fees import FeeBreakdown, SellerProceeds
from src.models.price_data import (
    AggregatedView,
    BulkPriceResponse,
    ConversionResult,
    Currency,
    DataFreshness,
    FreshnessStatus,
    Platform,
    PlatformComparison,
    Quote,
)


# Request models
class FeesIn(BaseModel):
    """Fee percentages for a submitted quote; validated by the fee calculator."""

    seller_percent: Decimal = Decimal("0")
    buyer_percent: Decimal = Decimal("0")
    fixed_amount: Decimal = Decimal("0")


class QuoteIn(BaseModel):
    """A marketplace quote submitted for aggregation."""

    platform: str
    price: Decimal
    currency: str = "USD"
    fees: FeesIn | None = None  # None: use the platform's fee schedule
    total_cost: Decimal | None = None  # None: derive from price, rate and fees
    available_quantity: int | None = Field(None, ge=0)
    listing_url: str | None = None
    last_updated: datetime


class AggregateRequest(BaseModel):
    """Request model for single-item aggregation."""

    item_id: str = Field(..., min_length=1)
    item_name: str = Field(..., min_length=1)
    quotes: list[QuoteIn] = Field(default_factory=list)
    now: datetime | None = None


class BulkAggregateRequest(BaseModel):
    """Request model for bulk aggregation."""

    items: list[AggregateRequest]
    platform: str | None = None
    now: datetime | None = None


class ListingIn(BaseModel):
    """A raw listing from a marketplace sync, priced in its own currency."""

    platform: str
    price: Decimal
    currency: str = "USD"
    available_quantity: int | None = Field(None, ge=0)
    listing_url: str | None = None
    last_updated: datetime


class StoreListingsRequest(BaseModel):
    """Request model for storing synced listings of one item."""

    item_name: str = Field(..., min_length=1)
    listings: list[ListingIn]


class BuyerFeeRequest(BaseModel):
    base_price: Decimal
    platform: str


class SellerFeeRequest(BaseModel):
    sale_price: Decimal
    platform: str


class ConvertRequest(BaseModel):
    amount: Decimal
    currency: str


# Response models
class FeesOut(BaseModel):
    seller_percent: float
    buyer_percent: float
    fixed_amount: float
    total_percent: float


class QuoteOut(BaseModel):
    """Response model for a single quote."""

    platform: Platform
    platform_name: str
    price: float
    currency: Currency
    fees: FeesOut
    total_cost: float
    available_quantity: int | None
    listing_url: str | None
    last_updated: datetime

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteOut":
        return cls(
            platform=quote.platform,
            platform_name=quote.platform.display_name,
            price=quote.price,
            currency=quote.currency,
            fees=FeesOut(
                seller_percent=quote.fees.seller_percent,
                buyer_percent=quote.fees.buyer_percent,
                fixed_amount=quote.fees.fixed_amount,
                total_percent=quote.fees.total_percent,
            ),
            total_cost=quote.total_cost,
            available_quantity=quote.available_quantity,
            listing_url=quote.listing_url,
            last_updated=quote.last_updated,
        )


class FreshnessOut(BaseModel):
    status: FreshnessStatus
    last_updated: datetime | None
    minutes_ago: int | None

    @classmethod
    def from_freshness(cls, freshness: DataFreshness) -> "FreshnessOut":
        return cls(
            status=freshness.status,
            last_updated=freshness.last_updated,
            minutes_ago=freshness.minutes_ago,
        )


class ComparisonOut(BaseModel):
    platform: Platform
    base_price: float
    currency: Currency
    fee_percent: float
    total_cost: float
    savings_vs_highest: float
    is_best_price: bool

    @classmethod
    def from_row(cls, row: PlatformComparison) -> "ComparisonOut":
        return cls(
            platform=row.platform,
            base_price=row.base_price,
            currency=row.currency,
            fee_percent=row.fee_percent,
            total_cost=row.total_cost,
            savings_vs_highest=row.savings_vs_highest,
            is_best_price=row.is_best_price,
        )


class AggregatedViewOut(BaseModel):
    """Response model for an item's aggregated prices."""

    item_id: str
    item_name: str
    lowest: QuoteOut | None
    all_quotes: list[QuoteOut]
    savings: float
    freshness: FreshnessOut
    aggregated_at: datetime
    outliers: list[Platform]
    comparison: list[ComparisonOut]

    @classmethod
    def from_view(
        cls, view: AggregatedView, comparison: list[PlatformComparison]
    ) -> "AggregatedViewOut":
        return cls(
            item_id=view.item_id,
            item_name=view.item_name,
            lowest=QuoteOut.from_quote(view.lowest) if view.lowest else None,
            all_quotes=[QuoteOut.from_quote(q) for q in view.all_quotes],
            savings=view.savings,
            freshness=FreshnessOut.from_freshness(view.freshness),
            aggregated_at=view.aggregated_at,
            outliers=list(view.outliers),
            comparison=[ComparisonOut.from_row(row) for row in comparison],
        )


class BulkPriceOut(BaseModel):
    items: list[AggregatedViewOut]
    total_lowest_cost: float
    total_savings: float

    @classmethod
    def from_response(
        cls, response: BulkPriceResponse, comparisons: list[list[PlatformComparison]]
    ) -> "BulkPriceOut":
        return cls(
            items=[
                AggregatedViewOut.from_view(view, rows)
                for view, rows in zip(response.items, comparisons, strict=True)
            ],
            total_lowest_cost=response.total_lowest_cost,
            total_savings=response.total_savings,
        )


class FeeBreakdownOut(BaseModel):
    base_price: float
    platform_fee_amount: float
    payment_fee_amount: float
    total_cost: float
    effective_fee_percent: float
    fee_note: str

    @classmethod
    def from_breakdown(cls, breakdown: FeeBreakdown) -> "FeeBreakdownOut":
        return cls(
            base_price=breakdown.base_price,
            platform_fee_amount=breakdown.platform_fee_amount,
            payment_fee_amount=breakdown.payment_fee_amount,
            total_cost=breakdown.total_cost,
            effective_fee_percent=breakdown.effective_fee_percent,
            fee_note=breakdown.fee_note,
        )


class SellerProceedsOut(BaseModel):
    sale_price: float
    platform_fee: float
    seller_receives: float
    effective_fee_percent: float
    badge_text: str | None

    @classmethod
    def from_proceeds(cls, proceeds: SellerProceeds) -> "SellerProceedsOut":
        return cls(
            sale_price=proceeds.sale_price,
            platform_fee=proceeds.platform_fee,
            seller_receives=proceeds.seller_receives,
            effective_fee_percent=proceeds.effective_fee_percent,
            badge_text=proceeds.badge_text,
        )


class ConversionOut(BaseModel):
    original_amount: float
    original_currency: Currency
    converted_amount: float
    target_currency: str
    exchange_rate: float
    display_format: str
    timestamp: datetime

    @classmethod
    def from_result(cls, result: ConversionResult) -> "ConversionOut":
        return cls(
            original_amount=result.original_amount,
            original_currency=result.original_currency,
            converted_amount=result.converted_amount,
            target_currency=result.target_currency,
            exchange_rate=result.exchange_rate,
            display_format=result.display_format,
            timestamp=result.timestamp,
        )
