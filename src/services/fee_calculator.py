"""Fee calculation: buyer total cost, fee breakdowns and seller proceeds."""

from decimal import Decimal
from typing import Any

from src.models.fees import FeeBreakdown, FeeSchedule, SellerProceeds
from src.models.price_data import Platform, QuoteFees
from src.services.pricing_errors import InvalidAmount, InvalidFeePercent, InvalidFixedFee
from src.utils.money import (
    HUNDRED,
    ZERO,
    require_non_negative,
    require_positive,
    round_money,
)

LOW_FEE_BADGE_THRESHOLD = Decimal("2")


def _positive_cents(value: Any, field: str) -> Decimal:
    """Parse a positive USD amount and round it to cents; sub-cent amounts are rejected."""
    amount = round_money(require_positive(value, InvalidAmount, field))
    return require_positive(amount, InvalidAmount, field)


def compute_total_cost(base_price_usd: Any, fees: QuoteFees) -> Decimal:
    """
    Compute what the buyer pays for a listing.

    total = base * (1 + (seller% + buyer%) / 100) + fixed, rounded once to cents.

    Args:
        base_price_usd: Positive listing price already converted to USD
        fees: Fee percentages and optional fixed fee (USD)

    Returns:
        Total cost in USD

    Raises:
        InvalidAmount: If the base price is not positive
        InvalidFeePercent: If a percentage is negative
        InvalidFixedFee: If the fixed fee is negative
    """
    base = require_positive(base_price_usd, InvalidAmount, "base_price")
    seller = require_non_negative(fees.seller_percent, InvalidFeePercent, "seller_percent")
    buyer = require_non_negative(fees.buyer_percent, InvalidFeePercent, "buyer_percent")
    fixed = require_non_negative(fees.fixed_amount, InvalidFixedFee, "fixed_amount")

    return round_money(base * (1 + (seller + buyer) / HUNDRED) + fixed)


def fee_breakdown(
    base_price: Any, total_cost: Any, fees: QuoteFees, fee_note: str = ""
) -> FeeBreakdown:
    """
    Split the fees in a total cost into platform and payment parts.

    The platform part (seller percentage) is computed and rounded directly;
    the payment part (buyer percentage plus fixed fee) is whatever remains,
    so the two always add up to total_cost - base_price.
    """
    base = _positive_cents(base_price, "base_price")
    total = _positive_cents(total_cost, "total_cost")
    seller = require_non_negative(fees.seller_percent, InvalidFeePercent, "seller_percent")

    fee_total = total - base
    platform_fee = round_money(base * seller / HUNDRED)
    payment_fee = fee_total - platform_fee

    return FeeBreakdown(
        base_price=base,
        platform_fee_amount=platform_fee,
        payment_fee_amount=payment_fee,
        total_cost=total,
        effective_fee_percent=round_money(fee_total / base * HUNDRED),
        fee_note=fee_note,
    )


def seller_proceeds(sale_price: Any, seller_percent: Any) -> SellerProceeds:
    """
    Compute what a seller receives after the platform takes its cut.

    Raises:
        InvalidAmount: If the sale price is not positive
        InvalidFeePercent: If the seller percentage is negative
    """
    price = _positive_cents(sale_price, "sale_price")
    percent = require_non_negative(seller_percent, InvalidFeePercent, "seller_percent")

    fee = round_money(price * percent / HUNDRED)
    badge = None
    if percent <= LOW_FEE_BADGE_THRESHOLD:
        badge = f"Low Fees: {format(percent.normalize(), 'f')}%"

    return SellerProceeds(
        sale_price=price,
        platform_fee=-fee,
        seller_receives=price - fee,
        effective_fee_percent=round_money(percent),
        badge_text=badge,
    )


class FeeCalculator:
    """Applies a platform fee schedule to prices."""

    def __init__(self, schedule: FeeSchedule | None = None):
        """
        Initialize the calculator.

        Args:
            schedule: Per-platform fees; defaults to the published marketplace fees
        """
        self.schedule = schedule or FeeSchedule()

    def fees_for(self, platform: Platform | str) -> QuoteFees:
        return self.schedule.for_platform(platform).to_quote_fees()

    def total_cost(self, base_price_usd: Any, platform: Platform | str) -> Decimal:
        return compute_total_cost(base_price_usd, self.fees_for(platform))

    def buyer_fees(self, base_price_usd: Any, platform: Platform | str) -> FeeBreakdown:
        """Full buyer-side breakdown for a listing on one platform."""
        config = self.schedule.for_platform(platform)
        fees = config.to_quote_fees()
        base = _positive_cents(base_price_usd, "base_price")
        total = compute_total_cost(base, fees)
        breakdown = fee_breakdown(base, total, fees)

        note = config.notes
        if breakdown.platform_fee_amount == ZERO and fees.seller_percent > ZERO:
            note = f"{note} - Fee less than $0.01" if note else "Fee less than $0.01"

        return FeeBreakdown(
            base_price=breakdown.base_price,
            platform_fee_amount=breakdown.platform_fee_amount,
            payment_fee_amount=breakdown.payment_fee_amount,
            total_cost=breakdown.total_cost,
            effective_fee_percent=breakdown.effective_fee_percent,
            fee_note=note,
        )

    def seller_fees(self, sale_price: Any, platform: Platform | str) -> SellerProceeds:
        return seller_proceeds(sale_price, self.schedule.for_platform(platform).seller_percent)
