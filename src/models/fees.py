"""Fee schedule and fee breakdown models."""

from dataclasses import dataclass, field
from decimal import Decimal

from src.models.price_data import Platform, QuoteFees, parse_platform
from src.services.pricing_errors import InvalidFeePercent, InvalidFixedFee
from src.utils.money import ZERO, require_non_negative


@dataclass(frozen=True)
class PlatformFeeConfig:
    """Fee configuration for one marketplace."""

    seller_percent: Decimal = ZERO
    buyer_percent: Decimal = ZERO
    fixed_amount: Decimal = ZERO
    notes: str = ""

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
        object.__setattr__(
            self,
            "fixed_amount",
            require_non_negative(self.fixed_amount, InvalidFixedFee, "fixed_amount"),
        )

    def to_quote_fees(self) -> QuoteFees:
        return QuoteFees(
            seller_percent=self.seller_percent,
            buyer_percent=self.buyer_percent,
            fixed_amount=self.fixed_amount,
        )


DEFAULT_PLATFORM_FEES: dict[Platform, PlatformFeeConfig] = {
    Platform.STEAM: PlatformFeeConfig(
        seller_percent=Decimal("15.00"), notes="10% Steam fee + 5% game-specific fee"
    ),
    Platform.CSFLOAT: PlatformFeeConfig(
        seller_percent=Decimal("2.00"), notes="2% sale fee, No buyer fees"
    ),
    Platform.CSMONEY: PlatformFeeConfig(
        seller_percent=Decimal("7.00"), notes="7% platform fee + ~20% bot markup (estimated)"
    ),
    Platform.TRADEIT: PlatformFeeConfig(
        seller_percent=Decimal("2.00"), notes="2-60% fee varies by item and trade method"
    ),
    Platform.BUFF163: PlatformFeeConfig(seller_percent=Decimal("2.50"), notes="2.5% sale fee"),
    Platform.DMARKET: PlatformFeeConfig(
        seller_percent=Decimal("2.00"), notes="2-10% fee varies by item liquidity"
    ),
}


@dataclass(frozen=True)
class FeeSchedule:
    """
    Per-platform fee configuration passed explicitly to the fee calculator.

    Platforms missing from the schedule are charged no fees.
    """

    platforms: dict[Platform, PlatformFeeConfig] = field(
        default_factory=lambda: dict(DEFAULT_PLATFORM_FEES)
    )

    def for_platform(self, platform: Platform | str) -> PlatformFeeConfig:
        return self.platforms.get(parse_platform(platform), PlatformFeeConfig())

    def with_override(self, platform: Platform | str, config: PlatformFeeConfig) -> "FeeSchedule":
        """Return a copy of this schedule with one platform replaced."""
        platforms = dict(self.platforms)
        platforms[parse_platform(platform)] = config
        return FeeSchedule(platforms=platforms)


@dataclass(frozen=True)
class FeeBreakdown:
    """
    Buyer-facing decomposition of a total cost.

    platform_fee_amount + payment_fee_amount == total_cost - base_price exactly.
    """

    base_price: Decimal
    platform_fee_amount: Decimal
    payment_fee_amount: Decimal
    total_cost: Decimal
    effective_fee_percent: Decimal
    fee_note: str = ""


@dataclass(frozen=True)
class SellerProceeds:
    """What a seller receives after the platform's cut."""

    sale_price: Decimal
    platform_fee: Decimal  # negative
    seller_receives: Decimal
    effective_fee_percent: Decimal
    badge_text: str | None = None
