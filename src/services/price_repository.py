"""Storage of catalog items, marketplace quotes and fee overrides."""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.database.models import CatalogItemRecord, MarketplacePriceRecord, PlatformFeeConfigRecord
from src.models.fees import FeeSchedule, PlatformFeeConfig
from src.models.price_data import Platform, Quote, QuoteFees, as_utc, parse_platform
from src.utils.logger import StructuredLogger
from src.utils.money import ZERO


def _to_naive_utc(moment: datetime) -> datetime:
    return as_utc(moment).astimezone(UTC).replace(tzinfo=None)


def cheapest_per_platform(quotes: Iterable[Quote]) -> list[Quote]:
    """Keep one quote per platform: the lowest total cost, the earliest on ties."""
    best: dict[Platform, Quote] = {}
    for quote in quotes:
        current = best.get(quote.platform)
        if current is None or quote.total_cost < current.total_cost:
            best[quote.platform] = quote
    return list(best.values())


def quote_from_record(record: MarketplacePriceRecord) -> Quote:
    """Convert a stored price row into a Quote."""
    return Quote(
        platform=record.platform,
        price=record.price,
        currency=record.currency,
        fees=QuoteFees(
            seller_percent=record.seller_fee_percent or ZERO,
            buyer_percent=record.buyer_fee_percent or ZERO,
            fixed_amount=record.fixed_fee or ZERO,
        ),
        total_cost=record.total_cost,
        last_updated=record.last_updated,
        available_quantity=record.quantity_available,
        listing_url=record.listing_url,
    )


class PriceRepository:
    """Key-value style store for the latest quote per item and platform."""

    def __init__(self, db_session: Session):
        """Initialize the repository with a database session."""
        if not db_session:
            raise ValueError("Database session is required")
        self.db_session = db_session
        self.logger = StructuredLogger("PriceRepository")

    def upsert_item(self, item_id: str, name: str) -> CatalogItemRecord:
        """
        Create a catalog item or rename an existing one.

        Raises:
            ValueError: If item_id or name is empty
        """
        item = self._stage_item(item_id, name)
        self._commit("Failed to store catalog item", {"item_id": item_id})
        self.db_session.refresh(item)
        return item

    def get_item(self, item_id: str) -> CatalogItemRecord | None:
        return self.db_session.query(CatalogItemRecord).filter(CatalogItemRecord.id == item_id).first()

    def save_quotes(self, item_id: str, quotes: Iterable[Quote]) -> int:
        """
        Store quotes for an item, replacing the previous quote per platform.

        When several quotes share a platform only the cheapest is kept.

        Args:
            item_id: Existing catalog item ID
            quotes: Quotes to store

        Returns:
            Number of quotes written

        Raises:
            ValueError: If the item does not exist
        """
        if self.get_item(item_id) is None:
            raise ValueError(f"Item not found: {item_id}")

        written = self._stage_quotes(item_id, quotes)
        self._commit("Failed to store marketplace quotes", {"item_id": item_id})
        self.logger.info(
            "Stored marketplace quotes", context={"item_id": item_id, "count": written}
        )
        return written

    def store_item_quotes(
        self, item_id: str, name: str, quotes: Iterable[Quote]
    ) -> CatalogItemRecord:
        """
        Create or rename an item and store its quotes in a single commit.

        Either the item and every quote are written, or nothing is.

        Raises:
            ValueError: If item_id or name is empty
        """
        item = self._stage_item(item_id, name)
        written = self._stage_quotes(item_id, quotes)
        self._commit("Failed to store marketplace quotes", {"item_id": item_id})
        self.db_session.refresh(item)
        self.logger.info(
            "Stored marketplace quotes", context={"item_id": item_id, "count": written}
        )
        return item

    def _stage_item(self, item_id: str, name: str) -> CatalogItemRecord:
        if not item_id or not isinstance(item_id, str):
            raise ValueError("Item ID must be a non-empty string")
        if not name or not name.strip():
            raise ValueError("Item name must be a non-empty string")

        item = self.get_item(item_id)
        if item is None:
            item = CatalogItemRecord(id=item_id, name=name.strip())
            self.db_session.add(item)
        else:
            item.name = name.strip()
        return item

    def _stage_quotes(self, item_id: str, quotes: Iterable[Quote]) -> int:
        written = 0
        for quote in cheapest_per_platform(quotes):
            record = (
                self.db_session.query(MarketplacePriceRecord)
                .filter(
                    MarketplacePriceRecord.item_id == item_id,
                    MarketplacePriceRecord.platform == quote.platform.value,
                )
                .first()
            )
            if record is None:
                record = MarketplacePriceRecord(
                    id=str(uuid.uuid4()), item_id=item_id, platform=quote.platform.value
                )
                self.db_session.add(record)

            record.price = quote.price
            record.currency = quote.currency.value
            record.seller_fee_percent = quote.fees.seller_percent
            record.buyer_fee_percent = quote.fees.buyer_percent
            record.fixed_fee = quote.fees.fixed_amount
            record.total_cost = quote.total_cost
            record.quantity_available = quote.available_quantity
            record.listing_url = quote.listing_url
            record.last_updated = _to_naive_utc(quote.last_updated)
            written += 1
        return written

    def _commit(self, message: str, context: dict) -> None:
        try:
            self.db_session.commit()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            self.logger.error(message, context=context, exception=e)
            raise

    def get_quotes(self, item_id: str) -> list[Quote]:
        """Load every stored quote for an item, in no particular order."""
        records = (
            self.db_session.query(MarketplacePriceRecord)
            .filter(MarketplacePriceRecord.item_id == item_id)
            .all()
        )
        return [quote_from_record(record) for record in records]

    def save_fee_config(
        self,
        platform: Platform | str,
        fee_config: PlatformFeeConfig,
        source_url: str | None = None,
    ) -> PlatformFeeConfigRecord:
        """Create or replace the stored fee override for a platform."""
        platform = parse_platform(platform)
        record = self.db_session.get(PlatformFeeConfigRecord, platform.value)
        if record is None:
            record = PlatformFeeConfigRecord(platform=platform.value)
            self.db_session.add(record)

        record.seller_fee_percent = fee_config.seller_percent
        record.buyer_fee_percent = fee_config.buyer_percent
        record.fixed_fee = fee_config.fixed_amount
        record.fee_notes = fee_config.notes
        record.last_verified = _to_naive_utc(datetime.now(UTC))
        record.source_url = source_url
        self.db_session.commit()
        self.db_session.refresh(record)
        return record

    def get_fee_schedule(self, defaults: FeeSchedule | None = None) -> FeeSchedule:
        """
        Build a fee schedule from defaults plus stored overrides.

        Rows naming platforms that are no longer supported are skipped.
        """
        schedule = defaults or FeeSchedule()
        for record in self.db_session.query(PlatformFeeConfigRecord).all():
            if record.platform not in {p.value for p in Platform}:
                self.logger.warning(
                    "Ignoring fee config for unknown platform",
                    context={"platform": record.platform},
                )
                continue
            schedule = schedule.with_override(
                record.platform,
                PlatformFeeConfig(
                    seller_percent=record.seller_fee_percent,
                    buyer_percent=record.buyer_fee_percent,
                    fixed_amount=record.fixed_fee,
                    notes=record.fee_notes or "",
                ),
            )
        return schedule
