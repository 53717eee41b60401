"""SQLAlchemy database models for persistent storage."""

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CatalogItemRecord(Base):
    """Database model for catalog items prices are tracked for."""
    __tablename__ = "items"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class MarketplacePriceRecord(Base):
    """Database model for the latest quote per item and marketplace."""
    __tablename__ = "marketplace_prices"
    __table_args__ = (UniqueConstraint("item_id", "platform", name="uq_item_platform"),)

    id = Column(String, primary_key=True)
    item_id = Column(String, ForeignKey("items.id"), nullable=False, index=True)
    platform = Column(String, nullable=False)  # Platform enum value
    price = Column(Numeric(14, 4), nullable=False)  # in `currency`
    currency = Column(String(3), nullable=False, default="USD")
    seller_fee_percent = Column(Numeric(5, 2), nullable=True)
    buyer_fee_percent = Column(Numeric(5, 2), nullable=True)
    fixed_fee = Column(Numeric(10, 2), nullable=True)  # USD
    total_cost = Column(Numeric(12, 2), nullable=False)  # USD
    quantity_available = Column(Integer, nullable=True)
    listing_url = Column(Text, nullable=True)
    last_updated = Column(DateTime, nullable=False)  # naive UTC
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class PlatformFeeConfigRecord(Base):
    """Database model for per-platform fee overrides."""
    __tablename__ = "platform_fee_config"

    platform = Column(String, primary_key=True)
    seller_fee_percent = Column(Numeric(5, 2), nullable=False, default=0)
    buyer_fee_percent = Column(Numeric(5, 2), nullable=False, default=0)
    fixed_fee = Column(Numeric(10, 2), nullable=False, default=0)
    fee_notes = Column(Text, nullable=False, default="")
    last_verified = Column(DateTime, nullable=True)
    source_url = Column(String, nullable=True)
