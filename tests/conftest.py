"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from main import app
from src.database.db import get_db
from src.database.models import Base
from src.models.price_data import Quote, QuoteFees

NOW = datetime(2025, 11, 10, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(scope="function")
def test_db():
    """Create a file-based test database."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False}
    )

    # Enable foreign keys
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    engine.dispose()
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def test_session(test_db):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db)
    session = TestingSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def test_client(test_session):
    """Create a test client with test database."""
    def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    from fastapi.testclient import TestClient
    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def now():
    """Fixed reference time for freshness and aggregation."""
    return NOW


def make_quote(
    platform="csfloat",
    total_cost="10.00",
    price=None,
    currency="USD",
    seller_percent="0",
    buyer_percent="0",
    last_updated=NOW,
    **kwargs,
) -> Quote:
    """Build a quote where price defaults to total_cost."""
    return Quote(
        platform=platform,
        price=Decimal(str(price if price is not None else total_cost)),
        currency=currency,
        fees=QuoteFees(
            seller_percent=Decimal(str(seller_percent)),
            buyer_percent=Decimal(str(buyer_percent)),
        ),
        total_cost=Decimal(str(total_cost)),
        last_updated=last_updated,
        **kwargs,
    )


@pytest.fixture
def quote_factory():
    """Factory for quotes with sensible defaults."""
    return make_quote
