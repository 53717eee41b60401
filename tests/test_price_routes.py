"""Integration tests for the pricing API endpoints."""

import pytest

from main import app
from src.api.dependencies import get_rate_provider
from src.services.rate_provider import StaticRateProvider

NOW = "2025-11-10T12:00:00Z"


@pytest.fixture
def client(test_client):
    """Test client with the placeholder exchange rates, independent of the environment."""
    app.dependency_overrides[get_rate_provider] = lambda: StaticRateProvider()
    yield test_client
    app.dependency_overrides.pop(get_rate_provider, None)


def usd_quote(platform, total_cost, last_updated=NOW, **extra):
    return {
        "platform": platform,
        "price": total_cost,
        "currency": "USD",
        "fees": {"seller_percent": 0, "buyer_percent": 0, "fixed_amount": 0},
        "total_cost": total_cost,
        "last_updated": last_updated,
        **extra,
    }


class TestAggregateEndpoint:
    """Tests for POST /api/prices/aggregate."""

    def test_ranks_quotes(self, client):
        response = client.post(
            "/api/prices/aggregate",
            json={
                "item_id": "ak47-redline-ft",
                "item_name": "AK-47 | Redline (FT)",
                "quotes": [
                    usd_quote("steam", 11.50),
                    usd_quote("csfloat", 8.67),
                    usd_quote("buff163", 9.12),
                ],
                "now": "2025-11-10T12:03:00Z",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [q["platform"] for q in data["all_quotes"]] == ["csfloat", "buff163", "steam"]
        assert data["lowest"]["platform"] == "csfloat"
        assert data["lowest"]["platform_name"] == "CSFloat"
        assert data["lowest"]["total_cost"] == 8.67
        assert data["savings"] == 2.83
        assert data["freshness"]["status"] == "Live"
        assert data["freshness"]["minutes_ago"] == 3
        assert data["outliers"] == []
        assert data["comparison"][0]["is_best_price"] is True
        assert data["comparison"][0]["savings_vs_highest"] == 2.83

    def test_total_cost_derived_when_missing(self, client):
        response = client.post(
            "/api/prices/aggregate",
            json={
                "item_id": "ak47-redline-ft",
                "item_name": "AK-47 | Redline (FT)",
                "quotes": [
                    {"platform": "csfloat", "price": 8.50, "last_updated": NOW},
                    {"platform": "buff163", "price": 63.50, "currency": "CNY", "last_updated": NOW},
                ],
                "now": NOW,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [q["total_cost"] for q in data["all_quotes"]] == [8.67, 9.11]
        assert data["all_quotes"][1]["price"] == 63.5
        assert data["all_quotes"][1]["currency"] == "CNY"
        assert data["all_quotes"][1]["fees"]["seller_percent"] == 2.5

    def test_empty_quotes(self, client):
        response = client.post(
            "/api/prices/aggregate",
            json={"item_id": "item", "item_name": "Item", "quotes": [], "now": NOW},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["lowest"] is None
        assert data["savings"] == 0
        assert data["freshness"] == {"status": "Paused", "last_updated": None, "minutes_ago": None}

    def test_invalid_quote_rejects_batch(self, client):
        bad = usd_quote("csfloat", 8.67)
        bad["price"] = -5

        response = client.post(
            "/api/prices/aggregate",
            json={"item_id": "item", "item_name": "Item", "quotes": [usd_quote("steam", 11.5), bad]},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "INVALID_QUOTE_IN_BATCH"
        assert data["details"]["platform"] == "csfloat"
        assert data["details"]["field"] == "price"

    def test_unsupported_currency(self, client):
        quote = {"platform": "steam", "price": 10, "currency": "JPY", "last_updated": NOW}

        response = client.post(
            "/api/prices/aggregate",
            json={"item_id": "item", "item_name": "Item", "quotes": [quote]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "UNSUPPORTED_CURRENCY"

    def test_unknown_platform(self, client):
        response = client.post(
            "/api/prices/aggregate",
            json={"item_id": "item", "item_name": "Item", "quotes": [usd_quote("skinport", 5)]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "UNSUPPORTED_PLATFORM"

    def test_malformed_body(self, client):
        response = client.post(
            "/api/prices/aggregate",
            json={"item_id": "item", "item_name": "Item", "quotes": [{"platform": "steam"}]},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert "body.quotes.0.price" in data["details"]


class TestBulkEndpoint:
    def test_loadout_totals(self, client):
        response = client.post(
            "/api/prices/bulk",
            json={
                "items": [
                    {
                        "item_id": "ak47-redline",
                        "item_name": "AK-47 | Redline",
                        "quotes": [
                            usd_quote("steam", 11.50),
                            usd_quote("csfloat", 8.67),
                            usd_quote("buff163", 9.12),
                        ],
                    },
                    {
                        "item_id": "awp-asiimov",
                        "item_name": "AWP | Asiimov",
                        "quotes": [usd_quote("steam", 25.00), usd_quote("csfloat", 20.00)],
                    },
                ],
                "now": NOW,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_lowest_cost"] == 28.67
        assert data["total_savings"] == 7.83
        assert [item["item_id"] for item in data["items"]] == ["ak47-redline", "awp-asiimov"]

    def test_platform_filter(self, client):
        response = client.post(
            "/api/prices/bulk",
            json={
                "items": [
                    {
                        "item_id": "a",
                        "item_name": "A",
                        "quotes": [usd_quote("steam", 10), usd_quote("csfloat", 9)],
                    }
                ],
                "platform": "steam",
                "now": NOW,
            },
        )

        assert response.status_code == 200
        assert response.json()["total_lowest_cost"] == 10.0


class TestFeeEndpoints:
    def test_buyer_fees(self, client):
        response = client.post("/api/fees/buyer", json={"base_price": 10.00, "platform": "steam"})

        assert response.status_code == 200
        data = response.json()
        assert data["total_cost"] == 11.5
        assert data["platform_fee_amount"] == 1.5
        assert data["payment_fee_amount"] == 0
        assert data["effective_fee_percent"] == 15.0
        assert data["fee_note"] == "10% Steam fee + 5% game-specific fee"

    def test_buyer_fees_invalid_price(self, client):
        response = client.post("/api/fees/buyer", json={"base_price": 0, "platform": "steam"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_AMOUNT"

    def test_seller_proceeds(self, client):
        response = client.post("/api/fees/seller", json={"sale_price": 100, "platform": "csfloat"})

        assert response.status_code == 200
        data = response.json()
        assert data["platform_fee"] == -2.0
        assert data["seller_receives"] == 98.0
        assert data["badge_text"] == "Low Fees: 2%"


class TestCurrencyEndpoint:
    def test_convert(self, client):
        response = client.post("/api/currency/convert", json={"amount": 100, "currency": "CNY"})

        assert response.status_code == 200
        data = response.json()
        assert data["converted_amount"] == 14.0
        assert data["exchange_rate"] == 0.14
        assert data["display_format"] == "USD (from CNY)"
        assert data["target_currency"] == "USD"

    def test_malformed_code(self, client):
        response = client.post("/api/currency/convert", json={"amount": 100, "currency": "cny"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_CURRENCY_FORMAT"


class TestItemPrices:
    """Storing synced listings and reading an item's prices back."""

    def test_store_then_read(self, client):
        response = client.post(
            "/api/items/ak47-redline/prices",
            json={
                "item_name": "AK-47 | Redline",
                "listings": [
                    {"platform": "steam", "price": 10.00, "last_updated": NOW},
                    {"platform": "csfloat", "price": 8.50, "last_updated": NOW},
                    {
                        "platform": "buff163",
                        "price": 63.50,
                        "currency": "CNY",
                        "available_quantity": 12,
                        "last_updated": NOW,
                    },
                ],
            },
        )
        assert response.status_code == 200

        response = client.get("/api/items/ak47-redline/prices")

        assert response.status_code == 200
        data = response.json()
        assert data["item_name"] == "AK-47 | Redline"
        assert [q["total_cost"] for q in data["all_quotes"]] == [8.67, 9.11, 11.5]
        assert data["savings"] == 2.83
        assert data["all_quotes"][1]["available_quantity"] == 12

    def test_repeated_platform_keeps_cheapest_listing(self, client):
        response = client.post(
            "/api/items/ak/prices",
            json={
                "item_name": "AK",
                "listings": [
                    {"platform": "steam", "price": 10.00, "last_updated": NOW},
                    {"platform": "steam", "price": 9.00, "last_updated": NOW},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["all_quotes"]) == 1
        assert data["lowest"]["platform"] == "steam"
        assert data["lowest"]["price"] == 9.0
        assert data["lowest"]["total_cost"] == 10.35

    def test_bad_listing_stores_nothing(self, client):
        response = client.post(
            "/api/items/item/prices",
            json={
                "item_name": "Item",
                "listings": [
                    {"platform": "steam", "price": 10.00, "last_updated": NOW},
                    {"platform": "csfloat", "price": -1, "last_updated": NOW},
                ],
            },
        )

        assert response.status_code == 400
        assert client.get("/api/items/item/prices").status_code == 404

    def test_unknown_item(self, client):
        response = client.get("/api/items/missing/prices")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NOT_FOUND"


class TestApp:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_trace_id_header(self, client):
        first = client.get("/health").headers["X-Trace-Id"]
        second = client.get("/health").headers["X-Trace-Id"]

        assert first and second
        assert first != second
