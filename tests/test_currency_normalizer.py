"""Tests for currency normalization to USD."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.models.price_data import Currency
from src.services.currency_normalizer import (
    CurrencyNormalizer,
    format_display,
    normalize_to_usd,
)
from src.services.pricing_errors import (
    InvalidAmount,
    InvalidCurrencyFormat,
    InvalidExchangeRate,
    MissingExchangeRate,
    UnsupportedCurrency,
)
from src.services.rate_provider import StaticRateProvider

cent_amounts = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("1000000"), places=2, allow_nan=False
)


class CountingRateProvider:
    """Rate provider that records lookups."""

    def __init__(self, rates):
        self.inner = StaticRateProvider(rates)
        self.calls = []

    def get_rate(self, currency):
        self.calls.append(currency)
        return self.inner.get_rate(currency)


class TestNormalizeToUsd:
    """Unit tests for normalize_to_usd."""

    def test_converts_with_rate(self):
        assert normalize_to_usd(Decimal("100"), "CNY", Decimal("0.14")) == Decimal("14.00")

    def test_accepts_float_inputs(self):
        assert normalize_to_usd(10.0, "EUR", 1.1) == Decimal("11.00")

    def test_rounds_half_away_from_zero(self):
        # 0.125 must round up, not to even
        assert normalize_to_usd(Decimal("0.125"), "EUR", Decimal("1")) == Decimal("0.13")
        assert normalize_to_usd(Decimal("1.005"), "GBP", Decimal("1")) == Decimal("1.01")

    def test_rounds_once_after_multiplying(self):
        # 3 * 0.335 = 1.005 -> 1.01; rounding the rate first would give 1.02
        assert normalize_to_usd(Decimal("3"), "BRL", Decimal("0.335")) == Decimal("1.01")

    def test_usd_ignores_rate(self):
        assert normalize_to_usd(Decimal("8.50"), "USD", Decimal("1.0000001")) == Decimal("8.50")

    @given(amount=cent_amounts)
    def test_usd_identity_property(self, amount):
        """
        Property: USD -> USD conversion at rate 1.0 returns the amount unchanged.
        """
        assert normalize_to_usd(amount, "USD", 1.0) == amount

    @given(
        amount=cent_amounts,
        rate=st.decimals(min_value=Decimal("0.001"), max_value=Decimal("100"), places=3),
        currency=st.sampled_from(["EUR", "CNY", "RUB", "GBP", "BRL"]),
    )
    def test_result_has_two_decimal_places(self, amount, rate, currency):
        """
        Property: every conversion result is expressed in whole cents.
        """
        result = normalize_to_usd(amount, currency, rate)
        assert result == result.quantize(Decimal("0.01"))
        assert abs(result - amount * rate) <= Decimal("0.005")

    @pytest.mark.parametrize("amount", [0, -1, Decimal("-0.01"), "0.00"])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(InvalidAmount):
            normalize_to_usd(amount, "EUR", Decimal("1.10"))

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), "abc", None])
    def test_non_numeric_amount_rejected(self, amount):
        with pytest.raises(InvalidAmount):
            normalize_to_usd(amount, "EUR", Decimal("1.10"))

    @pytest.mark.parametrize("rate", [0, -1.1, float("nan")])
    def test_invalid_rate_rejected(self, rate):
        with pytest.raises(InvalidExchangeRate):
            normalize_to_usd(Decimal("10"), "EUR", rate)

    def test_usd_still_rejects_non_positive_rate(self):
        with pytest.raises(InvalidExchangeRate):
            normalize_to_usd(Decimal("10"), "USD", 0)

    @pytest.mark.parametrize("code", ["usd", "US", "USDT", "U$D", "", 840])
    def test_malformed_currency_code(self, code):
        with pytest.raises(InvalidCurrencyFormat):
            normalize_to_usd(Decimal("10"), code, Decimal("1"))

    @pytest.mark.parametrize("code", ["JPY", "CAD", "XYZ"])
    def test_unsupported_currency_code(self, code):
        with pytest.raises(UnsupportedCurrency):
            normalize_to_usd(Decimal("10"), code, Decimal("1"))

    def test_format_error_is_distinct_from_unsupported(self):
        assert not issubclass(InvalidCurrencyFormat, UnsupportedCurrency)
        assert not issubclass(UnsupportedCurrency, InvalidCurrencyFormat)


class TestFormatDisplay:
    def test_usd(self):
        assert format_display("USD") == "USD"

    def test_foreign_currency(self):
        assert format_display(Currency.CNY) == "USD (from CNY)"


class TestCurrencyNormalizer:
    """Tests for the rate-provider backed normalizer."""

    def setup_method(self):
        self.fixed_time = datetime(2025, 11, 10, 12, 0, tzinfo=UTC)

    def test_to_usd_returns_metadata(self):
        normalizer = CurrencyNormalizer(
            StaticRateProvider({"CNY": "0.14"}), clock=lambda: self.fixed_time
        )

        result = normalizer.to_usd(Decimal("65.00"), "CNY")

        assert result.original_amount == Decimal("65.00")
        assert result.original_currency is Currency.CNY
        assert result.converted_amount == Decimal("9.10")
        assert result.exchange_rate == Decimal("0.14")
        assert result.display_format == "USD (from CNY)"
        assert result.target_currency == "USD"
        assert result.timestamp == self.fixed_time

    def test_usd_does_not_consult_provider(self):
        provider = CountingRateProvider({})
        normalizer = CurrencyNormalizer(provider)

        result = normalizer.to_usd(Decimal("12.34"), "USD")

        assert result.converted_amount == Decimal("12.34")
        assert result.exchange_rate == Decimal("1")
        assert provider.calls == []

    def test_missing_rate(self):
        normalizer = CurrencyNormalizer(StaticRateProvider({"EUR": "1.10"}))
        with pytest.raises(MissingExchangeRate):
            normalizer.to_usd(Decimal("10"), "RUB")

    def test_batch_looks_up_each_currency_once(self):
        provider = CountingRateProvider({"EUR": "1.10", "CNY": "0.14"})
        normalizer = CurrencyNormalizer(provider)

        results = normalizer.convert_batch(
            [
                (Decimal("10"), "EUR"),
                (Decimal("100"), "CNY"),
                (Decimal("20"), "EUR"),
                (Decimal("5"), "USD"),
            ]
        )

        assert [r.converted_amount for r in results] == [
            Decimal("11.00"),
            Decimal("14.00"),
            Decimal("22.00"),
            Decimal("5.00"),
        ]
        assert sorted(c.value for c in provider.calls) == ["CNY", "EUR"]

    def test_batch_rejects_bad_currency_before_lookup(self):
        provider = CountingRateProvider({"EUR": "1.10"})
        normalizer = CurrencyNormalizer(provider)

        with pytest.raises(InvalidCurrencyFormat):
            normalizer.convert_batch([(Decimal("10"), "EUR"), (Decimal("10"), "eur")])
        assert provider.calls == []
