"""Error types raised by the pricing pipeline."""

from typing import Any


class PricingErrorCode:
    """Standard error codes for the pricing pipeline."""

    # Currency normalization errors
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_EXCHANGE_RATE = "INVALID_EXCHANGE_RATE"
    UNSUPPORTED_CURRENCY = "UNSUPPORTED_CURRENCY"
    INVALID_CURRENCY_FORMAT = "INVALID_CURRENCY_FORMAT"
    MISSING_EXCHANGE_RATE = "MISSING_EXCHANGE_RATE"

    # Fee calculation errors
    INVALID_FEE_PERCENT = "INVALID_FEE_PERCENT"
    INVALID_FIXED_FEE = "INVALID_FIXED_FEE"

    # Aggregation errors
    INVALID_QUOTE_IN_BATCH = "INVALID_QUOTE_IN_BATCH"
    UNSUPPORTED_PLATFORM = "UNSUPPORTED_PLATFORM"


class PricingError(ValueError):
    """Base class for rejected pricing input."""

    code = "PRICING_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
            details: Additional structured details (offending field, value, ...)
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidAmount(PricingError):
    code = PricingErrorCode.INVALID_AMOUNT


class InvalidExchangeRate(PricingError):
    code = PricingErrorCode.INVALID_EXCHANGE_RATE


class UnsupportedCurrency(PricingError):
    code = PricingErrorCode.UNSUPPORTED_CURRENCY


class InvalidCurrencyFormat(PricingError):
    code = PricingErrorCode.INVALID_CURRENCY_FORMAT


class MissingExchangeRate(PricingError):
    code = PricingErrorCode.MISSING_EXCHANGE_RATE


class InvalidFeePercent(PricingError):
    code = PricingErrorCode.INVALID_FEE_PERCENT


class InvalidFixedFee(PricingError):
    code = PricingErrorCode.INVALID_FIXED_FEE


class InvalidQuoteInBatch(PricingError):
    code = PricingErrorCode.INVALID_QUOTE_IN_BATCH


class UnsupportedPlatform(PricingError):
    code = PricingErrorCode.UNSUPPORTED_PLATFORM
