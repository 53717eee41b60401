"""Unit tests for API error responses."""

from fastapi import status

from src.api.error_handlers import (
    ApiError,
    ErrorResponse,
    create_not_found_error,
    create_pricing_error_response,
    create_validation_error_response,
)
from src.services.pricing_errors import (
    InvalidAmount,
    InvalidQuoteInBatch,
    PricingError,
    PricingErrorCode,
    UnsupportedCurrency,
)


class TestErrorResponse:
    def test_to_dict_omits_empty_details(self):
        response = ErrorResponse("SOME_ERROR", "Something failed")

        assert response.to_dict() == {"error": "SOME_ERROR", "message": "Something failed"}

    def test_to_http_exception(self):
        response = ErrorResponse(
            "SOME_ERROR", "Something failed", {"field": "x"}, status.HTTP_404_NOT_FOUND
        )

        exc = response.to_http_exception()

        assert exc.status_code == 404
        assert exc.detail == {
            "error": "SOME_ERROR",
            "message": "Something failed",
            "details": {"field": "x"},
        }


class TestPricingErrorResponses:
    """Mapping of pricing errors to HTTP responses."""

    def test_input_errors_are_bad_requests(self):
        response = create_pricing_error_response(
            InvalidAmount("amount must be positive", {"field": "amount", "value": "0"})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.error_code == PricingErrorCode.INVALID_AMOUNT
        assert response.to_dict()["details"] == {"field": "amount", "value": "0"}

    def test_batch_rejection_is_unprocessable(self):
        response = create_pricing_error_response(InvalidQuoteInBatch("bad quote"))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "details" not in response.to_dict()

    def test_every_error_is_a_value_error_with_a_code(self):
        error = UnsupportedCurrency("Unsupported currency: JPY")

        assert isinstance(error, PricingError)
        assert isinstance(error, ValueError)
        assert error.code == "UNSUPPORTED_CURRENCY"
        assert error.details == {}


class TestValidationErrors:
    def test_field_paths_joined(self):
        response = create_validation_error_response(
            [
                {"loc": ("body", "quotes", 0, "price"), "msg": "Field required"},
                {"loc": ("body", "item_id"), "msg": "String should have at least 1 character"},
            ]
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.error_code == ApiError.VALIDATION_ERROR
        assert response.details == {
            "body.quotes.0.price": "Field required",
            "body.item_id": "String should have at least 1 character",
        }

    def test_not_found(self):
        response = create_not_found_error("Item", "ak47-redline")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.message == "Item not found: ak47-redline"
        assert response.details == {"resource": "Item", "id": "ak47-redline"}
