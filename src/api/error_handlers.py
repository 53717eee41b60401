"""Centralized error handling for pricing API endpoints."""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.services.pricing_errors import PricingError, PricingErrorCode
from src.utils.logger import StructuredLogger

logger = StructuredLogger("ErrorHandlers")


class ApiError:
    """Error codes produced by the API layer itself."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


# Whole-batch rejections are well-formed requests carrying unusable data
PRICING_ERROR_STATUS: dict[str, int] = {
    PricingErrorCode.INVALID_QUOTE_IN_BATCH: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class ErrorResponse:
    """Standardized error response format."""

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | list[str] | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        """
        Initialize error response.

        Args:
            error_code: Code from PricingErrorCode or ApiError
            message: Human-readable error message
            details: Additional error details (offending field, platform, ...)
            status_code: HTTP status code
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        response = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict(),
        )


def create_pricing_error_response(error: PricingError) -> ErrorResponse:
    """
    Map a pricing pipeline error to a response.

    Args:
        error: Error raised by the normalizer, fee calculator or aggregator

    Returns:
        ErrorResponse carrying the error's code and details
    """
    return ErrorResponse(
        error_code=error.code,
        message=error.message,
        details=error.details or None,
        status_code=PRICING_ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def create_validation_error_response(errors: list[dict[str, Any]]) -> ErrorResponse:
    """
    Create standardized validation error response from Pydantic validation errors.

    Args:
        errors: List of validation errors from Pydantic

    Returns:
        ErrorResponse with field-specific validation errors
    """
    field_errors = {}
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    return ErrorResponse(
        error_code=ApiError.VALIDATION_ERROR,
        message="Validation failed for one or more fields",
        details=field_errors,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


def create_not_found_error(resource: str, identifier: str) -> ErrorResponse:
    return ErrorResponse(
        error_code=ApiError.NOT_FOUND,
        message=f"{resource} not found: {identifier}",
        details={"resource": resource, "id": identifier},
        status_code=status.HTTP_404_NOT_FOUND,
    )


async def pricing_exception_handler(request: Request, exc: PricingError) -> JSONResponse:
    """
    Handle rejected pricing input with the standardized format.

    Args:
        request: FastAPI request object
        exc: PricingError raised while handling the request

    Returns:
        JSONResponse with error code, message and details
    """
    error_response = create_pricing_error_response(exc)
    logger.warning(
        "Pricing request rejected",
        context={"path": request.url.path, "error": exc.code, "details": exc.details},
    )
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle FastAPI validation errors with standardized format.

    Args:
        request: FastAPI request object
        exc: RequestValidationError exception

    Returns:
        JSONResponse with standardized error format
    """
    error_response = create_validation_error_response(exc.errors())
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )
