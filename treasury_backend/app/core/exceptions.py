"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("treasury")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised when input is missing, malformed or internally inconsistent."""

    def __init__(self, message: str = "Validation failed", errors: Dict[str, str] = None, error_code: str = "ERR_VALIDATION_001"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"errors": errors or {}}
        )
        self.errors = errors or {}


class InvalidAmountError(ValidationError):
    """Raised by the VAT calculator for non-finite or negative amounts."""

    def __init__(self, amount: Any, field: str = "amount"):
        super().__init__(
            message=f"Invalid amount: {amount!r}",
            errors={field: "Amount must be a finite, non-negative number"},
            error_code="ERR_VALIDATION_002"
        )


class AlreadySettledError(ValidationError):
    """Raised when settling a payment that already carries a settlement."""

    def __init__(self, payment_id: str):
        super().__init__(
            message=f"Payment with ID {payment_id} is already settled",
            errors={"isSettled": "Payment is already settled; resubmit as a correction to overwrite it"},
            error_code="ERR_SETTLEMENT_001"
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class StoreError(AppException):
    """Raised when the record store is unreachable or returns an unexpected shape."""

    def __init__(self, message: str = "Record store failure", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STORE_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request parameter validation errors."""
    errors = {
        ".".join(str(part) for part in error["loc"]): error["msg"]
        for error in exc.errors()
    }
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "ERR_VALIDATION_001",
            "message": "Validation failed",
            "details": {
                "errors": errors
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
