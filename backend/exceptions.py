"""
Custom exceptions and error handling for the HTTP layer.

The evaluation core never raises for bad input; these are only used where the
service has to turn a request into an error response.
"""
from typing import Optional, Dict, Any
from fastapi import Request
from fastapi.responses import JSONResponse
from logging_config import get_logger

logger = get_logger(__name__)


class KingstonParkingException(Exception):
    """Base exception for application"""
    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ExternalAPIException(KingstonParkingException):
    """External API call failed"""
    def __init__(self, service: str, message: str, status_code: int = 503):
        super().__init__(
            f"External service error ({service}): {message}",
            status_code,
            {"service": service}
        )


class DataNotFoundException(KingstonParkingException):
    """Requested data not found"""
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found: {identifier}",
            404,
            {"resource": resource, "identifier": identifier}
        )


async def exception_handler(request: Request, exc: KingstonParkingException) -> JSONResponse:
    """Handle custom exceptions"""

    # Log with request context
    logger.error(
        f"Exception occurred: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method
        }
    )

    # Structured error body
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.message,
                "type": exc.__class__.__name__,
                "details": exc.details
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""

    # Full traceback goes to the log only
    logger.exception(
        "Unexpected exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )

    # Clients get a generic body
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "An unexpected error occurred",
                "type": "InternalServerError"
            }
        }
    )
