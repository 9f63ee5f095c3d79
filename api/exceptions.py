"""
Exceptions and exception handlers for the image transform service.

Every failure raised by an image operation is an ImageProcessingException
carrying the operation name and the underlying engine message. The HTTP
layer maps it to a stable JSON error body.
"""

import functools
import logging
from typing import Any, Callable, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


class ImageProcessingException(Exception):
    """
    Single failure kind surfaced by every transform operation.

    Args:
        operation: What was being done, e.g. "resizing image"
        message: Message of the underlying engine error
    """

    status_code = 500

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{self.summary}: {message}")

    @property
    def summary(self) -> str:
        """Human-readable summary, e.g. "Error resizing image"."""
        return f"Error {self.operation}"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.summary, "detail": self.message, "operation": self.operation}


class InvalidOptionsException(Exception):
    """Operation options could not be parsed or validated."""

    status_code = 422

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def safe_endpoint(func: Callable) -> Callable:
    """
    Decorator for async endpoints.

    Known exceptions pass through to their registered handlers; anything
    else is logged and turned into an HTTP 500.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (HTTPException, ImageProcessingException, InvalidOptionsException):
            raise
        except Exception as e:
            logger.error(f"Unhandled error in {func.__name__}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return wrapper


async def image_processing_handler(request: Request, exc: ImageProcessingException):
    logger.error(f"{exc.summary} ({request.url.path}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def invalid_options_handler(request: Request, exc: InvalidOptionsException):
    logger.warning(f"Invalid options for {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code, content={"error": "Invalid options", "detail": exc.message}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for the service's exception types."""
    app.add_exception_handler(ImageProcessingException, image_processing_handler)
    app.add_exception_handler(InvalidOptionsException, invalid_options_handler)


def options_error_message(error: ValidationError) -> str:
    """Flatten a Pydantic validation error into one line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "options"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)
