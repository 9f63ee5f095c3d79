"""
Shared FastAPI dependencies for the image transform service.
Centralizes common dependencies to eliminate code duplication.
"""

import logging
from typing import Optional, Type, TypeVar

from fastapi import Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError

from api.exceptions import InvalidOptionsException, options_error_message
from config import Settings, get_settings
from core.engine import CodecEngine
from services.image_service import ImageService

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def get_codec_engine(request: Request) -> CodecEngine:
    """
    Get the shared codec engine from app state.

    Raises:
        HTTPException: If the engine was not initialized
    """
    try:
        return request.app.state.engine
    except AttributeError as e:
        logger.error(f"Codec engine not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Codec engine not initialized"
        )


def get_app_settings(request: Request) -> Settings:
    """Settings stored at startup, falling back to the process settings."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_image_service(engine: CodecEngine = Depends(get_codec_engine)) -> ImageService:
    """
    Get image service instance.

    Args:
        engine: Codec engine dependency

    Returns:
        ImageService instance
    """
    return ImageService(engine=engine)


def parse_options(raw: Optional[str], options_class: Type[T], required: bool = False) -> T:
    """
    Parse a JSON options form field into an option record.

    Args:
        raw: JSON text from the request (None or blank for defaults)
        options_class: Pydantic option model
        required: Reject a missing value instead of using defaults

    Returns:
        Validated option record

    Raises:
        InvalidOptionsException: If the JSON is missing, malformed or invalid
    """
    if raw is None or not raw.strip():
        if required:
            raise InvalidOptionsException(f"{options_class.__name__} is required")
        raw = "{}"

    try:
        return options_class.model_validate_json(raw)
    except ValidationError as e:
        raise InvalidOptionsException(options_error_message(e))
