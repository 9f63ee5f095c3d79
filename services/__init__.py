"""
Service layer - business logic separated from HTTP concerns.
"""

from .image_service import ImageService

__all__ = ["ImageService"]
