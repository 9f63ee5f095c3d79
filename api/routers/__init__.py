"""
API Routers for the Image Transform Service
"""

from . import image, system

__all__ = ["image", "system"]
