"""
Schemas Package

This package contains all Pydantic schemas for data validation and serialization,
organized by domain:

- base: shared option base class and color values
- transform: per-operation option records
- image: metadata, statistics and storage results
"""

# Re-export enums from centralized location for convenience
from core.enums import BlendMode, FitMode, Gravity, ImageFormat, ResizeKernel

# Base schemas
from .base import BaseOptions, Color, RGBAColor, color_to_rgba

# Image information models
from .image import (
    ChannelStats,
    DominantColor,
    ImageMetadata,
    ImageStats,
    StoredImage,
    UploadedFile,
)

# Transform option models
from .transform import (
    CompositeOptions,
    ConvertOptions,
    CropRegion,
    EffectsOptions,
    EncoderOptions,
    FlattenOptions,
    ResizeOptions,
    RotateOptions,
    TrimOptions,
)

# Explicitly declare public API for re-export
__all__ = [
    # Base
    "BaseOptions",
    "Color",
    "RGBAColor",
    "color_to_rgba",
    # Image models
    "ChannelStats",
    "DominantColor",
    "ImageMetadata",
    "ImageStats",
    "StoredImage",
    "UploadedFile",
    # Option models
    "CompositeOptions",
    "ConvertOptions",
    "CropRegion",
    "EffectsOptions",
    "EncoderOptions",
    "FlattenOptions",
    "ResizeOptions",
    "RotateOptions",
    "TrimOptions",
    # Enums (re-exported from core.enums)
    "BlendMode",
    "FitMode",
    "Gravity",
    "ImageFormat",
    "ResizeKernel",
]
