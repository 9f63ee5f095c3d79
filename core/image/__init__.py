"""
Image processing utilities - modular architecture.

This package provides the pixel-level building blocks of the codec engine:
- converters: Decode/encode and PIL <-> NumPy conversions
- processors: Geometry and tonal operations
- compositing: Overlay blending
- analysis: Metadata and statistics
"""

from core.image import analysis, compositing, converters, processors

__all__ = ["analysis", "compositing", "converters", "processors"]
