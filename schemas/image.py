"""
Image information models.

This module contains models describing images and results:
- Decoded metadata and pixel statistics
- Store results and upload descriptions
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ImageMetadata(BaseModel):
    """Header facts about an encoded image"""

    format: Optional[str] = Field(None, description="Container format (jpeg, png, ...)")
    size: int = Field(..., description="Encoded size in bytes")
    width: int
    height: int
    space: str = Field(..., description="Pixel mode reported by the decoder (RGB, RGBA, L, ...)")
    channels: int
    depth: str = Field(..., description="Sample type (uchar, ushort, float, ...)")
    density: Optional[float] = Field(None, description="Pixels per inch")
    has_alpha: bool
    has_profile: bool = False
    orientation: Optional[int] = Field(None, description="EXIF orientation tag (1-8)")
    pages: int = 1
    is_progressive: bool = False


class ChannelStats(BaseModel):
    """Statistics for a single channel"""

    min: float
    max: float
    sum: float
    squares_sum: float
    mean: float
    stdev: float
    min_x: int
    min_y: int
    max_x: int
    max_y: int


class DominantColor(BaseModel):
    """Most frequent color, quantized"""

    r: int
    g: int
    b: int


class ImageStats(BaseModel):
    """Pixel statistics for an image"""

    channels: List[ChannelStats]
    is_opaque: bool
    entropy: float
    sharpness: float
    dominant: DominantColor


class StoredImage(BaseModel):
    """Result of writing an image to disk"""

    path: str
    format: str
    size: int
    width: int
    height: int
    channels: int


class UploadedFile(BaseModel):
    """Description of a received upload"""

    field_name: str
    original_name: Optional[str] = None
    content_type: Optional[str] = None
    size: int
    filename: Optional[str] = Field(None, description="Stored file name, when stored")
    path: Optional[str] = Field(None, description="Stored file path, when stored")
