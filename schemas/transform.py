"""
Transform option records.

One model per operation. Absent fields fall back to the documented
defaults when the record is built, never inside the engine.
"""

from typing import Optional

from pydantic import Field, field_validator

from core.constants import ProcessingConstants
from core.enums import BlendMode, FitMode, Gravity, ImageFormat, ResizeKernel

from .base import BaseOptions, Color


def _fallback(value, default):
    # None and 0 both select the default
    return value or default


class EncoderOptions(BaseOptions):
    """
    Encoder settings. Only fields that are set are passed to the encoder;
    fields that do not apply to the target format are ignored.
    """

    quality: Optional[int] = Field(None, ge=1, le=100, description="jpeg/webp/tiff/avif quality")
    progressive: Optional[bool] = Field(None, description="Progressive (interlaced) jpeg")
    optimize: Optional[bool] = Field(None, description="Optimise jpeg/png coding")
    compression_level: Optional[int] = Field(None, ge=0, le=9, description="zlib level for png")
    lossless: Optional[bool] = Field(None, description="Lossless webp/avif")
    effort: Optional[int] = Field(None, ge=0, le=9, description="CPU effort (webp/avif)")
    palette: Optional[bool] = Field(None, description="Quantise png to a palette")
    colours: Optional[int] = Field(None, ge=2, le=256, description="Palette size (png/gif)")
    loop: Optional[int] = Field(None, ge=0, description="gif loop count, 0 = forever")
    compression: Optional[str] = Field(
        None, description="tiff compression (none, jpeg, deflate, lzw, packbits)"
    )


class ConvertOptions(BaseOptions):
    """Format conversion: target format and optional encoder settings."""

    format: ImageFormat
    options: Optional[EncoderOptions] = None


class ResizeOptions(BaseOptions):
    """Target dimensions and the fit/position/kernel/enlargement policy."""

    width: Optional[int] = Field(None, gt=0, description="Target width in pixels")
    height: Optional[int] = Field(None, gt=0, description="Target height in pixels")
    fit: FitMode = FitMode.COVER
    position: Gravity = Gravity.CENTRE
    background: Optional[Color] = Field(None, description="Letterbox color for fit=contain")
    kernel: ResizeKernel = ResizeKernel.LANCZOS3
    without_enlargement: bool = False
    without_reduction: bool = False


class CropRegion(BaseOptions):
    """Rectangle to extract; must lie inside the source image."""

    left: int = Field(..., ge=0)
    top: int = Field(..., ge=0)
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class RotateOptions(BaseOptions):
    """
    Rotation angle in degrees, clockwise. Without an angle the image is
    auto-oriented from its EXIF tag.
    """

    angle: Optional[float] = None
    background: Optional[Color] = Field(None, description="Fill for uncovered corners")


class EffectsOptions(BaseOptions):
    """Tonal adjustments applied in a fixed order."""

    median: int = Field(ProcessingConstants.DEFAULT_MEDIAN, ge=0, le=99)
    blur: float = Field(
        ProcessingConstants.DEFAULT_BLUR_SIGMA,
        ge=0,
        le=ProcessingConstants.MAX_BLUR_SIGMA,
    )
    negate: bool = False
    grayscale: bool = False
    threshold: int = Field(ProcessingConstants.DEFAULT_THRESHOLD, ge=0, le=255)
    threshold_grayscale: bool = False
    brightness: float = Field(ProcessingConstants.DEFAULT_BRIGHTNESS, ge=0)
    saturation: float = Field(ProcessingConstants.DEFAULT_SATURATION, ge=0)
    hue: float = ProcessingConstants.DEFAULT_HUE
    lightness: float = Field(ProcessingConstants.DEFAULT_LIGHTNESS, ge=0)
    tint: Optional[Color] = None

    @field_validator("median", mode="before")
    @classmethod
    def _median_default(cls, v):
        return _fallback(v, ProcessingConstants.DEFAULT_MEDIAN)

    @field_validator("blur", mode="before")
    @classmethod
    def _blur_default(cls, v):
        return _fallback(v, ProcessingConstants.DEFAULT_BLUR_SIGMA)

    @field_validator("brightness", "saturation", "lightness", mode="before")
    @classmethod
    def _modulate_default(cls, v):
        return _fallback(v, 1.0)

    @field_validator("hue", "threshold", mode="before")
    @classmethod
    def _zero_default(cls, v):
        return _fallback(v, 0)

    @field_validator("negate", "grayscale", "threshold_grayscale", mode="before")
    @classmethod
    def _flag_default(cls, v):
        return _fallback(v, False)


class TrimOptions(BaseOptions):
    """Border trimming tolerance; the border color defaults to the top-left pixel."""

    threshold: float = Field(ProcessingConstants.DEFAULT_TRIM_THRESHOLD, ge=0)
    background: Optional[Color] = None

    @field_validator("threshold", mode="before")
    @classmethod
    def _threshold_default(cls, v):
        return _fallback(v, ProcessingConstants.DEFAULT_TRIM_THRESHOLD)


class FlattenOptions(BaseOptions):
    """Solid background replacing alpha transparency."""

    background: Color = "#000000"


class CompositeOptions(BaseOptions):
    """
    Overlay settings for composition. ``input`` is filled in by the
    service with the overlay buffer and is never serialized.
    """

    input: Optional[bytes] = Field(None, exclude=True)
    blend: BlendMode = BlendMode.OVER
    gravity: Gravity = Gravity.CENTRE
    top: Optional[int] = None
    left: Optional[int] = None
    tile: bool = False
