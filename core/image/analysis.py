"""
Image analysis: header metadata and pixel statistics.
"""

import logging

import cv2
import numpy as np
from PIL import Image

from core.constants import CodecConstants
from core.image.converters import has_alpha, normalize_mode
from schemas import ChannelStats, DominantColor, ImageMetadata, ImageStats

logger = logging.getLogger(__name__)

EXIF_ORIENTATION = 0x0112

_DEPTHS = {
    "I;16": "ushort",
    "I;16B": "ushort",
    "I;16L": "ushort",
    "I": "int",
    "F": "float",
}


def read_metadata(image: Image.Image, size: int) -> ImageMetadata:
    """
    Collect header facts from a decoded image.

    Args:
        image: Decoded PIL Image (``format`` and ``info`` as set by the decoder)
        size: Encoded size in bytes

    Returns:
        ImageMetadata
    """
    dpi = image.info.get("dpi")
    density = float(dpi[0]) if dpi else None

    orientation = image.getexif().get(EXIF_ORIENTATION)

    progressive = bool(
        image.info.get("progressive")
        or image.info.get("progression")
        or image.info.get("interlace")
    )

    fmt = CodecConstants.FROM_PIL_FORMATS.get(image.format)
    if fmt is None and image.format:
        fmt = image.format.lower()

    return ImageMetadata(
        format=fmt,
        size=size,
        width=image.width,
        height=image.height,
        space=image.mode,
        channels=len(image.getbands()) + (1 if image.mode == "P" and has_alpha(image) else 0),
        depth=_DEPTHS.get(image.mode, "uchar"),
        density=density,
        has_alpha=has_alpha(image),
        has_profile=bool(image.info.get("icc_profile")),
        orientation=int(orientation) if orientation else None,
        pages=getattr(image, "n_frames", 1),
        is_progressive=progressive,
    )


def _channel_stats(channel: np.ndarray) -> ChannelStats:
    values = channel.astype(np.float64)
    min_y, min_x = np.unravel_index(np.argmin(values), values.shape)
    max_y, max_x = np.unravel_index(np.argmax(values), values.shape)

    return ChannelStats(
        min=float(values.min()),
        max=float(values.max()),
        sum=float(values.sum()),
        squares_sum=float(np.square(values).sum()),
        mean=float(values.mean()),
        stdev=float(values.std()),
        min_x=int(min_x),
        min_y=int(min_y),
        max_x=int(max_x),
        max_y=int(max_y),
    )


def _dominant(rgb: np.ndarray) -> DominantColor:
    """Most frequent color after quantizing each channel to 16 levels."""
    quantized = (rgb.reshape(-1, 3) >> 4).astype(np.int32)
    bins = quantized[:, 0] * 256 + quantized[:, 1] * 16 + quantized[:, 2]
    top = int(np.bincount(bins, minlength=4096).argmax())

    # report the centre of the winning bin
    return DominantColor(
        r=(top // 256) * 16 + 8,
        g=((top // 16) % 16) * 16 + 8,
        b=(top % 16) * 16 + 8,
    )


def compute_stats(image: Image.Image) -> ImageStats:
    """
    Compute per-channel statistics.

    Args:
        image: Decoded PIL Image

    Returns:
        ImageStats with one entry per channel (L, RGB or RGBA order),
        opacity, greyscale entropy, sharpness and dominant color
    """
    working = normalize_mode(image)
    array = np.array(working)
    if array.ndim == 2:
        array = array[:, :, np.newaxis]

    channels = [_channel_stats(array[:, :, i]) for i in range(array.shape[2])]

    is_opaque = True
    if working.mode == "RGBA":
        is_opaque = bool((array[:, :, 3] == 255).all())

    gray = np.array(working.convert("L"))
    sharpness = float(cv2.Laplacian(gray, cv2.CV_64F).std())

    rgb = np.array(working.convert("RGB"))

    return ImageStats(
        channels=channels,
        is_opaque=is_opaque,
        entropy=float(working.convert("L").entropy()),
        sharpness=sharpness,
        dominant=_dominant(rgb),
    )
