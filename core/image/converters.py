"""
Image codec and array conversion utilities.

Handles conversions between representations:
- Encoded bytes / file paths -> PIL Images (decode)
- PIL Images -> encoded bytes in a target format (encode)
- PIL Images <-> NumPy arrays (RGB/RGBA channel order, no BGR swap)
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
from PIL import Image

from core.constants import CodecConstants
from core.enums import ImageFormat

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path]

ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")

# Single-channel modes wider than 8 bits per sample
HIGH_DEPTH_MODES = ("I;16", "I;16B", "I;16L", "I;16N", "I", "F")


def read_source(source: ImageSource) -> bytes:
    """
    Read raw bytes from a buffer or a file path.

    Args:
        source: Encoded image bytes or path to an image file

    Returns:
        Encoded bytes
    """
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)

    with open(source, "rb") as f:
        return f.read()


def decode(data: bytes) -> Image.Image:
    """
    Decode encoded bytes into a fully loaded PIL Image.

    Args:
        data: Encoded image bytes

    Returns:
        PIL Image (pixel data loaded, ``format`` set by the decoder)

    Raises:
        ValueError: If the buffer is empty
        PIL.UnidentifiedImageError: If the buffer is not a supported image
    """
    if not data:
        raise ValueError("Input buffer is empty")

    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def sniff_format(data: bytes) -> Optional[str]:
    """Read only the header and return the public format name, if known."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return CodecConstants.FROM_PIL_FORMATS.get(image.format)
    except Exception as e:
        logger.debug(f"Could not identify image format: {e}")
        return None


def format_of(image: Image.Image) -> Optional[ImageFormat]:
    """Public format of a decoded image, None if it has no writable counterpart."""
    name = CodecConstants.FROM_PIL_FORMATS.get(image.format)
    try:
        return ImageFormat(name) if name else None
    except ValueError:
        return None


def has_alpha(image: Image.Image) -> bool:
    """Check if an image carries an alpha channel (or palette transparency)."""
    if image.mode in ALPHA_MODES:
        return True
    return image.mode == "P" and "transparency" in image.info


def narrow_depth(image: Image.Image) -> Image.Image:
    """
    Rescale a 16/32-bit single-channel image to 8-bit L.

    16-bit modes map 0-65535 onto 0-255. For I and F the sample range is
    not fixed: values already within 0-255 are kept, values within 0-65535
    are treated as 16-bit, anything else is stretched from min/max.

    Args:
        image: PIL Image; modes other than HIGH_DEPTH_MODES are returned as-is

    Returns:
        Image in L mode, or the input unchanged
    """
    if image.mode not in HIGH_DEPTH_MODES:
        return image

    values = np.asarray(image).astype(np.float64)
    low, high = float(values.min()), float(values.max())

    if image.mode.startswith("I;16") or (low >= 0 and 255 < high <= 65535):
        values = values / 257.0
    elif low < 0 or high > 255:
        span = high - low
        values = (values - low) * 255.0 / span if span else np.zeros_like(values)

    return Image.fromarray(np.clip(np.rint(values), 0, 255).astype(np.uint8))


def normalize_mode(image: Image.Image) -> Image.Image:
    """
    Convert to one of the working modes: L, RGB or RGBA.

    Args:
        image: PIL Image in any mode

    Returns:
        Image in L, RGB or RGBA mode
    """
    if has_alpha(image):
        return image if image.mode == "RGBA" else image.convert("RGBA")
    if image.mode in ("L", "RGB"):
        return image
    if image.mode in HIGH_DEPTH_MODES:
        return narrow_depth(image)
    if image.mode == "1":
        return image.convert("L")
    return image.convert("RGB")


def pil_to_numpy(image: Image.Image) -> np.ndarray:
    """
    Convert PIL Image to NumPy array in working mode.

    Args:
        image: PIL Image

    Returns:
        uint8 array, HxW for L, HxWx3 for RGB, HxWx4 for RGBA
    """
    return np.array(normalize_mode(image))


def numpy_to_pil(array: np.ndarray) -> Image.Image:
    """
    Convert NumPy array to PIL Image.

    Args:
        array: HxW, HxWx3 or HxWx4 array; values are clipped to 0-255

    Returns:
        PIL Image in L, RGB or RGBA mode
    """
    if array.dtype != np.uint8:
        array = np.clip(np.rint(array), 0, 255).astype(np.uint8)
    return Image.fromarray(array)


def _prepare_for_format(image: Image.Image, fmt: ImageFormat) -> Image.Image:
    """Convert the pixel mode to one the target encoder accepts."""
    keeps_depth = fmt in (ImageFormat.PNG, ImageFormat.TIFF) and image.mode.startswith("I")
    if image.mode in HIGH_DEPTH_MODES and not keeps_depth:
        image = narrow_depth(image)

    if fmt in CodecConstants.NO_ALPHA_FORMATS:
        if image.mode in ("L", "RGB", "CMYK"):
            return image
        if image.mode in ("LA", "La"):
            return image.convert("L")
        return image.convert("RGB")

    if fmt == ImageFormat.GIF:
        return image

    if image.mode in ("1", "L", "LA", "RGB", "RGBA"):
        return image
    if image.mode.startswith("I") and fmt in (ImageFormat.PNG, ImageFormat.TIFF):
        return image
    return image.convert("RGBA" if has_alpha(image) else "RGB")


def _save_kwargs(fmt: ImageFormat, options: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map encoder options to Pillow ``save`` keyword arguments.

    Options that do not apply to the target format are dropped.
    """
    kwargs: Dict[str, Any] = {}
    quality = options.get("quality")

    if fmt == ImageFormat.JPEG:
        if quality is not None:
            kwargs["quality"] = quality
        if options.get("progressive") is not None:
            kwargs["progressive"] = options["progressive"]
        if options.get("optimize") is not None:
            kwargs["optimize"] = options["optimize"]

    elif fmt == ImageFormat.PNG:
        if options.get("compression_level") is not None:
            kwargs["compress_level"] = options["compression_level"]
        if options.get("optimize") is not None:
            kwargs["optimize"] = options["optimize"]

    elif fmt == ImageFormat.WEBP:
        if quality is not None:
            kwargs["quality"] = quality
        if options.get("lossless") is not None:
            kwargs["lossless"] = options["lossless"]
        if options.get("effort") is not None:
            kwargs["method"] = min(options["effort"], 6)

    elif fmt == ImageFormat.AVIF:
        if quality is not None:
            kwargs["quality"] = quality
        if options.get("lossless"):
            kwargs["quality"] = 100
        if options.get("effort") is not None:
            # avif speed runs the opposite way to effort
            kwargs["speed"] = 10 - options["effort"]

    elif fmt == ImageFormat.GIF:
        if options.get("loop") is not None:
            kwargs["loop"] = options["loop"]
        if options.get("optimize") is not None:
            kwargs["optimize"] = options["optimize"]

    elif fmt == ImageFormat.TIFF:
        compression = options.get("compression")
        if compression is not None:
            if compression not in CodecConstants.TIFF_COMPRESSION:
                raise ValueError(f"Unsupported tiff compression: {compression}")
            kwargs["compression"] = CodecConstants.TIFF_COMPRESSION[compression]
        if quality is not None and compression == "jpeg":
            kwargs["quality"] = quality

    elif fmt == ImageFormat.JP2:
        if options.get("lossless") is not None:
            kwargs["irreversible"] = not options["lossless"]

    return kwargs


def encode(
    image: Image.Image, fmt: ImageFormat, options: Optional[Dict[str, Any]] = None
) -> bytes:
    """
    Encode a PIL Image to bytes.

    Args:
        image: Image to encode
        fmt: Target format (aliases accepted, INPUT not allowed here)
        options: Encoder options; only keys present are applied,
            otherwise the format defaults are used

    Returns:
        Encoded bytes

    Raises:
        ValueError: If the format is not writable
    """
    fmt = fmt.canonical
    pil_format = CodecConstants.PIL_FORMATS.get(fmt)
    if pil_format is None:
        raise ValueError(f"Unsupported output format: {fmt.value}")

    options = options or {}
    prepared = _prepare_for_format(image, fmt)

    if fmt in (ImageFormat.PNG, ImageFormat.GIF) and (
        options.get("palette") or options.get("colours")
    ):
        colours = options.get("colours") or 256
        mode = "RGBA" if has_alpha(prepared) else "RGB"
        prepared = narrow_depth(prepared).convert(mode).quantize(colours)

    buffer = io.BytesIO()
    prepared.save(buffer, format=pil_format, **_save_kwargs(fmt, options))
    return buffer.getvalue()
