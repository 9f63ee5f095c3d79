"""
Image processing operations.

Handles pixel and geometry manipulation on decoded PIL Images:
- Resizing under a fit/position/kernel policy
- Extraction, rotation and mirroring
- Tonal effects (threshold, median, blur, negate, grayscale, modulate, tint)
- Border trimming and alpha flattening

Every function returns a new image and leaves its input untouched.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image, ImageOps

from core.constants import CodecConstants
from core.enums import FitMode, Gravity, ResizeKernel
from core.image.converters import has_alpha, normalize_mode, numpy_to_pil, pil_to_numpy

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]


def _split_alpha(array: np.ndarray) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """Split an HxWx4 array into color and alpha; other shapes have no alpha."""
    if array.ndim == 3 and array.shape[2] == 4:
        return array[:, :, :3], array[:, :, 3]
    return array, None


def _merge_alpha(color: np.ndarray, alpha: Optional[np.ndarray]) -> np.ndarray:
    if alpha is None:
        return color
    if color.ndim == 2:
        color = np.stack([color] * 3, axis=2)
    return np.dstack([color, alpha])


def _anchor(space: int, size: int, fraction: float) -> int:
    """Offset that places ``size`` inside ``space`` at the given relative anchor."""
    return int(round((space - size) * fraction))


def _target_size(
    src_w: int, src_h: int, width: Optional[int], height: Optional[int], fit: FitMode
) -> Tuple[int, int]:
    """
    Compute the size the source is scaled to before any crop or letterbox.

    Args:
        src_w, src_h: Source dimensions
        width, height: Requested dimensions (either may be None)
        fit: Fit policy

    Returns:
        (width, height) of the scaled image
    """
    if width and not height:
        return width, max(1, int(round(src_h * width / src_w)))
    if height and not width:
        return max(1, int(round(src_w * height / src_h))), height

    if fit == FitMode.FILL:
        return width, height

    scale_x = width / src_w
    scale_y = height / src_h
    if fit in (FitMode.COVER, FitMode.OUTSIDE):
        scale = max(scale_x, scale_y)
    else:
        scale = min(scale_x, scale_y)

    return max(1, int(round(src_w * scale))), max(1, int(round(src_h * scale)))


def resize(
    image: Image.Image,
    width: Optional[int] = None,
    height: Optional[int] = None,
    fit: FitMode = FitMode.COVER,
    position: Gravity = Gravity.CENTRE,
    background: RGBA = (0, 0, 0, 255),
    kernel: ResizeKernel = ResizeKernel.LANCZOS3,
    without_enlargement: bool = False,
    without_reduction: bool = False,
) -> Image.Image:
    """
    Resize image under a fit policy.

    With only one dimension the aspect ratio is preserved. With both:
    cover crops the overflow at ``position``, contain letterboxes with
    ``background``, fill stretches, inside/outside scale to fit within or
    to cover the box without cropping.

    Args:
        image: Input image
        width: Target width (None to derive from height)
        height: Target height (None to derive from width)
        fit: Fit policy
        position: Gravity for cover crop and contain letterbox
        background: Letterbox color (RGBA)
        kernel: Interpolation kernel
        without_enlargement: Leave the image as-is if it would only grow
        without_reduction: Leave the image as-is if it would only shrink

    Returns:
        Resized image
    """
    src_w, src_h = image.size

    if not width and not height:
        return image.copy()

    requested = [(width, src_w), (height, src_h)]
    requested = [(target, src) for target, src in requested if target]
    if without_enlargement and all(target >= src for target, src in requested):
        return image.copy()
    if without_reduction and all(target <= src for target, src in requested):
        return image.copy()

    resample = CodecConstants.KERNELS[kernel]
    scaled_size = _target_size(src_w, src_h, width, height, fit)

    working = image if image.mode in ("L", "RGB", "RGBA") else normalize_mode(image)
    scaled = working.resize(scaled_size, resample=resample)

    if not (width and height):
        return scaled

    gx, gy = position.offsets

    if fit == FitMode.COVER:
        left = _anchor(scaled.width, width, gx)
        top = _anchor(scaled.height, height, gy)
        return scaled.crop((left, top, left + width, top + height))

    if fit == FitMode.CONTAIN:
        if background[3] < 255 or has_alpha(scaled):
            canvas_mode = "RGBA"
        else:
            canvas_mode = "RGB"
        fill = background if canvas_mode == "RGBA" else background[:3]
        canvas = Image.new(canvas_mode, (width, height), fill)
        offset = (_anchor(width, scaled.width, gx), _anchor(height, scaled.height, gy))
        if scaled.mode == "RGBA":
            canvas.paste(scaled, offset, scaled)
        else:
            canvas.paste(scaled.convert(canvas_mode), offset)
        return canvas

    return scaled


def extract(image: Image.Image, left: int, top: int, width: int, height: int) -> Image.Image:
    """
    Extract an exact rectangle.

    Raises:
        ValueError: If the rectangle is empty or not fully inside the image
    """
    img_w, img_h = image.size
    if width <= 0 or height <= 0:
        raise ValueError(f"Crop area must be non-empty, got {width}x{height}")
    if left < 0 or top < 0 or left + width > img_w or top + height > img_h:
        raise ValueError(
            f"Crop area {width}x{height} at ({left},{top}) exceeds image bounds {img_w}x{img_h}"
        )
    return image.crop((left, top, left + width, top + height))


def auto_orient(image: Image.Image) -> Image.Image:
    """Rotate/mirror according to the EXIF orientation tag."""
    oriented = ImageOps.exif_transpose(image)
    return oriented if oriented is not None else image.copy()


def rotate(image: Image.Image, angle: float, background: RGBA = (0, 0, 0, 255)) -> Image.Image:
    """
    Rotate clockwise by ``angle`` degrees.

    Multiples of 90 are exact transposes. Other angles enlarge the canvas
    to hold the whole image and fill the corners with ``background``.
    """
    angle = angle % 360

    if angle == 0:
        return image.copy()
    if angle == 90:
        return image.transpose(Image.Transpose.ROTATE_270)
    if angle == 180:
        return image.transpose(Image.Transpose.ROTATE_180)
    if angle == 270:
        return image.transpose(Image.Transpose.ROTATE_90)

    if background[3] < 255 or has_alpha(image):
        working = normalize_mode(image).convert("RGBA")
        fill = background
    else:
        working = normalize_mode(image).convert("RGB")
        fill = background[:3]

    # PIL rotates counter-clockwise
    return working.rotate(-angle, resample=Image.Resampling.BICUBIC, expand=True, fillcolor=fill)


def flip(image: Image.Image) -> Image.Image:
    """Mirror top to bottom."""
    return image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)


def flop(image: Image.Image) -> Image.Image:
    """Mirror left to right."""
    return image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)


def threshold(image: Image.Image, level: int, grayscale: bool = False) -> Image.Image:
    """
    Set every sample >= level to 255 and the rest to 0.

    Args:
        image: Input image
        level: Threshold 0-255
        grayscale: Convert to a single luminance channel first,
            otherwise threshold each color channel independently

    Returns:
        Thresholded image; alpha is kept unchanged
    """
    working = normalize_mode(image)
    if grayscale:
        working = working.convert("LA" if has_alpha(working) else "L")

    array = np.array(working)
    if array.ndim == 3 and array.shape[2] in (2, 4):
        color, alpha = array[..., :-1], array[..., -1]
        color = np.where(color >= level, 255, 0).astype(np.uint8)
        return Image.fromarray(np.dstack([color, alpha]))

    return Image.fromarray(np.where(array >= level, 255, 0).astype(np.uint8))


def median(image: Image.Image, size: int) -> Image.Image:
    """
    Apply a square median filter.

    Args:
        image: Input image
        size: Window size; even sizes are rounded up, sizes below 2 are a no-op
    """
    if size < 2:
        return image.copy()
    if size % 2 == 0:
        size += 1

    array = pil_to_numpy(image)
    return numpy_to_pil(cv2.medianBlur(np.ascontiguousarray(array), size))


def blur(image: Image.Image, sigma: float) -> Image.Image:
    """Gaussian blur with the given standard deviation."""
    if sigma <= 0:
        return image.copy()

    array = pil_to_numpy(image)
    return numpy_to_pil(cv2.GaussianBlur(array, (0, 0), sigmaX=sigma, sigmaY=sigma))


def negate(image: Image.Image) -> Image.Image:
    """Invert color channels; alpha is left unchanged."""
    color, alpha = _split_alpha(pil_to_numpy(image))
    return numpy_to_pil(_merge_alpha(255 - color, alpha))


def grayscale(image: Image.Image) -> Image.Image:
    """Convert to luminance, keeping alpha if present."""
    return normalize_mode(image).convert("LA" if has_alpha(image) else "L")


def modulate(
    image: Image.Image,
    brightness: float = 1.0,
    saturation: float = 1.0,
    hue: float = 0,
    lightness: float = 1.0,
) -> Image.Image:
    """
    Adjust hue, saturation and lightness in HLS space, then brightness.

    Args:
        brightness: Multiplier applied to the resulting RGB values
        saturation: Saturation multiplier
        hue: Hue rotation in degrees
        lightness: Lightness multiplier

    Returns:
        Modulated image; neutral values return an unchanged copy
    """
    if brightness == 1 and saturation == 1 and hue % 360 == 0 and lightness == 1:
        return image.copy()

    narrowed = normalize_mode(image)
    was_gray = narrowed.mode == "L" or image.mode == "LA"
    working = narrowed.convert("RGBA" if has_alpha(image) else "RGB")
    color, alpha = _split_alpha(np.array(working))

    rgb = color.astype(np.float32) / 255.0
    hls = cv2.cvtColor(rgb, cv2.COLOR_RGB2HLS)
    hls[..., 0] = (hls[..., 0] + hue) % 360
    hls[..., 1] = np.clip(hls[..., 1] * lightness, 0, 1)
    hls[..., 2] = np.clip(hls[..., 2] * saturation, 0, 1)
    rgb = cv2.cvtColor(hls, cv2.COLOR_HLS2RGB) * brightness

    result = numpy_to_pil(_merge_alpha(np.clip(rgb * 255.0, 0, 255), alpha))
    if was_gray:
        return result.convert("LA" if alpha is not None else "L")
    return result


def tint(image: Image.Image, color: RGBA) -> Image.Image:
    """
    Replace chroma with that of ``color`` while preserving luminance.

    Works in CIELAB: the L channel is kept, a/b are taken from the tint color.
    """
    working = normalize_mode(image).convert("RGBA" if has_alpha(image) else "RGB")
    rgb, alpha = _split_alpha(np.array(working))

    tint_lab = cv2.cvtColor(np.array([[color[:3]]], dtype=np.uint8), cv2.COLOR_RGB2LAB)[0, 0]
    lab = cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2LAB)
    lab[..., 1] = tint_lab[1]
    lab[..., 2] = tint_lab[2]
    tinted = cv2.cvtColor(lab, cv2.COLOR_LAB2RGB)

    return numpy_to_pil(_merge_alpha(tinted, alpha))


def trim(
    image: Image.Image, threshold_level: float, background: Optional[RGBA] = None
) -> Image.Image:
    """
    Remove borders whose color is within ``threshold_level`` of the background.

    Args:
        image: Input image
        threshold_level: Maximum per-channel difference still counted as border
        background: Border color; defaults to the top-left pixel

    Returns:
        Trimmed image, or an unchanged copy when nothing differs from the border
    """
    array = np.array(normalize_mode(image).convert("RGBA")).astype(np.int16)
    reference = np.array(background if background is not None else array[0, 0], dtype=np.int16)

    difference = np.abs(array - reference).max(axis=2)
    mask = (difference > threshold_level).astype(np.uint8)

    points = cv2.findNonZero(mask)
    if points is None:
        logger.debug("Trim found no foreground, leaving image unchanged")
        return image.copy()

    x, y, w, h = cv2.boundingRect(points)
    return image.crop((x, y, x + w, y + h))


def flatten(image: Image.Image, background: RGBA) -> Image.Image:
    """Merge alpha onto a solid background; images without alpha are unchanged."""
    if not has_alpha(image):
        return image.copy()

    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background[:3])
    canvas.paste(rgba, (0, 0), rgba)
    return canvas
