"""
Overlay compositing.

Implements Porter-Duff operators and the separable blend modes on
straight (non-premultiplied) RGBA float arrays.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

import numpy as np
from PIL import Image

from core.enums import BlendMode, Gravity
from core.image.converters import has_alpha

logger = logging.getLogger(__name__)

# Porter-Duff (Fa, Fb) factors as functions of (source alpha, backdrop alpha)
_PORTER_DUFF: Dict[BlendMode, Callable] = {
    BlendMode.CLEAR: lambda a_s, a_b: (0.0, 0.0),
    BlendMode.SOURCE: lambda a_s, a_b: (1.0, 0.0),
    BlendMode.OVER: lambda a_s, a_b: (1.0, 1.0 - a_s),
    BlendMode.IN: lambda a_s, a_b: (a_b, 0.0),
    BlendMode.OUT: lambda a_s, a_b: (1.0 - a_b, 0.0),
    BlendMode.ATOP: lambda a_s, a_b: (a_b, 1.0 - a_s),
    BlendMode.DEST: lambda a_s, a_b: (0.0, 1.0),
    BlendMode.DEST_OVER: lambda a_s, a_b: (1.0 - a_b, 1.0),
    BlendMode.DEST_IN: lambda a_s, a_b: (0.0, a_s),
    BlendMode.DEST_OUT: lambda a_s, a_b: (0.0, 1.0 - a_s),
    BlendMode.DEST_ATOP: lambda a_s, a_b: (1.0 - a_b, a_s),
    BlendMode.XOR: lambda a_s, a_b: (1.0 - a_b, 1.0 - a_s),
    BlendMode.ADD: lambda a_s, a_b: (1.0, 1.0),
    BlendMode.SATURATE: lambda a_s, a_b: (
        np.minimum(1.0, np.divide(1.0 - a_b, a_s, out=np.ones_like(a_s), where=a_s > 0)),
        1.0,
    ),
}


def _overlay(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return np.where(cb <= 0.5, 2 * cb * cs, 1 - 2 * (1 - cb) * (1 - cs))


# Separable blend functions B(backdrop, source)
_SEPARABLE: Dict[BlendMode, Callable] = {
    BlendMode.MULTIPLY: lambda cb, cs: cb * cs,
    BlendMode.SCREEN: lambda cb, cs: cb + cs - cb * cs,
    BlendMode.OVERLAY: _overlay,
    BlendMode.DARKEN: np.minimum,
    BlendMode.LIGHTEN: np.maximum,
    BlendMode.DIFFERENCE: lambda cb, cs: np.abs(cb - cs),
    BlendMode.EXCLUSION: lambda cb, cs: cb + cs - 2 * cb * cs,
}


def blend(backdrop: np.ndarray, source: np.ndarray, mode: BlendMode) -> np.ndarray:
    """
    Composite ``source`` onto ``backdrop``.

    Args:
        backdrop: HxWx4 float array in [0, 1]
        source: HxWx4 float array in [0, 1], same shape
        mode: Blend mode

    Returns:
        HxWx4 float array in [0, 1]
    """
    cb, a_b = backdrop[..., :3], backdrop[..., 3:]
    cs, a_s = source[..., :3], source[..., 3:]

    if mode in _SEPARABLE:
        mixed = _SEPARABLE[mode](cb, cs)
        premultiplied = a_s * (1 - a_b) * cs + a_b * (1 - a_s) * cb + a_s * a_b * mixed
        alpha = a_s + a_b - a_s * a_b
    else:
        fa, fb = _PORTER_DUFF[mode](a_s, a_b)
        premultiplied = a_s * fa * cs + a_b * fb * cb
        alpha = a_s * fa + a_b * fb

    premultiplied = np.clip(premultiplied, 0.0, 1.0)
    alpha = np.clip(alpha, 0.0, 1.0)
    color = np.divide(
        premultiplied, alpha, out=np.zeros_like(premultiplied), where=alpha > 0
    )
    return np.concatenate([np.clip(color, 0.0, 1.0), alpha], axis=2)


def _place(
    canvas_size: Tuple[int, int],
    overlay: np.ndarray,
    left: int,
    top: int,
    tile: bool,
) -> np.ndarray:
    """Lay the overlay on a transparent canvas, clipping anything outside."""
    width, height = canvas_size
    layer = np.zeros((height, width, 4), dtype=np.float32)
    oh, ow = overlay.shape[:2]

    if tile:
        # start at the offset and step back so the grid covers the whole canvas
        start_x = left % ow - ow if left % ow else 0
        start_y = top % oh - oh if top % oh else 0
        xs = range(start_x, width, ow)
        ys = range(start_y, height, oh)
        positions = [(x, y) for y in ys for x in xs]
    else:
        positions = [(left, top)]

    for x, y in positions:
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + ow, width), min(y + oh, height)
        if x0 >= x1 or y0 >= y1:
            continue
        layer[y0:y1, x0:x1] = overlay[y0 - y : y1 - y, x0 - x : x1 - x]

    return layer


def composite(
    base: Image.Image,
    overlay: Image.Image,
    mode: BlendMode = BlendMode.OVER,
    gravity: Gravity = Gravity.CENTRE,
    top: Optional[int] = None,
    left: Optional[int] = None,
    tile: bool = False,
) -> Image.Image:
    """
    Composite an overlay image onto a base image.

    Args:
        base: Backdrop image; the output has its dimensions
        overlay: Image to lay on top; must not be larger than the base
        mode: Blend mode
        gravity: Placement when top/left are not both given
        top, left: Explicit offset of the overlay's top-left corner
        tile: Repeat the overlay across the whole base

    Returns:
        Composited image (RGBA, or RGB when the base had no alpha
        and the result is fully opaque)

    Raises:
        ValueError: If the overlay is larger than the base
    """
    if overlay.width > base.width or overlay.height > base.height:
        raise ValueError(
            f"Image to composite must have same dimensions or smaller: "
            f"overlay {overlay.width}x{overlay.height}, base {base.width}x{base.height}"
        )

    if top is not None and left is not None:
        x, y = left, top
    else:
        gx, gy = gravity.offsets
        x = int(round((base.width - overlay.width) * gx))
        y = int(round((base.height - overlay.height) * gy))

    backdrop = np.asarray(base.convert("RGBA"), dtype=np.float32) / 255.0
    source = np.asarray(overlay.convert("RGBA"), dtype=np.float32) / 255.0
    layer = _place(base.size, source, x, y, tile)

    result = blend(backdrop, layer, mode)
    pixels = np.clip(np.rint(result * 255.0), 0, 255).astype(np.uint8)

    if not has_alpha(base) and (pixels[..., 3] == 255).all():
        return Image.fromarray(pixels[..., :3])
    return Image.fromarray(pixels)
