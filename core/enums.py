"""
Centralized enums for the image transform service.

All string-valued so they serialize cleanly through Pydantic and FastAPI.
"""

from enum import Enum


class ImageFormat(str, Enum):
    """Output container formats"""

    JPEG = "jpeg"
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    TIFF = "tiff"
    TIF = "tif"
    AVIF = "avif"
    JP2 = "jp2"
    INPUT = "input"  # keep the input's format

    @property
    def canonical(self) -> "ImageFormat":
        """Resolve aliases (jpg -> jpeg, tif -> tiff)."""
        aliases = {ImageFormat.JPG: ImageFormat.JPEG, ImageFormat.TIF: ImageFormat.TIFF}
        return aliases.get(self, self)


class FitMode(str, Enum):
    """How a resize reconciles target dimensions with the source aspect ratio"""

    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"


class Gravity(str, Enum):
    """Anchor used for cropping, letterboxing and overlay placement"""

    CENTRE = "centre"
    CENTER = "center"
    NORTH = "north"
    NORTHEAST = "northeast"
    EAST = "east"
    SOUTHEAST = "southeast"
    SOUTH = "south"
    SOUTHWEST = "southwest"
    WEST = "west"
    NORTHWEST = "northwest"
    TOP = "top"
    RIGHT_TOP = "right top"
    RIGHT = "right"
    RIGHT_BOTTOM = "right bottom"
    BOTTOM = "bottom"
    LEFT_BOTTOM = "left bottom"
    LEFT = "left"
    LEFT_TOP = "left top"

    @property
    def offsets(self) -> tuple:
        """Relative (x, y) anchor in [0, 1]."""
        return _GRAVITY_OFFSETS[self]


_GRAVITY_OFFSETS = {
    Gravity.CENTRE: (0.5, 0.5),
    Gravity.CENTER: (0.5, 0.5),
    Gravity.NORTH: (0.5, 0.0),
    Gravity.TOP: (0.5, 0.0),
    Gravity.NORTHEAST: (1.0, 0.0),
    Gravity.RIGHT_TOP: (1.0, 0.0),
    Gravity.EAST: (1.0, 0.5),
    Gravity.RIGHT: (1.0, 0.5),
    Gravity.SOUTHEAST: (1.0, 1.0),
    Gravity.RIGHT_BOTTOM: (1.0, 1.0),
    Gravity.SOUTH: (0.5, 1.0),
    Gravity.BOTTOM: (0.5, 1.0),
    Gravity.SOUTHWEST: (0.0, 1.0),
    Gravity.LEFT_BOTTOM: (0.0, 1.0),
    Gravity.WEST: (0.0, 0.5),
    Gravity.LEFT: (0.0, 0.5),
    Gravity.NORTHWEST: (0.0, 0.0),
    Gravity.LEFT_TOP: (0.0, 0.0),
}


class ResizeKernel(str, Enum):
    """Interpolation kernels for resizing"""

    NEAREST = "nearest"
    LINEAR = "linear"
    CUBIC = "cubic"
    MITCHELL = "mitchell"
    LANCZOS2 = "lanczos2"
    LANCZOS3 = "lanczos3"


class BlendMode(str, Enum):
    """Composite blend modes (Porter-Duff operators and separable blends)"""

    CLEAR = "clear"
    SOURCE = "source"
    OVER = "over"
    IN = "in"
    OUT = "out"
    ATOP = "atop"
    DEST = "dest"
    DEST_OVER = "dest-over"
    DEST_IN = "dest-in"
    DEST_OUT = "dest-out"
    DEST_ATOP = "dest-atop"
    XOR = "xor"
    ADD = "add"
    SATURATE = "saturate"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
