"""
Constants and configuration values for the image transform service.
Centralizes all magic numbers and default values.
"""

from PIL import Image

from core.enums import ImageFormat, ResizeKernel


# Image Processing Constants
class ProcessingConstants:
    """Fallback values applied at the operation boundary."""

    # Effects
    DEFAULT_MEDIAN = 3
    DEFAULT_BLUR_SIGMA = 0.3
    MIN_BLUR_SIGMA = 0.3
    MAX_BLUR_SIGMA = 1000.0
    DEFAULT_BRIGHTNESS = 1.0
    DEFAULT_SATURATION = 1.0
    DEFAULT_HUE = 0
    DEFAULT_LIGHTNESS = 1.0
    DEFAULT_THRESHOLD = 0  # 0 disables the threshold pre-pass

    # Trim
    DEFAULT_TRIM_THRESHOLD = 10

    # Colors (RGBA)
    DEFAULT_BACKGROUND = (0, 0, 0, 255)

    # Composition
    COMPOSE_INTERMEDIATE_FORMAT = ImageFormat.PNG


# Codec Constants
class CodecConstants:
    """Mappings between public names and Pillow identifiers."""

    # Public format -> Pillow format name
    PIL_FORMATS = {
        ImageFormat.JPEG: "JPEG",
        ImageFormat.PNG: "PNG",
        ImageFormat.WEBP: "WEBP",
        ImageFormat.GIF: "GIF",
        ImageFormat.TIFF: "TIFF",
        ImageFormat.AVIF: "AVIF",
        ImageFormat.JP2: "JPEG2000",
    }

    # Pillow format name -> public format
    FROM_PIL_FORMATS = {
        "JPEG": "jpeg",
        "MPO": "jpeg",
        "PNG": "png",
        "WEBP": "webp",
        "GIF": "gif",
        "TIFF": "tiff",
        "AVIF": "avif",
        "JPEG2000": "jp2",
        "BMP": "bmp",
        "PPM": "ppm",
    }

    # File extension -> public format (used when storing)
    EXTENSION_FORMATS = {
        ".jpg": ImageFormat.JPEG,
        ".jpeg": ImageFormat.JPEG,
        ".png": ImageFormat.PNG,
        ".webp": ImageFormat.WEBP,
        ".gif": ImageFormat.GIF,
        ".tif": ImageFormat.TIFF,
        ".tiff": ImageFormat.TIFF,
        ".avif": ImageFormat.AVIF,
        ".jp2": ImageFormat.JP2,
    }

    # Formats that cannot carry an alpha channel
    NO_ALPHA_FORMATS = {ImageFormat.JPEG}

    KERNELS = {
        ResizeKernel.NEAREST: Image.Resampling.NEAREST,
        ResizeKernel.LINEAR: Image.Resampling.BILINEAR,
        ResizeKernel.CUBIC: Image.Resampling.BICUBIC,
        ResizeKernel.MITCHELL: Image.Resampling.BICUBIC,
        ResizeKernel.LANCZOS2: Image.Resampling.LANCZOS,
        ResizeKernel.LANCZOS3: Image.Resampling.LANCZOS,
    }

    # TIFF compression names -> Pillow compression
    TIFF_COMPRESSION = {
        "none": None,
        "jpeg": "jpeg",
        "deflate": "tiff_adobe_deflate",
        "lzw": "tiff_lzw",
        "packbits": "packbits",
    }

    MEDIA_TYPES = {
        "jpeg": "image/jpeg",
        "png": "image/png",
        "webp": "image/webp",
        "gif": "image/gif",
        "tiff": "image/tiff",
        "avif": "image/avif",
        "jp2": "image/jp2",
    }


# Storage Constants
class StorageConstants:
    """Constants related to file uploads and storage."""

    DEFAULT_FILES_DIR = "./files"
    UPLOAD_FIELD = "file"
    MULTI_UPLOAD_FIELDS = ("file1", "file2")
