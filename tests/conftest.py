"""
Pytest configuration and fixtures for image transform service tests
"""

import asyncio
import io

import numpy as np
import pytest
from PIL import Image

from core.engine import CodecEngine
from services.image_service import ImageService


def encode_image(image: Image.Image, format: str = "PNG", **kwargs) -> bytes:
    """Encode a PIL image to bytes"""
    buffer = io.BytesIO()
    image.save(buffer, format=format, **kwargs)
    return buffer.getvalue()


def decode_image(data: bytes) -> Image.Image:
    """Decode bytes to a loaded PIL image"""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.fixture
def run():
    """Run a coroutine to completion from a synchronous test"""
    return asyncio.run


@pytest.fixture
def gradient_image():
    """Asymmetric 120x80 RGB image (no two rows or columns alike)"""
    x = np.linspace(0, 255, 120, dtype=np.float32)
    y = np.linspace(0, 255, 80, dtype=np.float32)
    xx, yy = np.meshgrid(x, y)
    array = np.dstack([xx, yy, (xx + yy) / 2]).astype(np.uint8)
    return Image.fromarray(array)


@pytest.fixture
def gradient_png(gradient_image):
    return encode_image(gradient_image, "PNG")


@pytest.fixture
def gradient_jpeg(gradient_image):
    return encode_image(gradient_image, "JPEG", quality=90)


@pytest.fixture
def rgba_png():
    """64x48 red image whose left half is fully transparent"""
    array = np.zeros((48, 64, 4), dtype=np.uint8)
    array[:, :, 0] = 255
    array[:, 32:, 3] = 255
    return encode_image(Image.fromarray(array), "PNG")


@pytest.fixture
def bordered_png():
    """100x60 white image with a 50x30 red rectangle at (20, 10)"""
    array = np.full((60, 100, 3), 255, dtype=np.uint8)
    array[10:40, 20:70] = (255, 0, 0)
    return encode_image(Image.fromarray(array), "PNG")


@pytest.fixture
def make_png():
    """Factory for solid-color PNG buffers"""

    def _make(width: int, height: int, color=(128, 128, 128), mode: str = "RGB") -> bytes:
        return encode_image(Image.new(mode, (width, height), color), "PNG")

    return _make


@pytest.fixture
def engine():
    """Create CodecEngine instance for testing"""
    return CodecEngine()


@pytest.fixture
def image_service(engine):
    """Create ImageService instance for testing"""
    return ImageService(engine=engine)


@pytest.fixture
def open_image():
    """Decode result bytes for assertions"""
    return decode_image


@pytest.fixture
def save_image():
    """Encode a PIL image for use as input"""
    return encode_image


@pytest.fixture
def deep_image():
    """30x20 16-bit grayscale image, left half 1000 and right half 60000"""
    array = np.full((20, 30), 1000, dtype=np.uint16)
    array[:, 15:] = 60000
    return Image.fromarray(array)


@pytest.fixture
def deep_png(deep_image):
    return encode_image(deep_image, "PNG")
