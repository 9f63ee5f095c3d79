"""
Tests for image processing operations
"""

import numpy as np
import pytest
from PIL import Image

from core.enums import FitMode, Gravity
from core.image import converters, processors


class TestResize:
    """Test resize fit policies"""

    @pytest.fixture
    def white(self):
        return Image.new("RGB", (120, 80), (255, 255, 255))

    def test_width_only_keeps_aspect_ratio(self, gradient_image):
        """A single dimension scales the other proportionally"""
        result = processors.resize(gradient_image, width=60)
        assert result.size == (60, 40)

    def test_height_only_keeps_aspect_ratio(self, gradient_image):
        result = processors.resize(gradient_image, height=40)
        assert result.size == (60, 40)

    def test_no_dimensions_is_copy(self, gradient_image):
        result = processors.resize(gradient_image)
        assert result.size == gradient_image.size
        assert result is not gradient_image

    def test_cover_crops_to_exact_size(self, gradient_image):
        result = processors.resize(gradient_image, width=50, height=50, fit=FitMode.COVER)
        assert result.size == (50, 50)

    def test_fill_stretches(self, gradient_image):
        result = processors.resize(gradient_image, width=30, height=90, fit=FitMode.FILL)
        assert result.size == (30, 90)

    def test_contain_letterboxes_with_background(self, white):
        """Contain pads the short side with the background color"""
        result = processors.resize(
            white, width=100, height=100, fit=FitMode.CONTAIN, background=(0, 0, 0, 255)
        )

        assert result.size == (100, 100)
        assert result.mode == "RGB"
        assert result.getpixel((50, 0)) == (0, 0, 0)
        assert result.getpixel((50, 50)) == (255, 255, 255)

    def test_contain_position_north(self, white):
        """Gravity north puts the letterbox at the bottom"""
        result = processors.resize(
            white, width=100, height=100, fit=FitMode.CONTAIN, position=Gravity.NORTH
        )
        assert result.getpixel((50, 0)) == (255, 255, 255)
        assert result.getpixel((50, 99)) == (0, 0, 0)

    def test_inside_and_outside(self, gradient_image):
        inside = processors.resize(gradient_image, width=60, height=60, fit=FitMode.INSIDE)
        outside = processors.resize(gradient_image, width=60, height=60, fit=FitMode.OUTSIDE)

        assert inside.size == (60, 40)
        assert outside.size == (90, 60)

    def test_without_enlargement(self, gradient_image):
        result = processors.resize(gradient_image, width=240, without_enlargement=True)
        assert result.size == (120, 80)

    def test_without_reduction(self, gradient_image):
        result = processors.resize(gradient_image, width=60, without_reduction=True)
        assert result.size == (120, 80)


class TestGeometry:
    """Test extraction, rotation and mirroring"""

    def test_extract_exact_rectangle(self, gradient_image):
        result = processors.extract(gradient_image, 10, 20, 30, 40)

        assert result.size == (30, 40)
        assert result.getpixel((0, 0)) == gradient_image.getpixel((10, 20))

    @pytest.mark.parametrize(
        "left,top,width,height",
        [(100, 0, 30, 10), (0, 70, 10, 20), (-1, 0, 10, 10), (0, 0, 0, 10)],
    )
    def test_extract_out_of_bounds(self, gradient_image, left, top, width, height):
        """Rectangles not fully inside the image are rejected"""
        with pytest.raises(ValueError):
            processors.extract(gradient_image, left, top, width, height)

    def test_rotate_90_is_clockwise(self, gradient_image):
        """Top-left of the result is the bottom-left of the source"""
        result = processors.rotate(gradient_image, 90)

        assert result.size == (80, 120)
        assert result.getpixel((0, 0)) == gradient_image.getpixel((0, 79))

    def test_rotate_negative_angle(self, gradient_image):
        clockwise = np.array(processors.rotate(gradient_image, 270))
        counter = np.array(processors.rotate(gradient_image, -90))
        assert np.array_equal(clockwise, counter)

    def test_rotate_arbitrary_angle_expands(self, gradient_image):
        result = processors.rotate(gradient_image, 45, background=(255, 0, 0, 255))

        assert result.width > gradient_image.width
        assert result.height > gradient_image.height
        assert result.mode == "RGB"
        assert result.getpixel((0, 0)) == (255, 0, 0)

    def test_rotate_transparent_background(self, gradient_image):
        result = processors.rotate(gradient_image, 30, background=(0, 0, 0, 0))

        assert result.mode == "RGBA"
        assert result.getpixel((0, 0))[3] == 0

    def test_auto_orient_without_exif(self, gradient_image):
        result = processors.auto_orient(gradient_image)
        assert result.size == gradient_image.size

    def test_flip_twice_is_identity(self, gradient_image):
        once = processors.flip(gradient_image)
        twice = processors.flip(once)

        assert not np.array_equal(np.array(once), np.array(gradient_image))
        assert np.array_equal(np.array(twice), np.array(gradient_image))

    def test_flop_twice_is_identity(self, gradient_image):
        once = processors.flop(gradient_image)
        twice = processors.flop(once)

        assert once.getpixel((0, 0)) == gradient_image.getpixel((119, 0))
        assert np.array_equal(np.array(twice), np.array(gradient_image))


class TestTonal:
    """Test tonal effects"""

    def test_threshold_is_binary(self, gradient_image):
        result = processors.threshold(gradient_image, 128)
        assert set(np.unique(np.array(result))) <= {0, 255}
        assert result.mode == "RGB"

    def test_threshold_grayscale(self, gradient_image):
        result = processors.threshold(gradient_image, 128, grayscale=True)
        assert result.mode == "L"
        assert set(np.unique(np.array(result))) == {0, 255}

    def test_threshold_keeps_alpha(self):
        image = Image.new("RGBA", (4, 4), (200, 50, 10, 77))
        result = processors.threshold(image, 100)
        assert result.getpixel((0, 0)) == (255, 0, 0, 77)

    def test_median_removes_isolated_pixel(self):
        image = Image.new("L", (9, 9), 0)
        image.putpixel((4, 4), 255)

        result = processors.median(image, 3)

        assert result.getpixel((4, 4)) == 0

    def test_median_small_window_is_noop(self, gradient_image):
        result = processors.median(gradient_image, 1)
        assert np.array_equal(np.array(result), np.array(gradient_image))

    def test_blur_smooths_edges(self, bordered_png, open_image):
        image = open_image(bordered_png)
        result = processors.blur(image, 2.0)

        assert result.size == image.size
        # pixel just outside the rectangle picks up some red
        assert result.getpixel((19, 20))[1] < 255

    def test_negate_twice_is_identity(self, gradient_image):
        result = processors.negate(processors.negate(gradient_image))
        assert np.array_equal(np.array(result), np.array(gradient_image))

    def test_negate_keeps_alpha(self):
        image = Image.new("RGBA", (4, 4), (10, 20, 30, 40))
        assert processors.negate(image).getpixel((0, 0)) == (245, 235, 225, 40)

    def test_grayscale_modes(self, gradient_image):
        assert processors.grayscale(gradient_image).mode == "L"
        assert processors.grayscale(Image.new("RGBA", (2, 2))).mode == "LA"

    def test_modulate_neutral_is_copy(self, gradient_image):
        result = processors.modulate(gradient_image)
        assert np.array_equal(np.array(result), np.array(gradient_image))

    def test_modulate_hue_rotation(self):
        """Rotating pure red by 120 degrees gives pure green"""
        red = Image.new("RGB", (4, 4), (255, 0, 0))
        r, g, b = processors.modulate(red, hue=120).getpixel((0, 0))

        assert r <= 2
        assert g >= 253
        assert b <= 2

    def test_modulate_brightness(self):
        white = Image.new("RGB", (4, 4), (255, 255, 255))
        r, g, b = processors.modulate(white, brightness=0.5).getpixel((0, 0))
        assert abs(r - 128) <= 1 and abs(g - 128) <= 1 and abs(b - 128) <= 1

    def test_modulate_zero_saturation_is_gray(self):
        red = Image.new("RGB", (4, 4), (255, 0, 0))
        r, g, b = processors.modulate(red, saturation=0).getpixel((0, 0))
        assert r == g == b

    def test_tint_colors_gray_image(self):
        gray = Image.new("RGB", (4, 4), (128, 128, 128))
        r, g, b = processors.tint(gray, (255, 0, 0, 255)).getpixel((0, 0))
        assert r > g
        assert r > b


class TestTrimAndFlatten:
    """Test border trimming and alpha flattening"""

    def test_trim_removes_uniform_border(self, bordered_png, open_image):
        result = processors.trim(open_image(bordered_png), 10)
        assert result.size == (50, 30)
        assert result.getpixel((0, 0)) == (255, 0, 0)

    def test_trim_uniform_image_unchanged(self):
        image = Image.new("RGB", (20, 10), (0, 128, 0))
        assert processors.trim(image, 10).size == (20, 10)

    def test_trim_threshold_tolerates_noise(self):
        """Border pixels within the threshold count as border"""
        array = np.full((20, 20, 3), 200, dtype=np.uint8)
        array[0, 5] = (205, 205, 205)
        array[8:12, 8:12] = (0, 0, 0)

        result = processors.trim(Image.fromarray(array), 10)

        assert result.size == (4, 4)

    def test_flatten_replaces_transparency(self, rgba_png, open_image):
        result = processors.flatten(open_image(rgba_png), (255, 255, 255, 255))

        assert result.mode == "RGB"
        assert result.getpixel((0, 0)) == (255, 255, 255)
        assert result.getpixel((40, 0)) == (255, 0, 0)

    def test_flatten_opaque_unchanged(self, gradient_image):
        result = processors.flatten(gradient_image, (255, 255, 255, 255))
        assert np.array_equal(np.array(result), np.array(gradient_image))


class TestHighBitDepth:
    """Test that 16/32-bit samples are rescaled, not clipped"""

    def test_narrow_16_bit(self, deep_image):
        result = converters.narrow_depth(deep_image)

        assert result.mode == "L"
        assert result.getpixel((0, 0)) == 4
        assert result.getpixel((29, 0)) == 233

    def test_narrow_32_bit_int(self, deep_image):
        result = converters.narrow_depth(Image.fromarray(np.array(deep_image).astype(np.int32)))

        assert result.mode == "L"
        assert result.getpixel((0, 0)) == 4
        assert result.getpixel((29, 0)) == 233

    def test_narrow_float_stretches_range(self):
        array = np.full((4, 4), -1.0, dtype=np.float32)
        array[:, 2:] = 1.0

        result = converters.narrow_depth(Image.fromarray(array))

        assert result.getpixel((0, 0)) == 0
        assert result.getpixel((3, 0)) == 255

    def test_narrow_leaves_8_bit_alone(self, gradient_image):
        assert converters.narrow_depth(gradient_image) is gradient_image

    def test_resize(self, deep_image):
        result = processors.resize(deep_image, width=15)

        assert result.size == (15, 10)
        assert abs(result.getpixel((0, 0)) - 4) <= 2
        assert abs(result.getpixel((14, 0)) - 233) <= 2

    @pytest.mark.parametrize(
        "operation",
        [
            lambda image: processors.median(image, 3),
            lambda image: processors.blur(image, 0.3),
            lambda image: processors.grayscale(image),
            lambda image: processors.rotate(image, 45),
        ],
    )
    def test_tonal_and_geometry(self, deep_image, operation):
        values = np.array(operation(deep_image))
        assert values.min() < 10
        assert values.max() > 200
