"""
Image Service - Business logic for image transform operations.

Each public method is one transform: it resolves its options, builds a
fresh pipeline on the codec engine, runs it off the event loop and
returns the result. All methods share one execution wrapper that names
the operation and turns any engine fault into an ImageProcessingException.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from api.exceptions import ImageProcessingException
from core.constants import ProcessingConstants
from core.engine import CodecEngine
from core.image.converters import ImageSource
from core.utils.decorators import timer
from schemas import (
    CompositeOptions,
    ConvertOptions,
    CropRegion,
    EffectsOptions,
    FlattenOptions,
    ImageMetadata,
    ImageStats,
    ResizeOptions,
    RotateOptions,
    StoredImage,
    TrimOptions,
)
from schemas.base import Color

logger = logging.getLogger(__name__)

T = TypeVar("T")

OptionsInput = Optional[Union[Dict[str, Any], Any]]


class ImageService:
    """
    Service for image transform operations.

    Stateless apart from the shared codec engine: concurrent calls never
    share a pipeline or any mutable state.
    """

    def __init__(self, engine: CodecEngine):
        """
        Initialize image service.

        Args:
            engine: Codec engine handle (result caching disabled)
        """
        self.engine = engine

    async def _execute(self, operation: str, func: Callable[[], T]) -> T:
        """
        Template method for all transform operations.

        Runs ``func`` in a worker thread and maps any failure to a single
        ImageProcessingException for ``operation``. Nothing is retried.

        Args:
            operation: Operation name used in logs and errors, e.g. "resizing image"
            func: Synchronous closure doing the engine work

        Returns:
            Whatever ``func`` returns

        Raises:
            ImageProcessingException: On any failure inside ``func``
        """
        logger.debug(operation)
        try:
            with timer() as t:
                result = await asyncio.to_thread(func)
        except Exception as e:
            logger.error(f"Error {operation}: {e}")
            raise ImageProcessingException(operation, str(e)) from e

        logger.debug(f"Finished {operation} in {t['ms']}ms")
        return result

    async def get_metadata(self, image: bytes) -> ImageMetadata:
        """
        Read image metadata.

        Returns:
            ImageMetadata (format, dimensions, channels, ...)
        """
        return await self._execute("getting image metadata", lambda: self.engine.metadata(image))

    async def get_stats(self, image: bytes) -> ImageStats:
        """Compute per-channel pixel statistics."""
        return await self._execute("getting image stats", lambda: self.engine.stats(image))

    async def store_image(
        self, image: bytes, path: Union[str, Path], image_name: str
    ) -> StoredImage:
        """
        Write an image to ``path/image_name``.

        The output format follows the file extension. An existing file with
        the same name is not overwritten; the call fails instead.

        Returns:
            StoredImage describing the written file
        """
        logger.debug(f"storing image: {image_name}")
        destination = os.path.join(str(path), image_name)
        return await self._execute(
            "storing image", lambda: self.engine.pipeline(image).to_file(destination)
        )

    async def get_image_buffer(self, image_path: Union[str, Path]) -> bytes:
        """Load an image file and return it encoded in its own format."""
        return await self._execute(
            "getting image buffer", lambda: self.engine.pipeline(image_path).to_buffer()
        )

    async def convert_format(
        self, source: ImageSource, convert_options: Union[ConvertOptions, Dict[str, Any]]
    ) -> bytes:
        """
        Re-encode an image to another format.

        Args:
            source: Image bytes or path to an image file
            convert_options: Target format and optional encoder options;
                without encoder options the format defaults are used

        Returns:
            Encoded bytes in the target format
        """

        def run() -> bytes:
            options = ConvertOptions.prepare(convert_options)
            logger.debug(f"convert image to {options.format.value}")
            pipeline = self.engine.pipeline(source).to_format(options.format, options.options)
            return pipeline.to_buffer()

        return await self._execute("converting image", run)

    async def resize_image(self, image: bytes, resize_options: OptionsInput = None) -> bytes:
        """
        Resize an image under a fit/position/kernel policy.

        A single dimension preserves the aspect ratio.
        """

        def run() -> bytes:
            options = ResizeOptions.prepare(resize_options)
            return self.engine.pipeline(image).resize(options).to_buffer()

        return await self._execute("resizing image", run)

    async def crop_image(
        self, image: bytes, crop_region: Union[CropRegion, Dict[str, int]]
    ) -> bytes:
        """Extract a rectangle; a rectangle outside the image bounds fails."""

        def run() -> bytes:
            region = CropRegion.prepare(crop_region)
            return self.engine.pipeline(image).extract(region).to_buffer()

        return await self._execute("cropping image", run)

    async def rotate_image(self, image: bytes, rotate_options: OptionsInput = None) -> bytes:
        """Rotate clockwise by an angle, or auto-orient from EXIF without one."""

        def run() -> bytes:
            options = RotateOptions.prepare(rotate_options)
            pipeline = self.engine.pipeline(image).rotate(options.angle, options.background)
            return pipeline.to_buffer()

        return await self._execute("rotating image", run)

    async def vertical_flip_image(self, image: bytes) -> bytes:
        return await self._execute(
            "flipping image vertical", lambda: self.engine.pipeline(image).flip().to_buffer()
        )

    async def horizontal_flip_image(self, image: bytes) -> bytes:
        return await self._execute(
            "flipping image horizontal", lambda: self.engine.pipeline(image).flop().to_buffer()
        )

    async def set_image_effects(self, image: bytes, effects_options: OptionsInput = None) -> bytes:
        """
        Apply tonal effects.

        A nonzero threshold runs first as its own pass and its output becomes
        the working buffer. The main chain then applies median, blur, negate,
        grayscale, modulate and tint, in that order.
        """

        def run() -> bytes:
            options = EffectsOptions.prepare(effects_options)
            working = image

            if options.threshold:
                working = (
                    self.engine.pipeline(working)
                    .threshold(options.threshold, options.threshold_grayscale)
                    .to_buffer()
                )

            return (
                self.engine.pipeline(working)
                .median(options.median)
                .blur(options.blur)
                .negate(options.negate)
                .grayscale(options.grayscale)
                .modulate(
                    brightness=options.brightness,
                    saturation=options.saturation,
                    hue=options.hue,
                    lightness=options.lightness,
                )
                .tint(options.tint)
                .to_buffer()
            )

        return await self._execute("applying image effects", run)

    async def trim_image(
        self, image: bytes, trim_options: Union[TrimOptions, Dict[str, Any], float, None] = None
    ) -> bytes:
        """
        Remove uniform borders.

        Args:
            image: Image bytes
            trim_options: TrimOptions, or just the threshold level;
                a missing or zero level falls back to 10
        """

        def run() -> bytes:
            if trim_options is None or isinstance(trim_options, (int, float)):
                options = TrimOptions(
                    threshold=trim_options or ProcessingConstants.DEFAULT_TRIM_THRESHOLD
                )
            else:
                options = TrimOptions.prepare(trim_options)
            pipeline = self.engine.pipeline(image).trim(options.threshold, options.background)
            return pipeline.to_buffer()

        return await self._execute("trimming image", run)

    async def set_transparency_background_color(
        self, image: bytes, background: Union[Color, FlattenOptions, Dict[str, Any]]
    ) -> bytes:
        """Replace alpha transparency with a solid background color."""

        def run() -> bytes:
            if isinstance(background, FlattenOptions):
                color = background.background
            elif isinstance(background, dict) and "background" in background:
                color = FlattenOptions.prepare(background).background
            else:
                color = FlattenOptions(background=background).background
            return self.engine.pipeline(image).flatten(color).to_buffer()

        return await self._execute("setting transparency background color", run)

    async def compose_images(
        self, image1: bytes, image2: bytes, composite_options: OptionsInput = None
    ) -> bytes:
        """
        Composite ``image2`` over ``image1``.

        ``image1`` is normalized to PNG and resized (centred) to the
        dimensions of ``image2`` before the overlay, so the result always
        has ``image2``'s size. The caller's options are not modified.

        Returns:
            PNG bytes
        """

        def run() -> bytes:
            options = CompositeOptions.prepare(composite_options)

            base = (
                self.engine.pipeline(image1)
                .to_format(ProcessingConstants.COMPOSE_INTERMEDIATE_FORMAT)
                .to_buffer()
            )

            overlay_metadata = self.engine.metadata(image2)

            base = (
                self.engine.pipeline(base)
                .resize(
                    ResizeOptions(
                        width=overlay_metadata.width,
                        height=overlay_metadata.height,
                        position="centre",
                    )
                )
                .to_buffer()
            )

            overlay = options.model_copy(update={"input": image2})

            return self.engine.pipeline(base).composite([overlay]).to_buffer()

        return await self._execute("composing images", run)
