"""
Codec engine - decode, transform and encode images.

The engine is an explicitly constructed handle. It keeps no results
between calls: every metadata, stats or pipeline call decodes its input
from scratch, so repeated calls always reflect the exact bytes given.

Pipelines are lazy and single-use. Steps are recorded by the chainable
methods and run only when ``to_buffer`` or ``to_file`` is called.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image

from core.constants import CodecConstants, ProcessingConstants
from core.enums import ImageFormat
from core.image import analysis, compositing, converters, processors
from core.image.converters import ImageSource
from schemas import (
    CompositeOptions,
    CropRegion,
    EncoderOptions,
    ImageMetadata,
    ImageStats,
    ResizeOptions,
    StoredImage,
    color_to_rgba,
)
from schemas.base import Color

logger = logging.getLogger(__name__)

Step = Callable[[Image.Image], Image.Image]


class PipelineError(RuntimeError):
    """Raised when a pipeline is misused (e.g. executed twice)."""


class Pipeline:
    """
    Single-use chain of operations bound to one source.

    Example:
        >>> data = engine.pipeline(buffer).resize(ResizeOptions(width=100)).to_buffer()
    """

    def __init__(self, engine: "CodecEngine", source: ImageSource):
        self._engine = engine
        self._source = source
        self._steps: List[Tuple[str, Step]] = []
        self._format: Optional[ImageFormat] = None
        self._encoder_options: Dict[str, Any] = {}
        self._executed = False

    def _add(self, name: str, step: Step) -> "Pipeline":
        if self._executed:
            raise PipelineError("Pipeline has already been executed")
        self._steps.append((name, step))
        return self

    # === Output format ===

    def to_format(
        self, fmt: ImageFormat, options: Optional[Union[EncoderOptions, Dict[str, Any]]] = None
    ) -> "Pipeline":
        """
        Set the output format.

        Only encoder options that were explicitly set are applied.
        """
        self._format = ImageFormat(fmt)
        if isinstance(options, EncoderOptions):
            options = options.model_dump(exclude_unset=True, exclude_none=True)
        self._encoder_options = dict(options or {})
        return self

    def png(self) -> "Pipeline":
        return self.to_format(ImageFormat.PNG)

    # === Geometry ===

    def resize(self, options: ResizeOptions) -> "Pipeline":
        background = color_to_rgba(options.background, ProcessingConstants.DEFAULT_BACKGROUND)
        return self._add(
            "resize",
            lambda image: processors.resize(
                image,
                width=options.width,
                height=options.height,
                fit=options.fit,
                position=options.position,
                background=background,
                kernel=options.kernel,
                without_enlargement=options.without_enlargement,
                without_reduction=options.without_reduction,
            ),
        )

    def extract(self, region: CropRegion) -> "Pipeline":
        return self._add(
            "extract",
            lambda image: processors.extract(
                image, region.left, region.top, region.width, region.height
            ),
        )

    def rotate(
        self, angle: Optional[float] = None, background: Optional[Color] = None
    ) -> "Pipeline":
        if angle is None:
            return self._add("auto-orient", processors.auto_orient)
        fill = color_to_rgba(background, ProcessingConstants.DEFAULT_BACKGROUND)
        return self._add("rotate", lambda image: processors.rotate(image, angle, fill))

    def flip(self) -> "Pipeline":
        return self._add("flip", processors.flip)

    def flop(self) -> "Pipeline":
        return self._add("flop", processors.flop)

    def trim(self, threshold: float, background: Optional[Color] = None) -> "Pipeline":
        reference = color_to_rgba(background, None)
        return self._add("trim", lambda image: processors.trim(image, threshold, reference))

    # === Tonal ===

    def threshold(self, level: int, grayscale: bool = False) -> "Pipeline":
        return self._add("threshold", lambda image: processors.threshold(image, level, grayscale))

    def median(self, size: int = ProcessingConstants.DEFAULT_MEDIAN) -> "Pipeline":
        return self._add("median", lambda image: processors.median(image, size))

    def blur(self, sigma: float = ProcessingConstants.DEFAULT_BLUR_SIGMA) -> "Pipeline":
        if sigma < ProcessingConstants.MIN_BLUR_SIGMA:
            raise ValueError(
                f"Blur sigma must be at least {ProcessingConstants.MIN_BLUR_SIGMA}, got {sigma}"
            )
        return self._add("blur", lambda image: processors.blur(image, sigma))

    def negate(self, enabled: bool = True) -> "Pipeline":
        return self._add("negate", processors.negate) if enabled else self

    def grayscale(self, enabled: bool = True) -> "Pipeline":
        return self._add("grayscale", processors.grayscale) if enabled else self

    def modulate(
        self,
        brightness: float = ProcessingConstants.DEFAULT_BRIGHTNESS,
        saturation: float = ProcessingConstants.DEFAULT_SATURATION,
        hue: float = ProcessingConstants.DEFAULT_HUE,
        lightness: float = ProcessingConstants.DEFAULT_LIGHTNESS,
    ) -> "Pipeline":
        return self._add(
            "modulate",
            lambda image: processors.modulate(image, brightness, saturation, hue, lightness),
        )

    def tint(self, color: Optional[Color]) -> "Pipeline":
        if color is None:
            return self
        rgba = color_to_rgba(color, ProcessingConstants.DEFAULT_BACKGROUND)
        return self._add("tint", lambda image: processors.tint(image, rgba))

    def flatten(self, background: Color) -> "Pipeline":
        rgba = color_to_rgba(background, ProcessingConstants.DEFAULT_BACKGROUND)
        return self._add("flatten", lambda image: processors.flatten(image, rgba))

    # === Compositing ===

    def composite(self, overlays: Sequence[CompositeOptions]) -> "Pipeline":
        """Composite each overlay in order; every option record needs ``input``."""

        def step(image: Image.Image) -> Image.Image:
            for options in overlays:
                if options.input is None:
                    raise ValueError("Composite overlay has no input")
                overlay = self._engine.decode(options.input)
                image = compositing.composite(
                    image,
                    overlay,
                    mode=options.blend,
                    gravity=options.gravity,
                    top=options.top,
                    left=options.left,
                    tile=options.tile,
                )
            return image

        return self._add("composite", step)

    # === Execution ===

    def _execute(self) -> Tuple[Image.Image, ImageFormat]:
        if self._executed:
            raise PipelineError("Pipeline has already been executed")
        self._executed = True

        image = self._engine.decode(self._source)
        input_format = converters.format_of(image) or ImageFormat.PNG

        # pixel steps work on 8-bit samples
        if self._steps:
            image = converters.narrow_depth(image)

        for name, step in self._steps:
            logger.debug(f"Pipeline step: {name}")
            image = step(image)

        output_format = self._format or ImageFormat.INPUT
        if output_format == ImageFormat.INPUT:
            output_format = input_format
        return image, output_format.canonical

    def to_buffer(self) -> bytes:
        """Run the pipeline and return encoded bytes."""
        image, fmt = self._execute()
        return converters.encode(image, fmt, self._encoder_options)

    def to_file(self, path: Union[str, Path]) -> StoredImage:
        """
        Run the pipeline and write the result to ``path``.

        The format follows the file extension, falling back to the output or
        input format. An existing file is never overwritten.

        Raises:
            FileExistsError: If ``path`` already exists
        """
        extension = os.path.splitext(str(path))[1].lower()
        by_extension = CodecConstants.EXTENSION_FORMATS.get(extension)
        if by_extension is not None and self._format in (None, ImageFormat.INPUT):
            self._format = by_extension

        image, fmt = self._execute()
        data = converters.encode(image, fmt, self._encoder_options)

        with open(path, "xb") as f:
            f.write(data)

        return StoredImage(
            path=str(path),
            format=fmt.value,
            size=len(data),
            width=image.width,
            height=image.height,
            channels=len(image.getbands()),
        )


class CodecEngine:
    """
    Stateless image codec handle.

    Constructed once and shared. ``cache_enabled`` is always False: the
    engine never memoizes decoded images, metadata or results.
    """

    cache_enabled = False

    def decode(self, source: ImageSource) -> Image.Image:
        """Decode a buffer or file path into a loaded PIL Image."""
        return converters.decode(converters.read_source(source))

    def metadata(self, source: ImageSource) -> ImageMetadata:
        """Decode header facts of an image."""
        data = converters.read_source(source)
        return analysis.read_metadata(converters.decode(data), len(data))

    def stats(self, source: ImageSource) -> ImageStats:
        """Compute per-channel pixel statistics."""
        return analysis.compute_stats(self.decode(source))

    def pipeline(self, source: ImageSource) -> Pipeline:
        """Start a new single-use pipeline bound to ``source``."""
        return Pipeline(self, source)
