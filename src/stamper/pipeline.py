"""Overlay Pipeline.

Orchestrates the flow:
1. Validate the request (text, font size, position)
2. Decode the source image
3. Estimate the text box and solve the safe origin
4. Render (real glyphs or synthetic blocks)
5. Encode (file, preview data URI, or thumbnail)

The lightweight and quality paths share this code; they differ only in the
``ModeConfig`` passed through it.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from PIL import Image, ImageOps

from stamper.config import AppConfig, ModeConfig, get_config
from stamper.domain.errors import (
    CorruptSourceError,
    DecodeFailureError,
    InvalidInputError,
    IOFailureError,
    OverlayError,
    UnsupportedFormatError,
)
from stamper.domain.models import (
    BatchItem,
    BatchReport,
    ImageDimensions,
    OverlayRequest,
    OverlayResult,
)
from stamper.services.codec import (
    RESAMPLE_FILTERS,
    decode_image,
    downscale,
    encode_image,
    format_for_path,
    placeholder_thumbnail,
    save_image,
    to_data_uri,
)
from stamper.services.discovery import list_images
from stamper.services.fonts import FontResolver
from stamper.services.layout import (
    anchor_from_edges,
    padding_for,
    scale_font_size,
    solve_position,
)
from stamper.services.metrics import TextMetricsEstimator
from stamper.services.renderer import OverlayLayout, Renderer, RenderStrategy

DEFAULT_BATCH_FONT_SIZE = 20.0
DEFAULT_EDGE_PERCENT = 10.0


class OverlayPipeline:
    """Text overlay pipeline.

    Every call decodes, renders and encodes independently; the pipeline
    holds configuration only, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        renderer: Renderer | None = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Application configuration
            renderer: Renderer service (creates with config if not provided)
        """
        self.config = config or get_config()
        self.renderer = renderer or Renderer(
            self.config.render, FontResolver.from_config(self.config.font)
        )

    @property
    def lightweight_mode(self) -> ModeConfig:
        return self.config.render.lightweight

    @property
    def quality_mode(self) -> ModeConfig:
        return self.config.render.quality

    def render_font_size(self, font_size: float) -> float:
        """Font size actually drawn: the request clamped to the render range."""
        render = self.config.render
        return max(render.min_render_font_size, min(font_size, render.max_font_size))

    def compose(
        self, canvas: Image.Image, request: OverlayRequest, mode: ModeConfig
    ) -> RenderStrategy:
        """Draw ``request`` onto ``canvas`` in place.

        Args:
            canvas: Decoded RGB/RGBA canvas
            request: Validated overlay request
            mode: Metric, padding and fallback policy

        Returns:
            The render strategy that was used

        Raises:
            InvalidInputError: if the canvas has no pixels
        """
        width, height = canvas.size
        if width == 0 or height == 0:
            raise InvalidInputError("Image dimensions are invalid")

        font_size = self.render_font_size(request.font_size)
        estimator = TextMetricsEstimator(mode.estimator)
        box = estimator.estimate(request.text, font_size)
        padding = padding_for(request.text, mode)
        origin = solve_position(
            request.anchor_x, request.anchor_y, box, width, height, padding
        )
        logger.debug(
            f"Text box {box.width}x{box.height}, padding {padding}, "
            f"origin ({origin.x}, {origin.y})"
        )

        layout = OverlayLayout(
            text=request.text,
            font_size=font_size,
            origin=origin,
            box=box,
            advances=estimator.advances(request.text, font_size),
        )
        return self.renderer.render(canvas, layout, mode)

    def overlay_and_save(
        self,
        source_path: str | Path,
        destination_dir: str | Path,
        text: str,
        font_size: float,
        x: float,
        y: float,
    ) -> OverlayResult:
        """Stamp ``text`` onto a copy of ``source_path`` in ``destination_dir``.

        The output keeps the source's file name and format; JPEG output is
        written at the configured quality. Never raises for overlay errors.

        Returns:
            OverlayResult with success/failure status
        """
        source_path = Path(source_path)
        try:
            request = OverlayRequest.create(text, font_size, x, y)
            canvas = decode_image(source_path)
            fmt = format_for_path(source_path)

            self.compose(canvas, request, self.lightweight_mode)

            output_path = Path(destination_dir) / source_path.name
            quality = self.config.render.jpeg_quality if fmt == "JPEG" else None
            save_image(canvas, output_path, fmt, quality)
        except CorruptSourceError as e:
            logger.warning(f"Skipping corrupted JPEG: {source_path}")
            return OverlayResult.fail(e)
        except OverlayError as e:
            logger.error(f"Failed to process {source_path.name}: {e}")
            return OverlayResult.fail(e)

        logger.info(f"Saved {output_path}")
        return OverlayResult.ok(output_path)

    def preview(
        self, path: str | Path, text: str, font_size: float, x: float, y: float
    ) -> str:
        """Full-quality preview as a PNG data URI."""
        return self._preview(path, text, font_size, x, y, self.quality_mode)

    def preview_lightweight(
        self, path: str | Path, text: str, font_size: float, x: float, y: float
    ) -> str:
        """Fast preview as a JPEG data URI, rendered exactly like the saved file."""
        return self._preview(path, text, font_size, x, y, self.lightweight_mode)

    def _preview(
        self,
        path: str | Path,
        text: str,
        font_size: float,
        x: float,
        y: float,
        mode: ModeConfig,
    ) -> str:
        request = OverlayRequest.create(text, font_size, x, y)
        canvas = decode_image(path)

        if mode.scale_overlay:
            # Downscale first, then draw with proportionally scaled geometry
            canvas, factor = downscale(canvas, mode.max_preview_size, mode.resample)
            if factor != 1.0:
                request = request.scaled(factor)
            self.compose(canvas, request, mode)
        else:
            self.compose(canvas, request, mode)
            canvas, factor = downscale(canvas, mode.max_preview_size, mode.resample)

        if factor != 1.0:
            logger.debug(f"Preview downscaled by {factor:.3f} to {canvas.width}x{canvas.height}")
        data = encode_image(canvas, mode.preview_format)
        return to_data_uri(data, mode.preview_format)

    def thumbnail(self, path: str | Path) -> str:
        """Gallery thumbnail as a PNG data URI.

        Files that fail to decode get the placeholder instead of an error.

        Raises:
            IOFailureError: if the file does not exist
        """
        path = Path(path)
        render = self.config.render
        if not path.exists():
            raise IOFailureError(f"Image file does not exist: {path}")

        try:
            canvas = decode_image(path)
            thumb = ImageOps.contain(
                canvas,
                (render.thumbnail_size, render.thumbnail_size),
                RESAMPLE_FILTERS["lanczos"],
            )
        except (CorruptSourceError, DecodeFailureError, UnsupportedFormatError) as e:
            logger.warning(f"Thumbnail placeholder for {path.name}: {e}")
            thumb = placeholder_thumbnail(
                render.thumbnail_size, render.placeholder_fill, render.placeholder_cross
            )

        return to_data_uri(encode_image(thumb, "PNG"), "PNG")

    def get_dimensions(self, path: str | Path) -> ImageDimensions:
        """Natural pixel size of an image.

        A corrupt JPEG reports the configured placeholder size.

        Raises:
            IOFailureError: if the file does not exist
            OverlayError: for any other decode failure
        """
        path = Path(path)
        if not path.exists():
            raise IOFailureError(f"Image file does not exist: {path}")

        try:
            canvas = decode_image(path)
        except CorruptSourceError:
            width, height = self.config.render.corrupt_placeholder_size
            logger.warning(f"Corrupted JPEG, reporting {width}x{height}: {path}")
            return ImageDimensions(width=width, height=height)

        if canvas.width == 0 or canvas.height == 0:
            raise DecodeFailureError(f"Image dimensions are invalid: {path}")
        return ImageDimensions(width=canvas.width, height=canvas.height)

    def list_images(self, folder_path: str | Path) -> list[Path]:
        """Image files directly inside ``folder_path``."""
        return list_images(folder_path)

    def process_folder(
        self,
        source_dir: str | Path,
        destination_dir: str | Path,
        text: str | None = None,
        base_font_size: float = DEFAULT_BATCH_FONT_SIZE,
        right_percent: float = DEFAULT_EDGE_PERCENT,
        bottom_percent: float = DEFAULT_EDGE_PERCENT,
    ) -> BatchReport:
        """Stamp every image in a folder, continuing past failures.

        Font size scales with each image's area; the anchor is placed
        relative to the bottom-right corner.

        Args:
            source_dir: Folder with the source images
            destination_dir: Folder for the output images
            text: Overlay text (each file's stem when omitted)
            base_font_size: Font size for a 400x300 image
            right_percent: Inset of the text's right edge, in percent of width
            bottom_percent: Inset of the text's bottom edge, in percent of height

        Returns:
            BatchReport with one item per image
        """
        images = self.list_images(source_dir)
        report = BatchReport()

        for i, image_path in enumerate(images):
            item_text = text or image_path.stem
            logger.info(f"Processing {i + 1}/{len(images)}: {image_path.name}")

            try:
                dimensions = self.get_dimensions(image_path)
            except OverlayError as e:
                logger.warning(f"Dimensions unavailable for {image_path.name}: {e}")
                width, height = self.config.render.corrupt_placeholder_size
                dimensions = ImageDimensions(width=width, height=height)

            font_size = scale_font_size(dimensions, base_font_size)
            x, y = anchor_from_edges(
                dimensions, right_percent, bottom_percent, font_size, item_text
            )
            result = self.overlay_and_save(
                image_path, destination_dir, item_text, font_size, x, y
            )
            report.items.append(BatchItem(source=image_path, text=item_text, result=result))

        logger.info(
            f"Batch complete: {report.succeeded}/{len(images)} successful, "
            f"{report.skipped} skipped, {report.failed} failed"
        )
        return report


def create_pipeline(
    config: AppConfig | None = None,
    font_candidates: list[str | Path] | None = None,
) -> OverlayPipeline:
    """Factory function to create a pipeline.

    Args:
        config: Application configuration
        font_candidates: Explicit font paths replacing the configured list

    Returns:
        Configured OverlayPipeline instance
    """
    config = config or get_config()
    if font_candidates is None:
        resolver = FontResolver.from_config(config.font)
    else:
        resolver = FontResolver(font_candidates)
    return OverlayPipeline(config=config, renderer=Renderer(config.render, resolver))
