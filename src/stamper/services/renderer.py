"""Renderer Service for drawing the overlay.

Handles:
- Strategy selection (real glyphs vs. synthetic blocks)
- The translucent background plate
- Glyph rendering with a resolved typeface
- Synthetic block rendering when no typeface loads
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger
from PIL import Image, ImageDraw

from stamper.config import ModeConfig, RenderConfig, get_config
from stamper.domain.errors import FontUnavailableError
from stamper.domain.models import SafeOrigin, TextBox
from stamper.services.fonts import FontResolver, GlyphSource
from stamper.services.metrics import CharClass, classify_char

# Fallback block colors by character class.
BLOCK_COLORS: dict[CharClass, tuple[int, int, int]] = {
    CharClass.LATIN: (220, 0, 0),
    CharClass.DIGIT: (200, 50, 50),
    CharClass.HANGUL_SYLLABLE: (180, 0, 30),
    CharClass.HANGUL_CONSONANT: (170, 10, 40),
    CharClass.HANGUL_VOWEL: (175, 5, 35),
    CharClass.HANGUL_EXTENDED: (172, 8, 37),
    CharClass.PUNCTUATION: (255, 50, 50),
    CharClass.OTHER: (160, 20, 20),
}

BLOCK_HEIGHT_FACTOR = 0.8


@dataclass(frozen=True)
class GlyphStrategy:
    """Render with a resolved typeface."""

    source: GlyphSource


@dataclass(frozen=True)
class BlockStrategy:
    """Render synthetic blocks; ``reason`` says why no typeface was used."""

    reason: str


RenderStrategy = GlyphStrategy | BlockStrategy


@dataclass(frozen=True)
class OverlayLayout:
    """Everything the renderer needs, computed before any pixel is touched."""

    text: str
    font_size: float
    origin: SafeOrigin
    box: TextBox
    advances: list[float] = field(default_factory=list)


class Renderer:
    """Draws overlays onto canvases in place."""

    def __init__(
        self,
        config: RenderConfig | None = None,
        resolver: FontResolver | None = None,
    ):
        """Initialize the renderer.

        Args:
            config: Render configuration
            resolver: Font resolver (built from the font config if not provided)
        """
        self.config = config or get_config().render
        self.resolver = resolver or FontResolver.from_config()

    def choose_strategy(self, font_size: float) -> RenderStrategy:
        """Resolve a typeface, or pick the synthetic path if none loads."""
        try:
            return GlyphStrategy(self.resolver.resolve(font_size))
        except FontUnavailableError as e:
            logger.warning(f"Font rendering unavailable, using block fallback: {e}")
            return BlockStrategy(reason=str(e))

    def render(
        self,
        canvas: Image.Image,
        layout: OverlayLayout,
        mode: ModeConfig,
        strategy: RenderStrategy | None = None,
    ) -> RenderStrategy:
        """Draw the plate and the text onto ``canvas``.

        Args:
            canvas: RGB or RGBA image, mutated in place
            layout: Precomputed text, size, origin and box
            mode: Pipeline mode (plate padding/alpha, fallback policy)
            strategy: Strategy to use (chosen via ``choose_strategy`` if omitted)

        Returns:
            The strategy that was used
        """
        if strategy is None:
            strategy = self.choose_strategy(layout.font_size)

        layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)

        self._draw_plate(draw, layout, mode)
        if isinstance(strategy, GlyphStrategy):
            self._draw_glyphs(draw, layout, strategy.source)
        else:
            self._draw_blocks(draw, layout, mode)

        if canvas.mode == "RGBA":
            canvas.alpha_composite(layer)
        else:
            canvas.paste(layer, (0, 0), layer)

        logger.debug(
            f"Rendered {len(layout.text)} chars at ({layout.origin.x}, {layout.origin.y}) "
            f"via {type(strategy).__name__}"
        )
        return strategy

    def _draw_plate(
        self, draw: ImageDraw.ImageDraw, layout: OverlayLayout, mode: ModeConfig
    ) -> None:
        pad = mode.plate_padding
        x, y = layout.origin.x, layout.origin.y
        x2 = x + layout.box.width + pad - 1
        y2 = y + layout.box.height + pad - 1
        if x2 < x - pad or y2 < y - pad:
            return
        draw.rectangle(
            [x - pad, y - pad, x2, y2],
            fill=(*self.config.plate_color, mode.plate_alpha),
        )

    def _draw_glyphs(
        self, draw: ImageDraw.ImageDraw, layout: OverlayLayout, source: GlyphSource
    ) -> None:
        draw.text(
            (layout.origin.x, layout.origin.y),
            layout.text,
            fill=(*self.config.text_color, 255),
            font=source.font,
        )

    def _draw_blocks(
        self, draw: ImageDraw.ImageDraw, layout: OverlayLayout, mode: ModeConfig
    ) -> None:
        """Approximate the text with one solid block per character.

        Blocks advance by the estimator's per-character widths and stop at
        the right edge of the estimated box. Spaces advance without a block.
        When the mode sets ``fallback_fill`` the box is tinted first.
        """
        chars = layout.text
        advances = layout.advances
        if mode.fallback_char_limit is not None:
            chars = chars[: mode.fallback_char_limit]
            advances = advances[: mode.fallback_char_limit]

        x0, y0 = layout.origin.x, layout.origin.y
        right_edge = x0 + layout.box.width
        block_height = max(1, int(layout.font_size * BLOCK_HEIGHT_FACTOR))
        block_y = y0 + max(0, (layout.box.height - block_height) // 2)

        if mode.fallback_fill is not None and layout.box.width > 0 and layout.box.height > 0:
            draw.rectangle(
                [x0, y0, x0 + layout.box.width - 1, y0 + layout.box.height - 1],
                fill=(*mode.fallback_fill, 255),
            )

        cursor = float(x0)
        for ch, advance in zip(chars, advances):
            step = int(advance)
            if int(cursor) + step > right_edge:
                break

            char_class = classify_char(ch)
            if char_class is not CharClass.SPACE:
                block_width = max(1, step - mode.block_gap)
                left = int(cursor)
                draw.rectangle(
                    [left, block_y, left + block_width - 1, block_y + block_height - 1],
                    fill=(*BLOCK_COLORS[char_class], 255),
                )
            cursor += advance
