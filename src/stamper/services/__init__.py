"""Services for the text overlay engine."""

from stamper.services.discovery import list_images
from stamper.services.fonts import FontResolver, GlyphSource
from stamper.services.metrics import TextMetricsEstimator
from stamper.services.renderer import (
    BlockStrategy,
    GlyphStrategy,
    OverlayLayout,
    Renderer,
    RenderStrategy,
)

__all__ = [
    "list_images",
    "FontResolver",
    "GlyphSource",
    "TextMetricsEstimator",
    "BlockStrategy",
    "GlyphStrategy",
    "OverlayLayout",
    "Renderer",
    "RenderStrategy",
]
