"""stamper - overlay short Latin/Hangul text annotations onto raster images."""

from stamper.pipeline import OverlayPipeline, create_pipeline

__version__ = "0.1.0"

__all__ = [
    "OverlayPipeline",
    "create_pipeline",
    "__version__",
]
