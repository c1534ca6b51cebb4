from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image, ImageFont

from stamper.config import AppConfig, FontConfig, reset_config
from stamper.pipeline import OverlayPipeline
from stamper.services.fonts import FontResolver, GlyphSource
from stamper.services.renderer import Renderer


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(output_dir=tmp_path / "output", font=FontConfig(candidates={}))


@pytest.fixture
def pipeline(config: AppConfig) -> OverlayPipeline:
    # No font candidates: every overlay takes the synthetic block path.
    return OverlayPipeline(config=config, renderer=Renderer(config.render, FontResolver([])))


def fake_loader(path: Path, font_size: float) -> GlyphSource:
    return GlyphSource(path=path, data=b"", font=ImageFont.load_default())


@pytest.fixture
def glyph_resolver() -> FontResolver:
    return FontResolver(["/fonts/fake.ttf"], loader=fake_loader)


def make_image(
    path: Path,
    size: tuple[int, int] = (200, 100),
    color: tuple[int, ...] = (0, 0, 0),
    mode: str = "RGB",
    fmt: str | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


def jpeg_bytes(size: tuple[int, int] = (64, 64)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (10, 120, 200)).save(buffer, format="JPEG")
    return buffer.getvalue()
