from __future__ import annotations

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from conftest import jpeg_bytes, make_image
from stamper.domain.errors import (
    DecodeFailureError,
    ErrorKind,
    InvalidInputError,
    IOFailureError,
)
from stamper.pipeline import OverlayPipeline, create_pipeline


def decode_data_uri(uri: str) -> Image.Image:
    _, payload = uri.split(",", 1)
    return Image.open(io.BytesIO(base64.b64decode(payload)))


def write_corrupt_jpeg(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\xff\xd8 not really a jpeg")
    return path


class TestOverlayAndSave:
    def test_writes_stamped_copy_with_same_name(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "in" / "photo.png", (200, 100))
        dest = tmp_path / "out"

        result = pipeline.overlay_and_save(source, dest, "Hello", 20, 10, 10)

        assert result.success
        assert result.output_path == dest / "photo.png"
        with Image.open(result.output_path) as out:
            assert out.size == (200, 100)
            assert all(channel >= 240 for channel in out.convert("RGB").getpixel((8, 8)))
            assert out.convert("RGB").getpixel((199, 99)) == (0, 0, 0)
        # source untouched
        with Image.open(source) as original:
            assert original.getpixel((8, 8)) == (0, 0, 0)

    def test_creates_nested_destination(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = tmp_path / "shot.jpg"
        source.write_bytes(jpeg_bytes((120, 90)))
        dest = tmp_path / "a" / "b" / "c"

        result = pipeline.overlay_and_save(source, dest, "x", 12, 0, 0)

        assert result.success
        with Image.open(dest / "shot.jpg") as out:
            assert out.format == "JPEG"

    def test_rgba_source_keeps_alpha(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "clear.png", (100, 60), (0, 0, 0, 0), mode="RGBA")

        result = pipeline.overlay_and_save(source, tmp_path / "out", "Hi", 16, 5, 5)

        assert result.success
        with Image.open(result.output_path) as out:
            assert out.mode == "RGBA"
            assert out.getpixel((99, 59))[3] == 0

    def test_hangul_text(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "k.png", (300, 200))
        result = pipeline.overlay_and_save(source, tmp_path / "out", "안녕하세요", 24, 50, 50)
        assert result.success

    @pytest.mark.parametrize("font_size", [0, -3, 250])
    def test_rejects_font_size_out_of_range(
        self, pipeline: OverlayPipeline, tmp_path: Path, font_size: float
    ) -> None:
        source = make_image(tmp_path / "a.png")
        dest = tmp_path / "out"

        result = pipeline.overlay_and_save(source, dest, "Hi", font_size, 0, 0)

        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_INPUT
        assert not (dest / "a.png").exists()

    @pytest.mark.parametrize("text", ["", "\u200b\ufeff"])
    def test_rejects_empty_text(self, pipeline: OverlayPipeline, tmp_path: Path, text: str) -> None:
        source = make_image(tmp_path / "a.png")
        result = pipeline.overlay_and_save(source, tmp_path / "out", text, 20, 0, 0)

        assert result.error_kind == ErrorKind.INVALID_INPUT
        assert result.error == "Text is empty"

    def test_rejects_negative_position(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "a.png")
        result = pipeline.overlay_and_save(source, tmp_path / "out", "Hi", 20, -1, 0)
        assert result.error_kind == ErrorKind.INVALID_INPUT

    def test_validates_before_decoding(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        result = pipeline.overlay_and_save(tmp_path / "missing.png", tmp_path / "out", "", 20, 0, 0)
        assert result.error_kind == ErrorKind.INVALID_INPUT

    def test_missing_source(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        result = pipeline.overlay_and_save(tmp_path / "missing.png", tmp_path / "out", "Hi", 20, 0, 0)
        assert result.error_kind == ErrorKind.IO_FAILURE
        assert not result.skipped

    def test_corrupt_jpeg_is_skipped(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = write_corrupt_jpeg(tmp_path / "broken.jpg")
        dest = tmp_path / "out"

        result = pipeline.overlay_and_save(source, dest, "Hi", 20, 0, 0)

        assert not result.success
        assert result.skipped
        assert result.error_kind == ErrorKind.CORRUPT_SOURCE
        assert not (dest / "broken.jpg").exists()


class TestPreview:
    def test_quality_preview_is_png_and_downscaled(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "big.png", (1600, 1200))

        uri = pipeline.preview(source, "Hello", 40, 100, 100)

        assert uri.startswith("data:image/png;base64,")
        assert decode_data_uri(uri).size == (800, 600)

    def test_lightweight_preview_is_jpeg_and_downscaled(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "big.png", (1200, 900))

        uri = pipeline.preview_lightweight(source, "Hello", 40, 100, 100)

        assert uri.startswith("data:image/jpeg;base64,")
        assert decode_data_uri(uri).size == (600, 450)

    def test_small_image_keeps_size(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "small.png", (300, 200))
        assert decode_data_uri(pipeline.preview(source, "Hi", 20, 0, 0)).size == (300, 200)

    def test_does_not_modify_source(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "a.png", (200, 100))
        before = source.read_bytes()

        pipeline.preview(source, "Hi", 20, 10, 10)
        pipeline.preview_lightweight(source, "Hi", 20, 10, 10)

        assert source.read_bytes() == before

    def test_invalid_input_raises(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "a.png")
        with pytest.raises(InvalidInputError):
            pipeline.preview(source, "Hi", 500, 0, 0)


class TestThumbnail:
    def test_fits_longest_edge(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = make_image(tmp_path / "wide.png", (300, 150))

        uri = pipeline.thumbnail(source)

        assert uri.startswith("data:image/png;base64,")
        assert decode_data_uri(uri).size == (150, 75)

    def test_corrupt_jpeg_gets_placeholder(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = write_corrupt_jpeg(tmp_path / "broken.jpg")

        thumb = decode_data_uri(pipeline.thumbnail(source)).convert("RGB")

        assert thumb.size == (150, 150)
        assert thumb.getpixel((0, 0)) == (100, 100, 100)
        assert thumb.getpixel((10, 0)) == (200, 200, 200)

    def test_empty_file_gets_placeholder(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = tmp_path / "empty.png"
        source.write_bytes(b"")
        assert decode_data_uri(pipeline.thumbnail(source)).size == (150, 150)

    def test_missing_file_raises(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        with pytest.raises(IOFailureError):
            pipeline.thumbnail(tmp_path / "missing.png")


class TestDimensions:
    def test_reports_natural_size(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        dims = pipeline.get_dimensions(make_image(tmp_path / "a.png", (800, 600)))
        assert (dims.width, dims.height) == (800, 600)

    def test_corrupt_jpeg_reports_placeholder_size(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        dims = pipeline.get_dimensions(write_corrupt_jpeg(tmp_path / "broken.jpg"))
        assert (dims.width, dims.height) == (400, 300)

    def test_empty_jpeg_is_a_decode_failure(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        source = tmp_path / "empty.jpg"
        source.write_bytes(b"")
        with pytest.raises(DecodeFailureError):
            pipeline.get_dimensions(source)

    def test_missing_file_raises(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        with pytest.raises(IOFailureError):
            pipeline.get_dimensions(tmp_path / "missing.png")


class TestProcessFolder:
    def test_continues_past_corrupt_files(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        folder = tmp_path / "in"
        make_image(folder / "a.png", (400, 300))
        (folder / "b.jpg").write_bytes(jpeg_bytes((64, 64)))
        write_corrupt_jpeg(folder / "c.jpg")
        (folder / "notes.txt").write_text("ignore me")
        dest = tmp_path / "out"

        report = pipeline.process_folder(folder, dest)

        assert (report.succeeded, report.skipped, report.failed) == (2, 1, 0)
        assert [item.text for item in report.items] == ["a", "b", "c"]
        assert sorted(p.name for p in dest.iterdir()) == ["a.png", "b.jpg"]

    def test_explicit_text_is_used_for_every_file(self, pipeline: OverlayPipeline, tmp_path: Path) -> None:
        folder = tmp_path / "in"
        make_image(folder / "a.png", (400, 300))
        make_image(folder / "b.png", (800, 600))

        report = pipeline.process_folder(folder, tmp_path / "out", text="SAMPLE")

        assert {item.text for item in report.items} == {"SAMPLE"}
        assert report.succeeded == 2


def test_create_pipeline_with_explicit_fonts(config, tmp_path: Path) -> None:
    pipeline = create_pipeline(config, font_candidates=[tmp_path / "nope.ttf"])
    source = make_image(tmp_path / "a.png")

    assert pipeline.overlay_and_save(source, tmp_path / "out", "Hi", 20, 0, 0).success


def test_render_font_size_is_clamped(pipeline: OverlayPipeline) -> None:
    assert pipeline.render_font_size(4) == 10
    assert pipeline.render_font_size(48) == 48
    assert pipeline.render_font_size(200) == 200
