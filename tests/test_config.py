from __future__ import annotations

import pytest

from stamper.config import AppConfig, RenderConfig, get_config, reset_config


def test_get_config_is_cached_until_reset() -> None:
    first = get_config()
    assert get_config() is first

    reset_config()
    assert get_config() is not first


def test_render_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAMPER_RENDER_JPEG_QUALITY", "75")
    assert RenderConfig().jpeg_quality == 75


def test_nested_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAMPER_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("STAMPER_RENDER__THUMBNAIL_SIZE", "96")

    config = AppConfig()

    assert config.log_level == "DEBUG"
    assert config.render.thumbnail_size == 96


def test_mode_presets() -> None:
    config = RenderConfig()
    light, quality = config.lightweight, config.quality

    assert (light.estimator, light.padding, light.preview_format) == ("precise", 4, "JPEG")
    assert light.fallback_char_limit is None and not light.scale_overlay
    assert (quality.estimator, quality.padding, quality.hangul_padding) == ("coarse", 16, 20)
    assert (quality.max_preview_size, quality.preview_format) == (800, "PNG")
    assert quality.fallback_char_limit == 20 and quality.scale_overlay


def test_ensure_directories(tmp_path) -> None:
    config = AppConfig(output_dir=tmp_path / "stamped" / "today")
    config.ensure_directories()
    assert config.output_dir.is_dir()


def test_only_quality_mode_tints_fallback_blocks() -> None:
    config = RenderConfig()
    assert config.lightweight.fallback_fill is None
    assert config.quality.fallback_fill == (255, 200, 200)
