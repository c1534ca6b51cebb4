"""Configuration management using pydantic-settings.

All magic numbers and thresholds are centralized here.
Configuration can be loaded from environment variables or .env files.
"""

import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


OSFamily = Literal["macos", "windows", "linux"]


def _default_font_candidates() -> dict[str, list[str]]:
    # Hangul-capable faces first, generic Latin faces last.
    return {
        "macos": [
            "/System/Library/Fonts/Supplemental/AppleSDGothicNeo.ttc",
            "/System/Library/Fonts/AppleSDGothicNeo.ttc",
            "/Library/Fonts/AppleSDGothicNeo.ttc",
            "/System/Library/Fonts/AppleGothic.ttf",
            "/Library/Fonts/AppleGothic.ttf",
            "/System/Library/Fonts/Helvetica.ttc",
            "/System/Library/Fonts/ArialUnicodeMS.ttf",
            "/System/Library/Fonts/PingFang.ttc",
            "/System/Library/Fonts/Arial.ttf",
            "/Library/Fonts/Arial.ttf",
        ],
        "windows": [
            "C:/Windows/Fonts/malgun.ttf",
            "C:/Windows/Fonts/batang.ttc",
            "C:/Windows/Fonts/gulim.ttc",
            "C:/Windows/Fonts/arial.ttf",
        ],
        "linux": [
            "/usr/share/fonts/truetype/nanum/NanumGothic.ttf",
            "/usr/share/fonts/truetype/nanum/NanumBarunGothic.ttf",
            "/usr/share/fonts/truetype/noto/NotoSansCJK-Regular.ttc",
            "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/TTF/DejaVuSans.ttf",
        ],
    }


def current_os_family() -> OSFamily:
    """Map ``sys.platform`` onto one of the configured font families."""
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("win"):
        return "windows"
    return "linux"


class FontConfig(BaseSettings):
    """Configuration for typeface resolution."""

    model_config = SettingsConfigDict(env_prefix="STAMPER_FONT_")

    font_path: str | None = Field(
        default=None,
        description="Path to a custom font file, tried before the candidates",
    )
    candidates: dict[str, list[str]] = Field(
        default_factory=_default_font_candidates,
        description="Ordered candidate font paths per OS family",
    )

    def candidate_paths(self, family: OSFamily | None = None) -> list[str]:
        """Return every candidate path in resolution order.

        The custom ``font_path`` comes first, then the current OS family's
        list, then the remaining families.

        Args:
            family: OS family to prioritise (detected when omitted)

        Returns:
            Ordered list of absolute font paths
        """
        family = family or current_os_family()
        paths: list[str] = []
        if self.font_path:
            paths.append(self.font_path)
        paths.extend(self.candidates.get(family, []))
        for other, other_paths in self.candidates.items():
            if other != family:
                paths.extend(other_paths)
        return paths


class ModeConfig(BaseModel):
    """Metric, padding, resampling and codec policy for one pipeline mode."""

    estimator: Literal["coarse", "precise"] = Field(
        default="precise",
        description="Text width estimator used for clamping and the plate",
    )
    padding: int = Field(
        default=4,
        ge=0,
        description="Clamp padding between the text box and the canvas edge",
    )
    hangul_padding: int = Field(
        default=4,
        ge=0,
        description="Clamp padding used when the text contains a Hangul syllable",
    )
    plate_padding: int = Field(
        default=2,
        ge=0,
        description="Margin of the background plate around the text box",
    )
    plate_alpha: int = Field(
        default=245,
        ge=0,
        le=255,
        description="Opacity of the background plate",
    )
    max_preview_size: int = Field(
        default=600,
        ge=16,
        description="Longest preview edge before the preview is downscaled",
    )
    resample: Literal["lanczos", "bilinear"] = Field(
        default="bilinear",
        description="Resampling filter used to downscale previews",
    )
    preview_format: Literal["PNG", "JPEG"] = Field(
        default="JPEG",
        description="Encoding of preview data URIs",
    )
    scale_overlay: bool = Field(
        default=False,
        description="Downscale before drawing, scaling anchor and font size",
    )
    fallback_char_limit: int | None = Field(
        default=None,
        ge=1,
        description="Maximum characters drawn as synthetic blocks",
    )
    block_gap: int = Field(
        default=0,
        ge=0,
        description="Pixels left empty between synthetic blocks",
    )
    fallback_fill: tuple[int, int, int] | None = Field(
        default=None,
        description="Tint filling the text box under synthetic blocks",
    )


def _lightweight_mode() -> ModeConfig:
    return ModeConfig()


def _quality_mode() -> ModeConfig:
    return ModeConfig(
        estimator="coarse",
        padding=16,
        hangul_padding=20,
        plate_padding=8,
        plate_alpha=220,
        max_preview_size=800,
        resample="lanczos",
        preview_format="PNG",
        scale_overlay=True,
        fallback_char_limit=20,
        block_gap=2,
        fallback_fill=(255, 200, 200),
    )


class RenderConfig(BaseSettings):
    """Configuration for rendering and encoding."""

    model_config = SettingsConfigDict(env_prefix="STAMPER_RENDER_")

    text_color: tuple[int, int, int] = Field(
        default=(255, 0, 0),
        description="Accent color of the overlay text as RGB tuple",
    )
    plate_color: tuple[int, int, int] = Field(
        default=(255, 255, 255),
        description="Background plate color as RGB tuple",
    )
    min_render_font_size: float = Field(
        default=10.0,
        gt=0.0,
        description="Smallest font size actually drawn",
    )
    max_font_size: float = Field(
        default=200.0,
        gt=0.0,
        description="Largest accepted font size",
    )
    jpeg_quality: int = Field(
        default=90,
        ge=1,
        le=100,
        description="Quality for JPEG files written to disk",
    )
    thumbnail_size: int = Field(
        default=150,
        ge=16,
        description="Edge length of gallery thumbnails",
    )
    placeholder_fill: tuple[int, int, int] = Field(
        default=(200, 200, 200),
        description="Fill color of the placeholder thumbnail",
    )
    placeholder_cross: tuple[int, int, int] = Field(
        default=(100, 100, 100),
        description="Color of the placeholder thumbnail's diagonal cross",
    )
    corrupt_placeholder_size: tuple[int, int] = Field(
        default=(400, 300),
        description="Dimensions reported for a corrupt JPEG",
    )
    lightweight: ModeConfig = Field(default_factory=_lightweight_mode)
    quality: ModeConfig = Field(default_factory=_quality_mode)


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STAMPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    output_dir: Path = Field(
        default=Path("output"),
        description="Default directory for stamped images",
    )

    # Nested configurations
    font: FontConfig = Field(default_factory=FontConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)

    def ensure_directories(self) -> None:
        """Create the output directory if it doesn't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance.

    Returns:
        AppConfig instance (creates one if not exists)
    """
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
