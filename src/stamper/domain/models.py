"""Domain models for the text overlay engine.

Coordinates are absolute pixels on the decoded canvas.
"""

from __future__ import annotations

import math
import re
import unicodedata
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from stamper.domain.errors import ErrorKind, InvalidInputError, OverlayError

MAX_FONT_SIZE = 200.0

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")


def normalize_text(text: str) -> str:
    """Compose separated jamo into syllables and drop zero-width characters."""
    return _ZERO_WIDTH.sub("", unicodedata.normalize("NFC", text))


class OverlayRequest(BaseModel):
    """A validated request to draw ``text`` at ``(anchor_x, anchor_y)``.

    Fields are validated in declaration order; the first failing field
    determines the error reported by ``create``.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    font_size: float
    anchor_x: float
    anchor_y: float

    @field_validator("text")
    @classmethod
    def _check_text(cls, value: str) -> str:
        value = normalize_text(value)
        if not value:
            raise ValueError("Text is empty")
        return value

    @field_validator("font_size")
    @classmethod
    def _check_font_size(cls, value: float) -> float:
        if not (0.0 < value <= MAX_FONT_SIZE):
            raise ValueError(
                f"Font size must be in (0, {MAX_FONT_SIZE:g}], got {value}"
            )
        return value

    @field_validator("anchor_x", "anchor_y")
    @classmethod
    def _check_anchor(cls, value: float) -> float:
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Position coordinates must be >= 0, got {value}")
        return value

    @classmethod
    def create(
        cls, text: str, font_size: float, anchor_x: float, anchor_y: float
    ) -> OverlayRequest:
        """Validate raw caller input.

        Raises:
            InvalidInputError: for the first field that fails validation
        """
        try:
            return cls(
                text=text, font_size=font_size, anchor_x=anchor_x, anchor_y=anchor_y
            )
        except ValidationError as e:
            first = e.errors()[0]
            error = first.get("ctx", {}).get("error")
            message = str(error) if error is not None else f"{first['loc'][0]}: {first['msg']}"
            raise InvalidInputError(message) from e

    def scaled(self, factor: float) -> OverlayRequest:
        """Return a copy with anchor and font size multiplied by ``factor``."""
        return self.model_copy(
            update={
                "font_size": self.font_size * factor,
                "anchor_x": self.anchor_x * factor,
                "anchor_y": self.anchor_y * factor,
            }
        )


class TextBox(BaseModel):
    """Estimated pixel footprint of a string; never measured from glyphs."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class SafeOrigin(BaseModel):
    """Clamped top-left drawing position of the text box."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int


class ImageDimensions(BaseModel):
    """Natural pixel size of an image."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class OverlayResult(BaseModel):
    """Result container for ``overlay_and_save``.

    Provides a consistent way to handle success/failure states.
    """

    success: bool
    output_path: Path | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def skipped(self) -> bool:
        """True when the source was a corrupt file that batch callers skip."""
        return self.error_kind == ErrorKind.CORRUPT_SOURCE

    @classmethod
    def ok(cls, output_path: Path) -> OverlayResult:
        """Create a successful result."""
        return cls(success=True, output_path=output_path)

    @classmethod
    def fail(cls, error: OverlayError) -> OverlayResult:
        """Create a failed result from an overlay error."""
        return cls(success=False, error=str(error), error_kind=error.kind)


class BatchItem(BaseModel):
    """Outcome of one file within a batch run."""

    source: Path
    text: str
    result: OverlayResult


class BatchReport(BaseModel):
    """Per-file outcomes of ``process_folder``."""

    items: list[BatchItem] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.result.success)

    @property
    def skipped(self) -> int:
        return sum(1 for item in self.items if item.result.skipped)

    @property
    def failed(self) -> int:
        return sum(
            1 for item in self.items
            if not item.result.success and not item.result.skipped
        )
