"""Font Resolver.

Walks an injected, priority-ordered list of font paths and returns the first
one that parses as a typeface. Nothing is cached: every overlay re-resolves,
so a font installed (or removed) between calls is picked up.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from loguru import logger
from PIL import ImageFont

from stamper.config import FontConfig, get_config
from stamper.domain.errors import FontUnavailableError


@dataclass(frozen=True)
class GlyphSource:
    """Typeface bytes plus the parsed font handle at one size."""

    path: Path
    data: bytes
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont


FontLoader = Callable[[Path, float], GlyphSource]


def load_truetype(path: Path, font_size: float) -> GlyphSource:
    """Read ``path`` and parse it with FreeType.

    Raises:
        OSError: if the file is missing or not a usable typeface
    """
    data = path.read_bytes()
    font = ImageFont.truetype(io.BytesIO(data), font_size)
    return GlyphSource(path=path, data=data, font=font)


class FontResolver:
    """Resolve the first loadable typeface from a candidate list."""

    def __init__(
        self,
        candidates: Sequence[str | Path],
        loader: FontLoader | None = None,
    ):
        """Initialize the resolver.

        Args:
            candidates: Absolute font paths in priority order
            loader: Callable parsing one path (``load_truetype`` by default)
        """
        self.candidates = [Path(p) for p in candidates]
        self.loader = loader or load_truetype

    @classmethod
    def from_config(cls, config: FontConfig | None = None) -> FontResolver:
        """Create a resolver over the configured candidates for this OS."""
        config = config or get_config().font
        return cls(config.candidate_paths())

    def resolve(self, font_size: float) -> GlyphSource:
        """Return the first candidate that loads at ``font_size``.

        Failures of individual candidates are silent.

        Raises:
            FontUnavailableError: if no candidate loads
        """
        for path in self.candidates:
            try:
                source = self.loader(path, font_size)
            except (OSError, ValueError):
                continue
            logger.debug(f"Resolved font: {path}")
            return source

        raise FontUnavailableError(
            f"No usable font among {len(self.candidates)} candidates"
        )
