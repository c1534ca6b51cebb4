"""Text Metrics Estimator.

Estimates the pixel footprint of a string from a per-character width table,
without loading a typeface. Layout decisions (padding, clamping, the
background plate) are taken from these estimates so they hold whether or not
a font is found later.

Two estimators are provided:
- coarse: every character advances ``0.6 × font_size``
- precise: script-aware per-character factors, scaled by a safety margin

The synthetic fallback renderer reads its block widths from the same table
(``TextMetricsEstimator.advances``), so both render paths share one footprint.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from stamper.domain.models import TextBox

COARSE_CHAR_FACTOR = 0.6
PRECISE_SAFETY_FACTOR = 1.1
PRECISE_MAX_CHAR_FACTOR = 0.8
PRECISE_HEIGHT_FACTOR = 1.2
MIN_TEXT_WIDTH = 10


class CharClass(str, Enum):
    """Coarse character classes used for widths and fallback colors."""

    LATIN = "latin"
    DIGIT = "digit"
    HANGUL_SYLLABLE = "hangul_syllable"
    HANGUL_CONSONANT = "hangul_consonant"
    HANGUL_VOWEL = "hangul_vowel"
    HANGUL_EXTENDED = "hangul_extended"
    PUNCTUATION = "punctuation"
    SPACE = "space"
    OTHER = "other"


_PUNCTUATION = frozenset(".,!?;:")


def classify_char(ch: str) -> CharClass:
    """Return the ``CharClass`` of a single character."""
    if ch == " ":
        return CharClass.SPACE
    if "0" <= ch <= "9":
        return CharClass.DIGIT
    if "a" <= ch <= "z" or "A" <= ch <= "Z":
        return CharClass.LATIN
    if "가" <= ch <= "힣":
        return CharClass.HANGUL_SYLLABLE
    if "ㄱ" <= ch <= "ㅎ":
        return CharClass.HANGUL_CONSONANT
    if "ㅏ" <= ch <= "ㅣ":
        return CharClass.HANGUL_VOWEL
    if "ㅤ" <= ch <= "ㆎ":
        return CharClass.HANGUL_EXTENDED
    if ch in _PUNCTUATION:
        return CharClass.PUNCTUATION
    return CharClass.OTHER


def contains_hangul(text: str) -> bool:
    """True if ``text`` contains at least one precomposed Hangul syllable."""
    return any(classify_char(ch) is CharClass.HANGUL_SYLLABLE for ch in text)


def _expand(groups: dict[str, float]) -> dict[str, float]:
    table: dict[str, float] = {}
    for chars, factor in groups.items():
        for ch in chars:
            table[ch] = factor
    return table


# Width as a fraction of the font size, for characters with their own entry.
_CHAR_FACTORS = _expand(
    {
        "1": 0.2,
        "il!|Ij.,": 0.25,
        "tfr'\"": 0.35,
        "WM": 0.7,
        "wm": 0.65,
        " ": 0.2,
        "08": 0.5,
        "2345679": 0.45,
        "AHNUVXYZ": 0.55,
        "QGOD": 0.6,
        "BCEFKLPRSTJ": 0.5,
        "acegoqs": 0.5,
        "bdhknpuvxyz": 0.5,
        "-": 0.35,
        "_=+": 0.4,
        "@%#&": 0.6,
    }
)

_CLASS_FACTORS = {
    CharClass.HANGUL_SYLLABLE: 0.7,
    CharClass.HANGUL_CONSONANT: 0.4,
    CharClass.HANGUL_VOWEL: 0.3,
    CharClass.HANGUL_EXTENDED: 0.45,
}

DEFAULT_CHAR_FACTOR = 0.45


def char_width(ch: str, font_size: float) -> float:
    """Estimated advance of one character at ``font_size``, in pixels."""
    factor = _CHAR_FACTORS.get(ch)
    if factor is None:
        factor = _CLASS_FACTORS.get(classify_char(ch), DEFAULT_CHAR_FACTOR)
    return font_size * factor


def estimate_coarse(text: str, font_size: float) -> TextBox:
    """Width ``len × size × 0.6``, height ``size``."""
    return TextBox(
        width=int(len(text) * font_size * COARSE_CHAR_FACTOR),
        height=int(font_size),
    )


def estimate_precise(text: str, font_size: float) -> TextBox:
    """Script-aware estimate.

    Per-character widths are summed without inter-character spacing, scaled
    by ``PRECISE_SAFETY_FACTOR`` and clamped to
    ``[MIN_TEXT_WIDTH, font_size × len × 0.8]``. The upper bound wins when
    the two conflict.

    Args:
        text: Text to measure
        font_size: Nominal font size in pixels

    Returns:
        Estimated TextBox
    """
    height = int(font_size * PRECISE_HEIGHT_FACTOR)
    if not text:
        return TextBox(width=MIN_TEXT_WIDTH, height=height)

    total = 0.0
    for ch in text:
        total += char_width(ch, font_size)

    upper = font_size * len(text) * PRECISE_MAX_CHAR_FACTOR
    width = min(max(total * PRECISE_SAFETY_FACTOR, MIN_TEXT_WIDTH), upper)
    return TextBox(width=int(width), height=height)


EstimatorMode = Literal["coarse", "precise"]


class TextMetricsEstimator:
    """Estimator bound to one mode.

    The pipeline picks the mode from its ``ModeConfig``; the renderer asks
    the same instance for per-character advances so both render paths share
    one footprint.
    """

    def __init__(self, mode: EstimatorMode = "precise"):
        self.mode = mode

    def estimate(self, text: str, font_size: float) -> TextBox:
        if self.mode == "coarse":
            return estimate_coarse(text, font_size)
        return estimate_precise(text, font_size)

    def advances(self, text: str, font_size: float) -> list[float]:
        """Per-character advances summing to at most the estimated width (up to rounding)."""
        if self.mode == "coarse":
            return [font_size * COARSE_CHAR_FACTOR] * len(text)
        return [char_width(ch, font_size) for ch in text]
