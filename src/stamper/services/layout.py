"""Position Solver and relative placement helpers.

``solve_position`` clamps a requested anchor so the estimated text box plus
padding stays on the canvas. Placement is best effort: on a canvas smaller
than the box the origin collapses to ``padding`` and the overlay may be
clipped at the far edge.
"""

from __future__ import annotations

import math

from stamper.config import ModeConfig
from stamper.domain.models import ImageDimensions, SafeOrigin, TextBox
from stamper.services.metrics import contains_hangul, estimate_precise

# Reference canvas for relative font sizing (400x300).
REFERENCE_AREA = 400 * 300
MIN_SCALE_FACTOR = 0.5
MAX_SCALE_FACTOR = 3.0
MIN_SCALED_FONT_SIZE = 10
MAX_SCALED_FONT_SIZE = 200
EDGE_ANCHOR_PADDING = 2


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp_axis(requested: float, padding: int, canvas_dim: int, box_dim: int) -> int:
    """Clamp one coordinate into ``[padding, canvas_dim - box_dim - padding]``.

    The upper bound saturates: when it falls below ``padding`` the result
    is ``padding``.
    """
    upper = canvas_dim - (box_dim + padding)
    if upper < padding:
        return padding
    return min(max(int(requested), padding), upper)


def padding_for(text: str, mode: ModeConfig) -> int:
    """Clamp padding for ``text`` under ``mode`` (wider for Hangul)."""
    return mode.hangul_padding if contains_hangul(text) else mode.padding


def solve_position(
    anchor_x: float,
    anchor_y: float,
    box: TextBox,
    canvas_width: int,
    canvas_height: int,
    padding: int,
) -> SafeOrigin:
    """Compute the Safe Origin for a text box.

    Args:
        anchor_x: Requested left edge in pixels
        anchor_y: Requested top edge in pixels
        box: Estimated text box
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels
        padding: Minimum distance kept from every canvas edge

    Returns:
        SafeOrigin satisfying ``padding <= x <= canvas_width - box.width - padding``
        (and likewise for y) whenever the canvas is large enough
    """
    return SafeOrigin(
        x=clamp_axis(anchor_x, padding, canvas_width, box.width),
        y=clamp_axis(anchor_y, padding, canvas_height, box.height),
    )


def scale_font_size(dimensions: ImageDimensions, base_font_size: float) -> int:
    """Scale a font size with the image area relative to a 400x300 canvas.

    The scale factor is the square root of the area ratio, limited to
    ``[0.5, 3.0]``; the result is limited to ``[10, 200]``.
    """
    area = dimensions.width * dimensions.height
    factor = math.sqrt(area / REFERENCE_AREA)
    factor = max(MIN_SCALE_FACTOR, min(factor, MAX_SCALE_FACTOR))
    scaled = _round_half_up(base_font_size * factor)
    return max(MIN_SCALED_FONT_SIZE, min(scaled, MAX_SCALED_FONT_SIZE))


def anchor_from_edges(
    dimensions: ImageDimensions,
    right_percent: float,
    bottom_percent: float,
    font_size: float,
    text: str,
) -> tuple[int, int]:
    """Anchor that puts the text's right/bottom edges at a percentage inset.

    ``right_percent=10`` places the end of the text 10% of the width away
    from the right border.

    Returns:
        ``(x, y)`` top-left anchor in whole pixels
    """
    box = estimate_precise(text, font_size)
    text_width = box.width
    text_height = font_size
    pad = EDGE_ANCHOR_PADDING

    x = dimensions.width * (1 - right_percent / 100) - text_width
    y = dimensions.height * (1 - bottom_percent / 100) - text_height

    x = max(pad, min(x, dimensions.width - text_width - pad))
    y = max(pad, min(y, dimensions.height - text_height - pad))

    return _round_half_up(x), _round_half_up(y)
