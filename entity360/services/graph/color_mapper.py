"""Relevance score to display color."""

import math
from typing import Tuple

RGB = Tuple[int, int, int]

LOW_COLOR = "#000064"
HIGH_COLOR = "#ff2828"
DEFAULT_COLOR = "#ffffff"


def clamp_score(score: float) -> float:
    """Clamp a score to [0, 1]; NaN and non-numeric input become 0."""
    try:
        value = float(score)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def parse_hex(color: str) -> RGB:
    """Parse ``#rrggbb`` into an RGB triple."""
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a #rrggbb color, got {color!r}")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def to_hex(rgb: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


class ScoreColorMapper:
    """Linear interpolation between a low and a high reference color.

    Each channel moves monotonically from the low endpoint (score 0) to the
    high endpoint (score 1).
    """

    def __init__(self, low_color: str = LOW_COLOR, high_color: str = HIGH_COLOR):
        self._low = parse_hex(low_color)
        self._high = parse_hex(high_color)
        self.low_color = to_hex(self._low)
        self.high_color = to_hex(self._high)

    def color_for(self, score: float) -> str:
        t = clamp_score(score)
        return to_hex(
            tuple(round(low + (high - low) * t) for low, high in zip(self._low, self._high))
        )


_DEFAULT_MAPPER = ScoreColorMapper()


def color_for(score: float) -> str:
    """Color for a score using the default blue-to-red endpoints."""
    return _DEFAULT_MAPPER.color_for(score)
