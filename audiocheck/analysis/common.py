"""Small numeric helpers shared by the analysers."""
from __future__ import annotations

import math


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves towards +inf (0.5 -> 1, -0.5 -> 0)."""
    return int(math.floor(x + 0.5))


def amplitude_to_db(x: float) -> float:
    """20*log10(x), -inf for x <= 0."""
    return 20.0 * math.log10(x) if x > 0 else -math.inf


def power_to_lufs(mean_square: float) -> float:
    """-0.691 + 10*log10(ms), -inf for ms <= 0."""
    return -0.691 + 10.0 * math.log10(mean_square) if mean_square > 0 else -math.inf
