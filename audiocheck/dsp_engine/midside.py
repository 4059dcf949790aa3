"""Mid/Side conversion used by the stereo-field analysis."""
from __future__ import annotations

import numpy as np


def stereo_to_ms(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    """Convert a left/right pair to mid/side [2, N] (mid=(L+R)/2, side=(L-R)/2)."""
    if left.shape != right.shape or left.ndim != 1:
        raise ValueError("Mid/Side conversion expects two 1-D channels of equal length")
    left = left.astype(np.float64)
    right = right.astype(np.float64)
    mid = 0.5 * (left + right)
    side = 0.5 * (left - right)
    return np.stack([mid, side], axis=0)
