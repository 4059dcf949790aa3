"""Biquad sections for the BS.1770 K-weighting pre-filter.

Coefficients come from the pre-warped bilinear transform with
K = tan(pi * fc / fs). Both stages use the constants published with
ITU-R BS.1770-4 so the 48 kHz coefficients of the standard are reproduced
exactly and other rates follow the same analog prototype.

Each section is stored in sos form so it can be run with `sosfilt`, the
same way the EQ stack chains its sections.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Tuple

import numpy as np
from scipy.signal import sosfilt

KStage = Literal["highshelf", "highpass"]

# Stage 1: high shelf (head acoustics)
SHELF_FC = 1681.974450955533
SHELF_GAIN_DB = 3.999843853973347
SHELF_Q = 0.7071752369554196
SHELF_VB_EXPONENT = 0.4996667741545416

# Stage 2: RLB high-pass
RLB_FC = 38.13547087602444
RLB_Q = 0.5003270373238773


@dataclass(frozen=True)
class BiquadFilter:
    """A single biquad section: (b0, b1, b2, 1, a1, a2)."""

    coeffs: Tuple[float, float, float, float, float, float]

    @property
    def sos(self) -> np.ndarray:
        """Fresh (1, 6) sos array for scipy; edits to it do not reach the filter."""
        return np.array([self.coeffs], dtype=np.float64)

    @property
    def b(self) -> Tuple[float, float, float]:
        return self.coeffs[:3]  # type: ignore[return-value]

    @property
    def a(self) -> Tuple[float, float, float]:
        return self.coeffs[3:]  # type: ignore[return-value]

    def process(self, x: np.ndarray) -> np.ndarray:
        """Filter a mono [N] or multichannel [C, N] signal along time.

        Filter state starts at zero for every call and every channel.
        """

        x = np.asarray(x, dtype=np.float64)
        sos = self.sos
        if x.ndim == 1:
            return np.asarray(sosfilt(sos, x))
        return np.asarray(sosfilt(sos, x, axis=-1))


def _section(b0: float, b1: float, b2: float, a1: float, a2: float) -> BiquadFilter:
    return BiquadFilter(coeffs=(float(b0), float(b1), float(b2), 1.0, float(a1), float(a2)))


def design_k_stage(stage: KStage, sample_rate: int) -> BiquadFilter:
    """Design one K-weighting stage for the given sample rate."""

    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    if stage == "highshelf":
        k = np.tan(np.pi * SHELF_FC / sample_rate)
        vh = 10.0 ** (SHELF_GAIN_DB / 20.0)
        vb = vh ** SHELF_VB_EXPONENT
        a0 = 1.0 + k / SHELF_Q + k * k
        return _section(
            (vh + vb * k / SHELF_Q + k * k) / a0,
            2.0 * (k * k - vh) / a0,
            (vh - vb * k / SHELF_Q + k * k) / a0,
            2.0 * (k * k - 1.0) / a0,
            (1.0 - k / SHELF_Q + k * k) / a0,
        )
    if stage == "highpass":
        k = np.tan(np.pi * RLB_FC / sample_rate)
        a0 = 1.0 + k / RLB_Q + k * k
        return _section(
            1.0 / a0,
            -2.0 / a0,
            1.0 / a0,
            2.0 * (k * k - 1.0) / a0,
            (1.0 - k / RLB_Q + k * k) / a0,
        )
    raise ValueError(f"Unsupported K-weighting stage: {stage}")


@lru_cache(maxsize=16)
def k_weighting_filters(sample_rate: int) -> Tuple[BiquadFilter, BiquadFilter]:
    """(shelf, high-pass) pair for a sample rate, built once per rate."""
    return design_k_stage("highshelf", sample_rate), design_k_stage("highpass", sample_rate)


def apply_k_weighting(x: np.ndarray, sample_rate: int) -> np.ndarray:
    shelf, highpass = k_weighting_filters(int(sample_rate))
    return highpass.process(shelf.process(x))
