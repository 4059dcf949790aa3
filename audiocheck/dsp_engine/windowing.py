"""Window functions for FFT analysis.

All generators use the symmetric closed forms over x = 2*pi*i/(N-1).
`get_window` caches by (name, size) and hands out read-only arrays, so the
coefficients behave as process-wide constants.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Dict

import numpy as np

logger = logging.getLogger("audiocheck.dsp_engine.windowing")

KAISER_BETA = 12.0
_BESSEL_TERMS = 25


def _phase(n: int) -> np.ndarray:
    if n <= 0:
        raise ValueError(f"Window length must be positive, got {n}")
    if n == 1:
        return np.zeros(1)
    return (2.0 * np.pi / (n - 1)) * np.arange(n)


def _cosine_sum(n: int, coeffs: tuple[float, ...]) -> np.ndarray:
    # a0 - a1 cos(x) + a2 cos(2x) - a3 cos(3x) + ...
    if n == 1:
        return np.ones(1)
    x = _phase(n)
    w = np.zeros(n)
    for k, a in enumerate(coeffs):
        sign = -1.0 if k % 2 else 1.0
        w += sign * a * np.cos(k * x)
    return w


def hann(n: int) -> np.ndarray:
    return _cosine_sum(n, (0.5, 0.5))


def hamming(n: int) -> np.ndarray:
    return _cosine_sum(n, (0.54, 0.46))


def blackman(n: int) -> np.ndarray:
    return _cosine_sum(n, (0.42, 0.5, 0.08))


def blackman_harris(n: int) -> np.ndarray:
    return _cosine_sum(n, (0.35875, 0.48829, 0.14128, 0.01168))


def flat_top(n: int) -> np.ndarray:
    return _cosine_sum(
        n, (0.21557895, 0.41663158, 0.277263158, 0.083578947, 0.006947368)
    )


def _bessel0(x: np.ndarray) -> np.ndarray:
    """Modified Bessel function I0 via its power series (25 terms)."""
    x = np.asarray(x, dtype=np.float64)
    total = np.ones_like(x)
    term = np.ones_like(x)
    for k in range(1, _BESSEL_TERMS):
        term = term * (x / (2 * k)) ** 2
        total += term
    return total


def kaiser(n: int, beta: float = KAISER_BETA) -> np.ndarray:
    if n <= 0:
        raise ValueError(f"Window length must be positive, got {n}")
    if n == 1:
        return np.ones(1)
    x = 2.0 * np.arange(n) / (n - 1) - 1.0
    arg = beta * np.sqrt(np.clip(1.0 - x * x, 0.0, None))
    return _bessel0(arg) / _bessel0(np.array(beta))


WINDOWS: Dict[str, Callable[[int], np.ndarray]] = {
    "hann": hann,
    "hamming": hamming,
    "blackman": blackman,
    "blackman-harris": blackman_harris,
    "kaiser": kaiser,
    "flat-top": flat_top,
}


@lru_cache(maxsize=64)
def _cached_window(name: str, n: int) -> np.ndarray:
    w = WINDOWS[name](n)
    w.setflags(write=False)
    return w


def get_window(name: str, n: int) -> np.ndarray:
    """Return the named window of length n, falling back to Hann."""

    key = (name or "hann").strip().lower().replace("_", "-")
    if key not in WINDOWS:
        logger.debug("[WINDOW] Unknown window %r, using hann", name)
        key = "hann"
    return _cached_window(key, int(n))
