"""Radix-2 Cooley-Tukey FFT and spectrum helpers.

The transform runs in place on a pair of float64 buffers. Each butterfly
stage is evaluated with numpy views over the buffers, so the work per stage
is a handful of vector operations rather than a Python loop per sample.
Twiddle factors and the bit-reversal permutation are built once per size and
cached for the lifetime of the process.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Tuple

import numpy as np

# Floor reported for bins with exactly zero energy.
DB_FLOOR = -160.0


def next_pow2(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    p = 1
    while p < n:
        p <<= 1
    return p


def _is_pow2(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@lru_cache(maxsize=32)
def _bit_reversal(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n, dtype=np.intp)
    rev = np.zeros(n, dtype=np.intp)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    rev.setflags(write=False)
    return rev


@lru_cache(maxsize=32)
def _twiddles(n: int) -> Tuple[Tuple[np.ndarray, np.ndarray], ...]:
    """(cos, sin) of -2*pi*k/len for every stage length 2, 4, ..., n."""
    stages = []
    length = 2
    while length <= n:
        half = length >> 1
        theta = (-2.0 * np.pi / length) * np.arange(half)
        cos = np.cos(theta)
        sin = np.sin(theta)
        cos.setflags(write=False)
        sin.setflags(write=False)
        stages.append((cos, sin))
        length <<= 1
    return tuple(stages)


def fft(real: np.ndarray, imag: np.ndarray) -> None:
    """In-place radix-2 decimation-in-time FFT.

    Args:
        real: float64 buffer of length N (N a power of two), overwritten
            with the real part of the transform.
        imag: float64 buffer of the same length, overwritten with the
            imaginary part.
    """

    if real.shape != imag.shape or real.ndim != 1:
        raise ValueError("fft expects two 1-D buffers of equal length")
    if real.dtype != np.float64 or imag.dtype != np.float64:
        raise ValueError("fft buffers must be float64")
    if not (real.flags.c_contiguous and imag.flags.c_contiguous):
        raise ValueError("fft buffers must be contiguous")

    n = real.shape[0]
    if not _is_pow2(n):
        raise ValueError(f"fft length must be a power of two, got {n}")
    if n == 1:
        return

    rev = _bit_reversal(n)
    real[:] = real[rev]
    imag[:] = imag[rev]

    length = 2
    for cos, sin in _twiddles(n):
        half = length >> 1
        re = real.reshape(-1, length)
        im = imag.reshape(-1, length)
        even_re, odd_re = re[:, :half], re[:, half:]
        even_im, odd_im = im[:, :half], im[:, half:]

        t_re = cos * odd_re - sin * odd_im
        t_im = sin * odd_re + cos * odd_im

        odd_re[...] = even_re - t_re
        odd_im[...] = even_im - t_im
        even_re += t_re
        even_im += t_im
        length <<= 1


def magnitude_spectrum(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    """First N/2 bins as 20*log10(|X|/N), DB_FLOOR where |X| == 0."""
    n = real.shape[0]
    half = n >> 1
    mag = np.sqrt(real[:half] * real[:half] + imag[:half] * imag[:half]) / n
    out = np.full(half, DB_FLOOR, dtype=np.float64)
    nonzero = mag > 0
    out[nonzero] = 20.0 * np.log10(mag[nonzero])
    return out


def power_spectrum(real: np.ndarray, imag: np.ndarray) -> np.ndarray:
    """First N/2 bins as linear power |X|^2 / N^2."""
    n = real.shape[0]
    half = n >> 1
    return (real[:half] * real[:half] + imag[:half] * imag[:half]) / float(n * n)
