"""Frame-averaged spectra shared by bandwidth, lossy and spectrum analysis.

Frames are non-overlapping (hop == fft_size). For long inputs only every
`frame_step`-th frame is visited, with `frame_step` derived from
`max_frames`, which bounds the work regardless of file length.
"""
from __future__ import annotations

from typing import Literal, Tuple

import numpy as np

from .fft import DB_FLOOR, fft, magnitude_spectrum, power_spectrum
from .windowing import get_window

SpectrumMode = Literal["power", "magnitude_db"]

DEFAULT_FFT_SIZE = 8192


def mix_to_mono(channels: np.ndarray) -> np.ndarray:
    """Straight per-sample average of all channels ([C, N] -> [N])."""
    if channels.ndim == 1:
        return channels
    if channels.shape[0] == 1:
        return channels[0]
    return channels.mean(axis=0, dtype=np.float64).astype(np.float32)


def frame_plan(length: int, fft_size: int, max_frames: int) -> Tuple[int, int]:
    """Return (num_frames, frame_step) for non-overlapping framing."""
    num_frames = length // fft_size
    capped = min(num_frames, max_frames)
    frame_step = max(1, num_frames // capped) if capped > 0 else 1
    return num_frames, frame_step


def average_spectrum(
    mono: np.ndarray,
    fft_size: int = DEFAULT_FFT_SIZE,
    max_frames: int = 200,
    window: str = "hann",
    mode: SpectrumMode = "power",
) -> Tuple[np.ndarray, int]:
    """Average per-frame spectra over a strided subset of frames.

    Args:
        mono: 1-D signal.
        fft_size: frame length, a power of two.
        max_frames: frame budget used to derive the visiting stride.
        window: window name understood by `get_window`.
        mode: "power" averages linear power, "magnitude_db" averages the
            per-frame dB magnitude curves.

    Returns:
        (average over the first fft_size/2 bins, number of frames used)
    """

    half = fft_size >> 1
    win = get_window(window, fft_size)
    length = mono.shape[0]
    num_frames, frame_step = frame_plan(length, fft_size, max_frames)

    acc = np.zeros(half, dtype=np.float64)
    frame_count = 0
    for f in range(0, num_frames, frame_step):
        offset = f * fft_size
        if offset + fft_size > length:
            break
        real = mono[offset : offset + fft_size].astype(np.float64) * win
        imag = np.zeros(fft_size, dtype=np.float64)
        fft(real, imag)
        if mode == "power":
            acc += power_spectrum(real, imag)
        else:
            acc += magnitude_spectrum(real, imag)
        frame_count += 1

    if frame_count == 0:
        if mode == "power":
            return acc, 0
        return np.full(half, DB_FLOOR), 0
    return acc / frame_count, frame_count


def power_to_db(power: np.ndarray) -> np.ndarray:
    """10*log10(power), DB_FLOOR where power is zero."""
    out = np.full(power.shape, DB_FLOOR, dtype=np.float64)
    positive = power > 0
    out[positive] = 10.0 * np.log10(power[positive])
    return out
