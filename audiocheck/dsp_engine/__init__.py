"""Numeric building blocks for the analysis engine.

FFT, window functions, frame-averaged spectra, K-weighting biquads,
mid/side conversion and synthetic test signals.
"""
from .fft import DB_FLOOR, fft, magnitude_spectrum, next_pow2, power_spectrum
from .generators import generate_noise, generate_sweep, generate_tone
from .spectral import average_spectrum, mix_to_mono, power_to_db
from .windowing import get_window

__all__ = [
    "DB_FLOOR",
    "fft",
    "magnitude_spectrum",
    "power_spectrum",
    "next_pow2",
    "average_spectrum",
    "mix_to_mono",
    "power_to_db",
    "get_window",
    "generate_tone",
    "generate_noise",
    "generate_sweep",
]
