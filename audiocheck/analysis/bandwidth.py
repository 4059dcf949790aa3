"""Frequency-ceiling detection and upsampling classification.

A 96 kHz file whose content stops at ~20 kHz was almost certainly made from
a CD-rate (or lossy) master. The averaged spectrum is scanned from Nyquist
downwards for the first bin that rises clearly above the noise floor.
"""
from __future__ import annotations

import logging
import time
from typing import Tuple

import numpy as np

from ..dsp_engine.spectral import DEFAULT_FFT_SIZE, average_spectrum, mix_to_mono, power_to_db
from .common import round_half_up
from .pcm import ChannelData, ensure_channels, ensure_sample_rate
from .results import BandwidthResult, timing

logger = logging.getLogger("audiocheck.analysis.bandwidth")

MAX_FRAMES = 200
NOISE_PERCENTILE = 0.1
THRESHOLD_ABOVE_NOISE_DB = 10.0
SHARPNESS_WINDOW_BINS = 20


def classify_ceiling(frequency_ceiling: float, sample_rate: int) -> Tuple[str, bool]:
    """Map a frequency ceiling to (source guess, is_upsampled)."""

    full_band_rate = sample_rate >= 44100
    if full_band_rate and frequency_ceiling < 16500:
        return "MP3/AAC (≤128kbps)", True
    if full_band_rate and frequency_ceiling < 18000:
        return "Lossy (≤192kbps)", True
    if full_band_rate and frequency_ceiling < 20500:
        return "CD-quality/high-bitrate lossy", sample_rate > 48000
    if frequency_ceiling < 24000 and sample_rate > 48000:
        return "Likely 48kHz source", True
    return "Genuine high-resolution", False


def analyze_bandwidth(
    audio: ChannelData,
    sample_rate: int,
    fft_size: int = DEFAULT_FFT_SIZE,
) -> BandwidthResult:
    started = time.perf_counter()
    data = ensure_channels(audio)
    sample_rate = ensure_sample_rate(sample_rate)

    nyquist = sample_rate / 2.0
    half = fft_size >> 1

    avg_power, frame_count = average_spectrum(
        mix_to_mono(data), fft_size=fft_size, max_frames=MAX_FRAMES, mode="power"
    )
    avg_db = power_to_db(avg_power)

    noise_floor = float(np.sort(avg_db)[int(half * NOISE_PERCENTILE)])
    threshold = noise_floor + THRESHOLD_ABOVE_NOISE_DB

    above = np.nonzero(avg_db > threshold)[0]
    ceiling_bin = int(above[-1]) if above.size else half - 1
    frequency_ceiling = ceiling_bin / half * nyquist

    w = min(SHARPNESS_WINDOW_BINS, half - ceiling_bin)
    sharpness = 0.0
    if w > 2:
        before = avg_db[max(0, ceiling_bin - w)]
        after = avg_db[min(half - 1, ceiling_bin + w)]
        sharpness = float(before - after)

    source_guess, is_upsampled = classify_ceiling(frequency_ceiling, sample_rate)
    confidence = min(100, round_half_up(frame_count / 2 * 10))

    if frame_count == 0:
        logger.warning("[BANDWIDTH] Signal shorter than one %d-sample frame", fft_size)

    logger.info(
        "[BANDWIDTH] ceiling=%.0f Hz noise=%.1f dB sharpness=%.1f dB guess=%s upsampled=%s frames=%d",
        frequency_ceiling,
        noise_floor,
        sharpness,
        source_guess,
        is_upsampled,
        frame_count,
    )

    return BandwidthResult(
        frequency_ceiling=frequency_ceiling,
        cutoff_sharpness=sharpness,
        source_guess=source_guess,
        is_upsampled=is_upsampled,
        confidence=confidence,
        **timing(started),
    )
