"""Lossy-transcode detection.

Perceptual encoders split the spectrum into subbands and drop the ones they
consider inaudible, and most MP3 encoders low-pass at a handful of fixed
frequencies. Both leave marks in a long-term average spectrum: subbands far
below their neighbours ("spectral holes") and a brick-wall drop at one of
the usual cutoffs.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np

from ..dsp_engine.spectral import DEFAULT_FFT_SIZE, average_spectrum, mix_to_mono, power_to_db
from .common import round_half_up
from .pcm import ChannelData, ensure_channels, ensure_sample_rate
from .results import LossyResult, timing

logger = logging.getLogger("audiocheck.analysis.lossy")

MAX_FRAMES = 150
NUM_SUBBANDS = 32
HOLE_THRESHOLD_DB = 20.0
HOLES_FOR_LOSSY = 5
CUTOFF_CANDIDATES_HZ = (16000, 16500, 17000, 18000, 19000, 20000)
CUTOFF_PROBE_BINS = 5
CUTOFF_DROP_DB = 30.0


def _subband_mean(db: np.ndarray, start: int, width: int) -> float:
    lo = max(0, start)
    hi = min(start + width, db.shape[0])
    if hi <= lo:
        return 0.0
    return float(db[lo:hi].mean())


def count_spectral_holes(db: np.ndarray, num_subbands: int = NUM_SUBBANDS) -> int:
    """Count inner subbands sitting more than HOLE_THRESHOLD_DB below their neighbours."""

    width = round_half_up(db.shape[0] / num_subbands)
    holes = 0
    for band in range(1, num_subbands - 1):
        band_mean = _subband_mean(db, band * width, width)
        neighbours = (
            _subband_mean(db, (band - 1) * width, width) + _subband_mean(db, (band + 1) * width, width)
        ) / 2.0
        if neighbours - band_mean > HOLE_THRESHOLD_DB:
            holes += 1
    return holes


def find_encoder_cutoff(db: np.ndarray, sample_rate: int) -> Optional[str]:
    """Describe the first candidate frequency with a brick-wall drop, if any."""

    half = db.shape[0]
    nyquist = sample_rate / 2.0
    for freq in CUTOFF_CANDIDATES_HZ:
        if freq >= nyquist:
            continue
        b = round_half_up(freq / nyquist * half)
        if b + CUTOFF_PROBE_BINS >= half or b - CUTOFF_PROBE_BINS < 0:
            continue
        if db[b - CUTOFF_PROBE_BINS] - db[b + CUTOFF_PROBE_BINS] > CUTOFF_DROP_DB:
            return f"Sharp cutoff at ~{freq}Hz (likely MP3)"
    return None


def detect_lossy(
    audio: ChannelData,
    sample_rate: int,
    fft_size: int = DEFAULT_FFT_SIZE,
) -> LossyResult:
    started = time.perf_counter()
    data = ensure_channels(audio)
    sample_rate = ensure_sample_rate(sample_rate)

    avg_power, frame_count = average_spectrum(
        mix_to_mono(data), fft_size=fft_size, max_frames=MAX_FRAMES, mode="power"
    )
    db = power_to_db(avg_power)

    holes = count_spectral_holes(db)
    fingerprint = find_encoder_cutoff(db, sample_rate)
    is_lossy = holes > HOLES_FOR_LOSSY or fingerprint is not None

    score = holes * 15 + (40 if fingerprint else 0) + min(frame_count * 0.4, 20.0)
    confidence = int(min(100, max(0, round_half_up(score))))

    logger.info(
        "[LOSSY] lossy=%s holes=%d fingerprint=%s confidence=%d frames=%d",
        is_lossy,
        holes,
        fingerprint,
        confidence,
        frame_count,
    )

    return LossyResult(
        is_lossy=is_lossy,
        spectral_holes=holes,
        encoder_fingerprint=fingerprint,
        confidence=confidence,
        **timing(started),
    )
