"""Dynamic range (DR score), crest factor and clipping.

The DR score follows the TT Dynamic Range Meter convention: the signal is
cut into 3-second blocks, each block gets a peak-to-RMS ratio in dB, and the
score is the second-highest block value. Ignoring the top block keeps a
single loud transient from inflating the score.
"""
from __future__ import annotations

import logging
import math
import time

import numpy as np

from .common import amplitude_to_db, round_half_up
from .pcm import ChannelData, ensure_channels, ensure_sample_rate
from .results import DynamicRangeResult, timing

logger = logging.getLogger("audiocheck.analysis.dynamic_range")

BLOCK_SECONDS = 3.0
CLIP_THRESHOLD = 0.99


def block_dr_values(data: np.ndarray, block_samples: int) -> list[float]:
    """Peak-to-RMS ratio in dB for each full block, pooled across channels."""

    length = data.shape[1]
    num_blocks = max(1, length // block_samples)
    values: list[float] = []
    for b in range(num_blocks):
        block = data[:, b * block_samples : (b + 1) * block_samples].astype(np.float64)
        if block.size == 0:
            continue
        peak = float(np.max(np.abs(block)))
        rms = math.sqrt(float(np.mean(block * block)))
        if peak > 0 and rms > 0:
            values.append(20.0 * math.log10(peak / rms))
    return values


def dr_score(values: list[float]) -> int:
    """Second-highest block value, rounded; the only value if one; 0 if none."""
    ranked = sorted(values, reverse=True)
    if len(ranked) >= 2:
        return round_half_up(ranked[1])
    if ranked:
        return round_half_up(ranked[0])
    return 0


def measure_dynamic_range(audio: ChannelData, sample_rate: int) -> DynamicRangeResult:
    started = time.perf_counter()
    data = ensure_channels(audio)
    sample_rate = ensure_sample_rate(sample_rate)

    block_samples = round_half_up(sample_rate * BLOCK_SECONDS)
    score = dr_score(block_dr_values(data, block_samples))

    magnitude = np.abs(data)
    peak = float(magnitude.max())
    rms = math.sqrt(float(np.mean(np.square(data, dtype=np.float64))))
    clipped = int(np.count_nonzero(magnitude >= CLIP_THRESHOLD))

    crest_factor = 20.0 * math.log10(peak / rms) if peak > 0 and rms > 0 else 0.0
    peak_dbfs = amplitude_to_db(peak)
    rms_dbfs = amplitude_to_db(rms)

    if clipped:
        logger.warning("[DYNAMICS] %d samples at or above %.2f full scale", clipped, CLIP_THRESHOLD)

    logger.info(
        "[DYNAMICS] DR%d crest=%.2f dB peak=%.2f dBFS rms=%.2f dBFS",
        score,
        crest_factor,
        peak_dbfs,
        rms_dbfs,
    )

    return DynamicRangeResult(
        dr_score=score,
        crest_factor=crest_factor,
        peak_dbfs=peak_dbfs,
        rms_dbfs=rms_dbfs,
        clipped_samples=clipped,
        **timing(started),
    )
