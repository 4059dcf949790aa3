"""Silent-region detection on the mono mixdown."""
from __future__ import annotations

import logging
import time
from typing import List

import numpy as np

from ..dsp_engine.spectral import mix_to_mono
from .common import round_half_up
from .pcm import ChannelData, ensure_channels, ensure_sample_rate
from .results import SilenceResult, SilentRegion, timing

logger = logging.getLogger("audiocheck.analysis.silence")

BLOCK_SIZE = 256


def _region(start: int, end: int, sample_rate: int) -> SilentRegion:
    return SilentRegion(
        start_sample=start,
        end_sample=end,
        start_time=start / sample_rate,
        end_time=end / sample_rate,
        duration=(end - start) / sample_rate,
    )


def detect_silence(
    audio: ChannelData,
    sample_rate: int,
    threshold_db: float = -60.0,
    min_duration_ms: float = 100.0,
) -> SilenceResult:
    """Find runs of 256-sample blocks whose peak stays below threshold_db."""

    started = time.perf_counter()
    mono = mix_to_mono(ensure_channels(audio))
    sample_rate = ensure_sample_rate(sample_rate)

    threshold = 10.0 ** (threshold_db / 20.0)
    min_samples = round_half_up(min_duration_ms / 1000.0 * sample_rate)
    length = mono.shape[0]

    starts = np.arange(0, length, BLOCK_SIZE)
    block_peaks = np.maximum.reduceat(np.abs(mono), starts)
    silent = block_peaks < threshold

    regions: List[SilentRegion] = []
    run_start = -1
    for block_start, is_silent in zip(starts.tolist(), silent.tolist()):
        if is_silent:
            if run_start < 0:
                run_start = block_start
        elif run_start >= 0:
            if block_start - run_start >= min_samples:
                regions.append(_region(run_start, block_start, sample_rate))
            run_start = -1

    if run_start >= 0 and length - run_start >= min_samples:
        regions.append(_region(run_start, length, sample_rate))

    total = sum(r.duration for r in regions)
    logger.info("[SILENCE] regions=%d total=%.2f s threshold=%.1f dB", len(regions), total, threshold_db)

    return SilenceResult(
        regions=regions,
        threshold_db=float(threshold_db),
        min_duration_ms=float(min_duration_ms),
        total_silence=total,
        **timing(started),
    )
