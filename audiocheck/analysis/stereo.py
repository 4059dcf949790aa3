"""Stereo field: L/R correlation, mid/side balance, mono compatibility."""
from __future__ import annotations

import logging
import math
import time

import numpy as np

from ..dsp_engine.midside import stereo_to_ms
from .pcm import ChannelData, ensure_channels
from .results import StereoResult, timing

logger = logging.getLogger("audiocheck.analysis.stereo")

MAX_PAIRS = 5_000_000


def analyze_stereo(audio: ChannelData) -> StereoResult:
    """Correlate the first two channels.

    Mono input gets the neutral result (correlation 1, no side energy).
    """

    started = time.perf_counter()
    data = ensure_channels(audio)

    if data.shape[0] < 2:
        return StereoResult(
            correlation=1.0,
            stereo_width=0.0,
            mid_energy=1.0,
            side_energy=0.0,
            mono_compatibility_loss=0.0,
            **timing(started),
        )

    length = data.shape[1]
    step = max(1, length // MAX_PAIRS)
    left = data[0, ::step].astype(np.float64)
    right = data[1, ::step].astype(np.float64)

    sum_lr = float(np.dot(left, right))
    sum_ll = float(np.dot(left, left))
    sum_rr = float(np.dot(right, right))
    denom = math.sqrt(sum_ll * sum_rr)
    correlation = sum_lr / denom if denom > 0 else 0.0

    mid, side = stereo_to_ms(left, right)
    mid_energy = float(np.dot(mid, mid))
    side_energy = float(np.dot(side, side))
    total = mid_energy + side_energy

    stereo_width = side_energy / total if total > 0 else 0.0
    mid_share = mid_energy / total if total > 0 else 1.0
    side_share = side_energy / total if total > 0 else 0.0

    stereo_energy = sum_ll + sum_rr
    mono_loss = max(0.0, 1.0 - 2.0 * mid_energy / stereo_energy) * 100.0 if stereo_energy > 0 else 0.0

    logger.info(
        "[STEREO] correlation=%.3f width=%.3f mid=%.3f side=%.3f mono_loss=%.1f%%",
        correlation,
        stereo_width,
        mid_share,
        side_share,
        mono_loss,
    )

    return StereoResult(
        correlation=correlation,
        stereo_width=stereo_width,
        mid_energy=mid_share,
        side_energy=side_share,
        mono_compatibility_loss=mono_loss,
        **timing(started),
    )
