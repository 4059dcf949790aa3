"""ITU-R BS.1770-4 loudness: integrated, short-term, momentary, LRA.

Each channel is K-weighted (high shelf then RLB high-pass), squared and
averaged over 400 ms blocks with a 100 ms hop. Integrated loudness uses the
two-stage gate: an absolute gate at -70 LUFS followed by a relative gate
10 LU below the absolute-gated level.

Blocks and windows are only taken where they fit entirely inside the
signal. When no block survives the gates, integrated loudness is -inf;
silence and a signal too short for a single block are reported the same way.

True peak here is the plain sample peak of the unfiltered input; it does
not oversample and can under-read inter-sample peaks by a few tenths of a dB.
"""
from __future__ import annotations

import logging
import math
import time
from typing import List, Tuple

import numpy as np

from ..dsp_engine.biquad import apply_k_weighting
from .common import amplitude_to_db, power_to_lufs, round_half_up
from .pcm import ChannelData, UnsupportedChannelLayoutError, ensure_channels, ensure_sample_rate
from .results import LoudnessResult, timing

logger = logging.getLogger("audiocheck.analysis.lufs")

BLOCK_SECONDS = 0.4
BLOCK_OVERLAP = 0.75
SHORT_TERM_SECONDS = 3.0
SHORT_TERM_HOP_SECONDS = 1.0
ABSOLUTE_GATE_LUFS = -70.0
RELATIVE_GATE_LU = -10.0
LRA_FLOOR_LUFS = -70.0
LRA_LOW_PERCENTILE = 0.10
LRA_HIGH_PERCENTILE = 0.95

# L, R, C, Ls, Rs
SURROUND_WEIGHTS = (1.0, 1.0, 1.0, 1.41, 1.41)


def channel_weights(num_channels: int) -> Tuple[float, ...]:
    """Per-channel gains G_i for mono, stereo and up to 5.0 layouts."""

    if num_channels <= 2:
        return (1.0,) * num_channels
    if num_channels > len(SURROUND_WEIGHTS):
        raise UnsupportedChannelLayoutError(
            f"Loudness weighting is defined for up to {len(SURROUND_WEIGHTS)} channels, "
            f"got {num_channels}"
        )
    return SURROUND_WEIGHTS[:num_channels]


def _window_count(length: int, window: int, hop: int) -> int:
    if window <= 0 or hop <= 0 or length < window:
        return 0
    return (length - window) // hop + 1


def weighted_mean_squares(filtered: np.ndarray, weights: Tuple[float, ...], window: int, hop: int) -> np.ndarray:
    """Sum over channels of weight * mean-square for each window position."""

    count = _window_count(filtered.shape[-1], window, hop)
    if count == 0:
        return np.zeros(0)
    starts = np.arange(count) * hop
    total = np.zeros(count)
    for ch, w in zip(filtered, weights):
        energy = np.concatenate(([0.0], np.cumsum(ch * ch)))
        total += w * (energy[starts + window] - energy[starts]) / window
    return total


def gated_integrated_loudness(block_powers: np.ndarray) -> float:
    """Two-stage gated integrated loudness (LUFS) from per-block powers."""

    absolute = 10.0 ** ((ABSOLUTE_GATE_LUFS + 0.691) / 10.0)
    above_absolute = block_powers[block_powers > absolute]
    if above_absolute.size == 0:
        return -math.inf

    relative = float(above_absolute.mean()) * 10.0 ** (RELATIVE_GATE_LU / 10.0)
    gated = block_powers[(block_powers > relative) & (block_powers > absolute)]
    if gated.size == 0:
        return -math.inf
    return power_to_lufs(float(gated.mean()))


def loudness_range(short_term: List[float]) -> float:
    valid = sorted(v for v in short_term if math.isfinite(v) and v > LRA_FLOOR_LUFS)
    n = len(valid)
    if n < 2:
        return 0.0
    return valid[int(n * LRA_HIGH_PERCENTILE)] - valid[int(n * LRA_LOW_PERCENTILE)]


def measure_loudness(audio: ChannelData, sample_rate: int) -> LoudnessResult:
    started = time.perf_counter()
    data = ensure_channels(audio)
    sample_rate = ensure_sample_rate(sample_rate)
    weights = channel_weights(data.shape[0])

    filtered = apply_k_weighting(data, sample_rate)

    block = round_half_up(sample_rate * BLOCK_SECONDS)
    block_hop = round_half_up(block * (1.0 - BLOCK_OVERLAP))
    block_powers = weighted_mean_squares(filtered, weights, block, block_hop)

    integrated = gated_integrated_loudness(block_powers)
    momentary = [power_to_lufs(float(p)) for p in block_powers]

    st_window = round_half_up(sample_rate * SHORT_TERM_SECONDS)
    st_hop = round_half_up(sample_rate * SHORT_TERM_HOP_SECONDS)
    short_term = [
        power_to_lufs(float(p))
        for p in weighted_mean_squares(filtered, weights, st_window, st_hop)
    ]

    true_peak = amplitude_to_db(float(np.max(np.abs(data))))
    lra = loudness_range(short_term)

    if block_powers.size == 0:
        logger.warning("[LUFS] Signal shorter than one %d-sample block", block)

    logger.info(
        "[LUFS] integrated=%.2f LUFS LRA=%.2f LU peak=%.2f dBFS blocks=%d short_term=%d",
        integrated,
        lra,
        true_peak,
        block_powers.size,
        len(short_term),
    )

    return LoudnessResult(
        integrated=integrated,
        short_term=short_term,
        momentary=momentary,
        true_peak=true_peak,
        lra=lra,
        **timing(started),
    )
