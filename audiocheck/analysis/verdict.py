"""Composite hi-res verdict built from the forensic sub-analyses.

Starts at 100 and deducts for each finding:
- bit depth: -20 if padded from >=16 bits, -30 if below 16 bits
- bandwidth: -25 if upsampled, -10 if the spectrum uses <=85% of Nyquist
- lossy transcode: -25
- dynamic range: -5 for DR6..DR9, -10 below DR6, -5 more if anything clips
"""
from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Tuple

from .bandwidth import analyze_bandwidth
from .bit_depth import MAX_BIT_DEPTH, analyze_bit_depth
from .common import round_half_up
from .dynamic_range import measure_dynamic_range
from .lossy import detect_lossy
from .pcm import ChannelData, ensure_channels, ensure_sample_rate
from .results import (
    AnalysisResult,
    BandwidthResult,
    BitDepthResult,
    DynamicRangeResult,
    Grade,
    LossyResult,
    VerdictResult,
    timing,
)

logger = logging.getLogger("audiocheck.analysis.verdict")

FULL_BANDWIDTH_RATIO = 0.85
GENUINE_MIN_SCORE = 75


def grade_for(score: int) -> Grade:
    if score >= 90:
        return "A"
    if score >= 75:
        return "B"
    if score >= 60:
        return "C"
    if score >= 40:
        return "D"
    return "F"


def compute_verdict(
    bit_depth: Optional[BitDepthResult],
    bandwidth: Optional[BandwidthResult],
    lossy: Optional[LossyResult],
    dynamic_range: Optional[DynamicRangeResult],
    reported_bit_depth: int,
    reported_sample_rate: int,
) -> VerdictResult:
    """Score the sub-results; any of them may be None and is then skipped.

    A reported depth above 32 bits is judged as 32, the deepest grid the
    bit-depth analysis measures.
    """

    started = time.perf_counter()
    reported_bit_depth = min(reported_bit_depth, MAX_BIT_DEPTH)
    score = 100
    issues: list[str] = []
    positives: list[str] = []

    if bit_depth is not None:
        effective = bit_depth.effective_bit_depth
        if effective >= reported_bit_depth:
            positives.append(f"Genuine {effective}-bit content")
        elif effective >= 16:
            score -= 20
            issues.append(
                f"Effective bit depth is {effective}-bit (reported {reported_bit_depth}-bit), "
                "likely padded from CD quality"
            )
        else:
            score -= 30
            issues.append(f"Very low effective bit depth: {effective}-bit")

    if bandwidth is not None:
        nyquist = reported_sample_rate / 2.0
        used = bandwidth.frequency_ceiling / nyquist if nyquist > 0 else 0.0
        ceiling_khz = round_half_up(bandwidth.frequency_ceiling / 1000.0)
        if bandwidth.is_upsampled:
            score -= 25
            issues.append(f"{bandwidth.source_guess}: frequency content caps at ~{ceiling_khz}kHz")
        elif used > FULL_BANDWIDTH_RATIO:
            positives.append(f"Full bandwidth utilization up to ~{ceiling_khz}kHz")
        else:
            score -= 10
            issues.append(f"Limited bandwidth: content only up to ~{ceiling_khz}kHz")

    if lossy is not None:
        if lossy.is_lossy:
            score -= 25
            detail = f" ({lossy.encoder_fingerprint})" if lossy.encoder_fingerprint else ""
            issues.append(
                f"Lossy transcode detected: {lossy.spectral_holes} spectral holes found{detail}"
            )
        else:
            positives.append("No lossy transcoding artifacts detected")

    if dynamic_range is not None:
        dr = dynamic_range.dr_score
        if dr >= 10:
            positives.append(f"Excellent dynamic range: DR{dr}")
        elif dr >= 6:
            score -= 5
            issues.append(f"Moderate dynamic range: DR{dr}")
        else:
            score -= 10
            issues.append(f"Poor dynamic range: DR{dr}, heavily compressed/limited")

        if dynamic_range.clipped_samples > 0:
            score -= 5
            issues.append(f"{dynamic_range.clipped_samples} clipped samples detected")
        else:
            positives.append("No clipping detected")

    score = max(0, min(100, score))
    grade = grade_for(score)
    is_genuine = (
        score >= GENUINE_MIN_SCORE
        and not (lossy is not None and lossy.is_lossy)
        and not (bandwidth is not None and bandwidth.is_upsampled)
    )

    logger.info("[VERDICT] score=%d grade=%s genuine=%s issues=%d", score, grade, is_genuine, len(issues))

    return VerdictResult(
        score=score,
        grade=grade,
        issues=issues,
        positives=positives,
        is_genuine_hires=is_genuine,
        **timing(started),
    )


def run_verdict(
    audio: ChannelData,
    sample_rate: int,
    bit_depth: int,
    header_sample_rate: Optional[int] = None,
) -> Tuple[VerdictResult, Dict[str, AnalysisResult]]:
    """Run the four constituent analyses and aggregate them.

    Returns the verdict and the sub-results keyed by kind.
    """

    data = ensure_channels(audio)
    sample_rate = ensure_sample_rate(sample_rate)
    reported_rate = header_sample_rate or sample_rate

    bd = analyze_bit_depth(data, bit_depth)
    bw = analyze_bandwidth(data, sample_rate)
    ld = detect_lossy(data, sample_rate)
    dr = measure_dynamic_range(data, sample_rate)
    verdict = compute_verdict(bd, bw, ld, dr, bit_depth, reported_rate)
    return verdict, {bd.kind: bd, bw.kind: bw, ld.kind: ld, dr.kind: dr}
