"""Result records, one frozen dataclass per analysis kind.

Every variant carries the `kind` discriminator and timing metadata. Results
never reference the input buffer. Array fields are fresh arrays owned by the
result and marked read-only; sequence fields are stored as tuples.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Literal, Optional, Tuple

import numpy as np

AnalysisKind = Literal[
    "bit_depth",
    "bandwidth",
    "lossy",
    "lufs",
    "dynamic_range",
    "stereo",
    "waveform",
    "spectrum",
    "spectrogram",
    "silence",
    "verdict",
]

Grade = Literal["A", "B", "C", "D", "F"]


def timing(started: float) -> Dict[str, float]:
    """Timing fields for a result whose computation began at `started`.

    `started` is a `time.perf_counter()` reading.
    """
    return {
        "computed_at_millis": time.time() * 1000.0,
        "compute_duration_millis": (time.perf_counter() - started) * 1000.0,
    }


def _plain(value: Any, json_safe: bool) -> Any:
    if isinstance(value, np.ndarray):
        return _plain(value.tolist(), json_safe)
    if isinstance(value, np.generic):
        return _plain(value.item(), json_safe)
    if isinstance(value, float):
        if json_safe and not math.isfinite(value):
            return None
        return value
    if isinstance(value, (list, tuple)):
        return [_plain(v, json_safe) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v, json_safe) for k, v in value.items()}
    if hasattr(value, "__dataclass_fields__"):
        return {f.name: _plain(getattr(value, f.name), json_safe) for f in fields(value)}
    return value


@dataclass(frozen=True, kw_only=True)
class AnalysisResult:
    kind: str
    computed_at_millis: float
    compute_duration_millis: float

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                object.__setattr__(self, f.name, tuple(value))
            elif isinstance(value, np.ndarray):
                value.setflags(write=False)

    def to_dict(self, json_safe: bool = False) -> Dict[str, Any]:
        """Plain-Python view of the result.

        With json_safe=True, non-finite floats (the -inf "no signal"
        sentinel) are emitted as None so the payload is valid JSON.
        """
        return _plain(self, json_safe)


@dataclass(frozen=True, kw_only=True)
class BitDepthResult(AnalysisResult):
    kind: Literal["bit_depth"] = "bit_depth"
    effective_bit_depth: int
    reported_bit_depth: int
    lsb_zero_ratio: float
    noise_floor: float
    confidence: int


@dataclass(frozen=True, kw_only=True)
class BandwidthResult(AnalysisResult):
    kind: Literal["bandwidth"] = "bandwidth"
    frequency_ceiling: float
    cutoff_sharpness: float
    source_guess: str
    is_upsampled: bool
    confidence: int


@dataclass(frozen=True, kw_only=True)
class LossyResult(AnalysisResult):
    kind: Literal["lossy"] = "lossy"
    is_lossy: bool
    spectral_holes: int
    encoder_fingerprint: Optional[str]
    confidence: int


@dataclass(frozen=True, kw_only=True)
class LoudnessResult(AnalysisResult):
    kind: Literal["lufs"] = "lufs"
    integrated: float
    short_term: Tuple[float, ...]
    momentary: Tuple[float, ...]
    true_peak: float
    lra: float


@dataclass(frozen=True, kw_only=True)
class DynamicRangeResult(AnalysisResult):
    kind: Literal["dynamic_range"] = "dynamic_range"
    dr_score: int
    crest_factor: float
    peak_dbfs: float
    rms_dbfs: float
    clipped_samples: int


@dataclass(frozen=True, kw_only=True)
class StereoResult(AnalysisResult):
    kind: Literal["stereo"] = "stereo"
    correlation: float
    stereo_width: float
    mid_energy: float
    side_energy: float
    mono_compatibility_loss: float


@dataclass(frozen=True, kw_only=True)
class WaveformResult(AnalysisResult):
    kind: Literal["waveform"] = "waveform"
    peaks: np.ndarray
    rms: np.ndarray
    samples_per_pixel: int


@dataclass(frozen=True)
class OctaveBand:
    center: float
    magnitude: float


@dataclass(frozen=True, kw_only=True)
class SpectrumResult(AnalysisResult):
    kind: Literal["spectrum"] = "spectrum"
    magnitudes: np.ndarray
    frequencies: np.ndarray
    octave_bands: Tuple[OctaveBand, ...] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class SpectrogramResult(AnalysisResult):
    kind: Literal["spectrogram"] = "spectrogram"
    magnitudes: np.ndarray  # [frames, fft_size // 2] dB
    frequencies: np.ndarray
    times: np.ndarray
    fft_size: int
    hop_size: int
    requested_hop_size: int
    sample_rate: int


@dataclass(frozen=True)
class SilentRegion:
    start_sample: int
    end_sample: int
    start_time: float
    end_time: float
    duration: float


@dataclass(frozen=True, kw_only=True)
class SilenceResult(AnalysisResult):
    kind: Literal["silence"] = "silence"
    regions: Tuple[SilentRegion, ...]
    threshold_db: float
    min_duration_ms: float
    total_silence: float


@dataclass(frozen=True, kw_only=True)
class VerdictResult(AnalysisResult):
    kind: Literal["verdict"] = "verdict"
    score: int
    grade: Grade
    issues: Tuple[str, ...]
    positives: Tuple[str, ...]
    is_genuine_hires: bool
