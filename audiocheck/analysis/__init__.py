"""Forensic and quality analyses over decoded PCM.

Each analysis is a pure function taking [channels, samples] audio (and the
sample rate where needed) and returning a frozen result record.
"""
from .bandwidth import analyze_bandwidth
from .bit_depth import analyze_bit_depth
from .dynamic_range import measure_dynamic_range
from .loudness import measure_loudness
from .lossy import detect_lossy
from .pcm import InvalidAudioError, PCMAudio, ReportedFormat, UnsupportedChannelLayoutError
from .results import AnalysisKind, AnalysisResult
from .silence import detect_silence
from .stereo import analyze_stereo
from .verdict import compute_verdict, run_verdict
from .visualization import compute_spectrogram, compute_spectrum, compute_waveform

__all__ = [
    "AnalysisKind",
    "AnalysisResult",
    "InvalidAudioError",
    "PCMAudio",
    "ReportedFormat",
    "UnsupportedChannelLayoutError",
    "analyze_bandwidth",
    "analyze_bit_depth",
    "analyze_stereo",
    "compute_spectrogram",
    "compute_spectrum",
    "compute_verdict",
    "compute_waveform",
    "detect_lossy",
    "detect_silence",
    "measure_dynamic_range",
    "measure_loudness",
    "run_verdict",
]
