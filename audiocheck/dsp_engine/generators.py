"""Synthetic test signals: tones, coloured noise and sweeps.

Used to exercise the analysers with signals whose properties are known in
advance (a full-scale sine for loudness, band-limited noise for bandwidth,
and so on). All generators return float32 mono buffers.
"""
from __future__ import annotations

from typing import Literal, Optional

import numpy as np
from scipy.signal import lfilter

ToneShape = Literal["sine", "square", "triangle", "sawtooth"]
NoiseColor = Literal["white", "pink", "brown", "blue", "violet", "grey"]
SweepKind = Literal["linear", "logarithmic"]

# Paul Kellet's pink filter, expressed as parallel one-pole sections.
_PINK_POLES = (0.99886, 0.99332, 0.96900, 0.86650, 0.55000, -0.7616)
_PINK_GAINS = (0.0555179, 0.0750759, 0.1538520, 0.3104856, 0.5329522, -0.0168980)


def _time_axis(duration: float, sample_rate: int) -> np.ndarray:
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    length = int(round(sample_rate * duration))
    return np.arange(max(0, length), dtype=np.float64) / sample_rate


def generate_tone(
    frequency: float,
    duration: float,
    sample_rate: int = 44100,
    waveform: ToneShape = "sine",
    amplitude: float = 0.8,
) -> np.ndarray:
    t = _time_axis(duration, sample_rate)
    phase = np.mod(frequency * t, 1.0)
    if waveform == "sine":
        y = np.sin(2.0 * np.pi * frequency * t)
    elif waveform == "square":
        y = np.where(phase < 0.5, 1.0, -1.0)
    elif waveform == "triangle":
        y = 4.0 * np.abs(phase - 0.5) - 1.0
    elif waveform == "sawtooth":
        y = 2.0 * phase - 1.0
    else:
        raise ValueError(f"Unsupported waveform: {waveform}")
    return (amplitude * y).astype(np.float32)


def generate_noise(
    duration: float,
    sample_rate: int = 44100,
    color: NoiseColor = "white",
    amplitude: float = 0.5,
    seed: Optional[int] = None,
) -> np.ndarray:
    length = _time_axis(duration, sample_rate).shape[0]
    rng = np.random.default_rng(seed)
    white = rng.uniform(-1.0, 1.0, size=length)

    if color == "white":
        y = white
    elif color == "pink":
        y = white * 0.5362
        for pole, gain in zip(_PINK_POLES, _PINK_GAINS):
            y = y + lfilter([gain], [1.0, -pole], white)
        # b6 term: previous white sample scaled
        y[1:] += 0.115926 * white[:-1]
        y *= 0.11
    elif color == "brown":
        # last = (last + 0.02 * white) / 1.02
        y = lfilter([0.02 / 1.02], [1.0, -1.0 / 1.02], white) * 3.5
    elif color == "blue":
        y = lfilter([1.0, -1.0], [1.0], white)
    elif color == "violet":
        y = lfilter([1.0, -2.0, 1.0], [1.0], white) * 0.5
    elif color == "grey":
        y = white * 0.7
    else:
        raise ValueError(f"Unsupported noise color: {color}")
    return (amplitude * y).astype(np.float32)


def generate_sweep(
    start_freq: float,
    end_freq: float,
    duration: float,
    sample_rate: int = 44100,
    kind: SweepKind = "logarithmic",
    amplitude: float = 0.8,
) -> np.ndarray:
    t = _time_axis(duration, sample_rate)
    if kind == "logarithmic":
        if start_freq <= 0 or end_freq <= 0:
            raise ValueError("Logarithmic sweeps need positive frequencies")
        k = np.log(end_freq / start_freq) / duration
        phase = (start_freq / k) * (np.exp(k * t) - 1.0)
    elif kind == "linear":
        rate = (end_freq - start_freq) / duration
        phase = start_freq * t + rate * t * t / 2.0
    else:
        raise ValueError(f"Unsupported sweep kind: {kind}")
    return (amplitude * np.sin(2.0 * np.pi * phase)).astype(np.float32)
