"""Display-ready data: waveform envelope, average spectrum, spectrogram.

These builders only shape numbers for rendering; turning them into pixels
is left to the client. Sizes are bounded so that a long 192 kHz file still
produces a payload the client can draw: the waveform has roughly
`target_width` buckets and the spectrogram never exceeds MAX_SPECTROGRAM_FRAMES
columns.
"""
from __future__ import annotations

import logging
import math
import time
from typing import List

import numpy as np

from ..dsp_engine.fft import fft, magnitude_spectrum
from ..dsp_engine.spectral import DEFAULT_FFT_SIZE, average_spectrum, mix_to_mono
from ..dsp_engine.windowing import get_window
from .pcm import ChannelData, ensure_channels, ensure_sample_rate
from .results import OctaveBand, SpectrogramResult, SpectrumResult, WaveformResult, timing

logger = logging.getLogger("audiocheck.analysis.visualization")

DEFAULT_WAVEFORM_WIDTH = 2000
SPECTRUM_MAX_FRAMES = 200
SPECTROGRAM_FFT_SIZE = 4096
SPECTROGRAM_HOP_SIZE = 1024
MAX_SPECTROGRAM_FRAMES = 1200

# ISO 266 third-octave centre frequencies, 20 Hz .. 20 kHz
THIRD_OCTAVE_CENTERS = (
    20, 25, 31.5, 40, 50, 63, 80, 100, 125, 160, 200, 250, 315, 400, 500,
    630, 800, 1000, 1250, 1600, 2000, 2500, 3150, 4000, 5000, 6300, 8000,
    10000, 12500, 16000, 20000,
)
_BAND_EDGE = 2.0 ** (1.0 / 6.0)


def compute_waveform(audio: ChannelData, target_width: int = DEFAULT_WAVEFORM_WIDTH) -> WaveformResult:
    """Peak and RMS per bucket for the first channel."""

    started = time.perf_counter()
    samples = ensure_channels(audio)[0].astype(np.float64)
    length = samples.shape[0]

    spp = max(1, length // max(1, int(target_width)))
    starts = np.arange(0, length, spp)
    counts = np.diff(np.append(starts, length))

    peaks = np.maximum.reduceat(np.abs(samples), starts).astype(np.float32)
    sums = np.add.reduceat(samples * samples, starts)
    rms = np.sqrt(sums / counts).astype(np.float32)

    return WaveformResult(peaks=peaks, rms=rms, samples_per_pixel=int(spp), **timing(started))


def octave_bands(magnitudes: np.ndarray, frequencies: np.ndarray) -> List[OctaveBand]:
    """Average dB magnitudes into third-octave bands.

    Bins are averaged as linear amplitudes and converted back to dB; bands
    without any bin are omitted.
    """

    bands: List[OctaveBand] = []
    linear = 10.0 ** (magnitudes.astype(np.float64) / 20.0)
    for center in THIRD_OCTAVE_CENTERS:
        lower = center / _BAND_EDGE
        upper = center * _BAND_EDGE
        mask = (frequencies >= lower) & (frequencies <= upper)
        if not np.any(mask):
            continue
        mean = float(linear[mask].mean())
        magnitude = 20.0 * math.log10(mean) if mean > 0 else -math.inf
        bands.append(OctaveBand(center=float(center), magnitude=magnitude))
    return bands


def compute_spectrum(
    audio: ChannelData,
    sample_rate: int,
    fft_size: int = DEFAULT_FFT_SIZE,
) -> SpectrumResult:
    """Average magnitude spectrum in dB plus third-octave bands."""

    started = time.perf_counter()
    data = ensure_channels(audio)
    sample_rate = ensure_sample_rate(sample_rate)

    avg_db, frame_count = average_spectrum(
        mix_to_mono(data),
        fft_size=fft_size,
        max_frames=SPECTRUM_MAX_FRAMES,
        window="hann",
        mode="magnitude_db",
    )
    magnitudes = avg_db.astype(np.float32)
    frequencies = (np.arange(fft_size >> 1) * sample_rate / fft_size).astype(np.float32)
    bands = octave_bands(magnitudes, frequencies)

    logger.debug("[SPECTRUM] frames=%d bands=%d", frame_count, len(bands))

    return SpectrumResult(
        magnitudes=magnitudes,
        frequencies=frequencies,
        octave_bands=bands,
        **timing(started),
    )


def spectrogram_hop(length: int, fft_size: int, hop_size: int) -> int:
    """Hop that keeps the frame count within MAX_SPECTROGRAM_FRAMES."""

    span = length - fft_size
    if span <= 0:
        return hop_size
    if span // hop_size + 1 > MAX_SPECTROGRAM_FRAMES:
        return math.ceil(span / (MAX_SPECTROGRAM_FRAMES - 1))
    return hop_size


def compute_spectrogram(
    audio: ChannelData,
    sample_rate: int,
    fft_size: int = SPECTROGRAM_FFT_SIZE,
    hop_size: int = SPECTROGRAM_HOP_SIZE,
    window: str = "hann",
) -> SpectrogramResult:
    """STFT of the first channel as a [frames, fft_size/2] dB grid.

    If the requested hop would produce more than MAX_SPECTROGRAM_FRAMES
    columns, the hop is widened to fit. Input shorter than one FFT gives a
    single zero-padded column.
    """

    started = time.perf_counter()
    samples = ensure_channels(audio)[0]
    sample_rate = ensure_sample_rate(sample_rate)
    if hop_size <= 0:
        raise ValueError(f"hop_size must be positive, got {hop_size}")

    length = samples.shape[0]
    half = fft_size >> 1
    win = get_window(window, fft_size)

    hop = spectrogram_hop(length, fft_size, hop_size)
    num_frames = max(1, (length - fft_size) // hop + 1) if length >= fft_size else 1
    if hop != hop_size:
        logger.info(
            "[SPECTROGRAM] hop widened %d -> %d to stay within %d frames",
            hop_size,
            hop,
            MAX_SPECTROGRAM_FRAMES,
        )

    magnitudes = np.empty((num_frames, half), dtype=np.float32)
    times = np.empty(num_frames, dtype=np.float32)
    for frame in range(num_frames):
        offset = frame * hop
        times[frame] = offset / sample_rate
        chunk = samples[offset : offset + fft_size]
        real = np.zeros(fft_size, dtype=np.float64)
        real[: chunk.shape[0]] = chunk
        real *= win
        imag = np.zeros(fft_size, dtype=np.float64)
        fft(real, imag)
        magnitudes[frame] = magnitude_spectrum(real, imag)

    frequencies = (np.arange(half) * sample_rate / fft_size).astype(np.float32)

    return SpectrogramResult(
        magnitudes=magnitudes,
        frequencies=frequencies,
        times=times,
        fft_size=fft_size,
        hop_size=hop,
        requested_hop_size=hop_size,
        sample_rate=sample_rate,
        **timing(started),
    )
