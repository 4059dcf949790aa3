"""Tests for waveform, spectrum, spectrogram and silence detection."""

import math

import numpy as np
import pytest

from audiocheck.analysis.silence import detect_silence
from audiocheck.analysis.visualization import (
    MAX_SPECTROGRAM_FRAMES,
    THIRD_OCTAVE_CENTERS,
    compute_spectrogram,
    compute_spectrum,
    compute_waveform,
    octave_bands,
    spectrogram_hop,
)
from audiocheck.dsp_engine.fft import DB_FLOOR
from audiocheck.dsp_engine.generators import generate_tone


class TestWaveform:
    def test_bucket_count(self):
        result = compute_waveform(np.zeros(10000, dtype=np.float32), target_width=2000)
        assert result.kind == "waveform"
        assert result.samples_per_pixel == 5
        assert result.peaks.shape == (2000,)
        assert result.rms.shape == (2000,)

    def test_ragged_tail_gets_its_own_bucket(self):
        result = compute_waveform(np.zeros(10001, dtype=np.float32), target_width=2000)
        assert result.peaks.shape == (2001,)

    def test_constant_signal(self):
        x = np.full(4000, -0.5, dtype=np.float32)
        result = compute_waveform(x, target_width=100)
        np.testing.assert_allclose(result.peaks, 0.5)
        np.testing.assert_allclose(result.rms, 0.5, rtol=1e-6)

    def test_shorter_than_width(self):
        result = compute_waveform(np.ones(10, dtype=np.float32), target_width=2000)
        assert result.samples_per_pixel == 1
        assert result.peaks.shape == (10,)

    def test_uses_first_channel(self):
        left = np.full(1000, 0.25, dtype=np.float32)
        right = np.ones(1000, dtype=np.float32)
        result = compute_waveform(np.stack([left, right]), target_width=10)
        np.testing.assert_allclose(result.peaks, 0.25)


class TestSpectrum:
    def test_tone_peak_and_axes(self, sine_1k, sample_rate):
        result = compute_spectrum(sine_1k, sample_rate)
        assert result.kind == "spectrum"
        assert result.magnitudes.shape == (4096,)
        assert result.magnitudes.dtype == np.float32
        assert result.frequencies[1] == pytest.approx(sample_rate / 8192)
        peak_hz = result.frequencies[int(np.argmax(result.magnitudes))]
        assert peak_hz == pytest.approx(1000.0, abs=sample_rate / 8192)

    def test_octave_band_at_tone_is_loudest(self, sine_1k, sample_rate):
        bands = compute_spectrum(sine_1k, sample_rate).octave_bands
        loudest = max(bands, key=lambda b: b.magnitude)
        assert loudest.center == 1000.0
        assert {b.center for b in bands} <= {float(c) for c in THIRD_OCTAVE_CENTERS}

    def test_bands_without_bins_are_skipped(self):
        freqs = np.array([1000.0, 1010.0])
        bands = octave_bands(np.array([-20.0, -20.0]), freqs)
        assert [b.center for b in bands] == [1000.0]
        assert bands[0].magnitude == pytest.approx(-20.0)

    def test_short_input_is_floor(self, sample_rate):
        result = compute_spectrum(np.zeros(100, dtype=np.float32), sample_rate)
        assert np.all(result.magnitudes == DB_FLOOR)


class TestSpectrogram:
    def test_default_hop(self, sine_1k, sample_rate):
        result = compute_spectrogram(sine_1k, sample_rate)
        assert result.kind == "spectrogram"
        assert result.hop_size == 1024
        assert result.requested_hop_size == 1024
        expected = (sine_1k.shape[0] - 4096) // 1024 + 1
        assert result.magnitudes.shape == (expected, 2048)
        assert result.times.shape == (expected,)
        assert result.times[1] == pytest.approx(1024 / sample_rate)
        assert result.sample_rate == sample_rate

    def test_long_input_widens_hop(self, sample_rate):
        length = sample_rate * 60
        x = np.zeros(length, dtype=np.float32)
        result = compute_spectrogram(x, sample_rate)
        span = length - 4096
        assert result.hop_size == math.ceil(span / (MAX_SPECTROGRAM_FRAMES - 1))
        assert result.magnitudes.shape[0] <= MAX_SPECTROGRAM_FRAMES
        assert result.requested_hop_size == 1024

    def test_hop_is_kept_at_the_limit(self):
        span = 1199 * 1024
        assert spectrogram_hop(span + 4096, 4096, 1024) == 1024
        assert spectrogram_hop(span + 4096 + 1024, 4096, 1024) > 1024

    def test_shorter_than_one_fft(self, sample_rate):
        x = np.full(1000, 0.5, dtype=np.float32)
        result = compute_spectrogram(x, sample_rate)
        assert result.magnitudes.shape == (1, 2048)
        assert result.times.tolist() == [0.0]
        assert result.magnitudes[0, 0] > DB_FLOOR

    def test_tone_row_peak(self, sample_rate):
        tone = generate_tone(3000.0, 1.0, sample_rate, amplitude=0.5)
        result = compute_spectrogram(tone, sample_rate, fft_size=2048, hop_size=512)
        peak_bins = np.argmax(result.magnitudes, axis=1)
        assert np.all(np.abs(result.frequencies[peak_bins] - 3000.0) <= sample_rate / 2048)

    def test_rejects_bad_hop(self, sine_1k, sample_rate):
        with pytest.raises(ValueError):
            compute_spectrogram(sine_1k, sample_rate, hop_size=0)


class TestSilence:
    def test_gap_between_tones(self, sample_rate):
        tone = generate_tone(1000.0, 1.0, sample_rate, amplitude=0.5)
        gap = np.zeros(sample_rate // 2, dtype=np.float32)
        result = detect_silence(np.concatenate([tone, gap, tone]), sample_rate)
        assert result.kind == "silence"
        assert len(result.regions) == 1
        region = result.regions[0]
        assert region.start_time == pytest.approx(1.0, abs=0.01)
        assert region.duration == pytest.approx(0.5, abs=0.011)
        assert result.total_silence == pytest.approx(region.duration)

    def test_short_gap_is_ignored(self, sample_rate):
        tone = generate_tone(1000.0, 1.0, sample_rate, amplitude=0.5)
        gap = np.zeros(sample_rate // 40, dtype=np.float32)
        result = detect_silence(np.concatenate([tone, gap, tone]), sample_rate)
        assert result.regions == ()
        assert result.total_silence == 0.0

    def test_all_silent_includes_trailing_region(self, silence, sample_rate):
        result = detect_silence(silence, sample_rate)
        assert len(result.regions) == 1
        assert result.regions[0].start_sample == 0
        assert result.regions[0].end_sample == silence.shape[1]
        assert result.total_silence == pytest.approx(4.0)

    def test_threshold_is_configurable(self, sample_rate):
        quiet = generate_tone(1000.0, 1.0, sample_rate, amplitude=0.01)  # -40 dBFS
        assert detect_silence(quiet, sample_rate, threshold_db=-60.0).regions == ()
        assert len(detect_silence(quiet, sample_rate, threshold_db=-30.0).regions) == 1
