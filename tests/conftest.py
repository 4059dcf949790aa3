"""Shared fixtures: synthetic signals with known properties."""

import numpy as np
import pytest

from audiocheck.dsp_engine.generators import generate_noise, generate_tone

SAMPLE_RATE = 48000


@pytest.fixture
def sample_rate():
    return SAMPLE_RATE


@pytest.fixture
def sine_1k():
    """Two seconds of a 1 kHz sine at half scale."""
    return generate_tone(1000.0, 2.0, SAMPLE_RATE, amplitude=0.5)


@pytest.fixture
def stereo_sine(sine_1k):
    return np.stack([sine_1k, sine_1k])


@pytest.fixture
def white_noise():
    return generate_noise(4.0, SAMPLE_RATE, "white", amplitude=0.5, seed=1234)


@pytest.fixture
def silence():
    return np.zeros((2, SAMPLE_RATE * 4), dtype=np.float32)
