"""Decoded PCM input and its validation.

Every analysis function works on a [channels, samples] float32 array. The
helpers here turn whatever the caller passes (a list of per-channel buffers,
a 2-D array, or a mono 1-D array) into that shape, and reject malformed
input instead of coercing it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

ChannelData = Union[np.ndarray, Sequence[np.ndarray]]


class InvalidAudioError(ValueError):
    """Raised for malformed PCM input (no channels, ragged lengths, bad rate)."""


class UnsupportedChannelLayoutError(InvalidAudioError):
    """Raised when an analysis has no defined behaviour for a channel layout."""


def ensure_channels(audio: ChannelData) -> np.ndarray:
    """Return audio as a float32 [C, N] array, validating the layout."""

    if isinstance(audio, np.ndarray):
        if audio.ndim == 1:
            data = audio[np.newaxis, :]
        elif audio.ndim == 2:
            data = audio
        else:
            raise InvalidAudioError(f"Expected mono [N] or [channels, N] audio, got {audio.ndim}-D")
    else:
        buffers = [np.asarray(ch) for ch in audio]
        if not buffers:
            raise InvalidAudioError("Audio has no channels")
        if any(b.ndim != 1 for b in buffers):
            raise InvalidAudioError("Each channel must be a 1-D buffer")
        lengths = {b.shape[0] for b in buffers}
        if len(lengths) != 1:
            raise InvalidAudioError(f"Channel lengths differ: {sorted(lengths)}")
        data = np.stack(buffers, axis=0)

    if data.shape[0] < 1:
        raise InvalidAudioError("Audio has no channels")
    if data.shape[1] < 1:
        raise InvalidAudioError("Audio channels are empty")
    if data.dtype != np.float32:
        data = data.astype(np.float32)
    return data


def ensure_sample_rate(sample_rate: int) -> int:
    try:
        rate = int(sample_rate)
    except (TypeError, ValueError) as exc:
        raise InvalidAudioError(f"Invalid sample rate: {sample_rate!r}") from exc
    if rate <= 0 or rate != sample_rate:
        raise InvalidAudioError(f"Sample rate must be a positive integer, got {sample_rate!r}")
    return rate


@dataclass(frozen=True)
class ReportedFormat:
    """Header metadata reported by the decoder for one file."""

    container: str
    subtype: str
    bit_depth: Optional[int]
    sample_rate: int


@dataclass(frozen=True)
class PCMAudio:
    """Decoded audio: per-channel float32 samples plus reported metadata."""

    channels: np.ndarray  # float32 [C, N]
    sample_rate: int
    bit_depth: Optional[int] = None
    header_sample_rate: Optional[int] = None

    def __post_init__(self) -> None:
        data = ensure_channels(self.channels).view()
        data.setflags(write=False)
        object.__setattr__(self, "channels", data)
        object.__setattr__(self, "sample_rate", ensure_sample_rate(self.sample_rate))

    @classmethod
    def from_channels(
        cls,
        channels: ChannelData,
        sample_rate: int,
        bit_depth: Optional[int] = None,
        header_sample_rate: Optional[int] = None,
    ) -> "PCMAudio":
        return cls(
            channels=ensure_channels(channels),
            sample_rate=sample_rate,
            bit_depth=bit_depth,
            header_sample_rate=header_sample_rate,
        )

    @property
    def num_channels(self) -> int:
        return int(self.channels.shape[0])

    @property
    def num_samples(self) -> int:
        return int(self.channels.shape[1])

    @property
    def duration(self) -> float:
        return self.num_samples / float(self.sample_rate)
