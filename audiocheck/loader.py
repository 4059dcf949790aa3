"""Decode audio files into PCMAudio with soundfile."""
from __future__ import annotations

import logging
from typing import Any, BinaryIO, Optional, Tuple, Union

import numpy as np
import soundfile as sf

from .analysis.pcm import PCMAudio, ReportedFormat

logger = logging.getLogger("audiocheck.loader")

Source = Union[str, BinaryIO]

# libsndfile subtypes with an integer resolution
_SUBTYPE_BIT_DEPTH = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
    "ALAC_16": 16,
    "ALAC_20": 20,
    "ALAC_24": 24,
    "ALAC_32": 32,
}


class AudioDecodeError(RuntimeError):
    """Raised when soundfile cannot read the input."""


def reported_format(info: Any) -> ReportedFormat:
    """Build a ReportedFormat from a soundfile info/SoundFile object."""
    return ReportedFormat(
        container=str(info.format),
        subtype=str(info.subtype),
        bit_depth=_SUBTYPE_BIT_DEPTH.get(str(info.subtype)),
        sample_rate=int(info.samplerate),
    )


def load_pcm(source: Source, bit_depth: Optional[int] = None) -> Tuple[PCMAudio, ReportedFormat]:
    """Read a file path or file-like object into PCMAudio.

    `bit_depth` overrides the depth implied by the file's subtype.
    """

    try:
        with sf.SoundFile(source) as f:
            fmt = reported_format(f)
            frames = f.read(dtype="float32", always_2d=True)
    except (RuntimeError, TypeError) as exc:
        raise AudioDecodeError(f"Failed to read audio: {exc}") from exc

    channels = np.ascontiguousarray(frames.T)
    pcm = PCMAudio.from_channels(
        channels,
        sample_rate=fmt.sample_rate,
        bit_depth=bit_depth or fmt.bit_depth,
        header_sample_rate=fmt.sample_rate,
    )
    logger.info(
        "[LOAD] %s/%s %d Hz %d ch %.2f s",
        fmt.container,
        fmt.subtype,
        fmt.sample_rate,
        pcm.num_channels,
        pcm.duration,
    )
    return pcm, fmt
