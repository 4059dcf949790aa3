"""Request/response boundary around the analysis functions.

One request runs exactly one analysis over its own PCM snapshot. Errors are
never raised past this point: they come back in `AnalysisResponse.error`.
`AnalysisDispatcher` runs requests on a thread pool for callers that want
several analyses of the same file in flight at once.
"""
from __future__ import annotations

import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .analysis import (
    analyze_bandwidth,
    analyze_bit_depth,
    analyze_stereo,
    compute_spectrogram,
    compute_spectrum,
    compute_waveform,
    detect_lossy,
    detect_silence,
    measure_dynamic_range,
    measure_loudness,
    run_verdict,
)
from .analysis.pcm import PCMAudio
from .analysis.results import AnalysisResult
from .config import get_settings

logger = logging.getLogger("audiocheck.dispatch")


@dataclass(frozen=True)
class AnalysisRequest:
    kind: str
    pcm: PCMAudio
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class AnalysisResponse:
    id: str
    kind: str
    result: Optional[AnalysisResult] = None
    sub_results: Optional[Dict[str, AnalysisResult]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self, json_safe: bool = True) -> Dict[str, object]:
        return {
            "id": self.id,
            "kind": self.kind,
            "result": self.result.to_dict(json_safe) if self.result is not None else None,
            "sub_results": (
                {k: v.to_dict(json_safe) for k, v in self.sub_results.items()}
                if self.sub_results is not None
                else None
            ),
            "error": self.error,
        }


def _bit_depth(pcm: PCMAudio) -> int:
    return pcm.bit_depth or get_settings().default_bit_depth


ANALYSES: Dict[str, Callable[[PCMAudio], AnalysisResult]] = {
    "bit_depth": lambda pcm: analyze_bit_depth(pcm.channels, _bit_depth(pcm)),
    "bandwidth": lambda pcm: analyze_bandwidth(pcm.channels, pcm.sample_rate),
    "lossy": lambda pcm: detect_lossy(pcm.channels, pcm.sample_rate),
    "lufs": lambda pcm: measure_loudness(pcm.channels, pcm.sample_rate),
    "dynamic_range": lambda pcm: measure_dynamic_range(pcm.channels, pcm.sample_rate),
    "stereo": lambda pcm: analyze_stereo(pcm.channels),
    "waveform": lambda pcm: compute_waveform(pcm.channels),
    "spectrum": lambda pcm: compute_spectrum(pcm.channels, pcm.sample_rate),
    "spectrogram": lambda pcm: compute_spectrogram(pcm.channels, pcm.sample_rate),
    "silence": lambda pcm: detect_silence(pcm.channels, pcm.sample_rate),
}

KINDS = tuple(ANALYSES) + ("verdict",)


def run_request(request: AnalysisRequest) -> AnalysisResponse:
    """Run one analysis synchronously and wrap the outcome."""

    pcm = request.pcm
    try:
        if request.kind == "verdict":
            verdict, subs = run_verdict(
                pcm.channels,
                pcm.sample_rate,
                _bit_depth(pcm),
                pcm.header_sample_rate,
            )
            return AnalysisResponse(id=request.id, kind=request.kind, result=verdict, sub_results=subs)

        analysis = ANALYSES.get(request.kind)
        if analysis is None:
            raise KeyError(f"Unknown analysis kind: {request.kind}")
        return AnalysisResponse(id=request.id, kind=request.kind, result=analysis(pcm))
    except Exception as exc:
        logger.exception("[DISPATCH] %s request %s failed", request.kind, request.id)
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
        return AnalysisResponse(id=request.id, kind=request.kind, error=message or type(exc).__name__)


class AnalysisDispatcher:
    """Thread-pool front end for `run_request`."""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or get_settings().max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="audiocheck"
        )

    def submit(self, request: AnalysisRequest) -> "Future[AnalysisResponse]":
        return self._executor.submit(run_request, request)

    def run_many(self, pcm: PCMAudio, kinds: Iterable[str]) -> List[AnalysisResponse]:
        """Run several kinds over one PCM snapshot, preserving request order."""
        futures = [self.submit(AnalysisRequest(kind=kind, pcm=pcm)) for kind in kinds]
        return [f.result() for f in futures]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "AnalysisDispatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
