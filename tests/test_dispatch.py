"""Tests for the request/response dispatch layer."""

import json

import numpy as np
import pytest

from audiocheck.analysis.pcm import PCMAudio
from audiocheck.dispatch import (
    ANALYSES,
    KINDS,
    AnalysisDispatcher,
    AnalysisRequest,
    run_request,
)


@pytest.fixture
def pcm(stereo_sine, sample_rate):
    return PCMAudio(channels=stereo_sine, sample_rate=sample_rate, bit_depth=16)


class TestRunRequest:
    @pytest.mark.parametrize("kind", sorted(ANALYSES))
    def test_every_kind_succeeds(self, pcm, kind):
        response = run_request(AnalysisRequest(kind=kind, pcm=pcm))
        assert response.ok, response.error
        assert response.kind == kind
        assert response.result.kind == kind
        assert response.sub_results is None
        json.dumps(response.to_dict(), allow_nan=False)

    def test_request_id_is_echoed(self, pcm):
        response = run_request(AnalysisRequest(kind="stereo", pcm=pcm, id="abc"))
        assert response.id == "abc"

    def test_generated_ids_are_unique(self, pcm):
        assert AnalysisRequest(kind="lufs", pcm=pcm).id != AnalysisRequest(kind="lufs", pcm=pcm).id

    def test_verdict_carries_sub_results(self, pcm):
        response = run_request(AnalysisRequest(kind="verdict", pcm=pcm))
        assert response.ok
        assert response.result.kind == "verdict"
        assert set(response.sub_results) == {"bit_depth", "bandwidth", "lossy", "dynamic_range"}
        payload = response.to_dict()
        assert payload["sub_results"]["lossy"]["kind"] == "lossy"

    def test_unknown_kind_is_an_error_response(self, pcm):
        response = run_request(AnalysisRequest(kind="tempo", pcm=pcm))
        assert not response.ok
        assert response.result is None
        assert response.error == "Unknown analysis kind: tempo"

    def test_analysis_failure_is_an_error_response(self, sample_rate):
        pcm = PCMAudio(channels=np.zeros((6, sample_rate), dtype=np.float32), sample_rate=sample_rate)
        response = run_request(AnalysisRequest(kind="lufs", pcm=pcm))
        assert not response.ok
        assert "up to 5 channels" in response.error

    def test_silence_serializes_to_null(self, sample_rate):
        pcm = PCMAudio(channels=np.zeros((2, sample_rate), dtype=np.float32), sample_rate=sample_rate)
        payload = run_request(AnalysisRequest(kind="lufs", pcm=pcm)).to_dict()
        assert payload["result"]["integrated"] is None
        assert payload["error"] is None

    def test_missing_bit_depth_uses_default(self, stereo_sine, sample_rate):
        pcm = PCMAudio(channels=stereo_sine, sample_rate=sample_rate)
        response = run_request(AnalysisRequest(kind="bit_depth", pcm=pcm))
        assert response.result.reported_bit_depth == 16


class TestDispatcher:
    def test_run_many_preserves_order(self, pcm):
        kinds = ["lufs", "stereo", "verdict", "waveform"]
        with AnalysisDispatcher(max_workers=2) as dispatcher:
            responses = dispatcher.run_many(pcm, kinds)
        assert [r.kind for r in responses] == kinds
        assert all(r.ok for r in responses)

    def test_submit_returns_future(self, pcm):
        dispatcher = AnalysisDispatcher(max_workers=1)
        try:
            future = dispatcher.submit(AnalysisRequest(kind="dynamic_range", pcm=pcm))
            assert future.result(timeout=30).result.kind == "dynamic_range"
        finally:
            dispatcher.shutdown()

    def test_kinds_include_verdict(self):
        assert "verdict" in KINDS
        assert set(ANALYSES) < set(KINDS)
