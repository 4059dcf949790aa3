"""Tests for configuration, decoding, the HTTP service and the CLI."""

import io
import json

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from audiocheck import cli
from audiocheck.config import Settings, get_settings
from audiocheck.dispatch import AnalysisRequest
from audiocheck.dsp_engine.generators import generate_tone
from audiocheck.loader import AudioDecodeError, load_pcm
from audiocheck.main import app


def _wav_bytes(channels, sample_rate, subtype="PCM_24"):
    buf = io.BytesIO()
    sf.write(buf, np.asarray(channels).T, sample_rate, format="WAV", subtype=subtype)
    buf.seek(0)
    return buf


@pytest.fixture
def stereo_tone():
    tone = generate_tone(1000.0, 1.0, 48000, amplitude=0.5)
    return np.stack([tone, tone])


@pytest.fixture
def clean_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, monkeypatch, clean_settings):
        for name in ("AUDIOCHECK_MAX_WORKERS", "AUDIOCHECK_DEFAULT_BIT_DEPTH", "AUDIOCHECK_CORS_ORIGINS", "AUDIOCHECK_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = get_settings()
        assert settings == Settings()
        assert settings.max_workers == 4
        assert settings.default_bit_depth == 16
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch, clean_settings):
        monkeypatch.setenv("AUDIOCHECK_MAX_WORKERS", "8")
        monkeypatch.setenv("AUDIOCHECK_DEFAULT_BIT_DEPTH", "24")
        monkeypatch.setenv("AUDIOCHECK_CORS_ORIGINS", "https://a.example, https://b.example,")
        monkeypatch.setenv("AUDIOCHECK_LOG_LEVEL", "debug")
        settings = get_settings()
        assert settings.max_workers == 8
        assert settings.default_bit_depth == 24
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("raw", ["zero", "0", "-2"])
    def test_invalid_integers_raise(self, monkeypatch, clean_settings, raw):
        monkeypatch.setenv("AUDIOCHECK_MAX_WORKERS", raw)
        with pytest.raises(ValueError):
            Settings.from_env()


class TestLoader:
    def test_reads_wav_metadata(self, stereo_tone):
        pcm, fmt = load_pcm(_wav_bytes(stereo_tone, 48000))
        assert fmt.container == "WAV"
        assert fmt.subtype == "PCM_24"
        assert fmt.bit_depth == 24
        assert pcm.bit_depth == 24
        assert pcm.header_sample_rate == 48000
        assert pcm.channels.shape == (2, 48000)
        np.testing.assert_allclose(pcm.channels, stereo_tone, atol=1e-6)

    def test_bit_depth_override(self, stereo_tone):
        pcm, fmt = load_pcm(_wav_bytes(stereo_tone, 48000, "PCM_16"), bit_depth=24)
        assert fmt.bit_depth == 16
        assert pcm.bit_depth == 24

    def test_float_subtype(self, stereo_tone):
        _, fmt = load_pcm(_wav_bytes(stereo_tone, 44100, "FLOAT"))
        assert fmt.bit_depth == 32

    def test_garbage_raises_decode_error(self):
        with pytest.raises(AudioDecodeError):
            load_pcm(io.BytesIO(b"definitely not audio"))


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


class TestAPI:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_kinds(self, client):
        kinds = client.get("/kinds").json()["kinds"]
        assert "lufs" in kinds and "verdict" in kinds

    def test_analyze_lufs(self, client, stereo_tone):
        response = client.post(
            "/analyze/lufs",
            files={"file": ("tone.wav", _wav_bytes(stereo_tone, 48000), "audio/wav")},
            data={"request_id": "req-1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "req-1"
        assert body["kind"] == "lufs"
        assert body["error"] is None
        assert body["result"]["kind"] == "lufs"
        assert body["file"]["sample_rate"] == 48000
        assert body["file"]["channels"] == 2
        assert body["file"]["bit_depth"] == 24

    def test_analyze_verdict_includes_sub_results(self, client, stereo_tone):
        response = client.post(
            "/analyze/verdict",
            files={"file": ("tone.wav", _wav_bytes(stereo_tone, 48000), "audio/wav")},
            data={"bit_depth": "24", "header_sample_rate": "96000"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["result"]["kind"] == "verdict"
        assert set(body["sub_results"]) == {"bit_depth", "bandwidth", "lossy", "dynamic_range"}

    def test_silence_reports_null_loudness(self, client):
        silent = np.zeros((1, 48000), dtype=np.float32)
        response = client.post(
            "/analyze/lufs",
            files={"file": ("silent.wav", _wav_bytes(silent, 48000), "audio/wav")},
        )
        assert response.status_code == 200
        assert response.json()["result"]["integrated"] is None

    def test_unknown_kind_is_404(self, client, stereo_tone):
        response = client.post(
            "/analyze/tempo",
            files={"file": ("tone.wav", _wav_bytes(stereo_tone, 48000), "audio/wav")},
        )
        assert response.status_code == 404

    def test_undecodable_upload_is_400(self, client):
        response = client.post(
            "/analyze/lufs",
            files={"file": ("junk.wav", io.BytesIO(b"junk"), "audio/wav")},
        )
        assert response.status_code == 400

    def test_analysis_error_is_reported_in_body(self, client):
        surround = np.zeros((6, 4800), dtype=np.float32)
        response = client.post(
            "/analyze/lufs",
            files={"file": ("surround.wav", _wav_bytes(surround, 48000), "audio/wav")},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["result"] is None
        assert "up to 5 channels" in body["error"]

    def test_dispatcher_is_shut_down_with_the_app(self, stereo_tone):
        with TestClient(app) as test_client:
            assert test_client.get("/health").status_code == 200
            dispatcher = app.state.dispatcher
        pcm, _ = load_pcm(_wav_bytes(stereo_tone, 48000))
        with pytest.raises(RuntimeError):
            dispatcher.submit(AnalysisRequest(kind="stereo", pcm=pcm))


class TestCLI:
    def test_json_output(self, tmp_path, stereo_tone, capsys):
        path = tmp_path / "tone.wav"
        sf.write(str(path), stereo_tone.T, 48000, subtype="PCM_16")
        code = cli.main([str(path), "--kind", "lufs", "--kind", "stereo", "--json"])
        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["file"]["bit_depth"] == 16
        assert [a["kind"] for a in payload["analyses"]] == ["lufs", "stereo"]

    def test_text_output(self, tmp_path, stereo_tone, capsys):
        path = tmp_path / "tone.wav"
        sf.write(str(path), stereo_tone.T, 48000, subtype="PCM_16")
        assert cli.main([str(path)]) == 0
        out = capsys.readouterr().out
        assert "[verdict]" in out
        assert "[lufs]" in out
        assert "momentary:" in out

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main([str(tmp_path / "missing.wav")]) == 1
        assert "error:" in capsys.readouterr().err
