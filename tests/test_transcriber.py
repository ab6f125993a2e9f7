"""Tests for the faster-whisper transcription service (model mocked)."""

import sys
from types import ModuleType, SimpleNamespace
from unittest.mock import MagicMock

import numpy as np
import pytest

from esponquen.transcriber import (
    TranscriptionError,
    WhisperTranscriber,
    describe_provider,
    resample,
)


@pytest.fixture
def fake_faster_whisper(monkeypatch):
    module = ModuleType("faster_whisper")
    module.WhisperModel = MagicMock()
    monkeypatch.setitem(sys.modules, "faster_whisper", module)
    return module


def test_resample_to_model_rate():
    samples = np.linspace(0, 1, 48000, dtype=np.float32)
    out = resample(samples, 48000)
    assert out.dtype == np.float32
    assert len(out) == 16000


def test_resample_is_noop_at_model_rate():
    samples = np.ones(100, dtype=np.float32)
    assert resample(samples, 16000) is samples


def test_describe_provider():
    assert describe_provider("cpu", 4) == "CPU (4 threads)"
    assert describe_provider("cuda", 4) == "GPU: CUDA"


class TestWhisperTranscriber:
    def test_falls_back_to_cpu(self, fake_faster_whisper, tmp_path):
        model = MagicMock()
        fake_faster_whisper.WhisperModel.side_effect = [RuntimeError("no CUDA"), model]
        transcriber = WhisperTranscriber(download_root=str(tmp_path))
        assert transcriber.provider_info == "Initializing..."

        transcriber.load()

        assert transcriber.provider == "cpu"
        assert transcriber.provider_info == "CPU (4 threads)"
        _, kwargs = fake_faster_whisper.WhisperModel.call_args
        assert kwargs["device"] == "cpu"
        assert kwargs["compute_type"] == "int8"

    def test_no_provider_raises(self, fake_faster_whisper, tmp_path):
        fake_faster_whisper.WhisperModel.side_effect = RuntimeError("broken")
        transcriber = WhisperTranscriber(providers=["cpu"], download_root=str(tmp_path))

        with pytest.raises(TranscriptionError, match="broken"):
            transcriber.load()

    def test_transcribe_joins_segments(self, fake_faster_whisper, tmp_path):
        model = MagicMock()
        model.transcribe.return_value = (
            iter([SimpleNamespace(text=" hello"), SimpleNamespace(text="world ")]),
            None,
        )
        fake_faster_whisper.WhisperModel.return_value = model
        transcriber = WhisperTranscriber(language="en", download_root=str(tmp_path))
        transcriber.load()

        text = transcriber.transcribe(32000, np.zeros(32000, dtype=np.float32))

        assert text == "hello world"
        audio = model.transcribe.call_args[0][0]
        assert len(audio) == 16000
        assert model.transcribe.call_args[1]["language"] == "en"

    def test_transcribe_before_load_raises(self):
        with pytest.raises(TranscriptionError):
            WhisperTranscriber().transcribe(16000, np.zeros(10, dtype=np.float32))
