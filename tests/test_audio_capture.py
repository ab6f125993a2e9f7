"""Tests for audio capture with a fake sounddevice module."""

import sys
from types import ModuleType
from unittest.mock import MagicMock

import numpy as np
import pytest

from esponquen.audio_capture import AudioCapture, SoundDeviceError
from esponquen.recording import RecordingBuffer

DEVICES = [
    {"name": "HDMI Output", "max_input_channels": 0, "default_samplerate": 48000.0},
    {"name": "USB Microphone", "max_input_channels": 1, "default_samplerate": 44100.0},
]


@pytest.fixture
def fake_sounddevice(monkeypatch):
    module = ModuleType("sounddevice")

    class PortAudioError(Exception):
        pass

    def query_devices(device=None, kind=None):
        if device is None and kind is None:
            return module.devices
        if device is None:
            return next(d for d in module.devices if d["max_input_channels"] > 0)
        return module.devices[device]

    module.devices = list(DEVICES)
    module.PortAudioError = PortAudioError
    module.query_devices = query_devices
    module.InputStream = MagicMock()
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


def test_start_sets_buffer_rate_and_opens_mono_stream(fake_sounddevice):
    buffer = RecordingBuffer()
    capture = AudioCapture(buffer)

    capture.start()

    assert buffer.sample_rate == 44100
    _, kwargs = fake_sounddevice.InputStream.call_args
    assert kwargs["channels"] == 1
    assert kwargs["dtype"] == "float32"
    fake_sounddevice.InputStream.return_value.start.assert_called_once()


def test_named_device_is_selected(fake_sounddevice):
    capture = AudioCapture(RecordingBuffer(), device_name="usb")
    assert capture.device_id == 1


def test_unknown_device_name(fake_sounddevice):
    with pytest.raises(ValueError, match="not found"):
        AudioCapture(RecordingBuffer(), device_name="webcam")


def test_no_input_device(fake_sounddevice):
    fake_sounddevice.devices = [DEVICES[0]]
    with pytest.raises(SoundDeviceError, match="No input device"):
        AudioCapture(RecordingBuffer())


def test_callback_pushes_only_while_recording(fake_sounddevice):
    buffer = RecordingBuffer()
    capture = AudioCapture(buffer)
    block = np.full((256, 1), 0.5, dtype=np.float32)

    capture.callback(block, 256, None, None)
    buffer.begin()
    capture.callback(block, 256, None, None)
    samples, _ = buffer.end()

    assert len(samples) == 256


def test_stop_closes_stream(fake_sounddevice):
    capture = AudioCapture(RecordingBuffer())
    capture.start()
    capture.stop()

    stream = fake_sounddevice.InputStream.return_value
    stream.stop.assert_called_once()
    stream.close.assert_called_once()
    assert capture.stream is None
