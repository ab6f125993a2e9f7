from __future__ import annotations

from typing import Any, Optional

import numpy as np
from loguru import logger

from esponquen.recording import RecordingBuffer


class SoundDeviceError(Exception):
    """Exception raised for audio device and sound processing errors."""


class AudioCapture:
    """Continuous microphone capture feeding a RecordingBuffer.

    The input stream runs from startup until shutdown. Every block is handed
    to ``RecordingBuffer.push``, which keeps it only while recording.
    """

    def __init__(self, buffer: RecordingBuffer, device_name: str | None = None) -> None:
        """
        Args:
            buffer: Buffer receiving the captured samples
            device_name: Substring of the input device name, or None for default

        Raises:
            SoundDeviceError: If the audio library is unavailable or no input
                device can be found
        """
        self.buffer = buffer
        try:
            logger.debug("Initializing sound device...")
            import sounddevice as sd

            self.sd = sd
        except (OSError, ModuleNotFoundError) as e:
            raise SoundDeviceError(f"SoundDevice library error: {e}")

        self.device_id = self._find_device_id(device_name)
        self.stream = None

        try:
            device_info = self.sd.query_devices(self.device_id, "input")
            self.device_label = device_info["name"]
            self.sample_rate = int(device_info["default_samplerate"])
        except (TypeError, ValueError, KeyError) as e:
            logger.debug(
                f"Could not query default sample rate ({e}), falling back to 16kHz."
            )
            self.device_label = "Unknown"
            self.sample_rate = 16000
        except self.sd.PortAudioError as e:
            raise SoundDeviceError(f"PortAudio error querying device: {e}")

    def _find_device_id(self, device_name: Optional[str]) -> Optional[int]:
        """Find the input device ID by name or return None for default.

        Raises:
            SoundDeviceError: If no audio input devices are found
            ValueError: If the specified device name is not found
        """
        devices = self.sd.query_devices()
        if not devices:
            raise SoundDeviceError("No audio devices found.")

        input_devices = [
            (i, d) for i, d in enumerate(devices) if d["max_input_channels"] > 0
        ]
        if not input_devices:
            raise SoundDeviceError("No input device available")

        if device_name:
            for i, device in input_devices:
                if device_name.lower() in device["name"].lower():
                    logger.debug(f"Found specified device: {device['name']} (ID: {i})")
                    return i
            available_names = [d["name"] for _, d in input_devices]
            raise ValueError(
                f"Device '{device_name}' not found. Available input devices: {available_names}",
            )
        return None

    def callback(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        """Called by sounddevice on its own thread for every captured block."""
        if status:
            logger.debug(f"Audio callback status: {status}")
        # Mono stream: (frames, 1) -> (frames,)
        self.buffer.push(indata[:, 0])

    def start(self) -> None:
        """Open the input stream and start delivering blocks."""
        if self.stream is not None:
            return

        self.buffer.sample_rate = self.sample_rate
        logger.info(f"Using input device: {self.device_label}")
        logger.info(f"Sample rate: {self.sample_rate} Hz")
        try:
            self.stream = self.sd.InputStream(
                samplerate=self.sample_rate,
                device=self.device_id,
                channels=1,
                dtype="float32",
                callback=self.callback,
            )
            self.stream.start()
        except self.sd.PortAudioError as e:
            self.stream = None
            raise SoundDeviceError(f"Failed to start input stream: {e}")

    def stop(self) -> None:
        if self.stream is None:
            return
        try:
            self.stream.stop()
            self.stream.close()
        except self.sd.PortAudioError as e:
            logger.warning(f"Error closing input stream: {e}")
        finally:
            self.stream = None
