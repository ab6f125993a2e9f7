"""Local speech recognition with faster-whisper.

The model is loaded once at startup. Acceleration providers are tried in
order (e.g. CUDA first, CPU as the last resort) and the one that loads is
recorded for display in the tray menu.
"""

import threading
from typing import List, Optional

import numpy as np
from loguru import logger

from esponquen.utils import get_app_data_dir

MODEL_SAMPLE_RATE = 16000


class TranscriptionError(Exception):
    """Exception raised for transcription errors."""


def resample(samples: np.ndarray, source_rate: int, target_rate: int = MODEL_SAMPLE_RATE) -> np.ndarray:
    """Linearly resample mono audio to ``target_rate``."""
    samples = np.asarray(samples, dtype=np.float32)
    if source_rate == target_rate or samples.size == 0:
        return samples
    duration = samples.size / source_rate
    target_length = max(1, int(round(duration * target_rate)))
    source_times = np.arange(samples.size) / source_rate
    target_times = np.arange(target_length) / target_rate
    return np.interp(target_times, source_times, samples).astype(np.float32)


def describe_provider(provider: str, cpu_threads: int) -> str:
    """Human readable provider description for the tray menu."""
    if provider == "cpu":
        return f"CPU ({cpu_threads} threads)"
    return f"GPU: {provider.upper()}"


class WhisperTranscriber:
    """Transcription service backed by a faster-whisper model."""

    def __init__(
        self,
        model: str = "base.en",
        language: str = "en",
        providers: Optional[List[str]] = None,
        cpu_threads: int = 4,
        download_root: Optional[str] = None,
    ):
        self.model_name = model
        self.language = language
        self.providers = providers or ["cuda", "cpu"]
        self.cpu_threads = cpu_threads
        self.download_root = download_root or str(get_app_data_dir() / "models")
        self.provider: Optional[str] = None
        self._model = None
        # WhisperModel instances are not safe for concurrent use
        self._lock = threading.Lock()

    @property
    def provider_info(self) -> str:
        if self.provider is None:
            return "Initializing..."
        return describe_provider(self.provider, self.cpu_threads)

    def load(self) -> None:
        """Load the model, trying each provider in order.

        Raises:
            TranscriptionError: If no provider could load the model.
        """
        from faster_whisper import WhisperModel

        logger.info(f"Loading Whisper model '{self.model_name}'...")
        errors = []
        for provider in self.providers:
            logger.info(f"Trying provider: {provider}")
            compute_type = "int8" if provider == "cpu" else "float16"
            try:
                self._model = WhisperModel(
                    self.model_name,
                    device=provider,
                    compute_type=compute_type,
                    cpu_threads=self.cpu_threads if provider == "cpu" else 1,
                    download_root=self.download_root,
                )
            except Exception as e:
                logger.warning(f"{provider} provider not available: {e}")
                errors.append(f"{provider}: {e}")
                continue
            self.provider = provider
            logger.info(f"Model loaded successfully with {provider} provider")
            return

        raise TranscriptionError(
            f"Failed to initialize recognizer with any provider ({'; '.join(errors)})"
        )

    def transcribe(self, sample_rate: int, samples: np.ndarray) -> str:
        """Transcribe mono float samples to text.

        Raises:
            TranscriptionError: If the model has not been loaded.
        """
        if self._model is None:
            raise TranscriptionError("Model not loaded")

        audio = resample(samples, sample_rate)
        with self._lock:
            segments, _info = self._model.transcribe(audio, language=self.language)
            # segments is a lazy generator; inference runs while joining
            text = " ".join(segment.text for segment in segments)

        # transcribed text comes back with a leading space, so strip it
        return text.strip()
