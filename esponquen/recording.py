"""Shared recording buffer gated by the recording toggle.

The audio source pushes blocks continuously; only blocks that arrive while
recording is on are kept. The interceptor is the only caller of
``begin``/``end``; it holds ``lock`` while it inspects ``is_recording`` and
picks one of them.
"""

import threading
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

Samples = Union[np.ndarray, Sequence[float]]


class RecordingStateError(RuntimeError):
    """Raised when begin/end is called in the wrong recording state."""


class RecordingBuffer:
    """Thread-safe recording toggle plus accumulated audio samples.

    Samples are stored as a list of float32 chunks and joined when the
    recording ends.
    """

    def __init__(self, sample_rate: int = 16000, max_seconds: Optional[float] = None):
        """
        Args:
            sample_rate: Sample rate of the pushed audio in Hz.
            max_seconds: Optional cap on the length of one recording. Samples
                pushed after the cap is reached are dropped.
        """
        # Reentrant so a caller holding it can still call begin/end
        self._lock = threading.RLock()
        self._is_recording = False
        self._chunks: List[np.ndarray] = []
        self._num_samples = 0
        self._sample_rate = sample_rate
        self._max_seconds = max_seconds
        self._cap_warned = False

    @property
    def lock(self):
        return self._lock

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._is_recording

    @property
    def sample_rate(self) -> int:
        with self._lock:
            return self._sample_rate

    @sample_rate.setter
    def sample_rate(self, value: int) -> None:
        with self._lock:
            self._sample_rate = int(value)

    def _max_samples(self) -> Optional[int]:
        if self._max_seconds is None:
            return None
        return int(self._max_seconds * self._sample_rate)

    def push(self, samples: Samples) -> None:
        """Append samples if recording, otherwise discard them."""
        with self._lock:
            if not self._is_recording:
                return
            chunk = np.asarray(samples, dtype=np.float32).reshape(-1)
            max_samples = self._max_samples()
            if max_samples is not None:
                room = max_samples - self._num_samples
                if room <= 0:
                    if not self._cap_warned:
                        logger.warning(
                            f"Recording reached the {self._max_seconds}s cap; dropping further audio"
                        )
                        self._cap_warned = True
                    return
                chunk = chunk[:room]
            if chunk.size:
                # Copy so the caller may reuse its buffer
                self._chunks.append(chunk.copy())
                self._num_samples += chunk.size

    def _begin_locked(self) -> None:
        if self._is_recording:
            raise RecordingStateError("begin() called while already recording")
        self._chunks = []
        self._num_samples = 0
        self._cap_warned = False
        self._is_recording = True

    def _end_locked(self) -> Tuple[np.ndarray, int]:
        if not self._is_recording:
            raise RecordingStateError("end() called while not recording")
        self._is_recording = False
        chunks, self._chunks = self._chunks, []
        self._num_samples = 0
        if chunks:
            samples = np.concatenate(chunks)
        else:
            samples = np.zeros(0, dtype=np.float32)
        return samples, self._sample_rate

    def begin(self) -> None:
        """Start recording, discarding anything left from before."""
        with self._lock:
            self._begin_locked()

    def end(self) -> Tuple[np.ndarray, int]:
        """Stop recording and hand over the accumulated samples."""
        with self._lock:
            return self._end_locked()
