"""Keyboard interceptor: the hotkey-driven record/transcribe/type state machine.

For every key press the interceptor decides whether the event is the hotkey
(suppress it and toggle recording) or something else (let it through).
Stopping a recording runs the transcribe -> type sequence, either inline on
the hook thread or on a dedicated session worker.
"""

import queue
import threading
import time
from contextlib import nullcontext
from enum import Enum, auto
from typing import Optional, Protocol, Tuple, runtime_checkable

import numpy as np
from loguru import logger
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from esponquen.hotkey import Hotkey, HotkeyRegistry
from esponquen.recording import RecordingBuffer
from esponquen.status import AppStatus, StatusChannel
from esponquen.telemetry import get_tracer


@runtime_checkable
class TranscriptionService(Protocol):
    def transcribe(self, sample_rate: int, samples: np.ndarray) -> str:
        ...


@runtime_checkable
class TextInjector(Protocol):
    def inject(self, text: str) -> bool:
        ...


class Decision(Enum):
    FORWARD = auto()
    START = auto()
    STOP = auto()

    @property
    def suppress(self) -> bool:
        return self is not Decision.FORWARD


def decide(key: Optional[Hotkey], hotkey: Hotkey, is_recording: bool) -> Decision:
    """Decide what to do with a key press.

    Args:
        key: The pressed key, or None if it is not one of the hotkey choices.
        hotkey: The currently configured hotkey.
        is_recording: Whether a recording is in progress.
    """
    if key is None or key is not hotkey:
        return Decision.FORWARD
    return Decision.STOP if is_recording else Decision.START


class KeyboardInterceptor:
    """The core state machine tying hotkey presses to recording sessions.

    Private Idle/Armed toggle lives in the RecordingBuffer; the visible
    AppStatus is only ever communicated through the StatusChannel.
    """

    def __init__(
        self,
        hotkeys: HotkeyRegistry,
        buffer: RecordingBuffer,
        status_channel: StatusChannel,
        transcriber: TranscriptionService,
        injector: TextInjector,
        settle_delay: float = 0.1,
        background: bool = False,
    ):
        """
        Args:
            hotkeys: Registry holding the active hotkey.
            buffer: Shared recording buffer fed by the audio source.
            status_channel: Channel to the UI thread.
            transcriber: Converts samples to text.
            injector: Types text into the focused window.
            settle_delay: Seconds to wait before typing, so focus settles after
                the hotkey press.
            background: Run transcription and typing on a session worker thread
                instead of the calling (hook) thread.
        """
        self.hotkeys = hotkeys
        self.buffer = buffer
        self.status_channel = status_channel
        self.transcriber = transcriber
        self.injector = injector
        self.settle_delay = settle_delay
        self.background = background

        # Set while a session's transcribe/type tail is running
        self._busy = threading.Event()
        self._sessions: "queue.Queue[Optional[Tuple[np.ndarray, int]]]" = queue.Queue(
            maxsize=1
        )
        self._worker: Optional[threading.Thread] = None
        if background:
            self._worker = threading.Thread(
                target=self._session_worker, name="session-worker", daemon=True
            )
            self._worker.start()

    @property
    def busy(self) -> bool:
        return self._busy.is_set()

    def should_suppress(self, key: Optional[Hotkey]) -> bool:
        """Cheap check used by hook backends that must answer synchronously."""
        return key is not None and key is self.hotkeys.get()

    def on_key_press(self, key: Optional[Hotkey]) -> bool:
        """Handle one key press.

        Returns:
            True if the event must be suppressed, False to forward it.
        """
        hotkey = self.hotkeys.get()
        with self.buffer.lock:
            decision = decide(key, hotkey, self.buffer.is_recording)
            if decision is Decision.FORWARD:
                return False

            if self._busy.is_set():
                logger.info(
                    f"{hotkey.value} pressed while transcription is running; ignoring"
                )
                return True

            if decision is Decision.START:
                self.buffer.begin()
            else:
                samples, sample_rate = self.buffer.end()

        if decision is Decision.START:
            self.status_channel.send(AppStatus.RECORDING)
            logger.info(f"Recording... (Press {hotkey.value} to stop)")
            return True

        logger.info("Recording stopped. Transcribing...")
        self.status_channel.send(AppStatus.TRANSCRIBING)

        if len(samples) == 0:
            logger.info("No audio recorded")
            self.status_channel.send(AppStatus.WAITING_FOR_HOTKEY)
            return True

        if self.background:
            self._busy.set()
            self._sessions.put((samples, sample_rate))
        else:
            self.finish_session(samples, sample_rate)
        return True

    def finish_session(self, samples: np.ndarray, sample_rate: int) -> None:
        """Transcribe the recording and type the result.

        Always ends by emitting WAITING_FOR_HOTKEY, whatever fails.
        """
        tracer = get_tracer()
        span = (
            tracer.start_as_current_span(
                "session",
                attributes={
                    "audio.samples": int(len(samples)),
                    "audio.sample_rate": int(sample_rate),
                },
            )
            if tracer is not None
            else nullcontext()
        )
        try:
            with span:
                logger.info(f"Audio length: {len(samples) / sample_rate:.2f} seconds")
                text = self._transcribe(samples, sample_rate)
                if text.strip():
                    self._inject(text)
                else:
                    logger.info("No text to type")
        finally:
            # Clear before announcing Ready so the next press starts recording
            self._busy.clear()
            self.status_channel.send(AppStatus.WAITING_FOR_HOTKEY)
            logger.info(f"Ready! Press {self.hotkeys.get().value} to start recording...")

    def _transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        tracer = get_tracer()
        span = (
            tracer.start_as_current_span("transcribe")
            if tracer is not None
            else nullcontext()
        )
        with span:
            try:
                text = self.transcriber.transcribe(sample_rate, samples)
            except Exception as e:
                logger.opt(exception=True).error(f"Transcription failed: {e}")
                _mark_error(e)
                return ""
        text = text or ""
        logger.info(f"Transcription: {text}")
        return text

    def _inject(self, text: str) -> None:
        tracer = get_tracer()
        span = (
            tracer.start_as_current_span("inject", attributes={"text.length": len(text)})
            if tracer is not None
            else nullcontext()
        )
        with span:
            if self.settle_delay > 0:
                time.sleep(self.settle_delay)
            logger.info("Typing text...")
            try:
                ok = self.injector.inject(text)
            except Exception as e:
                logger.opt(exception=True).error(f"Typing failed: {e}")
                _mark_error(e)
                return
            if ok:
                logger.info("Done!")
            else:
                logger.warning("Typing failed; text was not injected")

    def _session_worker(self) -> None:
        while True:
            item = self._sessions.get()
            if item is None:
                break
            samples, sample_rate = item
            try:
                self.finish_session(samples, sample_rate)
            except Exception as e:
                logger.opt(exception=True).error(f"Session failed: {e}")

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop the session worker, letting a running session finish."""
        if self._worker is None:
            return
        self._sessions.put(None)
        self._worker.join(timeout=timeout)
        if self._worker.is_alive():
            logger.warning("Session worker did not stop in time")
        self._worker = None


def _mark_error(e: Exception) -> None:
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.record_exception(e)
        current_span.set_status(Status(StatusCode.ERROR, str(e)))
