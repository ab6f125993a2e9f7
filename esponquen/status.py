import queue
from enum import Enum, auto
from typing import Optional

from esponquen.hotkey import Hotkey


class AppStatus(Enum):
    """
    The externally visible lifecycle status of the application.

    LOADING_MODEL: Startup, before the recognizer is ready (happens once)
    WAITING_FOR_HOTKEY: Idle, waiting for the hotkey
    RECORDING: Audio is being accumulated
    TRANSCRIBING: Recording stopped, transcription and typing in progress
    """

    LOADING_MODEL = auto()
    WAITING_FOR_HOTKEY = auto()
    RECORDING = auto()
    TRANSCRIBING = auto()


class IconVariant(Enum):
    LOADING = "loading"
    READY = "ready"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


_ICON_VARIANTS = {
    AppStatus.LOADING_MODEL: IconVariant.LOADING,
    AppStatus.WAITING_FOR_HOTKEY: IconVariant.READY,
    AppStatus.RECORDING: IconVariant.RECORDING,
    AppStatus.TRANSCRIBING: IconVariant.TRANSCRIBING,
}


def tooltip_for(status: AppStatus, hotkey: Hotkey) -> str:
    """Tooltip text for a status, with the live hotkey name embedded."""
    if status is AppStatus.LOADING_MODEL:
        return "Loading model..."
    if status is AppStatus.WAITING_FOR_HOTKEY:
        return f"Ready (Press {hotkey.value})"
    if status is AppStatus.RECORDING:
        return f"Recording... (Press {hotkey.value} to stop)"
    return "Transcribing..."


def icon_for(status: AppStatus) -> IconVariant:
    return _ICON_VARIANTS[status]


class StatusChannel:
    """
    Ordered, unbounded conduit carrying statuses from the interceptor
    thread to the UI thread.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[AppStatus]" = queue.SimpleQueue()

    def send(self, status: AppStatus) -> None:
        self._queue.put(status)

    def try_receive(self) -> Optional[AppStatus]:
        """Return the oldest pending status, or None if there is none."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None
