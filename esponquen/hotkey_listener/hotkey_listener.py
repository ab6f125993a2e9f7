import abc
from typing import Callable, Optional

from esponquen.hotkey import Hotkey

# Called for every key press with the recognized hotkey choice (or None for
# any other key); returns True if the event must be suppressed.
KeyPressHandler = Callable[[Optional[Hotkey]], bool]
# Fast, non-blocking suppression check for backends that decide in the OS hook.
SuppressCheck = Callable[[Optional[Hotkey]], bool]


class HotkeyListenerError(RuntimeError):
    """Raised when the system-wide keyboard subscription cannot be established."""


class HotkeyListener(abc.ABC):
    """
    Abstract base class for system-wide keyboard hooks.

    Subclasses subscribe to key events and call ``on_key_press`` for every
    press. When the handler returns True the event is suppressed, so it never
    reaches other applications (where the backend supports per-event
    suppression).
    """

    def __init__(
        self,
        on_key_press: KeyPressHandler,
        should_suppress: Optional[SuppressCheck] = None,
    ):
        """
        Args:
            on_key_press: Handler for every key press.
            should_suppress: Quick check run inside the OS hook. Defaults to
                calling ``on_key_press`` directly.
        """
        self.on_key_press = on_key_press
        self.should_suppress = should_suppress

    @property
    def supports_suppression(self) -> bool:
        """Whether this backend can keep individual events from propagating."""
        return True

    @abc.abstractmethod
    def start_listening(self) -> None:
        """
        Start the subscription on a dedicated thread.

        Raises:
            HotkeyListenerError: If the subscription cannot be established.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def stop_listening(self) -> None:
        """
        Stop listening for key events.
        """
        raise NotImplementedError
