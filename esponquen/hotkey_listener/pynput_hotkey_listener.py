import sys
import threading
from typing import Optional, Set

from loguru import logger

from esponquen.hotkey import Hotkey, hotkey_from_darwin, hotkey_from_win32

from .hotkey_listener import (
    HotkeyListener,
    HotkeyListenerError,
    KeyPressHandler,
    SuppressCheck,
)

# Win32 keyboard messages
WM_KEYDOWN = 0x0100
WM_KEYUP = 0x0101
WM_SYSKEYDOWN = 0x0104
WM_SYSKEYUP = 0x0105

_PYNPUT_KEY_NAMES = {key.value.lower(): key for key in Hotkey}


def hotkey_from_pynput(key) -> Optional[Hotkey]:
    """Map a pynput Key (e.g. Key.f6) to a Hotkey; KeyCode and None map to None."""
    name = getattr(key, "name", None)
    if not isinstance(name, str):
        return None
    return _PYNPUT_KEY_NAMES.get(name)


class PynputHotkeyListener(HotkeyListener):
    """Cross-platform keyboard hook using pynput.

    Per-event suppression is done inside the OS hook: ``win32_event_filter``
    on Windows and ``darwin_intercept`` on macOS. On other backends (X11,
    uinput) pynput can only grab the whole keyboard, so every event is
    forwarded and the hotkey also reaches the focused application.

    Auto-repeat presses of a held key are suppressed like the first press
    but not dispatched.
    """

    def __init__(
        self,
        on_key_press: KeyPressHandler,
        should_suppress: Optional[SuppressCheck] = None,
        platform: str = sys.platform,
    ):
        super().__init__(on_key_press, should_suppress)
        self._platform = platform
        self._listener = None
        self._held: Set[Hotkey] = set()
        self._lock = threading.Lock()
        self._quartz = None

    @property
    def supports_suppression(self) -> bool:
        return self._platform in ("win32", "darwin")

    def _handle_press(self, key: Optional[Hotkey]) -> bool:
        """Dispatch a press; returns True if the event must be suppressed."""
        with self._lock:
            repeat = key is not None and key in self._held
            if key is not None:
                self._held.add(key)
        if repeat:
            if self.should_suppress is not None:
                return self.should_suppress(key)
            return False
        try:
            return bool(self.on_key_press(key))
        except Exception as e:
            logger.opt(exception=True).error(f"Error handling key press {key}: {e}")
            return False

    def _handle_release(self, key: Optional[Hotkey]) -> None:
        if key is None:
            return
        with self._lock:
            self._held.discard(key)

    def _win32_event_filter(self, msg, data) -> bool:
        key = hotkey_from_win32(data.vkCode)
        if key is None:
            return True
        if msg in (WM_KEYDOWN, WM_SYSKEYDOWN):
            if self._handle_press(key):
                # Raises inside pynput to drop the event
                self._listener.suppress_event()
        elif msg in (WM_KEYUP, WM_SYSKEYUP):
            self._handle_release(key)
        return True

    def _darwin_intercept(self, event_type, event):
        quartz = self._quartz
        if event_type not in (quartz.kCGEventKeyDown, quartz.kCGEventKeyUp):
            return event
        keycode = quartz.CGEventGetIntegerValueField(event, quartz.kCGKeyboardEventKeycode)
        key = hotkey_from_darwin(keycode)
        if key is None:
            return event
        if event_type == quartz.kCGEventKeyDown:
            return None if self._handle_press(key) else event
        self._handle_release(key)
        return event

    def _on_press(self, key):
        self._handle_press(hotkey_from_pynput(key))

    def _on_release(self, key):
        self._handle_release(hotkey_from_pynput(key))

    def _create_listener(self):
        from pynput import keyboard

        if self._platform == "win32":
            return keyboard.Listener(win32_event_filter=self._win32_event_filter)
        if self._platform == "darwin":
            import Quartz

            self._quartz = Quartz
            return keyboard.Listener(darwin_intercept=self._darwin_intercept)
        return keyboard.Listener(on_press=self._on_press, on_release=self._on_release)

    def start_listening(self) -> None:
        if self._listener is not None and self._listener.is_alive():
            logger.info("Listener already running.")
            return

        if not self.supports_suppression:
            logger.warning(
                f"Keyboard hook on '{self._platform}' cannot suppress single keys; "
                "the hotkey will also reach the focused application"
            )

        try:
            self._listener = self._create_listener()
            self._listener.start()
        except Exception as e:
            self._listener = None
            raise HotkeyListenerError(f"Error listening to keyboard events: {e}") from e

        logger.debug(f"Listener thread: {self._listener.ident}")
        logger.info("Pynput keyboard hook started.")

    def stop_listening(self) -> None:
        if self._listener and self._listener.is_alive():
            logger.info("Stopping pynput keyboard hook...")
            self._listener.stop()
            if threading.get_ident() != self._listener.ident:
                self._listener.join()
            logger.info("Pynput keyboard hook stopped.")

        self._listener = None
        with self._lock:
            self._held.clear()
