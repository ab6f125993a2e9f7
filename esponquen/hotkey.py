import threading
from enum import Enum

from loguru import logger


class Hotkey(Enum):
    """
    The keys that can be used as the activation hotkey.

    The value is the display name shown in the tray menu and tooltip.
    """

    F1 = "F1"
    F2 = "F2"
    F3 = "F3"
    F4 = "F4"
    F5 = "F5"
    F6 = "F6"
    F7 = "F7"
    F8 = "F8"
    F9 = "F9"
    F10 = "F10"
    F11 = "F11"
    F12 = "F12"

    @classmethod
    def parse(cls, name: str) -> "Hotkey":
        """Parse a hotkey name such as "F6", "f6" or "<f6>"."""
        cleaned = name.strip().strip("<>").upper()
        try:
            return cls(cleaned)
        except ValueError:
            raise ValueError(
                f"Invalid hotkey: {name!r}. Choose one of {', '.join(k.value for k in cls)}"
            ) from None

    @property
    def index(self) -> int:
        """1-based function key number."""
        return int(self.value[1:])


DEFAULT_HOTKEY = Hotkey.F6

# Windows virtual-key codes: VK_F1 (0x70) .. VK_F12 (0x7B)
WIN32_VK_CODES = {key: 0x6F + key.index for key in Hotkey}

# macOS virtual keycodes (Carbon kVK_F1 ..)
DARWIN_KEYCODES = {
    Hotkey.F1: 122,
    Hotkey.F2: 120,
    Hotkey.F3: 99,
    Hotkey.F4: 118,
    Hotkey.F5: 96,
    Hotkey.F6: 97,
    Hotkey.F7: 98,
    Hotkey.F8: 100,
    Hotkey.F9: 101,
    Hotkey.F10: 109,
    Hotkey.F11: 103,
    Hotkey.F12: 111,
}

_WIN32_LOOKUP = {code: key for key, code in WIN32_VK_CODES.items()}
_DARWIN_LOOKUP = {code: key for key, code in DARWIN_KEYCODES.items()}


def hotkey_from_win32(vk_code: int) -> "Hotkey | None":
    return _WIN32_LOOKUP.get(vk_code)


def hotkey_from_darwin(keycode: int) -> "Hotkey | None":
    return _DARWIN_LOOKUP.get(keycode)


class HotkeyRegistry:
    """
    Thread-safe holder for the single active hotkey.
    """

    def __init__(self, hotkey: Hotkey = DEFAULT_HOTKEY):
        self._hotkey = hotkey
        self._lock = threading.Lock()

    def get(self) -> Hotkey:
        with self._lock:
            return self._hotkey

    def set(self, hotkey: Hotkey) -> None:
        with self._lock:
            self._hotkey = hotkey
        logger.info(f"Hotkey updated to: {hotkey.value}")
