"""Keyboard hook module for Esponquen.

This module provides the system-wide keyboard hook that feeds key presses
to the interceptor and suppresses the hotkey.
"""

import sys
from typing import Optional

from loguru import logger

from .hotkey_listener import (
    HotkeyListener,
    HotkeyListenerError,
    KeyPressHandler,
    SuppressCheck,
)
from .pynput_hotkey_listener import PynputHotkeyListener

__all__ = [
    "HotkeyListener",
    "HotkeyListenerError",
    "PynputHotkeyListener",
    "create_hotkey_listener",
]


def create_hotkey_listener(
    on_key_press: KeyPressHandler,
    should_suppress: Optional[SuppressCheck] = None,
) -> HotkeyListener:
    """Create the keyboard hook for the current platform.

    Raises:
        OSError: On an unsupported operating system.
    """
    if sys.platform not in ("win32", "darwin") and not sys.platform.startswith("linux"):
        raise OSError(f"Unsupported operating system: {sys.platform}")

    logger.info(f"Using pynput keyboard hook for {sys.platform}")
    return PynputHotkeyListener(on_key_press=on_key_press, should_suppress=should_suppress)
