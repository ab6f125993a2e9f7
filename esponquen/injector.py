"""Pynput keyboard injector.

Types text character-by-character into whatever window has focus. Works on
X11, Windows, and macOS.
"""

import time

from loguru import logger


class PynputTextInjector:
    """Text injector using pynput's keyboard controller.

    Types text character-by-character with an optional delay between
    characters to prevent scrambled output on some systems.
    """

    def __init__(self, char_delay: float = 0.001):
        """Initialize the pynput injector.

        Args:
            char_delay: Delay in seconds between each character.
                       Increase if letters appear scrambled.
        """
        self.char_delay = char_delay
        self._controller = None

    def _get_controller(self):
        """Lazily initialize the pynput keyboard controller."""
        if self._controller is None:
            from pynput import keyboard

            self._controller = keyboard.Controller()
        return self._controller

    def inject(self, text: str) -> bool:
        """Type the given text.

        Returns:
            True if every character was typed, False on failure.
        """
        logger.debug(f"PynputTextInjector: typing {len(text)} characters")
        try:
            keyboard = self._get_controller()
            for i, char in enumerate(text):
                keyboard.type(char)
                # Don't sleep after the last character
                if self.char_delay > 0 and i < len(text) - 1:
                    time.sleep(self.char_delay)
        except Exception as e:
            logger.error(f"PynputTextInjector: typing failed: {e}")
            return False

        logger.debug("PynputTextInjector: typing complete")
        return True
