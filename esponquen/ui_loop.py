"""Cooperative UI loop.

Polls the status channel and the menu-event channel without ever blocking
on the other threads, and applies what it finds to the tray display.
"""

import queue
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol, Union

from loguru import logger

from esponquen.hotkey import Hotkey
from esponquen.status import AppStatus, IconVariant, icon_for, tooltip_for

if TYPE_CHECKING:
    from esponquen.app_context import AppContext


class StatusDisplay(Protocol):
    def set_tooltip(self, text: str) -> None:
        ...

    def set_icon(self, variant: IconVariant) -> None:
        ...

    def refresh_menu(self) -> None:
        ...

    def stop(self) -> None:
        ...


@dataclass(frozen=True)
class QuitEvent:
    pass


@dataclass(frozen=True)
class SelectHotkeyEvent:
    hotkey: Hotkey


MenuEvent = Union[QuitEvent, SelectHotkeyEvent]


class MenuChannel:
    """Queue of menu selections, filled by tray callbacks."""

    def __init__(self):
        self._queue: "queue.SimpleQueue[MenuEvent]" = queue.SimpleQueue()

    def send(self, event: MenuEvent) -> None:
        self._queue.put(event)

    def try_receive(self) -> Optional[MenuEvent]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None


class UIEventLoop:
    """Single-threaded poller driving the status display.

    Each tick handles at most one status and at most one menu event, so a
    burst of statuses is shown in order rather than collapsed to the latest.
    """

    def __init__(self, ctx: "AppContext", display: StatusDisplay, poll_interval: float = 0.02):
        self.ctx = ctx
        self.display = display
        self.poll_interval = poll_interval
        self.current_status: Optional[AppStatus] = None
        self._running = True

    def display_status(self, status: AppStatus) -> None:
        self.current_status = status
        self.display.set_tooltip(tooltip_for(status, self.ctx.hotkeys.get()))
        self.display.set_icon(icon_for(status))

    def tick(self) -> bool:
        """Run one polling step.

        Returns:
            False once a quit was requested, True otherwise.
        """
        if not self._running:
            return False

        status = self.ctx.status_channel.try_receive()
        if status is not None:
            self.display_status(status)

        event = self.ctx.menu_events.try_receive()
        if isinstance(event, QuitEvent):
            logger.info("Quitting...")
            self._running = False
            return False
        if isinstance(event, SelectHotkeyEvent):
            self.ctx.hotkeys.set(event.hotkey)
            self.display_status(AppStatus.WAITING_FOR_HOTKEY)
            self.display.refresh_menu()
            logger.info(f"Hotkey changed to {event.hotkey.value}")
        return True

    def run(self) -> None:
        """Poll until quit, then stop the display."""
        while self.tick():
            time.sleep(self.poll_interval)
        self.display.stop()
