from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from esponquen.hotkey import HotkeyRegistry
from esponquen.recording import RecordingBuffer
from esponquen.status import StatusChannel
from esponquen.ui_loop import MenuChannel


@dataclass
class AppContext:
    """
    The application context: every piece of state shared between threads.

    Each thread receives this object at spawn time instead of reaching for
    module-level globals.
    """

    hotkeys: HotkeyRegistry = field(default_factory=HotkeyRegistry)
    buffer: RecordingBuffer = field(default_factory=RecordingBuffer)
    status_channel: StatusChannel = field(default_factory=StatusChannel)
    menu_events: MenuChannel = field(default_factory=MenuChannel)
    # Written once after the model loads, read by the tray menu
    provider_info: str = "Initializing..."
    log_file_path: Optional[Path] = None
