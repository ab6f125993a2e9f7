import os
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

from loguru import logger
from PIL import Image, ImageDraw

from esponquen.hotkey import Hotkey
from esponquen.status import IconVariant
from esponquen.ui_loop import QuitEvent, SelectHotkeyEvent
from esponquen.utils import open_path

# Valid values: 'gtk', 'appindicator', 'xorg', 'dummy' (fallback/test)
if os.name == "posix":
    os.environ.setdefault("PYSTRAY_BACKEND", "gtk")

import pystray
from pystray import Menu
from pystray import MenuItem as Item

if TYPE_CHECKING:
    from esponquen.app_context import AppContext

# Status circle color per icon variant
_VARIANT_COLORS: Dict[IconVariant, Tuple[int, int, int, int]] = {
    IconVariant.LOADING: (255, 215, 0, 255),
    IconVariant.READY: (40, 200, 40, 255),
    IconVariant.RECORDING: (220, 30, 30, 255),
    IconVariant.TRANSCRIBING: (30, 120, 220, 255),
}


def _add_status_circle(
    base_img: Image.Image, fill_color: Tuple[int, int, int, int]
) -> Image.Image:
    """
    Add a status circle in the bottom right corner of the icon.
    """
    img = base_img.copy()
    w, h = img.size
    draw = ImageDraw.Draw(img)

    circle_size = max(12, min(w, h) // 3)
    margin = max(2, min(w, h) // 25)

    # partially out of bounds, bottom right
    circle_x = w - circle_size + margin
    circle_y = h - circle_size + margin

    draw.ellipse(
        [circle_x, circle_y, circle_x + circle_size, circle_y + circle_size],
        fill=fill_color,
        outline=(0, 0, 0, 180),
        width=max(1, circle_size // 8),
    )
    return img


def _mic_icon(
    size: int = 64,
    color: Tuple[int, int, int] = (0, 128, 255),
    fg: Tuple[int, int, int] = (255, 255, 255),
) -> Image.Image:
    """
    Render a microphone glyph on a circular badge.
    """
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)

    pad = max(2, size // 20)
    d.ellipse(
        [pad, pad, size - pad, size - pad],
        fill=color,
        outline=(20, 20, 20, 220),
        width=max(1, size // 36),
    )

    cx, cy = size // 2, size // 2
    mic_w = max(6, (size * 3) // 10)
    mic_h = max(10, (size * 11) // 20)
    body_top = cy - (mic_h * 4) // 7
    body_bottom = cy + mic_h // 5
    body_left = cx - mic_w // 2
    body_right = cx + mic_w // 2
    radius = mic_w // 2

    d.ellipse([body_left, body_top, body_right, body_top + mic_w], fill=fg + (255,))
    d.rectangle([body_left, body_top + radius, body_right, body_bottom], fill=fg + (255,))

    holder_w = mic_w + max(6, size // 16)
    holder_top = body_bottom + max(1, size // 80)
    d.arc(
        [
            cx - holder_w // 2,
            holder_top - holder_w // 2,
            cx + holder_w // 2,
            holder_top + holder_w // 2,
        ],
        start=200,
        end=340,
        fill=fg + (255,),
        width=max(2, size // 18),
    )

    stem_h = max(4, size // 10)
    stem_w = max(3, size // 20)
    stem_top = holder_top + max(1, size // 80)
    d.rectangle(
        [cx - stem_w // 2, stem_top, cx + stem_w // 2, stem_top + stem_h],
        fill=fg + (255,),
    )
    base_w = max(mic_w, (size * 2) // 5)
    base_h = max(3, size // 22)
    base_top = stem_top + stem_h + max(1, size // 80)
    d.rectangle(
        [cx - base_w // 2, base_top, cx + base_w // 2, base_top + base_h],
        fill=fg + (255,),
    )
    return img


def create_icon_image(variant: IconVariant, size: int = 64) -> Image.Image:
    """Microphone icon with the status circle for ``variant``."""
    return _add_status_circle(_mic_icon(size), _VARIANT_COLORS[variant])


def _build_menu(ctx: "AppContext") -> Menu:
    """Build the tray menu. Selections are queued for the UI loop."""

    def _select(hotkey: Hotkey) -> Callable:
        def _on_select(icon, item):
            ctx.menu_events.send(SelectHotkeyEvent(hotkey))

        return _on_select

    def _is_current(hotkey: Hotkey) -> Callable:
        return lambda item: ctx.hotkeys.get() is hotkey

    hotkey_menu = Menu(
        *[
            Item(key.value, _select(key), checked=_is_current(key), radio=True)
            for key in Hotkey
        ]
    )

    def _open_logs(icon, item):
        if ctx.log_file_path is not None:
            open_path(ctx.log_file_path)

    def _quit(icon, item):
        ctx.menu_events.send(QuitEvent())

    items = [
        Item("Set Hotkey", hotkey_menu),
        Menu.SEPARATOR,
        Item(lambda item: f"Running on: {ctx.provider_info}", None, enabled=False),
        Menu.SEPARATOR,
    ]
    if ctx.log_file_path is not None:
        items.append(Item("Open Logs", _open_logs))
    items.append(Item("Quit", _quit))
    return Menu(*items)


class TrayDisplay:
    """System tray status display backed by pystray.

    pystray allows updating the icon and title from any thread.
    """

    def __init__(self, ctx: "AppContext", title: str = "Loading model..."):
        self._images = {variant: create_icon_image(variant) for variant in IconVariant}
        self.icon = pystray.Icon(
            name="esponquen_tray",
            title=title,
            icon=self._images[IconVariant.LOADING],
            menu=_build_menu(ctx),
        )

    def set_tooltip(self, text: str) -> None:
        self.icon.title = text

    def set_icon(self, variant: IconVariant) -> None:
        self.icon.icon = self._images[variant]

    def refresh_menu(self) -> None:
        try:
            self.icon.update_menu()
        except NotImplementedError:
            pass

    def run(self, setup: Optional[Callable[[], None]] = None) -> None:
        """Run the tray on the calling thread until ``stop`` is called.

        ``setup`` runs on a separate thread once the icon exists.
        """

        def _setup(icon):
            icon.visible = True
            if setup is not None:
                setup()

        self.icon.run(setup=_setup)

    def stop(self) -> None:
        logger.debug("Stopping tray icon")
        self.icon.stop()
