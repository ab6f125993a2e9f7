"""Tests for the system tray display and menu."""

from pathlib import Path
from unittest.mock import MagicMock

from pystray import Menu

from esponquen.app_context import AppContext
from esponquen.hotkey import Hotkey, HotkeyRegistry
from esponquen.status import IconVariant
from esponquen.trayicon import TrayDisplay, _build_menu, create_icon_image
from esponquen.ui_loop import QuitEvent, SelectHotkeyEvent
from tests.conftest import drain


def menu_labels(menu):
    return [str(item.text) for item in menu if item is not Menu.SEPARATOR]


def test_icon_variants_differ():
    images = {variant: create_icon_image(variant) for variant in IconVariant}
    assert all(img.size == (64, 64) for img in images.values())
    pixels = {images[v].getpixel((58, 58)) for v in IconVariant}
    assert len(pixels) == len(IconVariant)


def test_menu_structure_with_logs():
    ctx = AppContext(log_file_path=Path("/tmp/esponquen.log"))
    ctx.provider_info = "CPU (4 threads)"

    labels = menu_labels(_build_menu(ctx))

    assert labels == ["Set Hotkey", "Running on: CPU (4 threads)", "Open Logs", "Quit"]


def test_menu_without_log_file():
    labels = menu_labels(_build_menu(AppContext()))
    assert "Open Logs" not in labels
    assert labels[-1] == "Quit"


def test_hotkey_submenu_queues_selection():
    ctx = AppContext(hotkeys=HotkeyRegistry(Hotkey.F6))
    menu = _build_menu(ctx)
    hotkey_menu = next(item for item in menu if item.text == "Set Hotkey").submenu

    items = list(hotkey_menu)
    assert [item.text for item in items] == [k.value for k in Hotkey]
    assert [item.text for item in items if item.checked] == ["F6"]

    items[1](MagicMock())

    assert drain(ctx.menu_events) == [SelectHotkeyEvent(Hotkey.F2)]
    # Registry only changes once the UI loop handles the event
    assert ctx.hotkeys.get() is Hotkey.F6


def test_quit_item_queues_quit():
    ctx = AppContext()
    quit_item = next(item for item in _build_menu(ctx) if item.text == "Quit")

    quit_item(MagicMock())

    assert drain(ctx.menu_events) == [QuitEvent()]


def test_tray_display_updates_icon_and_title():
    display = TrayDisplay(AppContext())
    assert display.icon.title == "Loading model..."

    display.set_tooltip("Ready (Press F6)")
    display.set_icon(IconVariant.RECORDING)

    assert display.icon.title == "Ready (Press F6)"
    assert display.icon.icon is display._images[IconVariant.RECORDING]
