"""Pytest configuration and fixtures."""

import os
import threading
from io import StringIO
from typing import List

import pytest
from loguru import logger

# No desktop session in tests; must be set before pystray is imported
os.environ["PYSTRAY_BACKEND"] = "dummy"


class FakeTranscriber:
    """Records calls and returns a canned result (or raises it)."""

    def __init__(self, result="hello world"):
        self.result = result
        self.calls: List[tuple] = []

    def transcribe(self, sample_rate, samples):
        self.calls.append((sample_rate, samples))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class BlockingTranscriber(FakeTranscriber):
    """Blocks inside transcribe until released."""

    def __init__(self, result="hello world"):
        super().__init__(result)
        self.started = threading.Event()
        self.release = threading.Event()

    def transcribe(self, sample_rate, samples):
        self.started.set()
        self.release.wait(timeout=5)
        return super().transcribe(sample_rate, samples)


class FakeInjector:
    def __init__(self, result=True):
        self.result = result
        self.calls: List[str] = []

    def inject(self, text):
        self.calls.append(text)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeDisplay:
    def __init__(self):
        self.tooltips: List[str] = []
        self.icons = []
        self.menu_refreshes = 0
        self.stopped = False

    def set_tooltip(self, text):
        self.tooltips.append(text)

    def set_icon(self, variant):
        self.icons.append(variant)

    def refresh_menu(self):
        self.menu_refreshes += 1

    def stop(self):
        self.stopped = True


@pytest.fixture
def captured_logs():
    """Fixture to capture loguru logs."""
    log_stream = StringIO()
    handler_id = logger.add(log_stream, format="{message}")
    yield log_stream
    logger.remove(handler_id)


def drain(channel) -> list:
    """Collect every pending value from a StatusChannel/MenuChannel."""
    values = []
    while True:
        value = channel.try_receive()
        if value is None:
            return values
        values.append(value)
