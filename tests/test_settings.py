"""Unit tests for settings module."""

from pathlib import Path

import pytest
import toml
from pydantic import ValidationError

from esponquen.hotkey import Hotkey
from esponquen.settings import Settings, load_settings


class TestSettingsDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.initial_hotkey is Hotkey.F6
        assert settings.keyboard.settle_delay == pytest.approx(0.1)
        assert settings.transcription.providers == ["cuda", "cpu"]
        assert settings.background_transcription is True
        assert settings.max_recording_seconds is None
        assert settings.telemetry.enabled is False

    def test_hotkey_is_normalized(self):
        assert Settings(hotkey="<f9>").hotkey == "F9"

    def test_invalid_hotkey_rejected(self):
        with pytest.raises(ValidationError):
            Settings(hotkey="ctrl+x")

    def test_non_positive_recording_cap_rejected(self):
        with pytest.raises(ValidationError):
            Settings(max_recording_seconds=0)


class TestLoadSettings:
    def test_partial_file_keeps_other_defaults(self, tmp_path):
        settings_file = tmp_path / "settings.toml"
        settings_file.write_text(
            toml.dumps(
                {
                    "hotkey": "F2",
                    "transcription": {"model": "small"},
                    "keyboard": {"char_delay": 0.01},
                }
            )
        )

        settings = load_settings(settings_file)

        assert settings.initial_hotkey is Hotkey.F2
        assert settings.transcription.model == "small"
        assert settings.transcription.language == "en"
        assert settings.keyboard.char_delay == pytest.approx(0.01)
        assert settings.keyboard.settle_delay == pytest.approx(0.1)

    def test_missing_file_falls_back_to_defaults(self, tmp_path, captured_logs):
        settings = load_settings(tmp_path / "nope.toml")

        assert settings.initial_hotkey is Hotkey.F6
        assert "not found" in captured_logs.getvalue()

    def test_searches_current_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
        (tmp_path / "settings.toml").write_text('hotkey = "F11"\n')

        assert load_settings().initial_hotkey is Hotkey.F11
