from pathlib import Path
from typing import List, Optional

import toml
from loguru import logger
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from esponquen.hotkey import Hotkey


class AudioConfig(BaseModel):
    """Audio input configuration."""

    # Substring of the input device name; None uses the system default
    device_name: Optional[str] = None


class TranscriptionConfig(BaseModel):
    """Speech recognition configuration."""

    model: str = "base.en"
    language: str = "en"
    # Tried in order until one loads
    providers: List[str] = Field(default_factory=lambda: ["cuda", "cpu"])
    cpu_threads: int = 4
    download_root: Optional[str] = None


class KeyboardConfig(BaseModel):
    """Keystroke injection configuration."""

    settle_delay: float = 0.1
    char_delay: float = 0.001


class TelemetryConfig(BaseModel):
    """Telemetry configuration for OpenTelemetry tracing."""

    enabled: bool = False
    service_name: str = "esponquen"
    export_to_file: bool = True
    trace_file: Optional[str] = None
    otlp_endpoint: Optional[str] = None
    rotation_max_size_mb: int = 10


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(env_prefix="ESPONQUEN_", env_nested_delimiter="__")

    hotkey: str = "F6"

    audio: AudioConfig = AudioConfig()
    transcription: TranscriptionConfig = TranscriptionConfig()
    keyboard: KeyboardConfig = KeyboardConfig()

    # Run transcription on a worker thread so the keyboard hook never blocks
    background_transcription: bool = True

    # Cap on a single recording; None means unbounded
    max_recording_seconds: Optional[float] = None

    telemetry: TelemetryConfig = TelemetryConfig()

    # Path to log file (uses platform defaults if not specified)
    log_file: Optional[Path] = None

    @field_validator("hotkey")
    @classmethod
    def _validate_hotkey(cls, value: str) -> str:
        return Hotkey.parse(value).value

    @field_validator("max_recording_seconds")
    @classmethod
    def _validate_max_recording_seconds(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("max_recording_seconds must be positive")
        return value

    @property
    def initial_hotkey(self) -> Hotkey:
        return Hotkey.parse(self.hotkey)


def default_settings_locations() -> List[Path]:
    return [
        Path("settings.toml"),
        Path.home() / ".config" / "esponquen" / "settings.toml",
        Path("/etc/esponquen/settings.toml"),
    ]


def load_settings(settings_file: Path | None = None) -> Settings:
    """Loads settings from a TOML file, falling back to environment variables.

    If no settings_file is provided, searches in order:
    1. ./settings.toml (current directory)
    2. ~/.config/esponquen/settings.toml (user config)
    3. /etc/esponquen/settings.toml (system-wide)
    """
    if settings_file is None:
        for location in default_settings_locations():
            if location.is_file():
                settings_file = location
                break

    if settings_file and settings_file.is_file():
        logger.info(f"Loading settings from {settings_file}")
        data = toml.load(settings_file)
        # Sections and keys missing from the file keep their defaults
        return Settings(**data)

    if settings_file:
        logger.warning(f"Settings file not found: {settings_file}; using defaults")
    return Settings()
