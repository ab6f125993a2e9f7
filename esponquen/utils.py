import os
import subprocess
import sys
from pathlib import Path

from loguru import logger


def get_app_data_dir() -> Path:
    """Get the platform-specific application data directory for esponquen.

    Returns:
        Path to the esponquen application data directory:
        - Windows: %APPDATA%/esponquen
        - macOS: ~/Library/Application Support/esponquen
        - Linux: $XDG_CONFIG_HOME/esponquen or ~/.config/esponquen
    """
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:  # Linux and other Unix-like systems
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base / "esponquen"


def open_path(path: Path) -> None:
    """Open a file with the system's default viewer."""
    try:
        if sys.platform.startswith("linux"):
            subprocess.Popen(["xdg-open", str(path)])
        elif sys.platform == "darwin":
            subprocess.Popen(["open", str(path)])
        elif os.name == "nt":
            os.startfile(str(path))  # type: ignore[attr-defined]
    except OSError as e:
        logger.warning(f"Could not open {path}: {e}")
