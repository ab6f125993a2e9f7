import argparse
import sys
from pathlib import Path

from loguru import logger

from esponquen.app import Application
from esponquen.app_context import AppContext
from esponquen.hotkey import HotkeyRegistry
from esponquen.recording import RecordingBuffer
from esponquen.settings import load_settings
from esponquen.telemetry import initialize_telemetry, shutdown_telemetry
from esponquen.utils import get_app_data_dir


def get_log_file_path() -> Path:
    """Get the default path to the log file in the user's config directory."""
    config_dir = get_app_data_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "esponquen.log"


def configure_logging(log_file: Path | None = None, console: bool = False) -> Path:
    """Configure loguru to log to stderr and a rotating file.

    Args:
        log_file: Optional custom path to log file. If None, uses platform defaults.
        console: Show debug output on stderr.

    Returns:
        The path to the log file being used.
    """
    if log_file is None:
        log_file = get_log_file_path()
    else:
        log_file = Path(log_file).expanduser().resolve()
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if console else "INFO")
    logger.add(
        log_file,
        rotation="10 MB",
        retention=3,
        compression="zip",
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        backtrace=True,
        diagnose=True,
    )

    logger.info(f"Logging to file: {log_file}")
    return log_file


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="esponquen",
        description="Press a hotkey, speak, and have the text typed for you.",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Show diagnostic output on the console.",
    )
    parser.add_argument(
        "--settings-file",
        type=Path,
        help="Path to the settings TOML file.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main application entry point."""
    args = parse_args(argv)
    settings = load_settings(args.settings_file)
    log_file_path = configure_logging(settings.log_file, console=args.console)

    initialize_telemetry(
        service_name=settings.telemetry.service_name,
        otlp_endpoint=settings.telemetry.otlp_endpoint,
        export_to_file=settings.telemetry.export_to_file,
        trace_file=settings.telemetry.trace_file,
        enabled=settings.telemetry.enabled,
        rotation_max_size_mb=settings.telemetry.rotation_max_size_mb,
    )

    logger.info("Speech-to-Text Desktop App with Tray Icon")

    ctx = AppContext(
        hotkeys=HotkeyRegistry(settings.initial_hotkey),
        buffer=RecordingBuffer(max_seconds=settings.max_recording_seconds),
        log_file_path=log_file_path,
    )

    from esponquen.trayicon import TrayDisplay

    display = TrayDisplay(ctx)
    app = Application(settings, ctx, display)

    try:
        # Blocks the main thread until the UI loop stops the tray
        display.run(setup=app.start)
    except KeyboardInterrupt:
        logger.info("Shutdown requested via KeyboardInterrupt.")
    finally:
        app.shutdown()
        shutdown_telemetry()
        logger.info("Esponquen finished.")

    return app.exit_code


if __name__ == "__main__":
    sys.exit(main())
