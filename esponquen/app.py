"""Startup sequencing and shutdown of the running application."""

from typing import Optional

from loguru import logger

from esponquen.app_context import AppContext
from esponquen.audio_capture import AudioCapture
from esponquen.hotkey_listener import HotkeyListener, create_hotkey_listener
from esponquen.injector import PynputTextInjector
from esponquen.interceptor import KeyboardInterceptor
from esponquen.settings import Settings
from esponquen.status import AppStatus
from esponquen.transcriber import WhisperTranscriber
from esponquen.ui_loop import StatusDisplay, UIEventLoop


class Application:
    """Wires the collaborators together around the shared AppContext.

    ``start`` runs on the display toolkit's setup thread: it loads the model,
    starts audio capture and the keyboard hook, then runs the UI loop until
    quit.
    """

    def __init__(self, settings: Settings, ctx: AppContext, display: StatusDisplay):
        self.settings = settings
        self.ctx = ctx
        self.display = display
        self.ui_loop = UIEventLoop(ctx, display)
        self.transcriber: Optional[WhisperTranscriber] = None
        self.capture: Optional[AudioCapture] = None
        self.interceptor: Optional[KeyboardInterceptor] = None
        self.hotkey_listener: Optional[HotkeyListener] = None
        self.exit_code = 0

    def load_model(self) -> WhisperTranscriber:
        cfg = self.settings.transcription
        transcriber = WhisperTranscriber(
            model=cfg.model,
            language=cfg.language,
            providers=cfg.providers,
            cpu_threads=cfg.cpu_threads,
            download_root=cfg.download_root,
        )
        transcriber.load()
        return transcriber

    def start(self) -> None:
        try:
            self.ui_loop.display_status(AppStatus.LOADING_MODEL)
            self.transcriber = self.load_model()

            self.ctx.provider_info = self.transcriber.provider_info
            self.display.refresh_menu()
            logger.info(f"Running on: {self.ctx.provider_info}")

            self.capture = AudioCapture(self.ctx.buffer, self.settings.audio.device_name)
            self.capture.start()
        except Exception:
            logger.exception("Startup failed")
            self.exit_code = 1
            self.display.stop()
            return

        self.interceptor = KeyboardInterceptor(
            hotkeys=self.ctx.hotkeys,
            buffer=self.ctx.buffer,
            status_channel=self.ctx.status_channel,
            transcriber=self.transcriber,
            injector=PynputTextInjector(char_delay=self.settings.keyboard.char_delay),
            settle_delay=self.settings.keyboard.settle_delay,
            background=self.settings.background_transcription,
        )
        self.ui_loop.display_status(AppStatus.WAITING_FOR_HOTKEY)

        try:
            self.hotkey_listener = create_hotkey_listener(
                on_key_press=self.interceptor.on_key_press,
                should_suppress=self.interceptor.should_suppress,
            )
            self.hotkey_listener.start_listening()
        except Exception as e:
            # Tray stays up so the user can still quit
            logger.error(f"Error listening to keyboard events: {e}")
        else:
            hotkey = self.ctx.hotkeys.get().value
            logger.info(f"Ready! Press {hotkey} to start recording...")

        self.ui_loop.run()

    def shutdown(self) -> None:
        logger.info("Shutting down...")
        if self.hotkey_listener is not None:
            try:
                self.hotkey_listener.stop_listening()
            except Exception as e:
                logger.opt(exception=True).error(f"Error stopping keyboard hook: {e}")
        if self.interceptor is not None:
            self.interceptor.shutdown()
        if self.capture is not None:
            self.capture.stop()
