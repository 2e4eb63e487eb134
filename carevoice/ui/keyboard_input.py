"""Single-key terminal input delivered on the event loop."""

import asyncio
import os
import sys
import threading
import time
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)


class KeyboardInputHandler:
    """Feeds lowercase keypresses to a callback running on the event loop.

    On Unix stdin is switched to cbreak mode and watched with
    ``loop.add_reader``. On Windows a daemon thread polls ``msvcrt``.
    """

    def __init__(self, callback: Callable[[str], None], loop: asyncio.AbstractEventLoop):
        """Initialize keyboard handler.

        Args:
            callback: Receives each key, always on the event loop thread
            loop: Event loop the callback runs on
        """
        self.callback = callback
        self.loop = loop
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self._fd: Optional[int] = None
        self._saved_mode: Optional[List] = None

    def start(self) -> None:
        if self.running:
            return
        self.running = True

        if sys.platform == "win32":
            self.thread = threading.Thread(target=self._poll_windows, daemon=True)
            self.thread.name = "KeyboardInput"
            self.thread.start()
        elif sys.stdin.isatty():
            self._attach_unix()
        else:
            logger.warning("stdin is not a terminal, keyboard shortcuts disabled")
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False

        if self._fd is not None:
            import termios
            self.loop.remove_reader(self._fd)
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_mode)
            self._fd = None
            self._saved_mode = None
        if self.thread is not None:
            self.thread.join(timeout=1.0)
            self.thread = None
        logger.info("Keyboard input handler stopped")

    def _attach_unix(self) -> None:
        import termios
        import tty

        self._fd = sys.stdin.fileno()
        self._saved_mode = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        self.loop.add_reader(self._fd, self._on_readable)

    def _on_readable(self) -> None:
        key = os.read(self._fd, 1).decode("utf-8", errors="ignore")
        if key:
            self._deliver(key)

    def _poll_windows(self) -> None:
        import msvcrt

        while self.running:
            if msvcrt.kbhit():
                key = msvcrt.getch().decode('utf-8', errors='ignore')
                if key:
                    self.loop.call_soon_threadsafe(self._deliver, key)
            time.sleep(0.05)

    def _deliver(self, key: str) -> None:
        logger.debug(f"Key detected: {key!r}")
        try:
            self.callback(key.lower())
        except Exception as e:
            logger.error(f"Error handling key {key!r}: {e}")
