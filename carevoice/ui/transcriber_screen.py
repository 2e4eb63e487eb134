"""Terminal screen showing status, original transcript and translation."""

import asyncio
import logging
from typing import List, Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .keyboard_input import KeyboardInputHandler
from ..config import INPUT_LANGUAGES, OUTPUT_LANGUAGES
from ..models.events import STATUS_TOPIC, TRANSCRIPT_TOPIC, TRANSLATION_RESULT_TOPIC
from ..models.status import Status
from ..models.translation import TranslationResult
from ..services.transcriber import Transcriber

logger = logging.getLogger(__name__)


STATUS_STYLES = {
    Status.IDLE: "yellow",
    Status.LISTENING: "bold red",
    Status.TRANSLATING: "cyan",
    Status.TRANSLATED: "bold green",
    Status.NO_CAPABILITY: "bold magenta",
    Status.PERMISSION_DENIED: "bold magenta",
    Status.NETWORK_ERROR: "bold magenta",
    Status.ERROR: "bold magenta",
}

HELP_TEXT = "SPACE start/stop  p speak  c clear  i input language  o output language  q quit"


def _next(options: List[str], current: str) -> str:
    index = options.index(current) if current in options else -1
    return options[(index + 1) % len(options)]


class TranscriberScreen:
    """Rich-based front end for a Transcriber."""

    def __init__(self, transcriber: Transcriber, console: Optional[Console] = None):
        self.transcriber = transcriber
        self.console = console or Console()
        self.live: Optional[Live] = None
        self.quit_event = asyncio.Event()

        pub.subscribe(self._on_status, STATUS_TOPIC)
        pub.subscribe(self._on_transcript, TRANSCRIPT_TOPIC)
        pub.subscribe(self._on_translation, TRANSLATION_RESULT_TOPIC)

    def render(self) -> Panel:
        """Build the full screen from the transcriber state."""
        status = self.transcriber.status
        header = Text.assemble(
            ("CareVoice - Healthcare Translation", "bold blue"),
            "  |  ",
            (f"Status: {status.value}", STATUS_STYLES[status]),
        )

        languages = Table.grid(padding=(0, 2))
        languages.add_row(
            f"Input: {INPUT_LANGUAGES[self.transcriber.input_language]}",
            f"Output: {OUTPUT_LANGUAGES[self.transcriber.output_language]}",
        )

        original = self.transcriber.original_text
        translation = self.transcriber.translation
        original_text = Text(original) if original else Text("No transcript yet", style="dim italic")
        if translation is not None:
            translated_text = Text(translation.text, style="red" if translation.failed else "white")
        else:
            translated_text = Text("Translation will appear here", style="dim italic")

        body = Group(
            Align.center(header),
            languages,
            Panel(original_text, title="Original Transcript", border_style="green"),
            Panel(translated_text, title="Translated / Corrected Transcript", border_style="blue"),
            Text(HELP_TEXT, style="dim"),
        )
        return Panel(body, border_style="bright_blue")

    def handle_key(self, key: str) -> None:
        """Dispatch one keypress to a transcriber action."""
        if key == "q":
            self.quit_event.set()
        elif key in (" ", "\r", "\n"):
            self.transcriber.toggle_listening()
        elif key == "p":
            self.transcriber.speak()
        elif key == "c":
            self.transcriber.clear_all()
        elif key == "i":
            self.transcriber.set_input_language(_next(list(INPUT_LANGUAGES), self.transcriber.input_language))
        elif key == "o":
            self.transcriber.set_output_language(_next(list(OUTPUT_LANGUAGES), self.transcriber.output_language))
        else:
            return
        self.refresh()

    def refresh(self) -> None:
        if self.live is not None:
            self.live.update(self.render(), refresh=True)

    async def run(self) -> None:
        """Show the screen and process keys until 'q' is pressed."""
        input_handler = KeyboardInputHandler(self.handle_key, asyncio.get_running_loop())
        with Live(self.render(), console=self.console, auto_refresh=False, screen=False) as live:
            self.live = live
            input_handler.start()
            try:
                await self.quit_event.wait()
            finally:
                input_handler.stop()
                self.live = None

    def shutdown(self) -> None:
        for listener, topic in (
            (self._on_status, STATUS_TOPIC),
            (self._on_transcript, TRANSCRIPT_TOPIC),
            (self._on_translation, TRANSLATION_RESULT_TOPIC),
        ):
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe: {e}")

    def _on_status(self, status: Status) -> None:
        self.refresh()

    def _on_transcript(self, text: str) -> None:
        self.refresh()

    def _on_translation(self, result: Optional[TranslationResult]) -> None:
        self.refresh()
