"""Transcriber: wires capture, translation, synthesis and status together."""

import logging
from typing import Optional

from pubsub import pub

from .recognition_session import RecognitionSessionManager
from .status_board import StatusBoard
from ..capture.base import SpeechCaptureProvider
from ..config import INPUT_LANGUAGES, OUTPUT_LANGUAGES, check_language
from ..errors import NoCapability
from ..models.events import TRANSCRIPT_TOPIC
from ..models.status import Status
from ..models.synthesis import Utterance
from ..models.translation import TranslationResult
from ..synthesis.base import AbstractSpeechSynthesis
from ..synthesis.trigger import SynthesisTrigger
from ..translation.client import TranslationTransport
from ..translation.dispatcher import DebouncedTranslationDispatcher

logger = logging.getLogger(__name__)


class Transcriber:
    """User-facing actions: toggle capture, pick languages, speak, clear."""

    def __init__(self,
                 capture_provider: SpeechCaptureProvider,
                 transport: TranslationTransport,
                 synthesis: AbstractSpeechSynthesis,
                 input_language: str = "en-US",
                 output_language: str = "bn",
                 debounce_seconds: float = 1.0):
        """Initialize transcriber.

        Args:
            capture_provider: Speech capture capability and factory
            transport: Translation collaborator
            synthesis: Speech synthesis engine
            input_language: Initial input language tag
            output_language: Initial output language code
            debounce_seconds: Settle time before translating
        """
        check_language(input_language, INPUT_LANGUAGES, "input")
        check_language(output_language, OUTPUT_LANGUAGES, "output")
        self.output_language = output_language

        # the board must exist before the session manager reports its capability
        self.status_board = StatusBoard()
        self.dispatcher = DebouncedTranslationDispatcher(transport, delay_seconds=debounce_seconds)
        self.synthesis_trigger = SynthesisTrigger(synthesis, output_language=output_language)
        pub.subscribe(self._on_transcript, TRANSCRIPT_TOPIC)
        self.session_manager = RecognitionSessionManager(capture_provider, language=input_language)

        logger.info(f"Transcriber initialized ({input_language} -> {output_language})")

    @property
    def status(self) -> Status:
        return self.status_board.status

    @property
    def input_language(self) -> str:
        return self.session_manager.language

    @property
    def listening(self) -> bool:
        return self.session_manager.running

    @property
    def original_text(self) -> str:
        return self.session_manager.transcript.text

    @property
    def translation(self) -> Optional[TranslationResult]:
        return self.dispatcher.result

    def toggle_listening(self) -> None:
        """Start capture when idle, stop it gracefully when listening."""
        if self.session_manager.running:
            self.session_manager.stop()
            return
        try:
            self.session_manager.start()
        except NoCapability as e:
            logger.warning(f"Cannot start listening: {e}")

    def set_input_language(self, language: str) -> None:
        check_language(language, INPUT_LANGUAGES, "input")
        self.session_manager.set_language(language)

    def set_output_language(self, language: str) -> None:
        check_language(language, OUTPUT_LANGUAGES, "output")
        self.output_language = language
        self.synthesis_trigger.output_language = language
        self.dispatcher.observe(self.original_text, language)

    def speak(self) -> Optional[Utterance]:
        return self.synthesis_trigger.speak()

    def clear_all(self) -> None:
        """Clear the transcript and the translation."""
        self.dispatcher.reset()
        self.session_manager.clear_transcript()
        logger.info("Transcript and translation cleared")

    async def aclose(self) -> None:
        self.session_manager.close()
        await self.dispatcher.aclose()
        self.synthesis_trigger.shutdown()
        self.status_board.shutdown()
        try:
            pub.unsubscribe(self._on_transcript, TRANSCRIPT_TOPIC)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        logger.info("Transcriber closed")

    def _on_transcript(self, text: str) -> None:
        self.dispatcher.observe(text, self.output_language)

