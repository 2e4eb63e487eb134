"""Synthesis trigger: speaks the latest translation on request."""

import logging
from typing import List, Optional

from pubsub import pub

from .base import AbstractSpeechSynthesis
from ..models.events import SYNTHESIS_PHASE_TOPIC, TRANSLATION_RESULT_TOPIC
from ..models.status import SynthesisPhase
from ..models.synthesis import Utterance, Voice
from ..models.translation import TranslationResult

logger = logging.getLogger(__name__)


def select_voice(voices: List[Voice], output_language: str) -> Optional[Voice]:
    """Pick the first voice whose language tag starts with the output language code.

    Returns None (engine default voice) when nothing matches.
    """
    code = output_language.lower().replace("_", "-")
    for voice in voices:
        tag = (voice.language or "").lower().replace("_", "-")
        if tag and tag.startswith(code):
            return voice
    return None


class SynthesisTrigger:
    """Turns the latest TranslationResult into a single utterance."""

    def __init__(self,
                 engine: AbstractSpeechSynthesis,
                 output_language: str = "bn",
                 result_topic: str = TRANSLATION_RESULT_TOPIC,
                 phase_topic: str = SYNTHESIS_PHASE_TOPIC):
        """Initialize synthesis trigger.

        Args:
            engine: Speech synthesis collaborator
            output_language: Language code used for voice selection
            result_topic: Topic carrying TranslationResult updates
            phase_topic: Topic receiving synthesis phase changes
        """
        self.engine = engine
        self.output_language = output_language
        self.result_topic = result_topic
        self.phase_topic = phase_topic
        self.result: Optional[TranslationResult] = None
        self.phase = SynthesisPhase.IDLE

        self.engine.on_done = self._on_done
        self.engine.on_error = self._on_error
        pub.subscribe(self._on_result, result_topic)
        logger.info(f"SynthesisTrigger initialized - subscribed to {result_topic}")

    def _on_result(self, result: Optional[TranslationResult]) -> None:
        self.result = result

    def speak(self) -> Optional[Utterance]:
        """Speak the latest translation, interrupting any current utterance.

        Returns:
            The queued utterance, or None when there was nothing to speak or
            the engine failed
        """
        if self.result is None or not self.result.text:
            logger.debug("Nothing to speak yet")
            return None

        try:
            if self.engine.speaking:
                logger.info("Interrupting current utterance")
                self.engine.cancel()

            utterance = Utterance(
                text=self.result.text,
                language=self.output_language,
                voice=self._pick_voice(),
            )
            self.engine.speak(utterance)
        except Exception as e:
            logger.error(f"Speech synthesis failed: {e}")
            self._set_phase(SynthesisPhase.FAILED)
            return None

        voice_name = utterance.voice.name if utterance.voice else "default"
        logger.info(f"Speaking {len(utterance.text)} chars in '{self.output_language}' (voice: {voice_name})")
        self._set_phase(SynthesisPhase.SPEAKING)
        return utterance

    def shutdown(self) -> None:
        try:
            pub.unsubscribe(self._on_result, self.result_topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        self.engine.close()

    def _pick_voice(self) -> Optional[Voice]:
        try:
            voices = self.engine.voices()
        except Exception as e:
            logger.warning(f"Could not list voices, using default voice: {e}")
            return None
        voice = select_voice(voices, self.output_language)
        if voice is None:
            logger.debug(f"No voice for '{self.output_language}', using default voice")
        return voice

    def _on_done(self) -> None:
        if self.phase is SynthesisPhase.SPEAKING and not self.engine.speaking:
            self._set_phase(SynthesisPhase.IDLE)

    def _on_error(self, error: Exception) -> None:
        logger.error(f"Speech playback failed: {error}")
        self._set_phase(SynthesisPhase.FAILED)

    def _set_phase(self, phase: SynthesisPhase) -> None:
        self.phase = phase
        pub.sendMessage(self.phase_topic, phase=phase)
