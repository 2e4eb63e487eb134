"""Unit tests for voice selection and the SynthesisTrigger."""

import pytest
from pubsub import pub

from carevoice.models.events import TRANSLATION_RESULT_TOPIC
from carevoice.models.status import SynthesisPhase
from carevoice.models.synthesis import Voice
from carevoice.models.translation import TranslationResult
from carevoice.synthesis.trigger import SynthesisTrigger, select_voice


def publish_result(text="dolor en el pecho", output_language="es"):
    result = TranslationResult(text=text, output_language=output_language, source_text="chest pain")
    pub.sendMessage(TRANSLATION_RESULT_TOPIC, result=result)
    return result


@pytest.mark.unit
class TestSelectVoice:

    @pytest.mark.parametrize("language,expected", [
        ("es", "v-es"),
        ("en", "v-en"),
        ("hi", "v-hi"),
        ("ES", "v-es"),
        ("en-us", "v-en"),
        ("hi-IN", "v-hi"),
    ])
    def test_prefix_match(self, synthesis, language, expected):
        voice = select_voice(synthesis.voices(), language)
        assert voice.id == expected

    def test_no_match_uses_default_voice(self, synthesis):
        assert select_voice(synthesis.voices(), "bn") is None

    def test_voices_without_language_are_skipped(self):
        voices = [Voice(id="blank", name="Blank"), Voice(id="bn", name="Bangla", language="bn-BD")]
        assert select_voice(voices, "bn").id == "bn"

    def test_first_match_wins(self):
        voices = [Voice(id="gb", name="UK", language="en-GB"), Voice(id="us", name="US", language="en-US")]
        assert select_voice(voices, "en").id == "gb"


@pytest.mark.unit
class TestSynthesisTrigger:

    def test_speak_without_translation_is_noop(self, synthesis, synthesis_phases):
        trigger = SynthesisTrigger(synthesis, output_language="es")

        assert trigger.speak() is None
        assert synthesis.calls == []
        assert synthesis_phases.values == []

    def test_speak_after_reset_is_noop(self, synthesis):
        trigger = SynthesisTrigger(synthesis, output_language="es")
        publish_result()
        pub.sendMessage(TRANSLATION_RESULT_TOPIC, result=None)

        assert trigger.speak() is None
        assert synthesis.spoken == []

    def test_speaks_latest_translation_with_matching_voice(self, synthesis, synthesis_phases):
        trigger = SynthesisTrigger(synthesis, output_language="es")
        publish_result("primero")
        publish_result("dolor en el pecho")

        utterance = trigger.speak()

        assert utterance.text == "dolor en el pecho"
        assert utterance.language == "es"
        assert utterance.voice.id == "v-es"
        assert synthesis.spoken == [utterance]
        assert synthesis_phases.values == [SynthesisPhase.SPEAKING]

    def test_falls_back_to_default_voice(self, synthesis):
        trigger = SynthesisTrigger(synthesis, output_language="bn")
        publish_result("বুকে ব্যথা", "bn")

        utterance = trigger.speak()

        assert utterance.voice is None
        assert synthesis.spoken == [utterance]

    def test_voice_listing_failure_uses_default_voice(self, synthesis):
        synthesis.voices_error = RuntimeError("voices not loaded")
        trigger = SynthesisTrigger(synthesis, output_language="es")
        publish_result()

        utterance = trigger.speak()

        assert utterance.voice is None
        assert len(synthesis.spoken) == 1

    def test_cancels_current_utterance_first(self, synthesis):
        trigger = SynthesisTrigger(synthesis, output_language="es")
        publish_result()
        trigger.speak()

        trigger.speak()

        assert synthesis.calls == ["voices", "speak", "cancel", "voices", "speak"]
        assert len(synthesis.spoken) == 2

    def test_engine_failure_sets_failed_phase(self, synthesis, synthesis_phases):
        synthesis.speak_error = RuntimeError("audio device busy")
        trigger = SynthesisTrigger(synthesis, output_language="es")
        publish_result()

        assert trigger.speak() is None
        assert trigger.phase is SynthesisPhase.FAILED
        assert synthesis_phases.values == [SynthesisPhase.FAILED]

    def test_done_returns_to_idle(self, synthesis, synthesis_phases):
        trigger = SynthesisTrigger(synthesis, output_language="es")
        publish_result()
        trigger.speak()

        synthesis.finish()

        assert trigger.phase is SynthesisPhase.IDLE
        assert synthesis_phases.values == [SynthesisPhase.SPEAKING, SynthesisPhase.IDLE]

    def test_failed_translation_is_still_spoken(self, synthesis):
        trigger = SynthesisTrigger(synthesis, output_language="es")
        result = TranslationResult(text="Translation error", output_language="es", source_text="x", failed=True)
        pub.sendMessage(TRANSLATION_RESULT_TOPIC, result=result)

        assert trigger.speak().text == "Translation error"

    def test_shutdown_closes_engine(self, synthesis):
        trigger = SynthesisTrigger(synthesis, output_language="es")
        trigger.shutdown()

        publish_result()

        assert synthesis.closed is True
        assert trigger.result is None
