"""Unit tests for RecognitionSessionManager."""

import pytest
from pubsub import pub

from carevoice.errors import NoCapability, PermissionDenied
from carevoice.models.events import CAPABILITY_TOPIC, RecognitionErrorKind
from carevoice.models.status import SessionPhase
from carevoice.services.recognition_session import RecognitionSessionManager


class CapabilityRecorder:
    def __init__(self):
        self.values = []
        pub.subscribe(self.record, CAPABILITY_TOPIC)

    def record(self, available):
        self.values.append(available)


@pytest.fixture
def manager(capture_provider):
    return RecognitionSessionManager(capture_provider, language="en-US")


@pytest.mark.unit
class TestSessionLifecycle:

    def test_start_moves_to_listening(self, manager, capture_provider, session_phases):
        manager.start()

        assert manager.running is True
        assert manager.phase is SessionPhase.LISTENING
        assert session_phases.values == [SessionPhase.LISTENING]
        assert capture_provider.latest.language == "en-US"

    def test_no_capability(self, unavailable_provider):
        recorder = CapabilityRecorder()
        manager = RecognitionSessionManager(unavailable_provider)

        with pytest.raises(NoCapability):
            manager.start()

        assert recorder.values == [False]
        assert unavailable_provider.created == []
        assert manager.running is False

    def test_graceful_stop_flushes_pending_final(self, manager, capture_provider, session_phases):
        manager.start()
        capture = capture_provider.latest
        capture.final("patient reports", 0)
        capture.interim("chest pa", 1)
        capture.pending_final = (1, "chest pain")

        manager.stop()

        assert capture.calls == ["start", "stop"]
        assert manager.transcript.finals == ["patient reports", "chest pain"]
        assert manager.transcript.interim == ""
        assert manager.running is False
        assert session_phases.values[-1] is SessionPhase.IDLE

    def test_stop_falls_back_to_abort_without_graceful_stop(self, capture_provider):
        capture_provider.supports_stop = False
        manager = RecognitionSessionManager(capture_provider)
        manager.start()
        capture = capture_provider.latest
        capture.final("fever", 0)
        capture.interim("and co", 1)

        manager.stop()

        assert capture.calls == ["start", "abort"]
        assert manager.transcript.text == "fever"
        assert manager.phase is SessionPhase.IDLE

    def test_stop_aborts_when_stop_fails(self, manager, capture_provider):
        manager.start()
        capture = capture_provider.latest
        capture.final("headache", 0)
        capture.stop_error = RuntimeError("stop not allowed now")

        manager.stop()

        assert capture.calls == ["start", "stop", "abort"]
        assert manager.transcript.finals == ["headache"]
        assert manager.running is False

    def test_stop_without_session_is_noop(self, manager, capture_provider):
        manager.stop()
        assert capture_provider.latest.calls == []

    def test_start_while_running_leaves_one_active_session(self, manager, capture_provider):
        manager.start()
        first = capture_provider.latest

        manager.start()

        second = capture_provider.latest
        assert first is not second
        assert first.calls == ["start", "abort"]
        assert first.on_result is None
        assert second.started is True
        assert manager.running is True
        assert manager.session.capture is second
        assert manager.phase is SessionPhase.LISTENING

    def test_already_active_from_capture_is_absorbed(self, manager, capture_provider):
        stuck = capture_provider.latest
        stuck.started = True  # platform believes it is still running

        manager.start()

        assert "abort" in stuck.calls
        assert len(capture_provider.created) == 2
        assert manager.running is True
        assert manager.phase is SessionPhase.LISTENING

    def test_permission_refused_at_start(self, manager, capture_provider):
        capture_provider.latest.start_error = PermissionDenied("microphone blocked")

        manager.start()

        assert manager.running is False
        assert manager.phase is SessionPhase.PERMISSION_DENIED

    def test_start_failure_after_restart_is_an_error(self, manager, capture_provider, session_phases):
        capture_provider.latest.start_error = RuntimeError("device busy")

        manager.start()

        assert manager.running is False
        assert session_phases.values == [SessionPhase.ERROR]


@pytest.mark.unit
class TestTranscriptAccumulation:

    @pytest.mark.parametrize("utterances", [
        ["chest pain"],
        ["patient has", "a history of", "hypertension"],
        ["dolor", "en el pecho", "desde ayer", "sin fiebre"],
    ])
    def test_finals_concatenate_in_arrival_order(self, manager, capture_provider, utterances):
        manager.start()
        capture = capture_provider.latest

        for index, utterance in enumerate(utterances):
            words = utterance.split()
            for end in range(1, len(words) + 1):
                capture.interim(" ".join(words[:end]), index)
                assert manager.transcript.interim == " ".join(words[:end])
            capture.final(utterance, index)
            assert manager.transcript.interim == ""

        assert manager.transcript.finals == utterances
        assert manager.transcript.final_text == " ".join(utterances)

    def test_repeated_final_is_appended_once(self, manager, capture_provider):
        manager.start()
        capture = capture_provider.latest
        capture.final("shortness of breath", 0)
        capture.final("shortness of breath", 0)

        assert manager.transcript.finals == ["shortness of breath"]

    def test_finals_survive_a_restart(self, manager, capture_provider):
        manager.start()
        capture = capture_provider.latest
        capture.final("first", 0)
        manager.stop()

        manager.start()
        capture.final("second", 0)

        assert manager.transcript.finals == ["first", "second"]

    def test_transcript_changes_are_published(self, manager, capture_provider, transcript_recorder):
        manager.start()
        capture = capture_provider.latest
        capture.interim("naus", 0)
        capture.final("nausea", 0)

        assert transcript_recorder.values == ["naus", "nausea"]

    def test_clear_transcript(self, manager, capture_provider, transcript_recorder):
        manager.start()
        capture_provider.latest.final("dizzy", 0)

        manager.clear_transcript()

        assert manager.transcript.text == ""
        assert transcript_recorder.values[-1] == ""


@pytest.mark.unit
class TestRecognitionErrors:

    def test_network_error_aborts_session(self, manager, capture_provider, session_phases):
        manager.start()
        capture = capture_provider.latest
        capture.final("cough", 0)
        capture.interim("for three", 1)

        capture.fail(RecognitionErrorKind.NETWORK)

        assert "abort" in capture.calls
        assert "stop" not in capture.calls
        assert manager.phase is SessionPhase.NETWORK_ERROR
        assert session_phases.values[-1] is SessionPhase.NETWORK_ERROR
        assert manager.running is False
        assert manager.transcript.text == "cough"

    def test_permission_denied_aborts_session(self, manager, capture_provider):
        manager.start()
        capture = capture_provider.latest

        capture.fail(RecognitionErrorKind.NOT_ALLOWED)

        assert "abort" in capture.calls
        assert manager.phase is SessionPhase.PERMISSION_DENIED

    @pytest.mark.parametrize("kind", [
        RecognitionErrorKind.NO_SPEECH,
        RecognitionErrorKind.AUDIO_CAPTURE,
        RecognitionErrorKind.SERVICE_NOT_ALLOWED,
    ])
    def test_other_errors_are_generic(self, manager, capture_provider, kind):
        manager.start()
        capture = capture_provider.latest

        capture.fail(kind)
        capture.end()

        assert "abort" not in capture.calls
        assert manager.phase is SessionPhase.ERROR

    def test_end_after_error_keeps_error_phase(self, manager, capture_provider, session_phases):
        manager.start()
        capture = capture_provider.latest
        capture.fail(RecognitionErrorKind.NETWORK)

        assert SessionPhase.IDLE not in session_phases.values

    def test_restart_after_error_listens_again(self, manager, capture_provider):
        manager.start()
        capture_provider.latest.fail(RecognitionErrorKind.NETWORK)

        manager.start()

        assert manager.phase is SessionPhase.LISTENING
        assert manager.running is True


@pytest.mark.unit
class TestLanguageChange:

    def test_language_change_recreates_session(self, manager, capture_provider, session_phases):
        manager.start()
        old = capture_provider.latest

        manager.set_language("es-ES")

        new = capture_provider.latest
        assert old.calls == ["start", "abort"]
        assert new is not old
        assert new.language == "es-ES"
        assert new.calls == []
        assert manager.running is False
        assert session_phases.values[-1] is SessionPhase.IDLE

        manager.start()
        assert new.calls == ["start"]
        assert manager.phase is SessionPhase.LISTENING

    def test_events_from_discarded_capture_are_ignored(self, manager, capture_provider):
        manager.start()
        old = capture_provider.latest
        old.final("keep me", 0)

        manager.set_language("hi-IN")
        old.final("late result", 1)
        old.fail(RecognitionErrorKind.NETWORK)

        assert manager.transcript.finals == ["keep me"]
        assert manager.phase is SessionPhase.IDLE

    def test_close_aborts_running_capture(self, manager, capture_provider):
        manager.start()
        capture = capture_provider.latest

        manager.close()

        assert capture.calls == ["start", "abort"]
        assert manager.session is None


@pytest.fixture
def slow_manager(slow_capture_provider):
    provider = slow_capture_provider
    return RecognitionSessionManager(provider, language="en-US"), provider


@pytest.mark.unit
class TestStartNotYetConfirmed:
    """The capture has accepted start() but has not reported on_start yet."""

    def test_language_change_aborts_starting_capture(self, slow_manager):
        manager, provider = slow_manager
        manager.start()
        old = provider.latest
        assert manager.running is False

        manager.set_language("es-ES")

        assert old.calls == ["start", "abort"]
        old.begin()
        assert manager.phase is SessionPhase.IDLE
        assert manager.running is False

    def test_close_aborts_starting_capture(self, slow_manager):
        manager, provider = slow_manager
        manager.start()
        capture = provider.latest

        manager.close()

        assert capture.calls == ["start", "abort"]
        assert manager.session is None

    def test_stop_reaches_starting_capture(self, slow_manager):
        manager, provider = slow_manager
        manager.start()
        capture = provider.latest

        manager.stop()

        assert capture.calls == ["start", "stop"]
        assert manager.phase is SessionPhase.IDLE

    def test_confirmed_start_then_language_change(self, slow_manager, session_phases):
        manager, provider = slow_manager
        manager.start()
        first = provider.latest
        first.begin()
        assert manager.phase is SessionPhase.LISTENING

        manager.set_language("hi-IN")

        assert first.calls == ["start", "abort"]
        assert session_phases.values == [SessionPhase.LISTENING, SessionPhase.IDLE]
