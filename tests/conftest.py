"""Pytest configuration and fixtures for CareVoice tests."""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple, Union

import pytest
from pubsub import pub

from carevoice.capture.base import AbstractSpeechCapture
from carevoice.errors import AlreadyActive
from carevoice.models.events import (
    DISPATCH_PHASE_TOPIC,
    SESSION_PHASE_TOPIC,
    STATUS_TOPIC,
    SYNTHESIS_PHASE_TOPIC,
    TRANSCRIPT_TOPIC,
    TRANSLATION_RESULT_TOPIC,
    RecognitionErrorKind,
    RecognitionEvent,
    RecognitionResult,
)
from carevoice.models.synthesis import Utterance, Voice
from carevoice.synthesis.base import AbstractSpeechSynthesis


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop every pub/sub listener so tests do not see each other's subscribers."""
    yield
    pub.unsubAll()


class FakeCapture(AbstractSpeechCapture):
    """Capture driven by the test. start/stop/abort report events synchronously."""

    def __init__(self, language: str, supports_stop: bool = True):
        super().__init__(language)
        self._supports_stop = supports_stop
        self.calls: List[str] = []
        self.started = False
        self.pending_final: Optional[Tuple[int, str]] = None
        self.stop_error: Optional[Exception] = None
        self.start_error: Optional[Exception] = None
        # when set, start() only records the call and the test calls begin()
        self.defer_start = False

    @property
    def supports_stop(self) -> bool:
        return self._supports_stop

    def start(self) -> None:
        self.calls.append("start")
        if self.start_error is not None:
            raise self.start_error
        if self.started:
            raise AlreadyActive("already started")
        self.started = True
        if not self.defer_start:
            self._emit_start()

    def stop(self) -> None:
        self.calls.append("stop")
        if self.stop_error is not None:
            raise self.stop_error
        if self.pending_final is not None:
            index, text = self.pending_final
            self.pending_final = None
            self.final(text, index)
        self.started = False
        self._emit_end()

    def abort(self) -> None:
        self.calls.append("abort")
        self.started = False
        self.pending_final = None
        self._emit_error(RecognitionErrorKind.ABORTED)
        self._emit_end()

    # helpers used by tests to play the platform's role

    def begin(self) -> None:
        self._emit_start()

    def interim(self, text: str, index: int = 0) -> None:
        self._emit_result(RecognitionEvent(result_index=index, results=[RecognitionResult(text, is_final=False)]))

    def final(self, text: str, index: int = 0) -> None:
        self._emit_result(RecognitionEvent(result_index=index, results=[RecognitionResult(text, is_final=True)]))

    def fail(self, kind: RecognitionErrorKind) -> None:
        self._emit_error(kind)

    def end(self) -> None:
        self.started = False
        self._emit_end()


class FakeCaptureProvider:
    """Speech capture provider handing out FakeCapture instances."""

    def __init__(self, available: bool = True, supports_stop: bool = True, defer_start: bool = False):
        self.available = available
        self.supports_stop = supports_stop
        self.defer_start = defer_start
        self.created: List[FakeCapture] = []

    def is_available(self) -> bool:
        return self.available

    def create(self, language: str) -> FakeCapture:
        capture = FakeCapture(language, supports_stop=self.supports_stop)
        capture.defer_start = self.defer_start
        self.created.append(capture)
        return capture

    @property
    def latest(self) -> FakeCapture:
        return self.created[-1]


class FakeSynthesis(AbstractSpeechSynthesis):
    """Synthesis engine that records what it was asked to do."""

    def __init__(self, voices: Optional[List[Voice]] = None):
        super().__init__()
        self._voices = voices or []
        self.is_speaking = False
        self.spoken: List[Utterance] = []
        self.calls: List[str] = []
        self.voices_error: Optional[Exception] = None
        self.speak_error: Optional[Exception] = None
        self.closed = False

    @property
    def speaking(self) -> bool:
        return self.is_speaking

    def voices(self) -> List[Voice]:
        self.calls.append("voices")
        if self.voices_error is not None:
            raise self.voices_error
        return list(self._voices)

    def speak(self, utterance: Utterance) -> None:
        self.calls.append("speak")
        if self.speak_error is not None:
            raise self.speak_error
        self.spoken.append(utterance)
        self.is_speaking = True

    def cancel(self) -> None:
        self.calls.append("cancel")
        self.is_speaking = False

    def close(self) -> None:
        self.closed = True

    def finish(self) -> None:
        self.is_speaking = False
        if self.on_done:
            self.on_done()


class FakeTransport:
    """Translation transport with scripted replies and optional gates."""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []
        self.replies: Dict[str, Union[str, Exception]] = {}
        self.gates: Dict[str, asyncio.Event] = {}

    async def translate(self, text: str, output_language: str) -> str:
        self.calls.append((text, output_language))
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        reply = self.replies.get(text, f"[{output_language}] {text}")
        if isinstance(reply, Exception):
            raise reply
        return reply


class StatusRecorder:
    def __init__(self):
        self.values = []
        pub.subscribe(self.record, STATUS_TOPIC)

    def record(self, status):
        self.values.append(status)


class TranscriptRecorder:
    def __init__(self):
        self.values = []
        pub.subscribe(self.record, TRANSCRIPT_TOPIC)

    def record(self, text):
        self.values.append(text)


class ResultRecorder:
    def __init__(self):
        self.values = []
        pub.subscribe(self.record, TRANSLATION_RESULT_TOPIC)

    def record(self, result):
        self.values.append(result)


class PhaseRecorder:
    def __init__(self, topic: str):
        self.values = []
        pub.subscribe(self.record, topic)

    def record(self, phase):
        self.values.append(phase)


@pytest.fixture
def capture_provider():
    return FakeCaptureProvider()


@pytest.fixture
def unavailable_provider():
    return FakeCaptureProvider(available=False)


@pytest.fixture
def slow_capture_provider():
    """Captures whose on_start arrives only when the test calls begin()."""
    return FakeCaptureProvider(defer_start=True)


@pytest.fixture
def synthesis():
    return FakeSynthesis(voices=[
        Voice(id="v-en", name="English (US)", language="en-US"),
        Voice(id="v-es", name="Spanish", language="es-ES"),
        Voice(id="v-hi", name="Hindi", language="hi_IN"),
    ])


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def status_recorder():
    return StatusRecorder()


@pytest.fixture
def transcript_recorder():
    return TranscriptRecorder()


@pytest.fixture
def result_recorder():
    return ResultRecorder()


@pytest.fixture
def session_phases():
    return PhaseRecorder(SESSION_PHASE_TOPIC)


@pytest.fixture
def dispatch_phases():
    return PhaseRecorder(DISPATCH_PHASE_TOPIC)


@pytest.fixture
def synthesis_phases():
    return PhaseRecorder(SYNTHESIS_PHASE_TOPIC)
