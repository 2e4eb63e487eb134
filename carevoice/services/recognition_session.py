"""Recognition session manager: owns the capture lifecycle and the transcript."""

import logging
from typing import Optional

from pubsub import pub

from ..capture.base import AbstractSpeechCapture, SpeechCaptureProvider
from ..errors import AlreadyActive, NoCapability, PermissionDenied
from ..models.events import (
    CAPABILITY_TOPIC,
    SESSION_PHASE_TOPIC,
    TRANSCRIPT_TOPIC,
    RecognitionErrorKind,
    RecognitionEvent,
)
from ..models.session import Session
from ..models.status import SessionPhase
from ..models.transcript import Transcript

logger = logging.getLogger(__name__)


class RecognitionSessionManager:
    """Turns capture events into transcript text and session phases.

    At most one session exists at a time. Events coming from a capture that
    no longer belongs to the current session are ignored.
    """

    def __init__(self,
                 provider: SpeechCaptureProvider,
                 language: str = "en-US",
                 transcript_topic: str = TRANSCRIPT_TOPIC,
                 phase_topic: str = SESSION_PHASE_TOPIC,
                 capability_topic: str = CAPABILITY_TOPIC):
        """Initialize session manager.

        Args:
            provider: Capability check and capture factory
            language: Input language tag for new sessions
            transcript_topic: Topic receiving the transcript text on every change
            phase_topic: Topic receiving the session phase on every change
            capability_topic: Topic receiving the capability check result
        """
        self.provider = provider
        self.language = language
        self.transcript_topic = transcript_topic
        self.phase_topic = phase_topic
        self.capability_topic = capability_topic

        self.transcript = Transcript()
        self.phase = SessionPhase.IDLE
        self.session: Optional[Session] = None

        self.available = provider.is_available()
        pub.sendMessage(self.capability_topic, available=self.available)
        if self.available:
            self.session = self._create_session()
        else:
            logger.warning("Speech capture is not available on this platform")

        logger.info(f"RecognitionSessionManager initialized (language={language}, available={self.available})")

    @property
    def running(self) -> bool:
        return self.session is not None and self.session.running

    def start(self) -> None:
        """Start continuous capture in the configured language.

        Raises:
            NoCapability: If the platform offers no speech capture

        A capture that refuses to start with PermissionDenied moves the
        session to the permission-denied phase instead of raising.
        """
        if not self.available:
            raise NoCapability("Speech capture is not available on this platform")

        if self.session is None:
            self.session = self._create_session()

        if self.session.running:
            logger.info("Session already running, restarting it")
            self._restart()
            return

        try:
            self.session.capture.start()
            # on_start may arrive later, from the capture's own thread
            self.session.starting = not self.session.running
        except AlreadyActive:
            logger.warning("Capture reported it is already active, restarting session")
            self._restart()
        except PermissionDenied as e:
            logger.error(f"Microphone access denied: {e}")
            self._set_phase(SessionPhase.PERMISSION_DENIED)
        except Exception as e:
            logger.error(f"Failed to start capture: {e}")
            self._set_phase(SessionPhase.ERROR)

    def stop(self) -> None:
        """Request a graceful stop so pending final results are delivered."""
        session = self.session
        if session is None or not (session.running or session.starting):
            logger.debug("stop() without a running session")
            return

        capture = session.capture
        try:
            if capture.supports_stop:
                capture.stop()
            else:
                self._abort(session)
        except Exception as e:
            logger.warning(f"Error stopping capture, aborting instead: {e}")
            self._abort(session)

    def set_language(self, language: str) -> None:
        """Discard the current session and create a fresh one in the new language."""
        logger.info(f"Input language change: {self.language} -> {language}")
        self._discard_session()
        self.language = language
        if self.available:
            self.session = self._create_session()
            self._set_phase(SessionPhase.IDLE)

    def clear_transcript(self) -> None:
        self.transcript.clear()
        self._publish_transcript()

    def close(self) -> None:
        """Abort and detach the current session."""
        self._discard_session()
        logger.info("RecognitionSessionManager closed")

    def _create_session(self) -> Session:
        capture = self.provider.create(self.language)
        session = Session(language=self.language, capture=capture)
        capture.on_start = lambda: self._on_start(session)
        capture.on_result = lambda event: self._on_result(session, event)
        capture.on_error = lambda kind: self._on_error(session, kind)
        capture.on_end = lambda: self._on_end(session)
        return session

    def _restart(self) -> None:
        self._discard_session(abort=True)
        self.session = self._create_session()
        try:
            self.session.capture.start()
            self.session.starting = not self.session.running
        except Exception as e:
            logger.error(f"Start failed after abort: {e}")
            self._set_phase(SessionPhase.ERROR)

    def _discard_session(self, abort: bool = False) -> None:
        session = self.session
        if session is None:
            return
        self.session = None
        capture: AbstractSpeechCapture = session.capture
        capture.detach()
        if session.running or session.starting or abort:
            try:
                capture.abort()
            except Exception as e:
                logger.warning(f"Error aborting discarded capture: {e}")
            session.running = False
            session.starting = False
        if self.transcript.interim:
            self.transcript.clear_interim()
            self._publish_transcript()

    def _abort(self, session: Session) -> None:
        """Abort a session; only the interim fragment is lost."""
        session.aborting = True
        try:
            session.capture.abort()
        except Exception as e:
            logger.warning(f"Error aborting capture: {e}")
        if self.transcript.interim:
            self.transcript.clear_interim()
            self._publish_transcript()

    def _is_current(self, session: Session) -> bool:
        return session is self.session

    def _on_start(self, session: Session) -> None:
        if not self._is_current(session):
            return
        logger.info(f"Recognition started ({session.language})")
        session.running = True
        session.starting = False
        session.aborting = False
        # utterance numbering restarts with every capture run
        session.finalized_indexes.clear()
        self._set_phase(SessionPhase.LISTENING)

    def _on_result(self, session: Session, event: RecognitionEvent) -> None:
        if not self._is_current(session):
            return

        interim_parts = []
        for offset, result in enumerate(event.results):
            index = event.result_index + offset
            if result.is_final:
                if index in session.finalized_indexes:
                    logger.debug(f"Ignoring repeated final result for utterance {index}")
                    continue
                session.finalized_indexes.add(index)
                self.transcript.append_final(result.transcript)
            else:
                interim_parts.append(result.transcript.strip())

        if interim_parts:
            self.transcript.set_interim(" ".join(interim_parts))
        else:
            self.transcript.clear_interim()
        self._publish_transcript()

    def _on_error(self, session: Session, kind: RecognitionErrorKind) -> None:
        if not self._is_current(session):
            return

        if kind is RecognitionErrorKind.ABORTED and session.aborting:
            logger.debug("Ignoring 'aborted' error raised by our own abort")
            return

        logger.error(f"Recognition error: {kind.value}")
        if kind is RecognitionErrorKind.NETWORK:
            self._set_phase(SessionPhase.NETWORK_ERROR)
            self._abort(session)
        elif kind is RecognitionErrorKind.NOT_ALLOWED:
            self._set_phase(SessionPhase.PERMISSION_DENIED)
            self._abort(session)
        else:
            self._set_phase(SessionPhase.ERROR)

    def _on_end(self, session: Session) -> None:
        if not self._is_current(session):
            return
        logger.info("Recognition ended")
        session.running = False
        session.starting = False
        session.aborting = False
        if not self.phase.is_error:
            self._set_phase(SessionPhase.IDLE)

    def _set_phase(self, phase: SessionPhase) -> None:
        self.phase = phase
        pub.sendMessage(self.phase_topic, phase=phase)

    def _publish_transcript(self) -> None:
        pub.sendMessage(self.transcript_topic, text=self.transcript.text)
