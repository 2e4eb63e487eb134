"""Abstract base classes for speech capture backends."""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol
import logging

from ..models.events import RecognitionErrorKind, RecognitionEvent

logger = logging.getLogger(__name__)


class AbstractSpeechCapture(ABC):
    """Continuous, interim-enabled speech capture in one language.

    Listener slots are plain attributes set by the owner of the capture.
    Implementations invoke them on the event loop thread, in event order:
    ``on_start`` once, any number of ``on_result`` / ``on_error``, then
    ``on_end`` once.
    """

    def __init__(self, language: str = "en-US"):
        """Initialize capture with language preference."""
        self.language = language
        self.on_start: Optional[Callable[[], None]] = None
        self.on_result: Optional[Callable[[RecognitionEvent], None]] = None
        self.on_error: Optional[Callable[[RecognitionErrorKind], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    @property
    def supports_stop(self) -> bool:
        """True when stop() flushes pending results before ending."""
        return True

    @abstractmethod
    def start(self) -> None:
        """Begin capturing.

        Raises:
            AlreadyActive: If the capture is already running
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Finish gracefully, delivering any pending final result first."""
        pass

    @abstractmethod
    def abort(self) -> None:
        """Stop immediately, dropping pending results."""
        pass

    def detach(self) -> None:
        """Drop all listeners so no further events reach the owner."""
        self.on_start = None
        self.on_result = None
        self.on_error = None
        self.on_end = None

    def _emit_start(self) -> None:
        if self.on_start:
            self.on_start()

    def _emit_result(self, event: RecognitionEvent) -> None:
        if self.on_result:
            self.on_result(event)

    def _emit_error(self, kind: RecognitionErrorKind) -> None:
        if self.on_error:
            self.on_error(kind)

    def _emit_end(self) -> None:
        if self.on_end:
            self.on_end()


class SpeechCaptureProvider(Protocol):
    """Capability check and factory for speech captures."""

    def is_available(self) -> bool:
        """Return True if speech capture is possible on this platform."""
        ...

    def create(self, language: str) -> AbstractSpeechCapture:
        """Create a new, not yet started capture for the language."""
        ...
