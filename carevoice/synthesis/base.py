"""Abstract base class for speech synthesis engines."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..models.synthesis import Utterance, Voice


class AbstractSpeechSynthesis(ABC):
    """Plays one utterance at a time.

    ``on_done`` is called on the event loop thread when an utterance
    finishes or is cancelled. ``on_error`` is called there instead when
    playback of an utterance fails.
    """

    def __init__(self):
        self.on_done: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

    @property
    @abstractmethod
    def speaking(self) -> bool:
        """True while an utterance is producing audio or waiting to."""
        pass

    @abstractmethod
    def voices(self) -> List[Voice]:
        """Return the voices the engine offers."""
        pass

    @abstractmethod
    def speak(self, utterance: Utterance) -> None:
        """Queue an utterance for playback."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Interrupt the current utterance and drop the queued ones."""
        pass

    def close(self) -> None:
        """Release engine resources."""
        pass
