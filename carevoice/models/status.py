"""Status-related data models."""

from dataclasses import dataclass, field
from enum import Enum


class Status(Enum):
    """Single status value shown to the user."""
    IDLE = "idle"
    LISTENING = "listening"
    TRANSLATING = "translating"
    TRANSLATED = "translated"
    NO_CAPABILITY = "no-capability"
    PERMISSION_DENIED = "permission-denied"
    NETWORK_ERROR = "network-error"
    ERROR = "error"


class SessionPhase(Enum):
    """Lifecycle phase of the recognition session."""
    IDLE = "idle"
    LISTENING = "listening"
    NETWORK_ERROR = "network-error"
    PERMISSION_DENIED = "permission-denied"
    ERROR = "error"

    @property
    def is_error(self) -> bool:
        return self in (SessionPhase.NETWORK_ERROR, SessionPhase.PERMISSION_DENIED, SessionPhase.ERROR)


class DispatchPhase(Enum):
    """Phase of the translation dispatcher."""
    NONE = "none"
    TRANSLATING = "translating"
    TRANSLATED = "translated"
    FAILED = "failed"


class SynthesisPhase(Enum):
    """Phase of the synthesis trigger."""
    IDLE = "idle"
    SPEAKING = "speaking"
    FAILED = "failed"


@dataclass
class ComponentState:
    """Phase of one component plus the board sequence number of its last change."""
    phase: Enum
    sequence: int = 0


@dataclass
class StatusSnapshot:
    """Combined state of session, dispatch and synthesis."""
    capture_available: bool = True
    session: ComponentState = field(default_factory=lambda: ComponentState(SessionPhase.IDLE))
    dispatch: ComponentState = field(default_factory=lambda: ComponentState(DispatchPhase.NONE))
    synthesis: ComponentState = field(default_factory=lambda: ComponentState(SynthesisPhase.IDLE))
