"""Data models for the CareVoice application."""

from .events import RecognitionErrorKind, RecognitionEvent, RecognitionResult
from .session import Session
from .status import (
    ComponentState,
    DispatchPhase,
    SessionPhase,
    Status,
    StatusSnapshot,
    SynthesisPhase,
)
from .synthesis import Utterance, Voice
from .transcript import Transcript
from .translation import (
    PendingRequest,
    TranslateReply,
    TranslateRequest,
    TranslationResult,
)

__all__ = [
    "RecognitionErrorKind",
    "RecognitionEvent",
    "RecognitionResult",
    "Session",
    "ComponentState",
    "DispatchPhase",
    "SessionPhase",
    "Status",
    "StatusSnapshot",
    "SynthesisPhase",
    "Utterance",
    "Voice",
    "Transcript",
    "PendingRequest",
    "TranslateReply",
    "TranslateRequest",
    "TranslationResult",
]
