"""Event models and pub/sub topic names."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


# Pub/sub topics. Each topic carries exactly one keyword argument.
TRANSCRIPT_TOPIC = "transcript_changed"          # text: str
SESSION_PHASE_TOPIC = "session_phase"            # phase: SessionPhase
TRANSLATION_RESULT_TOPIC = "translation_result"  # result: Optional[TranslationResult]
DISPATCH_PHASE_TOPIC = "translation_phase"       # phase: DispatchPhase
SYNTHESIS_PHASE_TOPIC = "synthesis_phase"        # phase: SynthesisPhase
CAPABILITY_TOPIC = "capture_capability"          # available: bool
STATUS_TOPIC = "status_changed"                  # status: Status


class RecognitionErrorKind(Enum):
    """Error kinds reported by a speech capture."""
    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    NOT_ALLOWED = "not-allowed"
    NETWORK = "network"
    ABORTED = "aborted"
    SERVICE_NOT_ALLOWED = "service-not-allowed"


@dataclass
class RecognitionResult:
    """One recognized utterance, interim or final."""
    transcript: str
    is_final: bool = False
    confidence: float = 0.0


@dataclass
class RecognitionEvent:
    """Result list delivered by a capture.

    ``results[i]`` belongs to utterance number ``result_index + i``.
    """
    result_index: int
    results: List[RecognitionResult] = field(default_factory=list)
