"""Services layer for CareVoice application logic."""

from .recognition_session import RecognitionSessionManager
from .status_board import StatusBoard, project_status
from .transcriber import Transcriber

__all__ = [
    "RecognitionSessionManager",
    "StatusBoard",
    "project_status",
    "Transcriber",
]
