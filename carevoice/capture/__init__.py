"""Speech capture backends."""

from .base import AbstractSpeechCapture, SpeechCaptureProvider

__all__ = [
    "AbstractSpeechCapture",
    "SpeechCaptureProvider",
]
