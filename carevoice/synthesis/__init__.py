"""Speech synthesis for CareVoice."""

from .base import AbstractSpeechSynthesis
from .trigger import SynthesisTrigger, select_voice

__all__ = [
    "AbstractSpeechSynthesis",
    "SynthesisTrigger",
    "select_voice",
]
