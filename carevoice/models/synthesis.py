"""Synthesis-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Voice:
    """A voice offered by the synthesis engine."""
    id: str
    name: str
    language: str = ""


@dataclass
class Utterance:
    """One piece of text queued for playback."""
    text: str
    language: str
    voice: Optional[Voice] = None  # None means the engine default voice
