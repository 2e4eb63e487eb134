"""Session-related data models."""

from dataclasses import dataclass, field
from typing import Set, TYPE_CHECKING

if TYPE_CHECKING:
    from ..capture.base import AbstractSpeechCapture


@dataclass
class Session:
    """One capture attempt. The capture handle is owned by this session only."""
    language: str
    capture: "AbstractSpeechCapture"
    starting: bool = False
    running: bool = False
    aborting: bool = False
    finalized_indexes: Set[int] = field(default_factory=set)
