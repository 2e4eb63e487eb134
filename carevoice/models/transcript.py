"""Transcript-related data models."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Transcript:
    """Finalized fragments plus the interim fragment still being recognized.

    Finalized fragments are only ever appended. The interim fragment is
    replaced on each interim result and cleared when its utterance is
    finalized.
    """
    finals: List[str] = field(default_factory=list)
    interim: str = ""

    @property
    def final_text(self) -> str:
        return " ".join(self.finals)

    @property
    def text(self) -> str:
        parts = [fragment for fragment in self.finals if fragment]
        if self.interim:
            parts.append(self.interim)
        return " ".join(parts)

    def append_final(self, fragment: str) -> None:
        self.finals.append(fragment.strip())
        self.interim = ""

    def set_interim(self, fragment: str) -> None:
        self.interim = fragment.strip()

    def clear_interim(self) -> None:
        self.interim = ""

    def clear(self) -> None:
        self.finals.clear()
        self.interim = ""
