"""
Question Model
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Question:
    """One item of an attempt, as printed in the chosen booklet"""
    position: int
    subject: str
    color: str
    year: int
    canonical_position: Optional[int] = None
    nullified: bool = False
    nullification_reason: str = ""

    @property
    def sort_position(self) -> int:
        """Canonical position when known, booklet position otherwise."""
        if self.canonical_position is not None:
            return self.canonical_position
        return self.position
