"""
Reference Data Model - position table and answer key
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from models.exam_config import SUBJECTS

# year -> subject -> canonical position -> color -> booklet position
PositionTable = Dict[int, Dict[str, Dict[int, Dict[str, int]]]]


@dataclass(frozen=True)
class AnswerKeyEntry:
    """
    Official answer and IRT parameters of one canonical item

    - answer: correct option letter (may be empty in damaged data)
    - discrimination: a
    - difficulty: b
    - guessing: c, as a probability (0-1)
    - skill_code: competency tag of the item
    """
    answer: str = ""
    difficulty: Optional[float] = None
    discrimination: Optional[float] = None
    guessing: Optional[float] = None
    skill_code: Optional[str] = None

    @property
    def has_irt_parameters(self) -> bool:
        return (
            self.discrimination is not None
            and self.difficulty is not None
            and self.guessing is not None
        )


@dataclass
class ReferenceData:
    """Tables loaded once at the start of an attempt"""
    positions: PositionTable = field(default_factory=dict)
    answer_keys: Dict[int, Dict[str, Dict[int, AnswerKeyEntry]]] = field(default_factory=dict)

    @classmethod
    def empty(cls, year: int) -> "ReferenceData":
        """Empty tables for every subject of one year, used in degraded mode."""
        return cls(
            positions={year: {subject: {} for subject in SUBJECTS}},
            answer_keys={year: {subject: {} for subject in SUBJECTS}},
        )

    def has_year(self, year: int) -> bool:
        return year in self.positions

    def position_table(self, year: int, subject: str) -> Optional[Dict[int, Dict[str, int]]]:
        year_data = self.positions.get(year)
        if year_data is None:
            return None
        return year_data.get(subject)

    def answer_key_table(self, year: int, subject: str) -> Optional[Dict[int, AnswerKeyEntry]]:
        year_data = self.answer_keys.get(year)
        if year_data is None:
            return None
        return year_data.get(subject)

    def answer_key_entry(self, year: int, subject: str,
                         canonical_position: Optional[int]) -> Optional[AnswerKeyEntry]:
        if canonical_position is None:
            return None
        table = self.answer_key_table(year, subject)
        if table is None:
            return None
        return table.get(canonical_position)

    def variant_position(self, year: int, subject: str,
                         canonical_position: int, color: str) -> Optional[int]:
        """Booklet position of a canonical item in one color variant."""
        table = self.position_table(year, subject)
        if table is None:
            return None
        color_map = table.get(canonical_position)
        if color_map is None:
            return None
        return color_map.get(color)
