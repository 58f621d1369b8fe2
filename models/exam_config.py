"""
Exam Configuration Model
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

LANGUAGE_SUBJECTS = ("LC0", "LC1")
SUBJECTS = ("LC0", "LC1", "CH", "CN", "MT")

SUBJECT_NAMES: Dict[str, str] = {
    "LC0": "Linguagens - Inglês",
    "LC1": "Linguagens - Espanhol",
    "CH": "Ciências Humanas",
    "CN": "Ciências da Natureza",
    "MT": "Matemática",
}

# (start, end, subjects) per exam type, both ends inclusive
EXAM_RANGES: Dict[str, Tuple[int, int, Tuple[str, ...]]] = {
    "LC0": (1, 45, ("LC0",)),
    "LC1": (1, 45, ("LC1",)),
    "CH": (46, 90, ("CH",)),
    "CN": (91, 135, ("CN",)),
    "MT": (136, 180, ("MT",)),
    "dia1": (1, 90, ("LC0", "LC1", "CH")),
    "dia2": (91, 180, ("CN", "MT")),
}

COMPOSITE_EXAM_TYPES = ("dia1", "dia2")

COLOR_MAPPING: Dict[str, str] = {
    "azul": "AZUL",
    "amarela": "AMARELA",
    "branca": "BRANCA",
    "rosa": "ROSA",
    "verde": "VERDE",
    "cinza": "CINZA",
}


def resolve_color(color: Optional[str]) -> Optional[str]:
    """Booklet color as written in the position table, or None if unknown."""
    if not color:
        return None
    return COLOR_MAPPING.get(color.strip().lower())


def subject_for_position(position: int) -> Optional[str]:
    """
    Subject block a booklet position belongs to.

    Positions 1-45 return "LC" because the language variant is decided
    by the exam configuration, not by the position.
    """
    if 1 <= position <= 45:
        return "LC"
    if 46 <= position <= 90:
        return "CH"
    if 91 <= position <= 135:
        return "CN"
    if 136 <= position <= 180:
        return "MT"
    return None


@dataclass(frozen=True)
class ExamConfiguration:
    """Selection made by the test-taker before an attempt"""
    year: int
    exam_type: str
    color: str
    language: Optional[str] = None

    @property
    def is_composite(self) -> bool:
        return self.exam_type in COMPOSITE_EXAM_TYPES

    @property
    def is_supported(self) -> bool:
        return self.exam_type in EXAM_RANGES

    def active_language(self) -> str:
        """Language variant for a day-one exam; English when none was chosen."""
        if self.language in LANGUAGE_SUBJECTS:
            return self.language
        return "LC0"

    def subject_codes(self) -> List[str]:
        """Subjects that take part in this exam, with the language already chosen."""
        if self.exam_type == "dia1":
            return [self.active_language(), "CH"]
        _, _, subjects = EXAM_RANGES.get(self.exam_type, EXAM_RANGES["LC0"])
        return list(subjects)
