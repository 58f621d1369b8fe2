"""
Score Result Models
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ScoreResult:
    """Ability score of one subject, or the reason it could not be computed"""
    year: int
    exam_type: str
    success: bool
    subject: Optional[str] = None
    subject_name: Optional[str] = None
    language: Optional[str] = None
    score: Optional[float] = None
    pattern: Optional[str] = None
    model_key: Optional[str] = None
    model_loaded_at: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ConsistencyFinding:
    """How one observed outcome compares with the 3PL expectation"""
    position: int
    canonical_position: int
    subject: str
    probability: float
    is_correct: bool
    divergence: float
    classification: str


@dataclass
class ConsistencyReport:
    """Findings sorted from the most to the least surprising"""
    theta: float
    total_questions: int
    questions_with_irt: int
    findings: List[ConsistencyFinding] = field(default_factory=list)
