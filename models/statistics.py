"""
Statistics Models - outputs of the results analysis
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class QuestionDetail:
    """Outcome of one question"""
    position: int
    canonical_position: Optional[int]
    subject: str
    nullified: bool
    user_answer: Optional[str]
    correct_answer: Optional[str]
    is_correct: bool
    explanation: str
    difficulty_level: str = ""


@dataclass
class SubjectStatistics:
    """Counts of one subject"""
    subject: str
    total: int = 0
    correct: int = 0
    wrong: int = 0
    blank: int = 0
    nullified_answered: int = 0
    nullified_blank: int = 0
    accuracy: float = 0.0
    valid_accuracy: float = 0.0


@dataclass
class SkillStatistics:
    """Counts of one (subject, skill) pair, over valid questions only"""
    subject: str
    skill_code: str
    code: str
    total: int = 0
    correct: int = 0
    wrong: int = 0
    blank: int = 0
    percentage: int = 0
    performance: str = "poor"
    description: str = ""


@dataclass
class SequenceAnalysis:
    """Streaks and switches of the exam-order pattern, nullified items skipped"""
    max_correct_streak: int = 0
    max_incorrect_streak: int = 0
    alternations: int = 0
    current_correct_streak: int = 0
    current_incorrect_streak: int = 0


@dataclass
class AnswerPatterns:
    """
    Correctness strings in several orderings

    - exam_order: booklet order, "A" marks a nullified item
    - canonical_order: answer-key order, nullified items as "0"
    - difficulty_order / discrimination_order: valid items ascending,
      followed by one trailing "0" per nullified item
    """
    exam_order: str = ""
    canonical_order: str = ""
    difficulty_order: str = ""
    discrimination_order: str = ""
    subject_patterns: Dict[str, str] = field(default_factory=dict)
    nullified_positions: Dict[str, List[int]] = field(default_factory=dict)
    sequences: SequenceAnalysis = field(default_factory=SequenceAnalysis)


@dataclass
class TemporalChunk:
    """Outcome of a run of consecutive booklet questions"""
    label: str
    start_index: int
    total: int = 0
    correct: int = 0
    incorrect: int = 0
    nullified: int = 0
    unanswered: int = 0
    valid_total: int = 0
    accuracy: int = 0


@dataclass
class TemporalTrend:
    """
    Accuracy of the second half of the attempt against the first

    Only `trend` is set when fewer than two chunks have answered items.
    """
    trend: str = "insufficient_data"
    improvement: Optional[float] = None
    first_half_avg: Optional[int] = None
    second_half_avg: Optional[int] = None
    max_accuracy: Optional[int] = None
    min_accuracy: Optional[int] = None
    consistency: Optional[int] = None


@dataclass
class TemporalAnalysis:
    chunks: List[TemporalChunk] = field(default_factory=list)
    trend: TemporalTrend = field(default_factory=TemporalTrend)


@dataclass
class OptionFrequency:
    """How often each option letter was chosen"""
    frequency: Dict[str, int] = field(default_factory=dict)
    percentages: Dict[str, int] = field(default_factory=dict)
    total_answered: int = 0
    most_chosen: str = ""
    least_chosen: str = ""


@dataclass
class Statistics:
    """Aggregate result of an attempt"""
    total: int = 0
    correct: int = 0
    wrong: int = 0
    blank: int = 0
    incorrect: int = 0
    nullified_answered: int = 0
    nullified_blank: int = 0
    valid: int = 0
    answered: int = 0
    total_answered: int = 0
    accuracy: float = 0.0
    valid_accuracy: float = 0.0
    performance: int = 0
    by_subject: Dict[str, SubjectStatistics] = field(default_factory=dict)
    by_skill: Dict[str, Dict[str, SkillStatistics]] = field(default_factory=dict)
    patterns: AnswerPatterns = field(default_factory=AnswerPatterns)
    temporal: TemporalAnalysis = field(default_factory=TemporalAnalysis)
    option_frequency: OptionFrequency = field(default_factory=OptionFrequency)
    details: List[QuestionDetail] = field(default_factory=list)
