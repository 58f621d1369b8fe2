"""
API Schemas - Request/Response models
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class ExamConfigRequest(BaseModel):
    """Exam selection made before an attempt"""
    year: int = Field(..., ge=2009, le=2100, description="Exam year")
    exam_type: str = Field(default="LC0", description="LC0, LC1, CH, CN, MT, dia1 or dia2")
    color: str = Field(..., description="Booklet color: azul, amarela, branca, rosa, verde or cinza")
    language: Optional[str] = Field(default=None, description="LC0 (English) or LC1 (Spanish)")

    class Config:
        json_schema_extra = {
            "example": {
                "year": 2019,
                "exam_type": "MT",
                "color": "azul",
                "language": None,
            }
        }


class ExamAttemptRequest(BaseModel):
    """A configuration with the answers of the attempt"""
    config: ExamConfigRequest
    responses: Dict[int, str] = Field(
        default_factory=dict,
        description="Booklet position -> chosen letter; missing positions are blank",
    )
    top_n: Optional[int] = Field(
        default=None, ge=1, description="Number of consistency findings to return"
    )

    @field_validator("responses")
    @classmethod
    def drop_blank_answers(cls, value: Dict[int, str]) -> Dict[int, str]:
        return {position: answer for position, answer in value.items() if answer and answer.strip()}

    class Config:
        json_schema_extra = {
            "example": {
                "config": {"year": 2019, "exam_type": "MT", "color": "azul"},
                "responses": {"136": "A", "137": "C", "138": "E"},
                "top_n": 10,
            }
        }


class QuestionResponse(BaseModel):
    """Schema of a question in responses"""
    position: int
    subject: str
    color: str
    year: int
    canonical_position: Optional[int] = None
    nullified: bool = False
    nullification_reason: str = ""


class QuestionSetResponse(BaseModel):
    questions: List[QuestionResponse]
    total_questions: int
    nullified_count: int
    exam_type: str


class QuestionDetailResponse(BaseModel):
    position: int
    canonical_position: Optional[int] = None
    subject: str
    nullified: bool
    user_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    is_correct: bool
    explanation: str
    difficulty_level: str = ""


class SubjectStatisticsResponse(BaseModel):
    subject: str
    total: int
    correct: int
    wrong: int
    blank: int
    nullified_answered: int
    nullified_blank: int
    accuracy: float
    valid_accuracy: float


class SkillStatisticsResponse(BaseModel):
    """Performance on one skill, over valid questions only"""
    subject: str
    skill_code: str
    code: str
    total: int
    correct: int
    wrong: int
    blank: int
    percentage: int = Field(..., description="Correct over total, rounded half-up")
    performance: str = Field(..., description="excellent, good, average or poor")
    description: str


class SequenceAnalysisResponse(BaseModel):
    max_correct_streak: int
    max_incorrect_streak: int
    alternations: int
    current_correct_streak: int
    current_incorrect_streak: int


class AnswerPatternsResponse(BaseModel):
    exam_order: str
    canonical_order: str
    difficulty_order: str
    discrimination_order: str
    subject_patterns: Dict[str, str]
    nullified_positions: Dict[str, List[int]]
    sequences: SequenceAnalysisResponse


class TemporalChunkResponse(BaseModel):
    label: str
    start_index: int
    total: int
    correct: int
    incorrect: int
    nullified: int
    unanswered: int
    valid_total: int
    accuracy: int


class TemporalTrendResponse(BaseModel):
    trend: str = Field(..., description="improving, declining, stable or insufficient_data")
    improvement: Optional[float] = None
    first_half_avg: Optional[int] = None
    second_half_avg: Optional[int] = None
    max_accuracy: Optional[int] = None
    min_accuracy: Optional[int] = None
    consistency: Optional[int] = None


class TemporalAnalysisResponse(BaseModel):
    chunks: List[TemporalChunkResponse]
    trend: TemporalTrendResponse


class OptionFrequencyResponse(BaseModel):
    frequency: Dict[str, int]
    percentages: Dict[str, int]
    total_answered: int
    most_chosen: str
    least_chosen: str


class StatisticsResponse(BaseModel):
    """Aggregate result of an attempt"""
    total: int
    correct: int
    wrong: int
    blank: int
    incorrect: int
    nullified_answered: int
    nullified_blank: int
    valid: int
    answered: int
    total_answered: int
    accuracy: float
    valid_accuracy: float
    performance: int
    by_subject: Dict[str, SubjectStatisticsResponse]
    by_skill: Dict[str, Dict[str, SkillStatisticsResponse]]
    patterns: AnswerPatternsResponse
    temporal: TemporalAnalysisResponse
    option_frequency: OptionFrequencyResponse
    details: List[QuestionDetailResponse]


class ScoreResponse(BaseModel):
    """TRI score of one subject; success is False with an error otherwise"""
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

    class Config:
        protected_namespaces = ()
        json_schema_extra = {
            "example": {
                "year": 2019,
                "exam_type": "MT",
                "success": True,
                "subject": "MT",
                "subject_name": "Matemática",
                "language": None,
                "score": 612.4,
                "pattern": "111111111100000000000000000000000000000000000",
                "model_key": "2019_MT",
                "model_loaded_at": "2026-03-02T12:00:00+00:00",
                "error": None,
            }
        }


class ConsistencyFindingResponse(BaseModel):
    position: int
    canonical_position: Optional[int] = None
    subject: str
    probability: float = Field(..., description="3PL probability of a correct answer")
    is_correct: bool
    divergence: float
    classification: str = Field(..., description="expected, unexpected_correct or unexpected_incorrect")


class ConsistencyResponse(BaseModel):
    score: ScoreResponse
    theta: float
    total_questions: int
    questions_with_irt: int
    findings: List[ConsistencyFindingResponse]
