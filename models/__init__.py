"""
Models module - data classes of an exam attempt
"""

from .exam_config import ExamConfiguration
from .question import Question
from .reference_data import AnswerKeyEntry, ReferenceData
from .statistics import AnswerPatterns, QuestionDetail, SkillStatistics, Statistics, SubjectStatistics
from .score_result import ConsistencyFinding, ConsistencyReport, ScoreResult
from .irt_model import IRTModel
from .difficulty_scale_converter import DifficultyScaleConverter
from .errors import ModelLoadError, ModelNotFound, ModelValidationFailed, ReferenceDataLoadError

__all__ = [
    'ExamConfiguration',
    'Question',
    'AnswerKeyEntry',
    'ReferenceData',
    'AnswerPatterns',
    'QuestionDetail',
    'SkillStatistics',
    'Statistics',
    'SubjectStatistics',
    'ConsistencyFinding',
    'ConsistencyReport',
    'ScoreResult',
    'IRTModel',
    'DifficultyScaleConverter',
    'ModelLoadError',
    'ModelNotFound',
    'ModelValidationFailed',
    'ReferenceDataLoadError',
]
