"""
Question Generator Service
"""

import logging
from typing import List, Optional, Sequence

import config
from models.exam_config import (
    EXAM_RANGES,
    LANGUAGE_SUBJECTS,
    ExamConfiguration,
    subject_for_position,
)
from models.question import Question
from services.position_mapper_service import PositionMapperService

logger = logging.getLogger(__name__)


class QuestionGeneratorService:
    """
    Service to build the ordered question list of an attempt
    """

    def __init__(self, position_mapper: PositionMapperService):
        self.position_mapper = position_mapper

    def effective_exam_type(self, exam_config: ExamConfiguration) -> str:
        """Exam type actually used; unknown types fall back to the default."""
        if exam_config.is_supported:
            return exam_config.exam_type
        logger.warning(
            "Unsupported exam type %r, falling back to %s",
            exam_config.exam_type, config.DEFAULT_EXAM_TYPE,
        )
        return config.DEFAULT_EXAM_TYPE

    def determine_subject(self, position: int, subjects: Sequence[str],
                          exam_config: ExamConfiguration) -> Optional[str]:
        """
        Subject of a booklet position within the active subject set

        Args:
            position: booklet position
            subjects: subjects taking part in the exam
            exam_config: the attempt configuration

        Returns:
            Subject code, or None when the position is outside the exam
        """
        block = subject_for_position(position)
        if block is None:
            return None

        if block != "LC":
            return block if block in subjects else None

        if exam_config.language and exam_config.language in subjects:
            return exam_config.language
        for language in LANGUAGE_SUBJECTS:
            if language in subjects:
                return language
        return None

    def generate(self, exam_config: ExamConfiguration) -> List[Question]:
        """
        Build the questions of an attempt

        Args:
            exam_config: year, exam type, color and language

        Returns:
            Questions sorted by booklet position
        """
        exam_type = self.effective_exam_type(exam_config)
        if exam_type != exam_config.exam_type:
            exam_config = ExamConfiguration(
                year=exam_config.year,
                exam_type=exam_type,
                color=exam_config.color,
                language=exam_config.language,
            )

        start, end, _ = EXAM_RANGES[exam_type]
        subjects = exam_config.subject_codes()

        questions = []
        for position in range(start, end + 1):
            subject = self.determine_subject(position, subjects, exam_config)
            if subject is None or subject not in subjects:
                logger.debug("Position %s rejected for subjects %s", position, subjects)
                continue
            questions.append(
                self.position_mapper.create_question_object(
                    position, subject, exam_config.color, exam_config.year
                )
            )

        questions.sort(key=lambda q: q.position)

        logger.info(
            "Generated %d questions for %s/%s (%s), %d nullified",
            len(questions), exam_config.year, exam_type, exam_config.color,
            sum(1 for q in questions if q.nullified),
        )
        return questions
