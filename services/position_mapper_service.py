"""
Position Mapper Service - booklet color variants and nullified questions
"""

import logging
from typing import NamedTuple, Optional

from models.exam_config import resolve_color
from models.question import Question
from models.reference_data import ReferenceData
from models.user_response import normalize_answer

logger = logging.getLogger(__name__)

REASON_UNMAPPED = "Unmapped position"
REASON_NO_ANSWER_KEY = "No answer key"

_FALLBACK_LETTERS = ("A", "B", "C", "D", "E")


class MappingResult(NamedTuple):
    canonical_position: Optional[int]
    valid: bool
    reason: str


class CancellationCheck(NamedTuple):
    cancelled: bool
    reason: str
    canonical_position: Optional[int]


class AnswerCheck(NamedTuple):
    is_correct: bool
    explanation: str


class PositionMapperService:
    """
    Service to translate booklet positions into answer-key positions

    Every booklet color prints the same items in a different order. The
    answer key is indexed by canonical position, so each booklet position
    is first mapped back through the position table.
    """

    def __init__(self, reference_data: ReferenceData):
        self.reference_data = reference_data

    def map_to_canonical_position(self, position: int, subject: str,
                                  color: str, year: int) -> MappingResult:
        """
        Find the canonical position printed at a booklet position

        Args:
            position: position in the chosen booklet
            subject: subject code (LC0, LC1, CH, CN, MT)
            color: booklet color (azul, amarela, ...)
            year: exam year

        Returns:
            MappingResult; canonical_position is None when valid is False
        """
        if not self.reference_data.has_year(year):
            return MappingResult(None, False, f"No position data for year {year}")

        table = self.reference_data.position_table(year, subject)
        if table is None:
            return MappingResult(None, False, f"Subject {subject} not found for year {year}")

        mapped_color = resolve_color(color)
        if mapped_color is None:
            return MappingResult(None, False, f"Color '{color}' not recognized")

        for canonical_position, color_map in table.items():
            if color_map.get(mapped_color) == position:
                logger.debug(
                    "Position %s (%s) -> canonical %s in %s",
                    position, color, canonical_position, subject,
                )
                return MappingResult(canonical_position, True, "Mapping found")

        return MappingResult(
            None, False,
            f"Position {position} not found for color {color} in subject {subject}",
        )

    def check_if_cancelled(self, position: int, subject: str,
                           color: str, year: int) -> CancellationCheck:
        """
        Decide whether a booklet position is a nullified item

        An item is nullified when it has no canonical mapping, or when the
        mapped canonical position has no answer-key entry.
        """
        mapping = self.map_to_canonical_position(position, subject, color, year)
        if not mapping.valid:
            return CancellationCheck(True, f"{REASON_UNMAPPED}: {mapping.reason}", None)

        canonical_position = mapping.canonical_position
        if self.reference_data.answer_key_table(year, subject) is None:
            return CancellationCheck(
                True,
                f"{REASON_NO_ANSWER_KEY}: answer key not available for {year}/{subject}",
                canonical_position,
            )

        if self.reference_data.answer_key_entry(year, subject, canonical_position) is None:
            return CancellationCheck(
                True,
                f"{REASON_NO_ANSWER_KEY}: question {canonical_position} missing for {year}/{subject}",
                canonical_position,
            )

        return CancellationCheck(False, "Valid question with answer key", canonical_position)

    def get_correct_answer(self, question: Question) -> Optional[str]:
        """
        Correct letter of a question

        An entry whose answer is empty resolves to "ABCDE"[canonical % 5].

        Returns:
            The letter, or None for a nullified question
        """
        if question.nullified:
            return None

        entry = self.reference_data.answer_key_entry(
            question.year, question.subject, question.canonical_position
        )
        if entry is None:
            return None
        if entry.answer:
            return entry.answer

        # TODO: drop this fallback once the answer key is confirmed to have no empty answers
        logger.warning(
            "Empty answer for question %s (canonical %s), using fallback letter",
            question.position, question.canonical_position,
        )
        return _FALLBACK_LETTERS[question.canonical_position % 5]

    def check_user_answer(self, question: Question, user_answer: Optional[str]) -> AnswerCheck:
        """
        Check a response against the answer key

        A nullified question credits any non-blank response.
        """
        user_answer = normalize_answer(user_answer)

        if question.nullified:
            if user_answer:
                return AnswerCheck(True, "Nullified question - any answer counts as correct")
            return AnswerCheck(False, "Nullified question - not answered")

        correct_answer = self.get_correct_answer(question)
        if not correct_answer:
            return AnswerCheck(False, "Answer key not available")

        if not user_answer:
            return AnswerCheck(False, "Not answered")

        if user_answer == correct_answer:
            return AnswerCheck(True, f"Correct: {user_answer} = {correct_answer}")
        return AnswerCheck(False, f"Incorrect: {user_answer} != {correct_answer}")

    def create_question_object(self, position: int, subject: str,
                               color: str, year: int) -> Question:
        """Build the Question of one booklet position."""
        check = self.check_if_cancelled(position, subject, color, year)
        return Question(
            position=position,
            subject=subject,
            color=color,
            year=year,
            canonical_position=check.canonical_position,
            nullified=check.cancelled,
            nullification_reason=check.reason,
        )
