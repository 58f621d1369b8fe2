"""
Consistency Analyzer Service - observed outcomes against 3PL expectations
"""

import logging
from typing import List, Mapping, Optional

import config
from models.difficulty_scale_converter import DifficultyScaleConverter
from models.irt_model import IRTModel
from models.question import Question
from models.score_result import ConsistencyFinding, ConsistencyReport, ScoreResult
from models.user_response import answer_for
from services.position_mapper_service import PositionMapperService

logger = logging.getLogger(__name__)

UNEXPECTED_CORRECT = "unexpected_correct"
UNEXPECTED_INCORRECT = "unexpected_incorrect"
EXPECTED = "expected"


class ConsistencyAnalyzerService:
    """
    Service to flag responses that diverge from what the ability score predicts

    θ comes from the reported score, θ = (score - 500) / 100. A correct answer
    on an item the test-taker was unlikely to get right, or a wrong answer on
    an item they were likely to get right, is flagged.
    """

    def __init__(self, position_mapper: PositionMapperService,
                 irt_model: IRTModel = None,
                 unexpected_correct_max_p: float = None,
                 unexpected_incorrect_min_p: float = None):
        self.position_mapper = position_mapper
        self.irt_model = irt_model or IRTModel()
        self.unexpected_correct_max_p = (
            config.UNEXPECTED_CORRECT_MAX_P
            if unexpected_correct_max_p is None else unexpected_correct_max_p
        )
        self.unexpected_incorrect_min_p = (
            config.UNEXPECTED_INCORRECT_MIN_P
            if unexpected_incorrect_min_p is None else unexpected_incorrect_min_p
        )

    def classify(self, probability: float, is_correct: bool) -> str:
        if is_correct and probability < self.unexpected_correct_max_p:
            return UNEXPECTED_CORRECT
        if not is_correct and probability > self.unexpected_incorrect_min_p:
            return UNEXPECTED_INCORRECT
        return EXPECTED

    def analyze(self, score_result: ScoreResult, questions: List[Question],
                responses: Mapping[int, str],
                top_n: Optional[int] = None) -> ConsistencyReport:
        """
        Compare every scorable answer with its 3PL probability

        Nullified questions and items missing a, b or c are left out.

        Args:
            score_result: a successful ScoreResult
            questions: generated questions
            responses: booklet position -> chosen letter
            top_n: keep only the N most surprising findings

        Returns:
            ConsistencyReport sorted by descending divergence

        Raises:
            ValueError: the score result is not successful
        """
        if not score_result.success or score_result.score is None:
            raise ValueError("Consistency analysis needs a successful TRI score")

        theta = DifficultyScaleConverter.to_theta(score_result.score)
        reference_data = self.position_mapper.reference_data

        subject_questions = [
            q for q in questions
            if score_result.subject is None or q.subject == score_result.subject
        ]

        findings = []
        for question in subject_questions:
            if question.nullified:
                continue
            entry = reference_data.answer_key_entry(
                question.year, question.subject, question.canonical_position
            )
            if entry is None or not entry.has_irt_parameters:
                continue

            probability = self.irt_model.probability_correct(
                theta, entry.difficulty, entry.discrimination, entry.guessing
            )
            user_answer = answer_for(responses, question.position)
            is_correct = self.position_mapper.check_user_answer(question, user_answer).is_correct

            findings.append(ConsistencyFinding(
                position=question.position,
                canonical_position=question.canonical_position,
                subject=question.subject,
                probability=probability,
                is_correct=is_correct,
                divergence=(1 - probability) if is_correct else probability,
                classification=self.classify(probability, is_correct),
            ))

        findings.sort(key=lambda f: f.divergence, reverse=True)
        questions_with_irt = len(findings)
        if top_n is not None and top_n > 0:
            findings = findings[:top_n]

        logger.info(
            "Consistency for %s: theta=%.3f, %d items with IRT, %d unexpected",
            score_result.subject, theta, questions_with_irt,
            sum(1 for f in findings if f.classification != EXPECTED),
        )
        return ConsistencyReport(
            theta=theta,
            total_questions=len(subject_questions),
            questions_with_irt=questions_with_irt,
            findings=findings,
        )
