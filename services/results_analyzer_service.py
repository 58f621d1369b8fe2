"""
Results Analyzer Service - statistics, skill report and answer patterns
"""

import logging
import math
from collections import defaultdict
from typing import Dict, List, Mapping, Optional

import config
from models.difficulty_scale_converter import DifficultyScaleConverter
from models.exam_config import SUBJECTS
from models.question import Question
from models.reference_data import AnswerKeyEntry
from models.statistics import (
    AnswerPatterns,
    OptionFrequency,
    QuestionDetail,
    SequenceAnalysis,
    SkillStatistics,
    Statistics,
    SubjectStatistics,
    TemporalAnalysis,
    TemporalChunk,
    TemporalTrend,
)
from models.user_response import answer_for
from services.position_mapper_service import PositionMapperService

logger = logging.getLogger(__name__)

DEFAULT_SKILL_DESCRIPTIONS: Dict[str, str] = {
    "MT_H1": "Construir significados para os números naturais, inteiros, racionais e reais.",
    "MT_H2": "Utilizar o conhecimento geométrico para realizar a leitura e a representação da realidade.",
    "CH_H1": "Compreender os elementos culturais que constituem as identidades.",
    "CH_H2": "Compreender as transformações dos espaços geográficos como produto das relações socioeconômicas e culturais de poder.",
    "LC0_H1": "Aplicar as tecnologias da comunicação e da informação na escola, no trabalho e em outros contextos.",
    "LC0_H2": "Conhecer e usar língua(s) estrangeira(s) moderna(s) como instrumento de acesso a informações.",
    "LC1_H1": "Aplicar as tecnologias da comunicação e da informação na escola, no trabalho e em outros contextos.",
    "LC1_H2": "Conhecer e usar língua(s) estrangeira(s) moderna(s) como instrumento de acesso a informações.",
    "CN_H1": "Reconhecer características ou propriedades de fenômenos ondulatórios ou oscilatórios.",
    "CN_H2": "Identificar a presença e aplicar as tecnologias associadas às ciências naturais.",
}

MISSING_SKILL_DESCRIPTION = "Descrição da habilidade não disponível."

OPTION_LETTERS = "ABCDE"

TREND_IMPROVING = "improving"
TREND_DECLINING = "declining"
TREND_STABLE = "stable"
TREND_INSUFFICIENT_DATA = "insufficient_data"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _skill_sort_key(skill_code: str):
    return (0, int(skill_code), "") if skill_code.isdigit() else (1, 0, skill_code)


def performance_level(percentage: float) -> str:
    """Performance band of a skill percentage."""
    if percentage >= 80:
        return "excellent"
    if percentage >= 65:
        return "good"
    if percentage >= 50:
        return "average"
    return "poor"


class SkillDescriptionCatalog:
    """
    Skill descriptions keyed "<subject>_H<skill>"

    Loaded once and shared by every report of the process.
    """

    def __init__(self, descriptions: Optional[Mapping[str, str]] = None):
        self._descriptions: Dict[str, str] = dict(DEFAULT_SKILL_DESCRIPTIONS)
        if descriptions is not None:
            self._descriptions = dict(descriptions)

    def describe(self, subject: str, skill_code: str) -> str:
        return self._descriptions.get(f"{subject}_H{skill_code}", MISSING_SKILL_DESCRIPTION)

    def __len__(self) -> int:
        return len(self._descriptions)


class ResultsAnalyzerService:
    """
    Service to aggregate the outcome of an attempt

    Nullified questions answered by the test-taker count as correct; nullified
    questions left blank count against the aggregate accuracy.
    """

    def __init__(self, position_mapper: PositionMapperService,
                 skill_catalog: Optional[SkillDescriptionCatalog] = None):
        self.position_mapper = position_mapper
        self.skill_catalog = skill_catalog or SkillDescriptionCatalog()

    @property
    def reference_data(self):
        return self.position_mapper.reference_data

    def _entry(self, question: Question) -> Optional[AnswerKeyEntry]:
        return self.reference_data.answer_key_entry(
            question.year, question.subject, question.canonical_position
        )

    def calculate(self, questions: List[Question],
                  responses: Mapping[int, str]) -> Statistics:
        """
        Compute every statistic of an attempt

        Args:
            questions: questions in booklet order
            responses: booklet position -> chosen letter

        Returns:
            Statistics with per-subject, per-skill and pattern breakdowns
        """
        stats = Statistics(total=len(questions))

        for question in questions:
            user_answer = answer_for(responses, question.position)
            check = self.position_mapper.check_user_answer(question, user_answer)
            entry = None if question.nullified else self._entry(question)

            stats.details.append(QuestionDetail(
                position=question.position,
                canonical_position=question.canonical_position,
                subject=question.subject,
                nullified=question.nullified,
                user_answer=user_answer,
                correct_answer=self.position_mapper.get_correct_answer(question),
                is_correct=check.is_correct,
                explanation=check.explanation,
                difficulty_level=DifficultyScaleConverter.difficulty_label(
                    entry.difficulty if entry else None, question.nullified
                ),
            ))

            if question.nullified:
                if check.is_correct:
                    stats.nullified_answered += 1
                    stats.correct += 1
                else:
                    stats.nullified_blank += 1
                continue

            stats.valid += 1
            if not user_answer:
                stats.blank += 1
            else:
                stats.answered += 1
                if check.is_correct:
                    stats.correct += 1
                else:
                    stats.wrong += 1

        stats.incorrect = stats.total - stats.correct
        stats.total_answered = stats.answered + stats.nullified_answered
        stats.accuracy = (stats.correct / stats.total) * 100 if stats.total > 0 else 0.0
        valid_correct = stats.correct - stats.nullified_answered
        stats.valid_accuracy = (
            (valid_correct / stats.answered) * 100 if stats.answered > 0 else 0.0
        )
        stats.performance = (
            _round_half_up(valid_correct / stats.valid * 100) if stats.valid > 0 else 0
        )

        stats.by_subject = self.calculate_by_subject(questions, responses)
        stats.by_skill = self.calculate_by_skill(questions, responses)
        stats.patterns = self.create_answer_patterns(questions, responses)
        stats.temporal = self.analyze_temporal(questions, responses)
        stats.option_frequency = self.analyze_option_frequency(questions, responses)

        logger.info(
            "Results: %d/%d correct, %d wrong, %d blank, %d nullified",
            stats.correct, stats.total, stats.wrong, stats.blank,
            stats.nullified_answered + stats.nullified_blank,
        )
        return stats

    def calculate_by_subject(self, questions: List[Question],
                             responses: Mapping[int, str]) -> Dict[str, SubjectStatistics]:
        """Same classification as calculate(), grouped by subject."""
        by_subject: Dict[str, SubjectStatistics] = {}

        for question in questions:
            subject_stats = by_subject.setdefault(
                question.subject, SubjectStatistics(subject=question.subject)
            )
            subject_stats.total += 1

            user_answer = answer_for(responses, question.position)
            check = self.position_mapper.check_user_answer(question, user_answer)

            if question.nullified:
                if check.is_correct:
                    subject_stats.nullified_answered += 1
                    subject_stats.correct += 1
                else:
                    subject_stats.nullified_blank += 1
            elif not user_answer:
                subject_stats.blank += 1
            elif check.is_correct:
                subject_stats.correct += 1
            else:
                subject_stats.wrong += 1

        for subject_stats in by_subject.values():
            valid_correct = subject_stats.correct - subject_stats.nullified_answered
            answered_valid = valid_correct + subject_stats.wrong
            subject_stats.accuracy = (
                (subject_stats.correct / subject_stats.total) * 100
                if subject_stats.total > 0 else 0.0
            )
            subject_stats.valid_accuracy = (
                (valid_correct / answered_valid) * 100 if answered_valid > 0 else 0.0
            )

        return by_subject

    def calculate_by_skill(self, questions: List[Question],
                           responses: Mapping[int, str]) -> Dict[str, Dict[str, SkillStatistics]]:
        """
        Skill report over valid questions

        A blank answer counts against the skill percentage.

        Returns:
            subject -> skill code -> SkillStatistics
        """
        counts: Dict[str, Dict[str, SkillStatistics]] = defaultdict(dict)

        for question in questions:
            if question.nullified:
                logger.debug("Question %s nullified, skipped in skill report", question.position)
                continue

            entry = self._entry(question)
            if entry is None:
                logger.warning(
                    "Answer-key metadata not found for question %s (%s) -> canonical %s",
                    question.position, question.subject, question.canonical_position,
                )
                continue
            if not entry.skill_code:
                logger.warning(
                    "Skill not found for question %s (%s) -> canonical %s",
                    question.position, question.subject, question.canonical_position,
                )
                continue

            skill = counts[question.subject].get(entry.skill_code)
            if skill is None:
                skill = SkillStatistics(
                    subject=question.subject,
                    skill_code=entry.skill_code,
                    code=f"H{entry.skill_code}",
                    description=self.skill_catalog.describe(question.subject, entry.skill_code),
                )
                counts[question.subject][entry.skill_code] = skill

            skill.total += 1
            user_answer = answer_for(responses, question.position)
            if not user_answer:
                skill.blank += 1
            elif self.position_mapper.check_user_answer(question, user_answer).is_correct:
                skill.correct += 1
            else:
                skill.wrong += 1

        report: Dict[str, Dict[str, SkillStatistics]] = {}
        for subject, skills in counts.items():
            report[subject] = {}
            for skill_code in sorted(skills, key=_skill_sort_key):
                skill = skills[skill_code]
                skill.percentage = (
                    _round_half_up(skill.correct / skill.total * 100) if skill.total > 0 else 0
                )
                skill.performance = performance_level(skill.percentage)
                report[subject][skill_code] = skill
        return report

    def create_answer_patterns(self, questions: List[Question],
                               responses: Mapping[int, str]) -> AnswerPatterns:
        """
        Encode correctness as "1"/"0" strings in four orderings

        Nullified items never score "1" inside a pattern. In the difficulty and
        discrimination orderings they are left out of the sort and appended as
        trailing zeros.
        """
        outcomes = []
        for index, question in enumerate(questions):
            is_correct = False
            entry = None
            if not question.nullified:
                user_answer = answer_for(responses, question.position)
                is_correct = self.position_mapper.check_user_answer(question, user_answer).is_correct
                entry = self._entry(question)
            outcomes.append({
                "index": index,
                "question": question,
                "is_correct": is_correct,
                "difficulty": entry.difficulty if entry else None,
                "discrimination": entry.discrimination if entry else None,
            })

        def as_bits(items) -> str:
            return "".join("1" if item["is_correct"] else "0" for item in items)

        patterns = AnswerPatterns()
        patterns.exam_order = "".join(
            "A" if item["question"].nullified else ("1" if item["is_correct"] else "0")
            for item in outcomes
        )

        by_canonical = sorted(outcomes, key=lambda item: item["question"].sort_position)
        patterns.canonical_order = as_bits(by_canonical)

        valid = [item for item in outcomes if not item["question"].nullified]
        nullified_count = len(outcomes) - len(valid)

        by_difficulty = sorted(valid, key=lambda item: (
            item["difficulty"] is None,
            item["difficulty"] if item["difficulty"] is not None else 0.0,
            item["question"].sort_position,
        ))
        patterns.difficulty_order = as_bits(by_difficulty) + "0" * nullified_count

        by_discrimination = sorted(valid, key=lambda item: (
            item["discrimination"] is None,
            item["discrimination"] if item["discrimination"] is not None else 0.0,
            item["question"].sort_position,
        ))
        patterns.discrimination_order = as_bits(by_discrimination) + "0" * nullified_count

        for subject in SUBJECTS:
            subject_items = [item for item in by_canonical if item["question"].subject == subject]
            if subject_items:
                patterns.subject_patterns[subject] = as_bits(subject_items)

        patterns.nullified_positions = {
            "exam_order": [item["index"] for item in outcomes if item["question"].nullified],
            "canonical_order": [
                i for i, item in enumerate(by_canonical) if item["question"].nullified
            ],
            "difficulty_order": [len(valid) + i for i in range(nullified_count)],
            "discrimination_order": [len(valid) + i for i in range(nullified_count)],
        }

        patterns.sequences = self.analyze_sequences(patterns.exam_order)

        logger.debug("Difficulty pattern: %s", patterns.difficulty_order)
        return patterns

    @staticmethod
    def analyze_sequences(exam_order: str) -> SequenceAnalysis:
        """
        Longest runs of hits and misses in an exam-order pattern

        Nullified items ("A") are skipped, so they neither break a run nor
        count as an alternation.
        """
        sequences = SequenceAnalysis()
        last = None
        for bit in exam_order:
            if bit == "A":
                continue
            if bit == "1":
                sequences.current_correct_streak += 1
                sequences.current_incorrect_streak = 0
            else:
                sequences.current_incorrect_streak += 1
                sequences.current_correct_streak = 0
            if last is not None and bit != last:
                sequences.alternations += 1
            last = bit
            sequences.max_correct_streak = max(
                sequences.max_correct_streak, sequences.current_correct_streak
            )
            sequences.max_incorrect_streak = max(
                sequences.max_incorrect_streak, sequences.current_incorrect_streak
            )
        return sequences

    def analyze_temporal(self, questions: List[Question],
                         responses: Mapping[int, str],
                         chunk_size: int = None) -> TemporalAnalysis:
        """
        Accuracy over consecutive runs of booklet questions

        Args:
            questions: questions in booklet order
            responses: booklet position -> chosen letter
            chunk_size: questions per run (TEMPORAL_CHUNK_SIZE by default)
        """
        chunk_size = chunk_size or config.TEMPORAL_CHUNK_SIZE
        chunks = []
        for start in range(0, len(questions), chunk_size):
            chunk_questions = questions[start:start + chunk_size]
            chunk = TemporalChunk(
                label=f"Q{start + 1}-{start + len(chunk_questions)}",
                start_index=start,
            )
            for question in chunk_questions:
                chunk.total += 1
                if question.nullified:
                    chunk.nullified += 1
                    continue
                user_answer = answer_for(responses, question.position)
                if not user_answer:
                    chunk.unanswered += 1
                elif self.position_mapper.check_user_answer(question, user_answer).is_correct:
                    chunk.correct += 1
                else:
                    chunk.incorrect += 1
            chunk.valid_total = chunk.correct + chunk.incorrect
            chunk.accuracy = (
                _round_half_up(chunk.correct / chunk.valid_total * 100)
                if chunk.valid_total > 0 else 0
            )
            chunks.append(chunk)
        return TemporalAnalysis(chunks=chunks, trend=self.analyze_trend(chunks))

    @staticmethod
    def analyze_trend(chunks: List[TemporalChunk],
                      threshold: float = None) -> TemporalTrend:
        """
        Compare the mean accuracy of the later answered chunks with the earlier ones

        With an odd number of answered chunks the middle one belongs to both halves.
        """
        threshold = config.TREND_THRESHOLD if threshold is None else threshold
        if len(chunks) < 2:
            return TemporalTrend()
        answered = [chunk for chunk in chunks if chunk.valid_total > 0]
        if len(answered) < 2:
            return TemporalTrend()

        first_half = answered[:math.ceil(len(answered) / 2)]
        second_half = answered[len(answered) // 2:]
        first_avg = sum(chunk.accuracy for chunk in first_half) / len(first_half)
        second_avg = sum(chunk.accuracy for chunk in second_half) / len(second_half)
        improvement = second_avg - first_avg
        accuracies = [chunk.accuracy for chunk in answered]

        trend = TREND_STABLE
        if improvement > threshold:
            trend = TREND_IMPROVING
        elif improvement < -threshold:
            trend = TREND_DECLINING

        return TemporalTrend(
            trend=trend,
            improvement=improvement,
            first_half_avg=_round_half_up(first_avg),
            second_half_avg=_round_half_up(second_avg),
            max_accuracy=max(accuracies),
            min_accuracy=min(accuracies),
            consistency=max(accuracies) - min(accuracies),
        )

    @staticmethod
    def analyze_option_frequency(questions: List[Question],
                                 responses: Mapping[int, str]) -> OptionFrequency:
        """
        Count the option letters chosen in an attempt

        Only answers to the attempt's questions are counted. Answers other than
        A-E count towards `total_answered` but towards no letter. On a tie the
        later letter is reported as most or least chosen.
        """
        frequency = {letter: 0 for letter in OPTION_LETTERS}
        total_answered = 0
        for question in questions:
            user_answer = answer_for(responses, question.position)
            if not user_answer:
                continue
            total_answered += 1
            if user_answer in frequency:
                frequency[user_answer] += 1

        most_chosen = least_chosen = OPTION_LETTERS[0]
        for letter in OPTION_LETTERS[1:]:
            if not frequency[most_chosen] > frequency[letter]:
                most_chosen = letter
            if not frequency[least_chosen] < frequency[letter]:
                least_chosen = letter

        return OptionFrequency(
            frequency=frequency,
            percentages={
                letter: _round_half_up(count / total_answered * 100) if total_answered > 0 else 0
                for letter, count in frequency.items()
            },
            total_answered=total_answered,
            most_chosen=most_chosen,
            least_chosen=least_chosen,
        )
