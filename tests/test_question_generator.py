"""
Tests for question generation.
"""

import pytest

from models.exam_config import ExamConfiguration
from services.question_generator_service import QuestionGeneratorService
from tests.conftest import MT_UNMAPPED_IN_VERDE, YEAR


@pytest.fixture
def generator(position_mapper):
    return QuestionGeneratorService(position_mapper)


class TestGenerate:

    def test_math_blue_booklet(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "MT", "azul"))

        assert [q.position for q in questions] == list(range(136, 181))
        assert all(q.subject == "MT" for q in questions)
        assert [q.position for q in questions if q.nullified] == [179, 180]

    def test_green_booklet_has_extra_nullified_item(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "MT", "verde"))
        by_position = {q.position: q for q in questions}

        unmapped = by_position[MT_UNMAPPED_IN_VERDE]
        assert unmapped.nullified
        assert unmapped.nullification_reason.startswith("Unmapped position")
        assert sum(1 for q in questions if q.nullified) == 3

    def test_yellow_booklet_carries_canonical_positions(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "MT", "amarela"))

        assert questions[0].position == 136
        assert questions[0].canonical_position == 180
        assert questions[0].nullified
        assert questions[-1].canonical_position == 136

    def test_language_exam(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "LC1", "azul"))

        assert len(questions) == 45
        assert {q.subject for q in questions} == {"LC1"}
        assert not any(q.nullified for q in questions)

    def test_day_one_uses_chosen_language(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "dia1", "azul", language="LC1"))

        assert len(questions) == 90
        assert questions[0].subject == "LC1"
        assert questions[44].subject == "LC1"
        assert questions[45].subject == "CH"

    def test_day_one_defaults_to_english(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "dia1", "azul"))

        assert questions[0].subject == "LC0"

    def test_day_two(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "dia2", "azul"))

        assert len(questions) == 90
        assert questions[0].subject == "CN"
        assert questions[-1].subject == "MT"
        # no CN data for the year
        assert all(q.nullified for q in questions if q.subject == "CN")

    def test_unknown_exam_type_falls_back(self, generator):
        questions = generator.generate(ExamConfiguration(YEAR, "XX", "azul"))

        assert [q.position for q in questions] == list(range(1, 46))
        assert {q.subject for q in questions} == {"LC0"}

    def test_unknown_year_nullifies_everything(self, generator):
        questions = generator.generate(ExamConfiguration(2030, "MT", "azul"))

        assert len(questions) == 45
        assert all(q.nullified for q in questions)
        assert questions[0].nullification_reason == (
            "Unmapped position: No position data for year 2030"
        )


class TestDetermineSubject:

    def test_position_outside_exam(self, generator):
        exam_config = ExamConfiguration(YEAR, "MT", "azul")

        assert generator.determine_subject(10, exam_config.subject_codes(), exam_config) is None
        assert generator.determine_subject(181, exam_config.subject_codes(), exam_config) is None

    def test_language_block(self, generator):
        exam_config = ExamConfiguration(YEAR, "dia1", "azul", language="LC1")

        assert generator.determine_subject(1, exam_config.subject_codes(), exam_config) == "LC1"
        assert generator.determine_subject(60, exam_config.subject_codes(), exam_config) == "CH"
