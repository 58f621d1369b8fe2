"""
Tests for TRI scoring, model fallback and the model cache.
"""

import asyncio

import pytest

from models.errors import ModelValidationFailed
from models.exam_config import ExamConfiguration
from services.ability_scorer_service import (
    CAUSE_MODEL_CORRUPTED,
    CAUSE_MODEL_MISSING,
    AbilityScorerService,
    ModelCache,
)
from services.model_loader_service import AbilityModel
from services.question_generator_service import QuestionGeneratorService
from tests.conftest import YEAR, FakeModelLoader, constant_model, easy_ten_responses


def _scorer(position_mapper, available=None):
    loader = FakeModelLoader(available)
    return AbilityScorerService(position_mapper, loader=loader), loader


def _attempt(position_mapper, exam_type="MT", language=None):
    exam_config = ExamConfiguration(YEAR, exam_type, "azul", language=language)
    return exam_config, QuestionGeneratorService(position_mapper).generate(exam_config)


class TestPattern:

    def test_difficulty_ordered_pattern(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        _, questions = _attempt(position_mapper)

        pattern = scorer.prepare_pattern(questions, easy_ten_responses(), "MT")

        assert pattern == [1] * 10 + [0] * 33 + [0, 0]

    def test_pattern_of_reordered_booklet_matches_blue(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        questions = QuestionGeneratorService(position_mapper).generate(
            ExamConfiguration(YEAR, "MT", "amarela")
        )
        responses = {316 - c: answer for c, answer in easy_ten_responses().items()}

        assert scorer.prepare_pattern(questions, responses, "MT") == [1] * 10 + [0] * 35

    def test_normalize_pads_and_truncates(self, position_mapper):
        scorer, _ = _scorer(position_mapper)

        assert scorer.normalize_pattern([1, 1]) == [1, 1] + [0] * 43
        assert scorer.normalize_pattern([1] * 50) == [1] * 45

    def test_score_ignores_padding(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        model = constant_model("2019_MT")

        short = scorer.score(model, [1] * 10)
        padded = scorer.score(model, [1] * 10 + [0] * 35)

        assert short == padded == 600.0

    def test_score_rounds_half_up_to_one_decimal(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        model = AbilityModel("2019_MT", lambda vector: [612.25])

        assert scorer.score(model, [1]) == 612.3


class TestResolveModel:

    def test_candidate_years(self, position_mapper):
        scorer, _ = _scorer(position_mapper)

        assert scorer.candidate_years(2019) == [2019, 2018, 2017, 2016]
        assert scorer.candidate_years(2017) == [2017, 2016]
        assert scorer.candidate_years(2016) == [2016]

    def test_falls_back_to_earlier_year(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2017, "MT", None): constant_model("2017_MT")})

        resolution = asyncio.run(scorer.resolve_model(2019, "MT"))

        assert resolution.ok
        assert resolution.model.key == "2017_MT"
        assert loader.calls == [(2019, "MT", None), (2018, "MT", None), (2017, "MT", None)]
        assert (2019, "MT", None) in scorer.cache
        assert (2017, "MT", None) in scorer.cache

    def test_fallback_result_is_cached(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2017, "MT", None): constant_model("2017_MT")})

        async def resolve_twice():
            await scorer.resolve_model(2019, "MT")
            return await scorer.resolve_model(2019, "MT")

        resolution = asyncio.run(resolve_twice())

        assert resolution.model.key == "2017_MT"
        assert len(loader.calls) == 3

    def test_cached_fallback_is_not_a_candidate(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2017, "MT", None): constant_model("2017_MT")})
        asyncio.run(scorer.resolve_model(2020, "MT"))
        loader.calls.clear()

        resolution = asyncio.run(scorer.resolve_model(2021, "MT"))

        assert not resolution.ok
        assert resolution.cause == CAUSE_MODEL_MISSING
        assert loader.calls == [(2021, "MT", None), (2019, "MT", None), (2018, "MT", None)]
        assert (2021, "MT", None) not in scorer.cache

    def test_cached_candidate_model_is_reused(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2019, "MT", None): constant_model("2019_MT")})
        asyncio.run(scorer.resolve_model(2019, "MT"))

        resolution = asyncio.run(scorer.resolve_model(2020, "MT"))

        assert resolution.model.key == "2019_MT"
        assert loader.calls == [(2019, "MT", None), (2020, "MT", None)]

    def test_concurrent_requests_load_once(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2019, "MT", None): constant_model("2019_MT")})

        async def resolve_many():
            return await asyncio.gather(*(scorer.resolve_model(2019, "MT") for _ in range(5)))

        resolutions = asyncio.run(resolve_many())

        assert loader.calls == [(2019, "MT", None)]
        assert len({id(r.model) for r in resolutions}) == 1

    def test_fallback_stops_at_min_year(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2015, "MT", None): constant_model("2015_MT")})

        resolution = asyncio.run(scorer.resolve_model(2017, "MT"))

        assert not resolution.ok
        assert resolution.cause == CAUSE_MODEL_MISSING
        assert loader.calls == [(2017, "MT", None), (2016, "MT", None)]

    def test_probe_rejects_non_finite_model(self, position_mapper):
        nan_model = AbilityModel("2019_MT", lambda vector: [float("nan")])
        scorer, _ = _scorer(position_mapper, {(2019, "MT", None): nan_model})

        resolution = asyncio.run(scorer.resolve_model(2019, "MT"))

        assert not resolution.ok
        assert resolution.cause == CAUSE_MODEL_CORRUPTED
        assert (2019, "MT", None) not in scorer.cache

    def test_unreadable_artifact_is_corrupted(self, position_mapper):
        scorer, _ = _scorer(position_mapper, {
            (2019, "MT", None): ModelValidationFailed("2019_MT", "bad header"),
        })

        resolution = asyncio.run(scorer.resolve_model(2019, "MT"))

        assert resolution.cause == CAUSE_MODEL_CORRUPTED

    def test_language_is_part_of_the_key(self, position_mapper):
        scorer, _ = _scorer(position_mapper, {
            (2019, "LC", "0"): constant_model("2019_LC_0"),
            (2019, "LC", "1"): constant_model("2019_LC_1"),
        })

        async def resolve_both():
            return (
                await scorer.resolve_model(2019, "LC", "0"),
                await scorer.resolve_model(2019, "LC", "1"),
            )

        english, spanish = asyncio.run(resolve_both())

        assert english.model.key == "2019_LC_0"
        assert spanish.model.key == "2019_LC_1"

    def test_clear_cache(self, position_mapper):
        scorer, loader = _scorer(position_mapper, {(2019, "MT", None): constant_model("2019_MT")})
        asyncio.run(scorer.resolve_model(2019, "MT"))

        scorer.clear_cache()

        assert len(scorer.cache) == 0
        asyncio.run(scorer.resolve_model(2019, "MT"))
        assert len(loader.calls) == 2


class TestModelCache:

    def test_get_or_load_runs_factory_once(self):
        cache = ModelCache()
        calls = []

        async def factory():
            calls.append(1)
            await asyncio.sleep(0)
            return constant_model("2019_MT")

        async def load_many():
            return await asyncio.gather(*(
                cache.get_or_load((2019, "MT", None), factory) for _ in range(3)
            ))

        models = asyncio.run(load_many())

        assert len(calls) == 1
        assert models[0] is models[1] is models[2]


class TestCalculateScore:

    def test_math_score(self, position_mapper):
        scorer, _ = _scorer(position_mapper, {(2019, "MT", None): constant_model("2019_MT")})
        exam_config, questions = _attempt(position_mapper)

        result = asyncio.run(scorer.calculate_score(exam_config, questions, easy_ten_responses()))

        assert result.success
        assert result.score == 600.0
        assert result.subject == "MT"
        assert result.subject_name == "Matemática"
        assert result.pattern == "1" * 10 + "0" * 35
        assert result.model_key == "2019_MT"
        assert result.model_loaded_at == scorer.cache.get((YEAR, "MT", None)).loaded_at
        assert result.model_loaded_at is not None

    def test_language_score_uses_language_model(self, position_mapper):
        scorer, _ = _scorer(position_mapper, {(2019, "LC", "1"): constant_model("2019_LC_1")})
        exam_config, questions = _attempt(position_mapper, "LC1")
        responses = {position: "A" for position in range(1, 46)}

        result = asyncio.run(scorer.calculate_score(exam_config, questions, responses))

        assert result.success
        assert result.language == "1"
        assert result.model_key == "2019_LC_1"
        assert result.score == 950.0

    def test_missing_model(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        exam_config, questions = _attempt(position_mapper)

        result = asyncio.run(scorer.calculate_score(exam_config, questions, {}))

        assert not result.success
        assert result.score is None
        assert result.error == "Matemática: TRI model not available for 2019"

    def test_corrupted_model(self, position_mapper):
        nan_model = AbilityModel("2019_MT", lambda vector: [float("inf")])
        scorer, _ = _scorer(position_mapper, {(2019, "MT", None): nan_model})
        exam_config, questions = _attempt(position_mapper)

        result = asyncio.run(scorer.calculate_score(exam_config, questions, {}))

        assert not result.success
        assert result.error == "Matemática: Model corrupted or incompatible"

    @pytest.mark.parametrize("exam_type", ["dia1", "dia2"])
    def test_composite_exam_not_supported(self, position_mapper, exam_type):
        scorer, loader = _scorer(position_mapper)
        exam_config, questions = _attempt(position_mapper, exam_type)

        result = asyncio.run(scorer.calculate_score(exam_config, questions, {}))

        assert not result.success
        assert "not supported" in result.error
        assert loader.calls == []

    def test_unknown_exam_type(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        exam_config = ExamConfiguration(YEAR, "XX", "azul")

        result = asyncio.run(scorer.calculate_score(exam_config, [], {}))

        assert not result.success
        assert result.error == "Exam type XX not recognized"

    def test_no_questions_for_subject(self, position_mapper):
        scorer, _ = _scorer(position_mapper)
        exam_config = ExamConfiguration(YEAR, "CN", "azul")

        result = asyncio.run(scorer.calculate_score(exam_config, [], {}))

        assert not result.success
        assert result.error == "Ciências da Natureza: Insufficient questions for TRI calculation"
