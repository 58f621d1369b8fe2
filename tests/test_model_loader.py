"""
Tests for model artifact naming and loading.
"""

import asyncio

import lightgbm as lgb
import numpy as np
import pytest

from models.errors import ModelNotFound, ModelValidationFailed
from models.exam_config import ExamConfiguration
from services.ability_scorer_service import AbilityScorerService
from services.model_loader_service import (
    AbilityModel,
    LightGBMModelLoader,
    model_file_name,
    model_key,
)
from services.question_generator_service import QuestionGeneratorService
from tests.conftest import YEAR, easy_ten_responses


def _write_booster(directory, num_features, year=YEAR, area="MT"):
    rng = np.random.default_rng(0)
    features = rng.integers(0, 2, size=(60, num_features)).astype(float)
    target = 400 + 10 * features.sum(axis=1)
    booster = lgb.train(
        {"objective": "regression", "verbose": -1, "min_data_in_leaf": 5},
        lgb.Dataset(features, target),
        num_boost_round=5,
    )
    booster.save_model(str(directory / model_file_name(year, area)))


class TestNaming:

    def test_model_key(self):
        assert model_key(2019, "MT") == "2019_MT"
        assert model_key(2019, "LC", "0") == "2019_LC_0"

    def test_language_suffix_only_for_languages(self):
        assert model_file_name(2019, "LC", "1") == "modelo_de_nota_2019_LC_B_1.txt"
        assert model_file_name(2019, "MT") == "modelo_de_nota_2019_MT_B.txt"
        assert model_file_name(2019, "CH", "0") == "modelo_de_nota_2019_CH_B.txt"


class TestLightGBMModelLoader:

    def test_missing_artifact(self, tmp_path):
        loader = LightGBMModelLoader(str(tmp_path))

        with pytest.raises(ModelNotFound):
            asyncio.run(loader.load(2019, "MT"))

    def test_unreadable_artifact(self, tmp_path):
        loader = LightGBMModelLoader(str(tmp_path))
        (tmp_path / model_file_name(2019, "MT")).write_text("not a model", encoding="utf-8")

        with pytest.raises(ModelValidationFailed):
            asyncio.run(loader.load(2019, "MT"))


class TestAbilityModel:

    def test_predict_returns_first_value_as_float(self):
        model = AbilityModel("2019_MT", lambda vector: np.array([[512.5]]))

        assert model.predict([1, 0, 0]) == 512.5
        assert isinstance(model.predict([1, 0, 0]), float)

    def test_predict_receives_float_array(self):
        seen = []

        def predict_fn(vector):
            seen.append(vector)
            return [0.0]

        AbilityModel("2019_MT", predict_fn).predict([1, 0])

        assert seen[0].dtype == np.float64
        assert seen[0].tolist() == [1.0, 0.0]


class TestTrainedArtifacts:

    def _score(self, position_mapper, models_dir):
        scorer = AbilityScorerService(position_mapper, loader=LightGBMModelLoader(str(models_dir)))
        exam_config = ExamConfiguration(YEAR, "MT", "azul")
        questions = QuestionGeneratorService(position_mapper).generate(exam_config)
        return asyncio.run(scorer.calculate_score(exam_config, questions, easy_ten_responses()))

    def test_matching_feature_count_scores(self, tmp_path, position_mapper):
        _write_booster(tmp_path, 45)

        result = self._score(position_mapper, tmp_path)

        assert result.success
        assert result.model_key == "2019_MT"
        assert np.isfinite(result.score)

    def test_wrong_feature_count_raises_value_error(self, tmp_path):
        _write_booster(tmp_path, 44)
        model = asyncio.run(LightGBMModelLoader(str(tmp_path)).load(YEAR, "MT"))

        with pytest.raises(ValueError, match="2019_MT"):
            model.predict([0] * 45)

    def test_wrong_feature_count_is_reported_as_corrupted(self, tmp_path, position_mapper):
        _write_booster(tmp_path, 44)

        result = self._score(position_mapper, tmp_path)

        assert not result.success
        assert result.error == "Matemática: Model corrupted or incompatible"
