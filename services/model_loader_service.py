"""
Model Loader Service - ability model artifacts
"""

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import lightgbm as lgb
import numpy as np

import config
from models.errors import ModelNotFound, ModelValidationFailed

logger = logging.getLogger(__name__)


def model_key(year: int, area: str, language: Optional[str] = None) -> str:
    """Identifier of a model, e.g. "2019_LC_0" or "2019_MT"."""
    key = f"{year}_{area}"
    if language:
        key += f"_{language}"
    return key


def model_file_name(year: int, area: str, language: Optional[str] = None) -> str:
    """
    Artifact file name for a model

    The language suffix only exists for the languages area ("LC").
    """
    name = f"modelo_de_nota_{year}_{area}_B"
    if area == "LC" and language is not None:
        name += f"_{language}"
    return f"{name}.txt"


class AbilityModel:
    """
    Predictor over a fixed-length binary response vector

    Wraps whatever the artifact provides behind predict(vector) -> float.
    """

    def __init__(self, key: str, predict_fn: Callable[[np.ndarray], Any],
                 source: str = ""):
        self.key = key
        self.source = source
        self.loaded_at = datetime.now(timezone.utc).isoformat()
        self._predict_fn = predict_fn

    def predict(self, vector) -> float:
        return float(np.asarray(self._predict_fn(np.asarray(vector, dtype=float))).ravel()[0])

    def __repr__(self) -> str:
        return f"AbilityModel(key={self.key!r}, source={self.source!r})"


class LightGBMModelLoader:
    """
    Loads LightGBM text models from a directory
    """

    def __init__(self, models_dir: str = None):
        self.models_dir = models_dir or config.MODELS_DIR

    def model_path(self, year: int, area: str, language: Optional[str] = None) -> str:
        return os.path.join(self.models_dir, model_file_name(year, area, language))

    def _read_booster(self, path: str) -> lgb.Booster:
        return lgb.Booster(model_file=path)

    @staticmethod
    def _booster_predict(booster: lgb.Booster, key: str) -> Callable[[np.ndarray], Any]:
        """
        Prediction function over one response vector

        A booster trained on another feature count raises LightGBMError at
        prediction time; it is reported as ValueError like any other bad input.
        """
        def predict(vector: np.ndarray):
            try:
                return booster.predict(vector.reshape(1, -1))
            except lgb.basic.LightGBMError as e:
                raise ValueError(f"model {key} rejected the response vector: {e}") from e
        return predict

    async def load(self, year: int, area: str, language: Optional[str] = None) -> AbilityModel:
        """
        Load the model of (year, area, language)

        Raises:
            ModelNotFound: no artifact for this key
            ModelValidationFailed: the artifact could not be parsed
        """
        key = model_key(year, area, language)
        path = self.model_path(year, area, language)
        if not os.path.exists(path):
            raise ModelNotFound(key, f"artifact {path} does not exist")

        try:
            booster = await asyncio.to_thread(self._read_booster, path)
        except (lgb.basic.LightGBMError, OSError, ValueError) as e:
            raise ModelValidationFailed(key, f"could not read {path}: {e}") from e

        logger.info("Model %s loaded from %s", key, path)
        return AbilityModel(
            key=key,
            predict_fn=self._booster_predict(booster, key),
            source=path,
        )
