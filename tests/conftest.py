"""
Shared fixtures: synthetic reference data and fake ability models
"""

import asyncio

import numpy as np
import pytest

from models.errors import ModelNotFound
from services.data_loader_service import DataLoaderService
from services.model_loader_service import AbilityModel, model_key
from services.position_mapper_service import PositionMapperService

YEAR = 2019
MT_RANGE = range(136, 181)
LETTERS = "ABCDE"

# MT canonical positions without an answer-key entry
MT_NULLIFIED = (179, 180)
# MT canonical position whose answer is missing in the key
MT_EMPTY_ANSWER = 178
# MT canonical position printed in every color but VERDE
MT_UNMAPPED_IN_VERDE = 140


def mt_answer(canonical: int) -> str:
    return LETTERS[canonical % 5]


def wrong_answer(canonical: int) -> str:
    return LETTERS[(canonical + 1) % 5]


def mt_difficulty(canonical: int) -> float:
    """Ascending with the canonical position, -2.0 at 136."""
    return round((canonical - 136) * 0.1 - 2.0, 2)


def mt_discrimination(canonical: int) -> float:
    """Descending with the canonical position."""
    return round(3.0 - (canonical - 136) * 0.05, 2)


def build_raw_positions() -> dict:
    """Position file content as stored on disk."""
    mt = {}
    for canonical in MT_RANGE:
        colors = {
            "AZUL": canonical,
            "AMARELA": 316 - canonical,
            "VERDE": canonical,
        }
        if canonical == MT_UNMAPPED_IN_VERDE:
            del colors["VERDE"]
        mt[str(canonical)] = colors

    languages = {str(c): {"AZUL": c, "AMARELA": c} for c in range(1, 46)}
    return {str(YEAR): {"MT": mt, "LC0": languages, "LC1": dict(languages)}}


def build_raw_answer_keys() -> dict:
    """Answer-key file content as stored on disk."""
    mt = {}
    for canonical in MT_RANGE:
        if canonical in MT_NULLIFIED:
            continue
        mt[str(canonical)] = {
            "answer": "" if canonical == MT_EMPTY_ANSWER else mt_answer(canonical),
            "difficulty": mt_difficulty(canonical),
            "discrimination": mt_discrimination(canonical),
            "casual hit": 20,
            "hability": (canonical - 136) // 10 + 1,
        }

    languages = {
        str(c): {
            "answer": "a",
            "difficulty": 0.0,
            "discrimination": 1.0,
            "casual hit": 20,
            "hability": 1,
        }
        for c in range(1, 46)
    }
    return {str(YEAR): {"MT": mt, "LC0": languages, "LC1": dict(languages)}}


def build_reference_data():
    return DataLoaderService.build_reference_data(build_raw_positions(), build_raw_answer_keys())


def easy_ten_responses() -> dict:
    """Correct on the ten easiest MT items (canonical 136-145), blank elsewhere."""
    return {c: mt_answer(c) for c in range(136, 146)}


def constant_model(key: str, base: float = 500.0, step: float = 10.0) -> AbilityModel:
    """Model scoring base + step * number of correct answers."""
    return AbilityModel(key=key, predict_fn=lambda vector: [base + step * float(np.sum(vector))])


class FakeModelLoader:
    """
    Loader serving models from a dict keyed (year, area, language)

    A value may be an AbilityModel or an exception to raise.
    """

    def __init__(self, available=None):
        self.available = dict(available or {})
        self.calls = []

    async def load(self, year, area, language=None):
        self.calls.append((year, area, language))
        await asyncio.sleep(0)
        value = self.available.get((year, area, language))
        if value is None:
            raise ModelNotFound(model_key(year, area, language), "not available")
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def reference_data():
    return build_reference_data()


@pytest.fixture
def position_mapper(reference_data):
    return PositionMapperService(reference_data)
