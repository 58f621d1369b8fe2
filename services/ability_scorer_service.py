"""
Ability Scorer Service - TRI score from a difficulty-ordered response vector
"""

import asyncio
import logging
import math
from typing import Awaitable, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple

import numpy as np

import config
from models.exam_config import COMPOSITE_EXAM_TYPES, SUBJECT_NAMES, ExamConfiguration
from models.errors import ModelLoadError, ModelValidationFailed
from models.question import Question
from models.score_result import ScoreResult
from models.user_response import answer_for
from services.model_loader_service import AbilityModel, LightGBMModelLoader, model_key
from services.position_mapper_service import PositionMapperService

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, str, Optional[str]]

# exam type -> (question subject, model area, model language)
SCORING_TARGETS: Dict[str, Tuple[str, str, Optional[str]]] = {
    "LC0": ("LC0", "LC", "0"),
    "LC1": ("LC1", "LC", "1"),
    "CH": ("CH", "CH", None),
    "CN": ("CN", "CN", None),
    "MT": ("MT", "MT", None),
}

CAUSE_MODEL_MISSING = "model_missing"
CAUSE_MODEL_CORRUPTED = "model_corrupted"
CAUSE_INSUFFICIENT_QUESTIONS = "insufficient_questions"


class ModelResolution(NamedTuple):
    model: Optional[AbilityModel]
    cause: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.model is not None


def _round_one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


class ModelCache:
    """
    Process-wide store of resolved models

    Each key has its own lock so that concurrent requests for one key
    trigger a single load.
    """

    def __init__(self):
        self._models: Dict[CacheKey, AbilityModel] = {}
        self._locks: Dict[CacheKey, asyncio.Lock] = {}

    def get(self, key: CacheKey) -> Optional[AbilityModel]:
        return self._models.get(key)

    def put(self, key: CacheKey, model: AbilityModel) -> None:
        self._models[key] = model

    def lock(self, key: CacheKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def get_or_load(self, key: CacheKey,
                          factory: Callable[[], Awaitable[AbilityModel]]) -> AbilityModel:
        model = self._models.get(key)
        if model is not None:
            return model
        async with self.lock(key):
            model = self._models.get(key)
            if model is None:
                model = await factory()
                self._models[key] = model
            return model

    def clear(self) -> None:
        self._models.clear()
        self._locks.clear()

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._models

    def __len__(self) -> int:
        return len(self._models)


class AbilityScorerService:
    """
    Service to convert an attempt into a TRI ability score

    The response vector of the target subject is ordered by item difficulty
    and handed to a per-(year, area, language) model. When no model exists for
    the requested year, up to `fallback_depth` preceding years are tried.
    """

    def __init__(self, position_mapper: PositionMapperService,
                 loader=None,
                 cache: Optional[ModelCache] = None,
                 fallback_depth: int = None,
                 min_year: int = None,
                 pattern_length: int = None):
        """
        Args:
            position_mapper: answer checking and answer-key access
            loader: object with `async load(year, area, language) -> AbilityModel`
            cache: shared model cache (a new one when None)
            fallback_depth: how many preceding years to try
            min_year: oldest year a model may come from
            pattern_length: length of the vector the models expect
        """
        self.position_mapper = position_mapper
        self.loader = loader or LightGBMModelLoader()
        self.cache = cache if cache is not None else ModelCache()
        self.fallback_depth = config.MODEL_FALLBACK_DEPTH if fallback_depth is None else fallback_depth
        self.min_year = config.MODEL_MIN_YEAR if min_year is None else min_year
        self.pattern_length = pattern_length or config.PATTERN_LENGTH

    def probe_vector(self) -> List[int]:
        probe = [0] * self.pattern_length
        probe[0] = 1
        return probe

    def candidate_years(self, year: int) -> List[int]:
        """Requested year first, then preceding years down to min_year."""
        years = [year]
        for offset in range(1, self.fallback_depth + 1):
            if year - offset >= self.min_year:
                years.append(year - offset)
        return years

    async def _load_validated(self, year: int, area: str,
                              language: Optional[str]) -> AbilityModel:
        model = await self.loader.load(year, area, language)
        key = model_key(year, area, language)
        try:
            probe_score = model.predict(self.probe_vector())
        except (ArithmeticError, LookupError, TypeError, ValueError) as e:
            raise ModelValidationFailed(key, f"probe prediction failed: {e}") from e
        if not isinstance(probe_score, (int, float)) or not math.isfinite(probe_score):
            raise ModelValidationFailed(key, f"probe returned invalid value {probe_score!r}")
        logger.debug("Model %s passed the probe (score %s)", key, probe_score)
        return model

    async def resolve_model(self, year: int, area: str,
                            language: Optional[str] = None) -> ModelResolution:
        """
        Find the model for (year, area, language), falling back to earlier years

        A model found at an earlier year is cached under the requested key too.

        Returns:
            ModelResolution with the model, or the cause of the failure
        """
        key: CacheKey = (year, area, language)
        model = self.cache.get(key)
        if model is not None:
            return ModelResolution(model)

        async with self.cache.lock(key):
            model = self.cache.get(key)
            if model is not None:
                return ModelResolution(model)

            failures: List[ModelLoadError] = []
            for candidate_year in self.candidate_years(year):
                candidate_key: CacheKey = (candidate_year, area, language)
                cached = self.cache.get(candidate_key)
                if (candidate_key != key and cached is not None
                        and cached.key != model_key(candidate_year, area, language)):
                    # the candidate year itself has no model, only a fallback
                    logger.debug(
                        "Skipping %s, cached entry is the fallback %s",
                        model_key(candidate_year, area, language), cached.key,
                    )
                    continue
                try:
                    if candidate_key == key:
                        model = await self._load_validated(candidate_year, area, language)
                    else:
                        model = await self.cache.get_or_load(
                            candidate_key,
                            lambda y=candidate_year: self._load_validated(y, area, language),
                        )
                except ModelLoadError as e:
                    logger.warning("Model %s unavailable: %s", model_key(candidate_year, area, language), e)
                    failures.append(e)
                    continue

                if candidate_year != year:
                    logger.info(
                        "Using fallback model %s in place of %s",
                        model.key, model_key(year, area, language),
                    )
                self.cache.put(key, model)
                return ModelResolution(model)

        logger.error("No model for %s after fallbacks", model_key(year, area, language))
        cause = CAUSE_MODEL_MISSING
        if failures and isinstance(failures[0], ModelValidationFailed):
            cause = CAUSE_MODEL_CORRUPTED
        return ModelResolution(
            None, cause,
            f"Model not found for {area} (year {year} and fallbacks)",
        )

    def normalize_pattern(self, raw_pattern) -> List[int]:
        """Truncate or right-pad with zeros to the model's vector length."""
        pattern = [int(bit) for bit in raw_pattern][:self.pattern_length]
        pattern.extend([0] * (self.pattern_length - len(pattern)))
        return pattern

    def score(self, model: AbilityModel, raw_pattern) -> float:
        """
        Score a subject-scoped, difficulty-ascending binary pattern

        Returns:
            The model prediction rounded to one decimal place
        """
        pattern = self.normalize_pattern(raw_pattern)
        return _round_one_decimal(model.predict(np.asarray(pattern, dtype=float)))

    def _difficulty(self, question: Question) -> Optional[float]:
        entry = self.position_mapper.reference_data.answer_key_entry(
            question.year, question.subject, question.canonical_position
        )
        return entry.difficulty if entry else None

    def prepare_pattern(self, questions: List[Question],
                        responses: Mapping[int, str], subject: str) -> List[int]:
        """
        Binary outcomes of one subject ordered by ascending difficulty

        Items without a difficulty go after the others; nullified items are
        appended as trailing zeros.
        """
        subject_questions = [q for q in questions if q.subject == subject]
        valid = [q for q in subject_questions if not q.nullified]
        nullified_count = len(subject_questions) - len(valid)

        def sort_key(question: Question):
            difficulty = self._difficulty(question)
            return (
                difficulty is None,
                difficulty if difficulty is not None else 0.0,
                question.sort_position,
            )

        pattern = []
        for question in sorted(valid, key=sort_key):
            user_answer = answer_for(responses, question.position)
            check = self.position_mapper.check_user_answer(question, user_answer)
            pattern.append(1 if check.is_correct else 0)

        pattern.extend([0] * nullified_count)
        logger.debug(
            "Pattern for %s: %s (%d valid, %d nullified)",
            subject, "".join(str(bit) for bit in pattern), len(valid), nullified_count,
        )
        return pattern

    def _failure(self, exam_config: ExamConfiguration, error: str,
                 subject: Optional[str] = None,
                 language: Optional[str] = None) -> ScoreResult:
        return ScoreResult(
            year=exam_config.year,
            exam_type=exam_config.exam_type,
            success=False,
            subject=subject,
            subject_name=SUBJECT_NAMES.get(subject) if subject else None,
            language=language,
            error=error,
        )

    @staticmethod
    def user_friendly_error(cause: str, subject_name: str, year: int) -> str:
        if cause == CAUSE_MODEL_MISSING:
            return f"{subject_name}: TRI model not available for {year}"
        if cause == CAUSE_MODEL_CORRUPTED:
            return f"{subject_name}: Model corrupted or incompatible"
        if cause == CAUSE_INSUFFICIENT_QUESTIONS:
            return f"{subject_name}: Insufficient questions for TRI calculation"
        return f"{subject_name}: Error in TRI calculation"

    async def calculate_score(self, exam_config: ExamConfiguration,
                              questions: List[Question],
                              responses: Mapping[int, str]) -> ScoreResult:
        """
        Score the single subject of an attempt

        Args:
            exam_config: the attempt configuration
            questions: generated questions
            responses: booklet position -> chosen letter

        Returns:
            ScoreResult; failures are returned, never raised
        """
        if exam_config.exam_type in COMPOSITE_EXAM_TYPES:
            return self._failure(
                exam_config,
                f"Exam type {exam_config.exam_type} is not supported for single-subject scoring",
            )

        target = SCORING_TARGETS.get(exam_config.exam_type)
        if target is None:
            logger.warning("Unknown exam type for scoring: %r", exam_config.exam_type)
            return self._failure(exam_config, f"Exam type {exam_config.exam_type} not recognized")

        subject, area, language = target
        subject_name = SUBJECT_NAMES[subject]

        if not any(q.subject == subject for q in questions):
            return self._failure(
                exam_config,
                self.user_friendly_error(CAUSE_INSUFFICIENT_QUESTIONS, subject_name, exam_config.year),
                subject, language,
            )

        resolution = await self.resolve_model(exam_config.year, area, language)
        if not resolution.ok:
            return self._failure(
                exam_config,
                self.user_friendly_error(resolution.cause, subject_name, exam_config.year),
                subject, language,
            )

        pattern = self.normalize_pattern(self.prepare_pattern(questions, responses, subject))
        try:
            score = self.score(resolution.model, pattern)
        except (ArithmeticError, LookupError, TypeError, ValueError):
            logger.exception("Prediction failed with model %s", resolution.model.key)
            return self._failure(
                exam_config,
                self.user_friendly_error(CAUSE_MODEL_CORRUPTED, subject_name, exam_config.year),
                subject, language,
            )

        logger.info("TRI score for %s %s: %s (model %s)",
                    exam_config.year, subject, score, resolution.model.key)
        return ScoreResult(
            year=exam_config.year,
            exam_type=exam_config.exam_type,
            success=True,
            subject=subject,
            subject_name=subject_name,
            language=language,
            score=score,
            pattern="".join(str(bit) for bit in pattern),
            model_key=resolution.model.key,
            model_loaded_at=resolution.model.loaded_at,
        )

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Model cache cleared")
