"""
Shared state and dependencies for all API routes
"""

import logging
from typing import Dict, Optional

import config
from models.errors import ReferenceDataLoadError
from models.reference_data import ReferenceData
from services.ability_scorer_service import AbilityScorerService
from services.consistency_analyzer_service import ConsistencyAnalyzerService
from services.data_loader_service import DataLoaderService
from services.position_mapper_service import PositionMapperService
from services.question_generator_service import QuestionGeneratorService
from services.results_analyzer_service import ResultsAnalyzerService, SkillDescriptionCatalog

logger = logging.getLogger(__name__)

# Cache variables
_reference_data_cache: Optional[ReferenceData] = None
_skill_catalog_cache: Optional[SkillDescriptionCatalog] = None
_ability_scorer_cache: Optional[AbilityScorerService] = None
_degraded = False


async def load_reference_data(source: str = None) -> ReferenceData:
    """
    Load the reference data into the cache

    Falls back to empty tables for config.DEGRADED_YEAR when the files cannot
    be loaded, so that every question of an attempt comes out nullified.
    """
    global _reference_data_cache, _degraded

    if _reference_data_cache is not None:
        return _reference_data_cache

    try:
        reference_data = await DataLoaderService.load_reference_data(source)
        _degraded = False
    except ReferenceDataLoadError as e:
        logger.error("Reference data unavailable, serving degraded mode: %s", e)
        reference_data = ReferenceData.empty(config.DEGRADED_YEAR)
        _degraded = True

    set_reference_data(reference_data)
    return reference_data


async def load_skill_catalog(source: str = None) -> SkillDescriptionCatalog:
    """Load the skill descriptions into the cache (built-in ones when unavailable)."""
    global _skill_catalog_cache

    if _skill_catalog_cache is not None:
        return _skill_catalog_cache

    descriptions = await DataLoaderService.load_skill_descriptions(source)
    _skill_catalog_cache = SkillDescriptionCatalog(descriptions)
    return _skill_catalog_cache


def set_reference_data(reference_data: ReferenceData) -> None:
    """Replace the cached reference data; the model cache stays."""
    global _reference_data_cache
    _reference_data_cache = reference_data
    if _ability_scorer_cache is not None:
        _ability_scorer_cache.position_mapper = PositionMapperService(reference_data)


def get_reference_data() -> ReferenceData:
    """Cached reference data; empty tables when nothing was loaded yet."""
    if _reference_data_cache is None:
        return ReferenceData.empty(config.DEGRADED_YEAR)
    return _reference_data_cache


def get_skill_catalog() -> SkillDescriptionCatalog:
    if _skill_catalog_cache is None:
        return SkillDescriptionCatalog()
    return _skill_catalog_cache


def get_position_mapper() -> PositionMapperService:
    """Dependency to create PositionMapperService"""
    return PositionMapperService(get_reference_data())


def get_question_generator() -> QuestionGeneratorService:
    """Dependency to create QuestionGeneratorService"""
    return QuestionGeneratorService(get_position_mapper())


def get_results_analyzer() -> ResultsAnalyzerService:
    """Dependency to create ResultsAnalyzerService"""
    return ResultsAnalyzerService(get_position_mapper(), get_skill_catalog())


def get_consistency_analyzer() -> ConsistencyAnalyzerService:
    """Dependency to create ConsistencyAnalyzerService"""
    return ConsistencyAnalyzerService(get_position_mapper())


def get_ability_scorer() -> AbilityScorerService:
    """Process-wide AbilityScorerService, so that loaded models are shared"""
    global _ability_scorer_cache

    if _ability_scorer_cache is None:
        _ability_scorer_cache = AbilityScorerService(get_position_mapper())
    return _ability_scorer_cache


def set_ability_scorer(scorer: Optional[AbilityScorerService]) -> None:
    global _ability_scorer_cache
    _ability_scorer_cache = scorer


def cache_status() -> Dict[str, object]:
    return {
        "reference_data_loaded": _reference_data_cache is not None,
        "degraded": _degraded,
        "cached_models": len(_ability_scorer_cache.cache) if _ability_scorer_cache else 0,
    }


def clear_cache():
    """Clear all caches - used by tests or to reload data"""
    global _reference_data_cache, _skill_catalog_cache, _ability_scorer_cache, _degraded

    if _ability_scorer_cache is not None:
        _ability_scorer_cache.clear_cache()
    _reference_data_cache = None
    _skill_catalog_cache = None
    _ability_scorer_cache = None
    _degraded = False
