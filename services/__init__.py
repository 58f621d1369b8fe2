"""
Services module - Business logic
"""

from .data_loader_service import DataLoaderService
from .position_mapper_service import PositionMapperService
from .question_generator_service import QuestionGeneratorService
from .results_analyzer_service import ResultsAnalyzerService, SkillDescriptionCatalog
from .model_loader_service import AbilityModel, LightGBMModelLoader
from .ability_scorer_service import AbilityScorerService, ModelCache
from .consistency_analyzer_service import ConsistencyAnalyzerService

__all__ = [
    'DataLoaderService',
    'PositionMapperService',
    'QuestionGeneratorService',
    'ResultsAnalyzerService',
    'SkillDescriptionCatalog',
    'AbilityModel',
    'LightGBMModelLoader',
    'AbilityScorerService',
    'ModelCache',
    'ConsistencyAnalyzerService',
]
