"""
Configuration - constants with environment overrides
"""

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# Reference data
DATA_DIR: str = _env_str("DATA_DIR", "data")
POSITIONS_FILE: str = _env_str("POSITIONS_FILE", "positions.json")
ANSWER_KEY_FILE: str = _env_str("ANSWER_KEY_FILE", "meta.json")
SKILLS_FILE: str = _env_str("SKILLS_FILE", "skills-descriptions.json")
HTTP_TIMEOUT: int = _env_int("HTTP_TIMEOUT", 60)
DEGRADED_YEAR: int = _env_int("DEGRADED_YEAR", 2017)

# Exam generation
DEFAULT_EXAM_TYPE: str = _env_str("DEFAULT_EXAM_TYPE", "LC0")

# Results analysis
TEMPORAL_CHUNK_SIZE: int = _env_int("TEMPORAL_CHUNK_SIZE", 9)
TREND_THRESHOLD: float = _env_float("TREND_THRESHOLD", 15.0)

# Ability models
MODELS_DIR: str = _env_str("MODELS_DIR", "models_tri")
MODEL_FALLBACK_DEPTH: int = _env_int("MODEL_FALLBACK_DEPTH", 3)
MODEL_MIN_YEAR: int = _env_int("MODEL_MIN_YEAR", 2016)
PATTERN_LENGTH: int = _env_int("PATTERN_LENGTH", 45)

# Consistency analysis
UNEXPECTED_CORRECT_MAX_P: float = _env_float("UNEXPECTED_CORRECT_MAX_P", 0.3)
UNEXPECTED_INCORRECT_MIN_P: float = _env_float("UNEXPECTED_INCORRECT_MIN_P", 0.7)
CONSISTENCY_TOP_N: int = _env_int("CONSISTENCY_TOP_N", 10)

LOG_LEVEL: str = _env_str("LOG_LEVEL", "INFO")
