"""
Data Loader Service
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

import requests

import config
from models.errors import ReferenceDataLoadError
from models.reference_data import AnswerKeyEntry, PositionTable, ReferenceData

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _is_remote(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


class DataLoaderService:
    """
    Service to load and parse the reference data files
    """

    @staticmethod
    def parse_positions(raw: Dict) -> PositionTable:
        """
        Parse the position file

        Args:
            raw: {"<year>": {"<subject>": {"<canonical>": {"AZUL": n, ...}}}}

        Returns:
            Same table with integer years, canonical positions and booklet positions
        """
        positions: PositionTable = {}
        for year_key, subjects in raw.items():
            year = int(year_key)
            positions[year] = {}
            for subject, entries in (subjects or {}).items():
                table: Dict[int, Dict[str, int]] = {}
                for canonical_key, color_map in (entries or {}).items():
                    table[int(canonical_key)] = {
                        str(color).upper(): int(position)
                        for color, position in (color_map or {}).items()
                        if position is not None
                    }
                positions[year][subject] = table
        return positions

    @staticmethod
    def parse_answer_keys(raw: Dict) -> Dict[int, Dict[str, Dict[int, AnswerKeyEntry]]]:
        """
        Parse the answer-key file

        "casual hit" is a percentage in the file and becomes a 0-1 guessing
        probability on the entry.

        Args:
            raw: {"<year>": {"<subject>": {"<canonical>": {"answer": ..., ...}}}}

        Returns:
            year -> subject -> canonical position -> AnswerKeyEntry
        """
        answer_keys: Dict[int, Dict[str, Dict[int, AnswerKeyEntry]]] = {}
        for year_key, subjects in raw.items():
            year = int(year_key)
            answer_keys[year] = {}
            for subject, entries in (subjects or {}).items():
                table: Dict[int, AnswerKeyEntry] = {}
                for canonical_key, meta in (entries or {}).items():
                    if meta is None:
                        continue
                    casual_hit = _to_float(meta.get("casual hit"))
                    skill = meta.get("hability")
                    table[int(canonical_key)] = AnswerKeyEntry(
                        answer=str(meta.get("answer") or "").strip().upper(),
                        difficulty=_to_float(meta.get("difficulty")),
                        discrimination=_to_float(meta.get("discrimination")),
                        guessing=casual_hit / 100 if casual_hit is not None else None,
                        skill_code=str(skill) if skill not in (None, "") else None,
                    )
                answer_keys[year][subject] = table
        return answer_keys

    @classmethod
    def build_reference_data(cls, raw_positions: Dict, raw_answer_keys: Dict) -> ReferenceData:
        """ReferenceData from the two decoded JSON documents."""
        return ReferenceData(
            positions=cls.parse_positions(raw_positions),
            answer_keys=cls.parse_answer_keys(raw_answer_keys),
        )

    @staticmethod
    def read_json(source: str, file_name: str) -> Dict:
        """Read one JSON document from a directory or an http(s) base URL."""
        if _is_remote(source):
            url = f"{source.rstrip('/')}/{file_name}"
            response = requests.get(url, timeout=config.HTTP_TIMEOUT)
            response.raise_for_status()
            return response.json()

        path = os.path.join(source, file_name)
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    @classmethod
    async def load_reference_data(cls, source: str = None) -> ReferenceData:
        """
        Load the position table and the answer key

        Both files are read concurrently; any failure is fatal to the attempt.

        Args:
            source: directory or base URL (config.DATA_DIR by default)

        Returns:
            ReferenceData

        Raises:
            ReferenceDataLoadError: a file could not be fetched or parsed
        """
        source = source or config.DATA_DIR
        try:
            raw_positions, raw_answer_keys = await asyncio.gather(
                asyncio.to_thread(cls.read_json, source, config.POSITIONS_FILE),
                asyncio.to_thread(cls.read_json, source, config.ANSWER_KEY_FILE),
            )
            reference = cls.build_reference_data(raw_positions, raw_answer_keys)
        except (OSError, ValueError, TypeError, AttributeError, requests.RequestException) as e:
            raise ReferenceDataLoadError(f"Could not load reference data from {source}: {e}") from e

        logger.info(
            "Reference data loaded: position years %s, answer-key years %s",
            sorted(reference.positions), sorted(reference.answer_keys),
        )
        return reference

    @classmethod
    async def load_skill_descriptions(cls, source: str = None) -> Optional[Dict[str, str]]:
        """
        Load skill descriptions keyed "<subject>_H<skill>"

        Returns:
            The descriptions, or None when the file is missing or unreadable
        """
        source = source or config.DATA_DIR
        try:
            raw = await asyncio.to_thread(cls.read_json, source, config.SKILLS_FILE)
        except (OSError, ValueError, requests.RequestException) as e:
            logger.warning("Skill descriptions unavailable (%s), using defaults", e)
            return None
        if not isinstance(raw, dict):
            logger.warning("Skill descriptions file is not an object, using defaults")
            return None
        return {str(k): str(v) for k, v in raw.items()}
