"""
UserResponse Model
"""

from typing import Dict, Mapping, Optional

# booklet position -> chosen option letter; a missing position is blank
UserResponses = Dict[int, str]


def normalize_answer(value: Optional[str]) -> Optional[str]:
    """The answer as given, or None for a blank one; letters are matched exactly."""
    if value is None or not str(value).strip():
        return None
    return str(value)


def answer_for(responses: Mapping[int, Optional[str]], position: int) -> Optional[str]:
    """
    Chosen letter for a booklet position

    Args:
        responses: sparse answers of the attempt
        position: booklet position

    Returns:
        Chosen letter, or None when the position was left blank
    """
    return normalize_answer(responses.get(position))
