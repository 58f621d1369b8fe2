"""
IRT Model - Item Response Theory 3-PL
"""

import math


def _logistic(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


class IRTModel:
    """
    Item Response Theory model (3-PL: 3 Parameters Logistic)

    P(θ) = c + (1-c) / (1 + exp(-a*(θ - b)))

    Where:
    - θ (theta): test-taker ability on the logistic scale
    - a: item discrimination
    - b: item difficulty, same scale as θ
    - c: guessing (casual hit) probability
    """

    def __init__(self, default_guessing: float = 0.2):
        """
        Args:
            default_guessing: c used when an item does not carry its own
        """
        self.default_guessing = default_guessing

    def probability_correct(self, ability: float, difficulty: float,
                            discrimination: float = 1.0,
                            guessing: float = None) -> float:
        """
        Probability of a correct response

        Args:
            ability: theta
            difficulty: b
            discrimination: a
            guessing: c (0-1); default_guessing when None

        Returns:
            Probability of a correct answer (0-1)
        """
        c = self.default_guessing if guessing is None else guessing
        prob = c + (1 - c) * _logistic(discrimination * (ability - difficulty))
        return max(0.0, min(1.0, prob))
