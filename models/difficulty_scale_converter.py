"""
Difficulty Scale Converter
"""

from typing import Optional


class DifficultyScaleConverter:
    """
    Converts between the logistic IRT scale and the reported 0-1000 score scale
    """

    SCALE_MEAN = 500.0
    SCALE_SD = 100.0

    @staticmethod
    def to_score_scale(value: float) -> float:
        """
        Logistic scale (theta or b) to the reported score scale

        Args:
            value: value on the logistic scale

        Returns:
            100 * value + 500
        """
        return DifficultyScaleConverter.SCALE_SD * value + DifficultyScaleConverter.SCALE_MEAN

    @staticmethod
    def to_theta(score: float) -> float:
        """
        Reported score to the logistic scale

        Args:
            score: score on the 0-1000 scale

        Returns:
            (score - 500) / 100
        """
        return (score - DifficultyScaleConverter.SCALE_MEAN) / DifficultyScaleConverter.SCALE_SD

    @staticmethod
    def difficulty_label(difficulty: Optional[float], nullified: bool = False) -> str:
        """Label shown next to an item according to its difficulty on the score scale."""
        if nullified:
            return "Anulada"
        if difficulty is None:
            return "Desconhecida"
        scaled = DifficultyScaleConverter.to_score_scale(difficulty)
        if scaled < 550.0:
            return "Muito fácil"
        if scaled < 650.0:
            return "Fácil"
        if scaled < 750.0:
            return "Média"
        if scaled < 850.0:
            return "Difícil"
        return "Muito difícil"
