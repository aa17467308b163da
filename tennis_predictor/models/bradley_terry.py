"""
Simplified Bradley-Terry model on comparison wins.
"""

from typing import Optional

from .base import BaseModel, clamp
from ..aggregation import PlayerAggregate
from ..comparison import ComparisonScore


class BradleyTerryModel(BaseModel):
    """Treats each compared metric as a game: P(A) = wins_a / (wins_a + wins_b)."""

    def __init__(self):
        super().__init__(
            name="Bradley-Terry",
            model_id="bradley"
        )

    def predict(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> Optional[float]:
        probability = comparison.probability()
        if probability is None:
            return None
        return clamp(probability, 0, 100)
