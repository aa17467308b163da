"""
Base model class for all win-probability estimators.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any, Tuple

from scipy.special import expit

from ..aggregation import PlayerAggregate
from ..comparison import ComparisonScore


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def sigmoid(value: float) -> float:
    """Logistic function, 1 / (1 + exp(-value))."""
    return float(expit(value))


def is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


@dataclass(frozen=True)
class ModelOutput:
    """Probability produced by one model plus its own warning tags."""

    model_id: str
    probability: Optional[float]

    @property
    def available(self) -> bool:
        return is_finite(self.probability)

    @property
    def warnings(self) -> Tuple[str, ...]:
        return () if self.available else (f"{self.model_id}_unavailable",)


class BaseModel(ABC):
    """
    Abstract base class for all prediction models.

    Models are closed-form: there is nothing to train. Each model maps the
    two player aggregates (and the shared comparison score) to P(player A
    wins) in percent, or None when its inputs are insufficient.
    """

    def __init__(self, name: str, model_id: str):
        """
        Initialize base model.

        Args:
            name: Human-readable model name
            model_id: Short identifier (e.g., 'logreg')
        """
        self.name = name
        self.model_id = model_id

    @abstractmethod
    def predict(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> Optional[float]:
        """
        Estimate the probability that player A (home) wins.

        Args:
            home: Player A aggregate
            away: Player B aggregate
            comparison: Comparison score of A vs B

        Returns:
            Probability in [0, 100], or None if unavailable
        """
        pass

    def run(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> ModelOutput:
        """Predict and wrap the result, turning non-finite values into None."""
        probability = self.predict(home, away, comparison)
        if not is_finite(probability):
            probability = None
        return ModelOutput(model_id=self.model_id, probability=probability)

    def predict_with_details(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> Dict[str, Any]:
        """
        Predict with additional details.

        Returns:
            Dictionary with prediction and model info
        """
        output = self.run(home, away, comparison)
        return {
            'p1': output.probability,
            'p2': 100 - output.probability if output.available else None,
            'available': output.available,
            'model_id': self.model_id,
            'model_name': self.name,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
