"""
Per-model weight slots and their calibration from reliabilities.
"""

import math
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple

from .config import BASE_MODEL_WEIGHTS, MIN_RELIABILITY

MODEL_IDS: Tuple[str, ...] = ('logreg', 'markov', 'bradley', 'pca')


@dataclass(frozen=True)
class ModelWeights:
    """One float per model slot. Used for base weights, reliabilities and final weights."""

    logreg: float = 0.0
    markov: float = 0.0
    bradley: float = 0.0
    pca: float = 0.0

    @classmethod
    def from_dict(cls, values: Dict[str, float]) -> 'ModelWeights':
        return cls(**{model_id: float(values.get(model_id, 0.0)) for model_id in MODEL_IDS})

    @classmethod
    def uniform(cls) -> 'ModelWeights':
        share = 1 / len(MODEL_IDS)
        return cls(**{model_id: share for model_id in MODEL_IDS})

    def get(self, model_id: str) -> float:
        return getattr(self, model_id)

    @property
    def total(self) -> float:
        return sum(self.get(model_id) for model_id in MODEL_IDS)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


class WeightCalibrator:
    """
    Turns base weights and reliabilities into normalized fusion weights.

    A model without a finite probability gets weight 0. Available models
    get base * clamp(reliability, MIN_RELIABILITY, 1), so even a poorly
    supported model keeps a small say. If nothing is available the
    weights fall back to an equal split.
    """

    def __init__(
        self,
        base_weights: Optional[Dict[str, float]] = None,
        min_reliability: float = MIN_RELIABILITY
    ):
        self.base_weights = ModelWeights.from_dict(base_weights or BASE_MODEL_WEIGHTS)
        self.min_reliability = min_reliability

    def raw_weight(self, model_id: str, reliability: float, probability: Optional[float]) -> float:
        if probability is None or not math.isfinite(probability):
            return 0.0
        rel = max(self.min_reliability, min(1.0, reliability))
        return self.base_weights.get(model_id) * rel

    def calibrate(
        self,
        reliabilities: ModelWeights,
        probabilities: Dict[str, Optional[float]]
    ) -> ModelWeights:
        """
        Compute final weights.

        Args:
            reliabilities: Reliability per model slot
            probabilities: Model probability per slot (None if unavailable)

        Returns:
            ModelWeights summing to 1
        """
        raw = {
            model_id: self.raw_weight(
                model_id, reliabilities.get(model_id), probabilities.get(model_id)
            )
            for model_id in MODEL_IDS
        }
        total = sum(raw.values())
        if total <= 0:
            return ModelWeights.uniform()
        return ModelWeights(**{model_id: value / total for model_id, value in raw.items()})
