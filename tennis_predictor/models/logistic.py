"""
Logistic-style model over normalized metric means.
"""

import math
from typing import Optional

from .base import BaseModel, clamp, sigmoid
from ..aggregation import PlayerAggregate
from ..comparison import ComparisonScore
from ..config import LOGISTIC_STEEPNESS
from ..metrics import COMPARISON_METRICS, INVERTED_METRICS


class LogisticStyleModel(BaseModel):
    """
    Squashes the average normalized metric advantage through a sigmoid.

    Rates are divided by 100; inverted count metrics (double faults,
    break points faced) go through 1 / (1 + value) so that every extra
    fault matters less than the previous one.
    """

    def __init__(self, steepness: float = LOGISTIC_STEEPNESS):
        super().__init__(
            name="Logistic Style",
            model_id="logreg"
        )
        self.steepness = steepness

    def predict(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> Optional[float]:
        sum_home = 0.0
        sum_away = 0.0
        count = 0

        for key in COMPARISON_METRICS:
            h = home.means.get(key)
            a = away.means.get(key)
            if h is None or a is None or not math.isfinite(h) or not math.isfinite(a):
                continue
            if h <= 0 or a <= 0:
                continue

            if key in INVERTED_METRICS:
                sum_home += 1 / (1 + h)
                sum_away += 1 / (1 + a)
            else:
                sum_home += h / 100
                sum_away += a / 100
            count += 1

        if count == 0:
            return None

        z = (sum_home / count - sum_away / count) * self.steepness
        return clamp(sigmoid(z) * 100, 0, 100)
