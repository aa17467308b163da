"""
Head-to-head comparison of two players' metric means.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .metrics import COMPARISON_METRICS, INVERTED_METRICS, MetricKey

COMPARISON_METRICS_MISSING = 'comparison_metrics_missing'


@dataclass(frozen=True)
class ComparisonScore:
    """
    Win/loss/tie tally across the comparison metrics.

    Ties give half a point to each side, so wins_a + wins_b == compared.
    """

    wins_a: float = 0.0
    wins_b: float = 0.0
    compared: int = 0

    @property
    def is_empty(self) -> bool:
        return self.compared == 0

    @property
    def warnings(self) -> Tuple[str, ...]:
        return (COMPARISON_METRICS_MISSING,) if self.is_empty else ()

    def probability(self) -> Optional[float]:
        """Share of points won by player A, in percent; None without points."""
        total = self.wins_a + self.wins_b
        if total <= 0:
            return None
        return self.wins_a / total * 100


class ComparisonScorer:
    """Compares metric means one metric at a time."""

    def __init__(self, metrics: Tuple[MetricKey, ...] = COMPARISON_METRICS):
        self.metrics = metrics

    @property
    def total_metrics(self) -> int:
        return len(self.metrics)

    def score(
        self,
        home_means: Dict[MetricKey, float],
        away_means: Dict[MetricKey, float]
    ) -> ComparisonScore:
        """
        Tally the comparison.

        Args:
            home_means: Player A metric means
            away_means: Player B metric means

        Returns:
            ComparisonScore for player A vs player B
        """
        wins_a = 0.0
        wins_b = 0.0
        compared = 0

        for key in self.metrics:
            home = home_means.get(key)
            away = away_means.get(key)
            if home is None or away is None or not math.isfinite(home) or not math.isfinite(away):
                continue
            compared += 1

            if key in INVERTED_METRICS:
                home, away = away, home

            if home > away:
                wins_a += 1
            elif away > home:
                wins_b += 1
            else:
                wins_a += 0.5
                wins_b += 0.5

        return ComparisonScore(wins_a=wins_a, wins_b=wins_b, compared=compared)
