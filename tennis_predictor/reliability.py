"""
Data-coverage based reliability of each model.
"""

from dataclasses import dataclass

from .aggregation import PlayerAggregate
from .comparison import ComparisonScore
from .config import MARKOV_COVERAGE_FLOOR, PCA_MIN_SAMPLES, PCA_FULL_RELIABILITY_SAMPLES
from .metrics import COMPARISON_METRICS, MARKOV_FEATURES, PCA_FEATURES
from .weights import ModelWeights


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class ReliabilityReport:
    """Reliabilities per model plus the coverage figures they came from."""

    reliabilities: ModelWeights
    comparison_coverage: float
    markov_feature_coverage: float
    pca_feature_coverage: float
    pca_sample_size: int


class ReliabilityEstimator:
    """
    Scores how much data backed each model, independent of its output.

    - logreg, bradley: share of comparison metrics that could be compared
    - markov: the same share, scaled down towards MARKOV_COVERAGE_FLOOR
      when first serve / first serve return figures are missing
    - pca: share of (player, feature) means present, scaled by the pooled
      sample size until PCA_FULL_RELIABILITY_SAMPLES rows are available
    """

    def __init__(self, total_comparison_metrics: int = len(COMPARISON_METRICS)):
        self.total_comparison_metrics = total_comparison_metrics

    def comparison_coverage(self, comparison: ComparisonScore) -> float:
        if self.total_comparison_metrics <= 0:
            return 0.0
        return _clamp01(comparison.compared / self.total_comparison_metrics)

    @staticmethod
    def markov_feature_coverage(home: PlayerAggregate, away: PlayerAggregate) -> float:
        present = [
            player.has(key)
            for key in MARKOV_FEATURES
            for player in (home, away)
        ]
        return sum(present) / len(present)

    @staticmethod
    def pca_feature_coverage(home: PlayerAggregate, away: PlayerAggregate) -> float:
        present = sum(
            int(home.has(key)) + int(away.has(key))
            for key in PCA_FEATURES
        )
        total = 2 * len(PCA_FEATURES)
        return present / total if total > 0 else 0.0

    def estimate(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> ReliabilityReport:
        coverage = self.comparison_coverage(comparison)
        markov_coverage = self.markov_feature_coverage(home, away)
        pca_coverage = self.pca_feature_coverage(home, away)
        sample_size = home.n_matches + away.n_matches

        sample_span = PCA_FULL_RELIABILITY_SAMPLES - PCA_MIN_SAMPLES
        sample_factor = _clamp01((sample_size - PCA_MIN_SAMPLES) / sample_span)

        reliabilities = ModelWeights(
            logreg=coverage,
            markov=_clamp01(
                coverage * (MARKOV_COVERAGE_FLOOR + (1 - MARKOV_COVERAGE_FLOOR) * markov_coverage)
            ),
            bradley=coverage,
            pca=_clamp01(pca_coverage * sample_factor),
        )

        return ReliabilityReport(
            reliabilities=reliabilities,
            comparison_coverage=coverage,
            markov_feature_coverage=markov_coverage,
            pca_feature_coverage=pca_coverage,
            pca_sample_size=sample_size,
        )
