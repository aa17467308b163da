"""
Reliability-weighted fusion of the model probabilities.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Any, Optional

from .aggregation import HistoryAggregator, PlayerAggregate
from .comparison import ComparisonScore, ComparisonScorer
from .config import NEUTRAL_PROBABILITY
from .data import PlayerHistory
from .models import (
    BaseModel, ModelOutput,
    LogisticStyleModel, MarkovChainModel, BradleyTerryModel, PCAProjectionModel
)
from .reliability import ReliabilityEstimator, ReliabilityReport
from .weights import MODEL_IDS, ModelWeights, WeightCalibrator


def _optional_probability(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class EnsembleResult:
    """
    Everything the engine produced for one match.

    Model probabilities are None when the model was unavailable.
    """

    logreg_p1: Optional[float]
    markov_p1: Optional[float]
    bradley_p1: Optional[float]
    pca_p1: Optional[float]
    final_p1: float
    active_models: int
    comparison_count: int
    comparison_coverage: float
    pca_sample_size: int
    base_weights: ModelWeights
    reliabilities: ModelWeights
    weights: ModelWeights
    warnings: Tuple[str, ...] = ()
    pclass_ev: Optional[int] = None
    pclass_dep: Optional[int] = None
    comparison: ComparisonScore = field(default_factory=ComparisonScore)

    def probability(self, model_id: str) -> Optional[float]:
        return getattr(self, f"{model_id}_p1")

    @property
    def probabilities(self) -> Dict[str, Optional[float]]:
        return {model_id: self.probability(model_id) for model_id in MODEL_IDS}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'logreg_p1': self.logreg_p1,
            'markov_p1': self.markov_p1,
            'bradley_p1': self.bradley_p1,
            'pca_p1': self.pca_p1,
            'final_p1': self.final_p1,
            'active_models': self.active_models,
            'comparison_count': self.comparison_count,
            'comparison_coverage': self.comparison_coverage,
            'pca_sample_size': self.pca_sample_size,
            'pclass_ev': self.pclass_ev,
            'pclass_dep': self.pclass_dep,
            'base_weights': self.base_weights.as_dict(),
            'reliabilities': self.reliabilities.as_dict(),
            'weights': self.weights.as_dict(),
            'warnings': list(self.warnings),
            'comparison': {
                'wins_a': self.comparison.wins_a,
                'wins_b': self.comparison.wins_b,
                'compared': self.comparison.compared,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EnsembleResult':
        """
        Rebuild a result from its dictionary form (e.g. an exported oracle run).

        Missing or non-finite model probabilities become None.
        """
        comparison = data.get('comparison') or {}
        final_p1 = _optional_probability(data.get('final_p1'))
        return cls(
            logreg_p1=_optional_probability(data.get('logreg_p1')),
            markov_p1=_optional_probability(data.get('markov_p1')),
            bradley_p1=_optional_probability(data.get('bradley_p1')),
            pca_p1=_optional_probability(data.get('pca_p1')),
            final_p1=final_p1 if final_p1 is not None else NEUTRAL_PROBABILITY,
            active_models=int(data.get('active_models') or 0),
            comparison_count=int(data.get('comparison_count') or 0),
            comparison_coverage=float(data.get('comparison_coverage') or 0.0),
            pca_sample_size=int(data.get('pca_sample_size') or 0),
            base_weights=ModelWeights.from_dict(data.get('base_weights') or {}),
            reliabilities=ModelWeights.from_dict(data.get('reliabilities') or {}),
            weights=ModelWeights.from_dict(data.get('weights') or {}),
            warnings=tuple(data.get('warnings') or ()),
            pclass_ev=data.get('pclass_ev'),
            pclass_dep=data.get('pclass_dep'),
            comparison=ComparisonScore(
                wins_a=float(comparison.get('wins_a', 0.0)),
                wins_b=float(comparison.get('wins_b', 0.0)),
                compared=int(comparison.get('compared', data.get('comparison_count', 0))),
            ),
        )


def default_models() -> List[BaseModel]:
    """The four models in fusion slot order."""
    return [
        LogisticStyleModel(),
        MarkovChainModel(),
        BradleyTerryModel(),
        PCAProjectionModel(),
    ]


class EnsembleCombiner:
    """
    Runs every model on a pair of aggregates and fuses their outputs.

    Pipeline:
    1. Comparison score of A vs B
    2. Each model's own output (probability + warning tags)
    3. Reliability per model from data coverage
    4. Calibrated weights
    5. Weighted average of the available probabilities
    """

    def __init__(
        self,
        models: Optional[List[BaseModel]] = None,
        scorer: Optional[ComparisonScorer] = None,
        estimator: Optional[ReliabilityEstimator] = None,
        calibrator: Optional[WeightCalibrator] = None
    ):
        self.models = models if models is not None else default_models()
        self.scorer = scorer or ComparisonScorer()
        self.estimator = estimator or ReliabilityEstimator(self.scorer.total_metrics)
        self.calibrator = calibrator or WeightCalibrator()

    @staticmethod
    def fuse(probabilities: Dict[str, Optional[float]], weights: ModelWeights) -> float:
        """Weighted average over slots with a finite probability and positive weight."""
        weighted_sum = 0.0
        total = 0.0
        for model_id in MODEL_IDS:
            p = probabilities.get(model_id)
            w = weights.get(model_id)
            if p is None or not math.isfinite(p) or w <= 0:
                continue
            weighted_sum += p * w
            total += w

        if total <= 0:
            return NEUTRAL_PROBABILITY
        return max(0.0, min(100.0, weighted_sum / total))

    def combine(
        self,
        outputs: List[ModelOutput],
        comparison: ComparisonScore,
        report: ReliabilityReport,
        home: PlayerAggregate,
        away: PlayerAggregate
    ) -> EnsembleResult:
        """
        Calibrate weights for the given model outputs and package the result.

        Warnings keep a fixed order: comparison first, then one tag per
        unavailable model in slot order.
        """
        by_id = {output.model_id: output for output in outputs}
        probabilities = {
            model_id: by_id[model_id].probability if model_id in by_id else None
            for model_id in MODEL_IDS
        }

        warnings = list(comparison.warnings)
        for model_id in MODEL_IDS:
            output = by_id.get(model_id, ModelOutput(model_id=model_id, probability=None))
            warnings.extend(output.warnings)

        weights = self.calibrator.calibrate(report.reliabilities, probabilities)

        return EnsembleResult(
            logreg_p1=probabilities['logreg'],
            markov_p1=probabilities['markov'],
            bradley_p1=probabilities['bradley'],
            pca_p1=probabilities['pca'],
            final_p1=self.fuse(probabilities, weights),
            active_models=sum(1 for p in probabilities.values() if p is not None),
            comparison_count=comparison.compared,
            comparison_coverage=report.comparison_coverage,
            pca_sample_size=report.pca_sample_size,
            base_weights=self.calibrator.base_weights,
            reliabilities=report.reliabilities,
            weights=weights,
            warnings=tuple(warnings),
            pclass_ev=home.player_id,
            pclass_dep=away.player_id,
            comparison=comparison,
        )

    def run(self, home: PlayerAggregate, away: PlayerAggregate) -> EnsembleResult:
        """
        Run all models for player A (home) vs player B (away).

        Args:
            home: Player A aggregate
            away: Player B aggregate

        Returns:
            EnsembleResult
        """
        comparison = self.scorer.score(home.means, away.means)
        outputs = [model.run(home, away, comparison) for model in self.models]
        report = self.estimator.estimate(home, away, comparison)
        return self.combine(outputs, comparison, report, home, away)


def run_models(
    home_history: PlayerHistory,
    away_history: PlayerHistory,
    combiner: Optional[EnsembleCombiner] = None
) -> EnsembleResult:
    """Aggregate both histories and run the full ensemble."""
    aggregator = HistoryAggregator()
    home = aggregator.aggregate(home_history)
    away = aggregator.aggregate(away_history)
    return (combiner or EnsembleCombiner()).run(home, away)
