"""
Tennis Match Predictor Package

Predicts the winner of a two-player tennis match from each player's recent
match statistics. Four closed-form models (logistic style, Markov chain,
Bradley-Terry, PCA projection) are fused with reliability-driven weights.

Usage:
    from tennis_predictor import HistoryLoader, TennisPredictor

    context, home, away = HistoryLoader().load_match('match.json')
    prediction = TennisPredictor().predict_match(context, home, away)
"""

from .predictor import TennisPredictor
from .data import HistoryLoader, MatchContext, PlayerHistory
from .aggregation import HistoryAggregator, PlayerAggregate
from .comparison import ComparisonScorer, ComparisonScore
from .models.base import BaseModel
from .models.logistic import LogisticStyleModel
from .models.markov import MarkovChainModel
from .models.bradley_terry import BradleyTerryModel
from .models.pca import PCAProjectionModel
from .reliability import ReliabilityEstimator
from .weights import ModelWeights, WeightCalibrator
from .ensemble import EnsembleCombiner, EnsembleResult, run_models

__version__ = "1.0.0"
__all__ = [
    "TennisPredictor",
    "HistoryLoader",
    "MatchContext",
    "PlayerHistory",
    "HistoryAggregator",
    "PlayerAggregate",
    "ComparisonScorer",
    "ComparisonScore",
    "BaseModel",
    "LogisticStyleModel",
    "MarkovChainModel",
    "BradleyTerryModel",
    "PCAProjectionModel",
    "ReliabilityEstimator",
    "ModelWeights",
    "WeightCalibrator",
    "EnsembleCombiner",
    "EnsembleResult",
    "run_models",
]
