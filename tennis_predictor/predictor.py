"""
Main predictor class that turns a match and two histories into a prediction.
"""

import json
import math
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple

import numpy as np

from .aggregation import HistoryAggregator
from .config import (
    MODEL_NAMES, MODULE_LABELS, PREDICTIONS_FILE, REQUESTED_MATCHES_PER_PLAYER,
    NEUTRAL_PROBABILITY, NEUTRAL_EPSILON,
    CONFIDENCE_MIN, CONFIDENCE_MAX, CONFIDENCE_MAX_DISPERSION_PENALTY
)
from .data import MatchContext, PlayerHistory
from .ensemble import EnsembleCombiner, EnsembleResult
from .weights import MODEL_IDS

ODDS_TIEBREAK = 'neutral_model_odds_tiebreak'
SEED_TIEBREAK = 'neutral_model_seed_tiebreak'

# A module counts as a strong vote from this strength on (20 pp edge)
STRONG_VOTE_STRENGTH = 2
# Ensemble score at final_p1 == 100
ENSEMBLE_SCORE_SCALE = 12


def ratio(value: float, base: float) -> float:
    """value / base clamped to [0, 1]; 0 for a non-positive base."""
    if base <= 0:
        return 0.0
    return max(0.0, min(1.0, value / base))


@dataclass(frozen=True)
class ModuleSummary:
    """One model's verdict in display form."""

    name: str
    side: str
    strength: float
    explain: Tuple[str, ...] = ()
    flags: Tuple[str, ...] = ()


def probability_to_module(name: str, p1: Optional[float]) -> ModuleSummary:
    """
    Summarize a model probability as a side and a strength.

    Strength is the edge in tens of percentage points, so 70/30 gives 4.
    """
    if p1 is None or not math.isfinite(p1):
        return ModuleSummary(name=name, side='neutral', strength=0.0, flags=('unavailable',))

    p2 = 100 - p1
    delta = p1 - p2
    if delta > 0:
        side = 'home'
    elif delta < 0:
        side = 'away'
    else:
        side = 'neutral'

    return ModuleSummary(
        name=name,
        side=side,
        strength=abs(delta) / 10,
        explain=(f"P1={p1:.1f} P2={p2:.1f}",),
    )


def build_modules(result: EnsembleResult) -> List[ModuleSummary]:
    return [
        probability_to_module(MODULE_LABELS[model_id], result.probability(model_id))
        for model_id in MODEL_IDS
    ]


def build_ensemble_meta(modules: List[ModuleSummary], final_p1: float) -> Dict[str, Any]:
    """Count votes per side and derive the overall side and score."""
    votes = {'home': 0, 'away': 0}
    strong = {'home': 0, 'away': 0}
    active = 0

    for module in modules:
        if module.side == 'neutral':
            continue
        active += 1
        votes[module.side] += 1
        if module.strength >= STRONG_VOTE_STRENGTH:
            strong[module.side] += 1

    if final_p1 > NEUTRAL_PROBABILITY:
        final_side = 'home'
    elif final_p1 < NEUTRAL_PROBABILITY:
        final_side = 'away'
    else:
        final_side = 'neutral'

    return {
        'final_side': final_side,
        'score': (final_p1 - NEUTRAL_PROBABILITY) / NEUTRAL_PROBABILITY * ENSEMBLE_SCORE_SCALE,
        'votes_home': votes['home'],
        'votes_away': votes['away'],
        'strong_home': strong['home'],
        'strong_away': strong['away'],
        'active': active,
    }


def model_dispersion(probabilities: List[Optional[float]]) -> float:
    """Population standard deviation of the available probabilities."""
    clean = [p for p in probabilities if p is not None and math.isfinite(p)]
    if len(clean) < 2:
        return 0.0
    return float(np.std(clean))


def compute_confidence(
    final_p1: float,
    model_probabilities: List[Optional[float]],
    active_models: int,
    comparison_coverage: float,
    rows_a: int,
    rows_b: int,
    requested_per_player: int = REQUESTED_MATCHES_PER_PLAYER
) -> float:
    """
    Confidence in the predicted winner, in [0.5, 0.92].

    Grows with the distance of the fused probability from 50, scaled up by
    data quality (active models, comparison coverage, history coverage)
    and reduced when the models disagree.
    """
    history_ratio = ratio(rows_a + rows_b, requested_per_player * 2)
    model_ratio = ratio(active_models, len(MODEL_IDS))

    raw_edge = abs(final_p1 - NEUTRAL_PROBABILITY)
    edge = 0.0 if raw_edge <= NEUTRAL_EPSILON else raw_edge / NEUTRAL_PROBABILITY

    quality = 0.45 * model_ratio + 0.35 * comparison_coverage + 0.2 * history_ratio
    base = 0.5 + edge * (0.45 + 0.35 * quality)
    penalty = max(0.0, min(CONFIDENCE_MAX_DISPERSION_PENALTY, model_dispersion(model_probabilities) / 40))

    return max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, base - penalty))


def stable_hash(text: str) -> int:
    """32-bit FNV-1a hash."""
    value = 2166136261
    for char in text:
        value ^= ord(char)
        value = (value * 16777619) & 0xFFFFFFFF
    return value


def _valid_odd(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def pick_by_odds_or_seed(
    player_a: str,
    player_b: str,
    home_odd: Optional[float],
    away_odd: Optional[float],
    seed: str
) -> Tuple[str, str]:
    """
    Break a neutral prediction.

    Returns:
        Tuple of (winner, reason) where reason is 'odds' or 'seed'
    """
    if _valid_odd(home_odd) and _valid_odd(away_odd) and home_odd != away_odd:
        return (player_a if home_odd < away_odd else player_b), 'odds'

    key = seed or f"{player_a}|{player_b}"
    pick_a = stable_hash(key) % 2 == 0
    return (player_a if pick_a else player_b), 'seed'


def tiebreak_seed(context: MatchContext) -> str:
    return f"{context.match_url}|{context.player_a_name}|{context.player_b_name}"


def resolve_winner(final_p1: float, context: MatchContext) -> Tuple[str, Optional[str]]:
    """
    Pick the winner from the fused probability.

    Returns:
        Tuple of (winner name, tie-break warning or None)
    """
    if final_p1 > NEUTRAL_PROBABILITY + NEUTRAL_EPSILON:
        return context.player_a_name, None
    if final_p1 < NEUTRAL_PROBABILITY - NEUTRAL_EPSILON:
        return context.player_b_name, None

    winner, reason = pick_by_odds_or_seed(
        context.player_a_name,
        context.player_b_name,
        context.home_odd,
        context.away_odd,
        tiebreak_seed(context),
    )
    return winner, ODDS_TIEBREAK if reason == 'odds' else SEED_TIEBREAK


class TennisPredictor:
    """
    Entry point for match predictions.

    It:
    1. Aggregates both players' histories
    2. Runs the four models and the weighted ensemble
    3. Resolves the winner (with tie-break on a neutral result)
    4. Scores confidence and collects warnings

    Usage:
        predictor = TennisPredictor()
        prediction = predictor.predict_match(context, home_history, away_history)
    """

    def __init__(
        self,
        verbose: bool = True,
        requested_per_player: int = REQUESTED_MATCHES_PER_PLAYER,
        combiner: Optional[EnsembleCombiner] = None
    ):
        """
        Initialize the predictor.

        Args:
            verbose: Whether to print progress messages
            requested_per_player: History length each player was requested with
            combiner: Ensemble to use (default: all four models)
        """
        self.verbose = verbose
        self.requested_per_player = requested_per_player
        self._aggregator = HistoryAggregator()
        self._combiner = combiner or EnsembleCombiner()

    def _log(self, message: str):
        """Print message if verbose mode is enabled."""
        if self.verbose:
            print(message)

    def predict_match(
        self,
        context: MatchContext,
        home_history: PlayerHistory,
        away_history: PlayerHistory
    ) -> Dict[str, Any]:
        """
        Predict a single match.

        Args:
            context: The match to predict
            home_history: History of player A
            away_history: History of player B

        Returns:
            Prediction dictionary
        """
        self._log(f"\nPredicting {context.player_a_name} vs {context.player_b_name}...")

        home = self._aggregator.aggregate(home_history)
        away = self._aggregator.aggregate(away_history)
        self._log(f"   Usable matches: {home.n_matches} / {away.n_matches}")

        result = self._combiner.run(home, away)
        self._log(f"   Active models: {result.active_models}, final P1: {result.final_p1:.1f}")

        warnings = []
        for history in (home_history, away_history):
            name = history.player_name or 'unknown'
            warnings.extend(f"{name}: {error}" for error in history.errors)
        warnings.extend(result.warnings)

        winner, tiebreak = resolve_winner(result.final_p1, context)
        if tiebreak:
            warnings.append(tiebreak)
            self._log(f"   Neutral result, tie-break ({tiebreak})")

        requested = self.requested_per_player
        if home.n_matches < requested or away.n_matches < requested:
            warnings.append(
                f"history_coverage=A {home.n_matches}/{requested} B {away.n_matches}/{requested}"
            )

        modules = build_modules(result)
        confidence = compute_confidence(
            final_p1=result.final_p1,
            model_probabilities=[result.probability(model_id) for model_id in MODEL_IDS],
            active_models=result.active_models,
            comparison_coverage=result.comparison_coverage,
            rows_a=home.n_matches,
            rows_b=away.n_matches,
            requested_per_player=requested,
        )

        return {
            'created_at': datetime.now().isoformat(timespec='seconds'),
            'match_url': context.match_url,
            'tournament': context.tournament,
            'player_a_name': context.player_a_name,
            'player_b_name': context.player_b_name,
            'odds': {
                'home': context.home_odd,
                'away': context.away_odd,
            },
            'predicted_winner': winner,
            'confidence': confidence,
            'rating': {
                'player_a': result.final_p1,
                'player_b': 100 - result.final_p1,
            },
            'history_coverage': {
                'requested_per_player': requested,
                'player_a_collected': home.n_matches,
                'player_b_collected': away.n_matches,
            },
            'modules': [asdict(module) for module in modules],
            'ensemble': build_ensemble_meta(modules, result.final_p1),
            'result': result.to_dict(),
            'warnings': warnings,
        }

    def print_prediction(self, prediction: Dict[str, Any]):
        """
        Print a prediction in a formatted way.

        Args:
            prediction: Prediction dictionary from predict_match
        """
        result = prediction['result']

        print("\n" + "=" * 70)
        print(f"{prediction['player_a_name']} vs {prediction['player_b_name']}")
        print("=" * 70)
        if prediction.get('tournament'):
            print(f"  Tournament: {prediction['tournament']}")
        odds = prediction['odds']
        if odds['home'] and odds['away']:
            print(f"  Odds: {odds['home']:.2f} - {odds['away']:.2f}")

        print()
        print(f"  {'Model':<20} {'P1':>8} {'Weight':>8} {'Reliab.':>8}")
        print("  " + "-" * 46)
        for model_id in MODEL_IDS:
            p1 = result[f"{model_id}_p1"]
            p1_text = f"{p1:.1f}" if p1 is not None else "-"
            weight = result['weights'][model_id]
            reliability = result['reliabilities'][model_id]
            print(f"  {MODEL_NAMES[model_id]:<20} {p1_text:>8} {weight:>8.1%} {reliability:>8.2f}")
        print("  " + "-" * 46)
        print(f"  {'ENSEMBLE':<20} {result['final_p1']:>8.1f}")

        print()
        print(f"  Winner: {prediction['predicted_winner']}  (confidence {prediction['confidence']:.0%})")
        coverage = prediction['history_coverage']
        print(f"  History: A {coverage['player_a_collected']}/{coverage['requested_per_player']}, "
              f"B {coverage['player_b_collected']}/{coverage['requested_per_player']}")

        if prediction['warnings']:
            print(f"  Warnings: {', '.join(prediction['warnings'])}")


def save_predictions(predictions: List[Dict[str, Any]], path: str = PREDICTIONS_FILE):
    """Write predictions to a JSON file."""
    with open(path, 'w') as f:
        json.dump(predictions, f, indent=2)
