"""
Scoring of predictions against actual match outcomes.
"""

import math
from typing import Dict, List, Any, Optional

from .config import NEUTRAL_PROBABILITY
from .ensemble import EnsembleResult
from .weights import MODEL_IDS

SIDES = ('A', 'B')


def pick_side(p1: Optional[float]) -> Optional[str]:
    """
    Side picked by a probability for player A.

    Returns:
        'A' for p1 >= 50, 'B' below, None if p1 is missing
    """
    if p1 is None or not math.isfinite(p1):
        return None
    return 'A' if p1 >= NEUTRAL_PROBABILITY else 'B'


def is_correct_pick(p1: Optional[float], winner_side: str) -> Optional[bool]:
    """Whether the probability picked the actual winner; None if it picked nothing."""
    side = pick_side(p1)
    if side is None or winner_side not in SIDES:
        return None
    return side == winner_side


def brier_score(p1: Optional[float], winner_side: str) -> Optional[float]:
    """
    Squared error of the forecast.

    Args:
        p1: Probability of player A winning, in percent
        winner_side: 'A' or 'B'

    Returns:
        (p - outcome)^2 in [0, 1], or None if not scorable
    """
    if p1 is None or not math.isfinite(p1) or winner_side not in SIDES:
        return None
    outcome = 1.0 if winner_side == 'A' else 0.0
    return (p1 / 100 - outcome) ** 2


def summarize_component_hits(records: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Hit rate of every model and of the fused probability.

    Args:
        records: Dicts with 'result' (EnsembleResult) and 'winner_side' ('A'/'B')

    Returns:
        Dict mapping model id (and 'final') to hit, total, rate (percent or None)
        and mean brier score (or None)
    """
    names = MODEL_IDS + ('final',)
    hits = {name: 0 for name in names}
    totals = {name: 0 for name in names}
    briers = {name: [] for name in names}

    for record in records:
        result: EnsembleResult = record['result']
        winner_side = record['winner_side']
        for name in names:
            p1 = result.final_p1 if name == 'final' else result.probability(name)
            correct = is_correct_pick(p1, winner_side)
            if correct is None:
                continue
            totals[name] += 1
            hits[name] += int(correct)
            briers[name].append(brier_score(p1, winner_side))

    return {
        name: {
            'hit': hits[name],
            'total': totals[name],
            'rate': hits[name] / totals[name] * 100 if totals[name] > 0 else None,
            'brier': sum(briers[name]) / len(briers[name]) if briers[name] else None,
        }
        for name in names
    }


def format_accuracy(summary: Dict[str, Any]) -> str:
    rate = f"{summary['rate']:.1f}%" if summary['rate'] is not None else "-"
    return f"{summary['hit']}/{summary['total']} ({rate})"
