"""
Markov chain model over serve/return exchanges.
"""

import math
from typing import Optional

import numpy as np

from .base import BaseModel, clamp
from ..aggregation import PlayerAggregate
from ..comparison import ComparisonScore
from ..config import (
    MARKOV_ITERATIONS, MARKOV_DEFAULT_SERVE, MARKOV_DEFAULT_RETURN, MARKOV_BLEND,
    NEUTRAL_PROBABILITY
)
from ..metrics import MetricKey


def normalize_rate(value: Optional[float], default: float) -> float:
    """Map a rate given as 0-1 or 0-100 onto [0, 1]; missing or non-positive -> default."""
    if value is None or not math.isfinite(value) or value <= 0:
        return default
    normalized = value / 100 if value > 1 else value
    return clamp(normalized, 0.0, 1.0)


class MarkovChainModel(BaseModel):
    """
    Four-state chain over (server, point outcome).

    States are [A serve won, A serve lost, B serve won, B serve lost].
    Serve alternates every step: leaving an A-serving state the next
    state is drawn with B's return rate, leaving a B-serving state with
    A's return rate. The chain is iterated a fixed number of times and
    the mass on states favoring A (A won on serve, B lost on serve) is
    read off, then blended with the plain comparison share.
    """

    def __init__(
        self,
        iterations: int = MARKOV_ITERATIONS,
        blend: float = MARKOV_BLEND
    ):
        super().__init__(
            name="Markov Chain",
            model_id="markov"
        )
        self.iterations = iterations
        self.blend = blend

    @staticmethod
    def transition_matrix(ret1: float, ret2: float) -> np.ndarray:
        return np.array([
            [0.0, 0.0, ret2, 1 - ret2],
            [0.0, 0.0, ret2, 1 - ret2],
            [ret1, 1 - ret1, 0.0, 0.0],
            [ret1, 1 - ret1, 0.0, 0.0],
        ])

    def chain_probability(
        self,
        serve1: float,
        serve2: float,
        ret1: float,
        ret2: float
    ) -> float:
        """Raw chain probability for A, in percent."""
        matrix = self.transition_matrix(ret1, ret2)
        state = np.array([
            0.5 * serve1,
            0.5 * (1 - serve1),
            0.5 * serve2,
            0.5 * (1 - serve2),
        ])

        for _ in range(self.iterations):
            state = state @ matrix

        raw_home = state[0] + state[3]
        raw_away = state[1] + state[2]
        total = raw_home + raw_away
        if total <= 0:
            return NEUTRAL_PROBABILITY
        return float(raw_home / total * 100)

    def predict(
        self,
        home: PlayerAggregate,
        away: PlayerAggregate,
        comparison: ComparisonScore
    ) -> Optional[float]:
        serve1 = normalize_rate(home.means.get(MetricKey.FIRST_SERVE_POINTS_WON), MARKOV_DEFAULT_SERVE)
        serve2 = normalize_rate(away.means.get(MetricKey.FIRST_SERVE_POINTS_WON), MARKOV_DEFAULT_SERVE)
        ret1 = normalize_rate(home.means.get(MetricKey.FIRST_SERVE_RETURN_POINTS_WON), MARKOV_DEFAULT_RETURN)
        ret2 = normalize_rate(away.means.get(MetricKey.FIRST_SERVE_RETURN_POINTS_WON), MARKOV_DEFAULT_RETURN)

        markov_p1 = self.chain_probability(serve1, serve2, ret1, ret2)

        score_p1 = comparison.probability()
        if score_p1 is None:
            score_p1 = NEUTRAL_PROBABILITY

        blended = markov_p1 * self.blend + score_p1 * (1 - self.blend)
        if not math.isfinite(blended):
            return None
        return clamp(blended, 0, 100)
