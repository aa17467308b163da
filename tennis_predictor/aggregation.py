"""
Reduction of a player's match history to per-metric means.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .data import HistoricalMatch, PlayerHistory
from .metrics import MetricKey, canonical_metric_key, metric_quality, metric_to_number

_PLAYER_ID = re.compile(r'/player/(\d+)', re.IGNORECASE)

MetricRow = Dict[MetricKey, float]


@dataclass(frozen=True)
class PlayerAggregate:
    """
    Per-player summary consumed by the models.

    Attributes:
        means: Arithmetic mean per metric, only metrics seen at least once
        match_rows: One metric map per usable historical match, in order
        player_id: Numeric id taken from the profile url, if any
    """

    means: Dict[MetricKey, float]
    match_rows: Tuple[MetricRow, ...]
    player_id: Optional[int] = None

    @property
    def n_matches(self) -> int:
        return len(self.match_rows)

    def has(self, key: MetricKey) -> bool:
        value = self.means.get(key)
        return value is not None and math.isfinite(value)


class HistoryAggregator:
    """Builds PlayerAggregate objects from parsed match histories."""

    def match_row(self, match: HistoricalMatch) -> MetricRow:
        """
        Pick one value per metric for a single match.

        When a metric is reported more than once (e.g. '12/20' and '60%'),
        the representation with the higher quality wins; on equal quality
        the first one is kept.
        """
        picked: Dict[MetricKey, Tuple[float, float]] = {}

        for row in match.rows:
            key = canonical_metric_key(row.metric_key, row.metric_label)
            if key is None:
                continue

            value = metric_to_number(row.player_value, key)
            if value is None or not math.isfinite(value):
                continue

            quality = metric_quality(row.player_value)
            previous = picked.get(key)
            if previous is None or quality > previous[1]:
                picked[key] = (value, quality)

        return {key: value for key, (value, _) in picked.items()}

    def aggregate(self, history: PlayerHistory) -> PlayerAggregate:
        """
        Aggregate a player's history.

        Args:
            history: Parsed historical matches of one player

        Returns:
            PlayerAggregate with means, match rows and player id
        """
        rows = tuple(
            row for row in (self.match_row(match) for match in history.matches)
            if row
        )
        return PlayerAggregate(
            means=self._metric_means(rows),
            match_rows=rows,
            player_id=extract_player_id(history.profile_url),
        )

    @staticmethod
    def _metric_means(rows: Tuple[MetricRow, ...]) -> Dict[MetricKey, float]:
        buckets: Dict[MetricKey, List[float]] = {}
        for row in rows:
            for key, value in row.items():
                if math.isfinite(value):
                    buckets.setdefault(key, []).append(value)

        return {key: float(np.mean(values)) for key, values in buckets.items() if values}


def extract_player_id(profile_url: Optional[str]) -> Optional[int]:
    """Extract the numeric id from a profile url like '.../player/9030'."""
    match = _PLAYER_ID.search(' '.join(str(profile_url or '').split()))
    if not match:
        return None
    return int(match.group(1))


def aggregate_player_history(history: PlayerHistory) -> PlayerAggregate:
    """Convenience wrapper around HistoryAggregator."""
    return HistoryAggregator().aggregate(history)
