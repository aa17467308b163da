"""
Canonical metric keys and value normalization for match statistics.
"""

import math
import re
from enum import Enum
from typing import Dict, Optional, Tuple

from .data import MetricValue


class MetricKey(str, Enum):
    """Closed set of tennis statistics the models understand."""

    ACES = 'aces'
    DOUBLE_FAULTS = 'double_faults'
    FIRST_SERVE = 'first_serve'
    FIRST_SERVE_POINTS_WON = 'first_serve_points_won'
    SECOND_SERVE_POINTS_WON = 'second_serve_points_won'
    BREAK_POINTS_SAVED = 'break_points_saved'
    BREAK_POINTS_FACED = 'break_points_faced'
    SERVICE_GAMES_PLAYED = 'service_games_played'
    SERVICE_GAMES_WON = 'service_games_won'
    TOTAL_SERVICE_POINTS_WON = 'total_service_points_won'
    FIRST_SERVE_RETURN_POINTS_WON = 'first_serve_return_points_won'
    SECOND_SERVE_RETURN_POINTS_WON = 'second_serve_return_points_won'
    BREAK_POINTS_CONVERTED = 'break_points_converted'
    RETURN_GAMES_PLAYED = 'return_games_played'
    RETURN_GAMES_WON = 'return_games_won'
    RETURN_POINTS_WON = 'return_points_won'
    TOTAL_POINTS_WON = 'total_points_won'
    TOTAL_GAMES_WON = 'total_games_won'


# Metrics compared head-to-head (order matters for reproducible tallies)
COMPARISON_METRICS: Tuple[MetricKey, ...] = (
    MetricKey.ACES,
    MetricKey.DOUBLE_FAULTS,
    MetricKey.FIRST_SERVE,
    MetricKey.FIRST_SERVE_POINTS_WON,
    MetricKey.SECOND_SERVE_POINTS_WON,
    MetricKey.BREAK_POINTS_SAVED,
    MetricKey.BREAK_POINTS_FACED,
    MetricKey.SERVICE_GAMES_WON,
    MetricKey.RETURN_GAMES_WON,
    MetricKey.FIRST_SERVE_RETURN_POINTS_WON,
    MetricKey.SECOND_SERVE_RETURN_POINTS_WON,
    MetricKey.BREAK_POINTS_CONVERTED,
    MetricKey.TOTAL_SERVICE_POINTS_WON,
    MetricKey.RETURN_POINTS_WON,
    MetricKey.TOTAL_POINTS_WON,
    MetricKey.TOTAL_GAMES_WON,
)

# Feature columns of the PCA matrix
PCA_FEATURES: Tuple[MetricKey, ...] = tuple(MetricKey)

# Lower is better
INVERTED_METRICS = frozenset({
    MetricKey.DOUBLE_FAULTS,
    MetricKey.BREAK_POINTS_FACED,
})

# Reported as counts rather than rates
COUNT_METRICS = frozenset({
    MetricKey.ACES,
    MetricKey.DOUBLE_FAULTS,
    MetricKey.BREAK_POINTS_FACED,
    MetricKey.SERVICE_GAMES_PLAYED,
    MetricKey.RETURN_GAMES_PLAYED,
})

# Inputs of the Markov chain
MARKOV_FEATURES: Tuple[MetricKey, ...] = (
    MetricKey.FIRST_SERVE_POINTS_WON,
    MetricKey.FIRST_SERVE_RETURN_POINTS_WON,
)

KEY_ALIASES: Dict[str, MetricKey] = {
    **{key.value: key for key in MetricKey},
    'ace': MetricKey.ACES,
    'double_fault': MetricKey.DOUBLE_FAULTS,
    '1st_serve': MetricKey.FIRST_SERVE,
    '1st_serve_points_won': MetricKey.FIRST_SERVE_POINTS_WON,
    '2nd_serve_points_won': MetricKey.SECOND_SERVE_POINTS_WON,
    '1st_serve_return_points_won': MetricKey.FIRST_SERVE_RETURN_POINTS_WON,
    '2nd_serve_return_points_won': MetricKey.SECOND_SERVE_RETURN_POINTS_WON,
    'break_points_conversion': MetricKey.BREAK_POINTS_CONVERTED,
    'break_points_conversions': MetricKey.BREAK_POINTS_CONVERTED,
    'total_return_points_won': MetricKey.RETURN_POINTS_WON,
}

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace and trim."""
    return ' '.join(str(value or '').split())


def metric_label_to_key(label: str) -> str:
    """Turn a display label like '1st Serve Points Won' into '1st_serve_points_won'."""
    return _NON_ALNUM.sub('_', normalize_whitespace(label).lower()).strip('_')


def canonical_metric_key(metric_key: str, metric_label: str = '') -> Optional[MetricKey]:
    """
    Resolve a raw key or label to a MetricKey.

    A non-empty key decides on its own; the label is only read when the
    key is blank. Anything outside the alias table resolves to None.
    """
    key = metric_label_to_key(metric_key)
    if not key:
        key = metric_label_to_key(metric_label)
    return KEY_ALIASES.get(key)


def _is_number(value: Optional[float]) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def metric_to_number(value: MetricValue, key: MetricKey) -> Optional[float]:
    """
    Convert a metric value to the scale the models work on.

    Rates end up as percentages (0-100), count metrics keep their raw count.
    An explicit percent takes precedence over a made/total pair.
    """
    is_count = key in COUNT_METRICS

    if _is_number(value.percent):
        if is_count:
            return float(value.percent)
        return value.percent * 100 if value.percent <= 1 else float(value.percent)

    if _is_number(value.made) and _is_number(value.total) and value.total > 0:
        if is_count:
            return float(value.made)
        return value.made / value.total * 100

    return None


def metric_quality(value: MetricValue) -> float:
    """Evidential weight of a value: made/total pairs beat bare percentages."""
    if _is_number(value.total) and value.total > 0:
        return 1000 + value.total
    if _is_number(value.percent):
        return 100
    return 0
