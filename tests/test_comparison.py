import pytest

from tennis_predictor.comparison import COMPARISON_METRICS_MISSING, ComparisonScore, ComparisonScorer
from tennis_predictor.metrics import MetricKey


def test_better_side_wins_each_metric():
    score = ComparisonScorer().score(
        {MetricKey.ACES: 10.0, MetricKey.FIRST_SERVE: 55.0},
        {MetricKey.ACES: 4.0, MetricKey.FIRST_SERVE: 65.0},
    )
    assert score == ComparisonScore(wins_a=1.0, wins_b=1.0, compared=2)


def test_inverted_metrics_prefer_lower_values():
    score = ComparisonScorer().score(
        {MetricKey.DOUBLE_FAULTS: 2.0, MetricKey.BREAK_POINTS_FACED: 3.0},
        {MetricKey.DOUBLE_FAULTS: 5.0, MetricKey.BREAK_POINTS_FACED: 8.0},
    )
    assert score.wins_a == 2.0
    assert score.wins_b == 0.0


def test_ties_split_the_point():
    score = ComparisonScorer().score({MetricKey.ACES: 5.0}, {MetricKey.ACES: 5.0})
    assert score.wins_a == 0.5
    assert score.wins_b == 0.5
    assert score.probability() == pytest.approx(50.0)


def test_only_metrics_present_on_both_sides_count(strong_stats):
    home = {MetricKey(k): float(v) for k, v in strong_stats.items()}
    away = {MetricKey.ACES: 3.0, MetricKey.TOTAL_POINTS_WON: float('nan')}

    score = ComparisonScorer().score(home, away)

    assert score.compared == 1
    assert score.wins_a + score.wins_b == score.compared


def test_non_comparison_metrics_are_ignored():
    score = ComparisonScorer().score(
        {MetricKey.SERVICE_GAMES_PLAYED: 12.0},
        {MetricKey.SERVICE_GAMES_PLAYED: 10.0},
    )
    assert score.is_empty


def test_full_comparison(strong_stats, weak_stats):
    home = {MetricKey(k): float(v) for k, v in strong_stats.items()}
    away = {MetricKey(k): float(v) for k, v in weak_stats.items()}

    score = ComparisonScorer().score(home, away)

    assert score.compared == 16
    assert score.wins_a == 16.0
    assert score.probability() == pytest.approx(100.0)
    assert score.warnings == ()


def test_empty_comparison_warns():
    score = ComparisonScorer().score({}, {})
    assert score.compared == 0
    assert score.probability() is None
    assert score.warnings == (COMPARISON_METRICS_MISSING,)
