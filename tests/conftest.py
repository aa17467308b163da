import pytest

from tennis_predictor.aggregation import PlayerAggregate
from tennis_predictor.data import (
    HistoricalMatch, MatchContext, MetricValue, PlayerHistory, TechStatRow
)
from tennis_predictor.metrics import COUNT_METRICS, MetricKey


STRONG_PLAYER = {
    'aces': 12, 'double_faults': 2, 'first_serve': 68,
    'first_serve_points_won': 75, 'second_serve_points_won': 58,
    'break_points_saved': 70, 'break_points_faced': 3,
    'service_games_played': 12, 'service_games_won': 90,
    'total_service_points_won': 68, 'first_serve_return_points_won': 40,
    'second_serve_return_points_won': 55, 'break_points_converted': 50,
    'return_games_played': 12, 'return_games_won': 40,
    'return_points_won': 45, 'total_points_won': 58, 'total_games_won': 65,
}

WEAK_PLAYER = {
    'aces': 3, 'double_faults': 6, 'first_serve': 52,
    'first_serve_points_won': 55, 'second_serve_points_won': 40,
    'break_points_saved': 40, 'break_points_faced': 9,
    'service_games_played': 10, 'service_games_won': 60,
    'total_service_points_won': 50, 'first_serve_return_points_won': 25,
    'second_serve_return_points_won': 38, 'break_points_converted': 25,
    'return_games_played': 10, 'return_games_won': 15,
    'return_points_won': 30, 'total_points_won': 42, 'total_games_won': 35,
}


def format_value(key, value):
    if MetricKey(key) in COUNT_METRICS:
        return str(value)
    return f"{value}%"


def build_match(stats, match_url='https://example.com/match/1'):
    rows = tuple(
        TechStatRow(metric_key=key, player_value=MetricValue.parse(format_value(key, value)))
        for key, value in stats.items()
    )
    return HistoricalMatch(match_url=match_url, rows=rows)


def build_history(name, base_stats, n_matches=5, jitter=0.5, profile_url=None, errors=()):
    """History of n matches around base_stats, each match shifted a little."""
    matches = []
    for i in range(n_matches):
        shift = (i - n_matches // 2) * jitter
        stats = {
            key: (value + (i % 2) if MetricKey(key) in COUNT_METRICS else value + shift)
            for key, value in base_stats.items()
        }
        matches.append(build_match(stats, match_url=f"https://example.com/{name}/{i}"))
    return PlayerHistory(
        player_name=name,
        matches=tuple(matches),
        profile_url=profile_url,
        errors=tuple(errors),
    )


def build_aggregate(means, n_rows=0, player_id=None):
    """Aggregate with the given means and n identical match rows."""
    means = {MetricKey(key): float(value) for key, value in means.items()}
    return PlayerAggregate(
        means=means,
        match_rows=tuple(dict(means) for _ in range(n_rows)),
        player_id=player_id,
    )


@pytest.fixture
def strong_history():
    return build_history('Alpha', STRONG_PLAYER, profile_url='https://example.com/player/101')


@pytest.fixture
def weak_history():
    return build_history('Bravo', WEAK_PLAYER, profile_url='https://example.com/player/202')


@pytest.fixture
def match_context():
    return MatchContext(
        match_url='https://example.com/match/alpha-bravo',
        player_a_name='Alpha',
        player_b_name='Bravo',
        tournament='Example Open',
    )


@pytest.fixture
def history_builder():
    return build_history


@pytest.fixture
def aggregate_builder():
    return build_aggregate


@pytest.fixture
def strong_stats():
    return dict(STRONG_PLAYER)


@pytest.fixture
def weak_stats():
    return dict(WEAK_PLAYER)
