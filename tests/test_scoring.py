import pytest

from tennis_predictor.ensemble import EnsembleResult
from tennis_predictor.scoring import (
    brier_score, format_accuracy, is_correct_pick, pick_side, summarize_component_hits
)


def result(**probabilities):
    return EnsembleResult.from_dict(probabilities)


class TestPicks:
    def test_pick_side(self):
        assert pick_side(61.0) == 'A'
        assert pick_side(50.0) == 'A'
        assert pick_side(49.9) == 'B'
        assert pick_side(None) is None
        assert pick_side(float('nan')) is None

    def test_is_correct_pick(self):
        assert is_correct_pick(70.0, 'A') is True
        assert is_correct_pick(70.0, 'B') is False
        assert is_correct_pick(None, 'A') is None
        assert is_correct_pick(70.0, '') is None

    def test_brier_score(self):
        assert brier_score(70.0, 'A') == pytest.approx(0.09)
        assert brier_score(70.0, 'B') == pytest.approx(0.49)
        assert brier_score(None, 'B') is None


def test_summarize_component_hits():
    records = [
        {'result': result(logreg_p1=70, markov_p1=40, pca_p1=55, final_p1=60), 'winner_side': 'A'},
        {'result': result(logreg_p1=65, markov_p1=30, final_p1=45), 'winner_side': 'B'},
    ]

    summary = summarize_component_hits(records)

    assert summary['logreg']['hit'] == 1
    assert summary['logreg']['total'] == 2
    assert summary['logreg']['rate'] == pytest.approx(50.0)
    assert summary['markov']['hit'] == 1
    assert summary['pca'] == {'hit': 1, 'total': 1, 'rate': 100.0, 'brier': pytest.approx(0.2025)}
    assert summary['bradley'] == {'hit': 0, 'total': 0, 'rate': None, 'brier': None}
    assert summary['final']['hit'] == 2
    assert summary['final']['brier'] == pytest.approx((0.16 + 0.2025) / 2)


def test_summary_on_engine_results(strong_history, weak_history):
    from tennis_predictor.ensemble import run_models

    records = [
        {'result': run_models(strong_history, weak_history), 'winner_side': 'A'},
        {'result': run_models(weak_history, strong_history), 'winner_side': 'B'},
    ]

    summary = summarize_component_hits(records)

    assert summary['final']['rate'] == 100.0
    assert summary['bradley']['rate'] == 100.0


def test_format_accuracy():
    assert format_accuracy({'hit': 3, 'total': 4, 'rate': 75.0}) == '3/4 (75.0%)'
    assert format_accuracy({'hit': 0, 'total': 0, 'rate': None}) == '0/0 (-)'
