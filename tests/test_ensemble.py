import pytest

from tennis_predictor.aggregation import HistoryAggregator
from tennis_predictor.config import BASE_MODEL_WEIGHTS
from tennis_predictor.data import HistoricalMatch, MetricValue, PlayerHistory, TechStatRow
from tennis_predictor.ensemble import EnsembleCombiner, EnsembleResult, run_models
from tennis_predictor.weights import MODEL_IDS, ModelWeights, WeightCalibrator


ALL_MODELS = {'logreg': 60.0, 'markov': 55.0, 'bradley': 70.0, 'pca': 65.0}
NO_MODELS = {'logreg': None, 'markov': None, 'bradley': None, 'pca': None}


class TestWeightCalibrator:
    def test_full_reliability_keeps_base_weights(self):
        weights = WeightCalibrator().calibrate(ModelWeights(1, 1, 1, 1), ALL_MODELS)
        assert weights.as_dict() == pytest.approx(BASE_MODEL_WEIGHTS)

    def test_weights_sum_to_one(self):
        reliabilities = ModelWeights(logreg=0.3, markov=0.9, bradley=0.01, pca=0.6)
        weights = WeightCalibrator().calibrate(reliabilities, ALL_MODELS)
        assert weights.total == pytest.approx(1.0)
        assert all(weights.get(model_id) > 0 for model_id in MODEL_IDS)

    def test_reliability_floor(self):
        reliabilities = ModelWeights(logreg=0.0, markov=0.0, bradley=0.0, pca=0.0)
        weights = WeightCalibrator().calibrate(reliabilities, ALL_MODELS)
        assert weights.as_dict() == pytest.approx(BASE_MODEL_WEIGHTS)

    def test_unavailable_model_gets_zero(self):
        probabilities = dict(ALL_MODELS, pca=None)
        weights = WeightCalibrator().calibrate(ModelWeights(1, 1, 1, 1), probabilities)
        assert weights.pca == 0
        assert weights.logreg == pytest.approx(0.32 / 0.8)
        assert weights.total == pytest.approx(1.0)

    def test_all_unavailable_falls_back_to_equal_split(self):
        weights = WeightCalibrator().calibrate(ModelWeights(1, 1, 1, 1), NO_MODELS)
        assert weights == ModelWeights(0.25, 0.25, 0.25, 0.25)


class TestFuse:
    def test_weighted_average(self):
        weights = ModelWeights(logreg=0.5, markov=0.5)
        assert EnsembleCombiner.fuse(ALL_MODELS, weights) == pytest.approx(57.5)

    def test_skips_unavailable_models(self):
        probabilities = dict(ALL_MODELS, logreg=None)
        weights = ModelWeights(0.25, 0.25, 0.25, 0.25)
        assert EnsembleCombiner.fuse(probabilities, weights) == pytest.approx((55 + 70 + 65) / 3)

    def test_neutral_without_models(self):
        assert EnsembleCombiner.fuse(NO_MODELS, ModelWeights.uniform()) == 50.0


def empty_history(name):
    rows = (TechStatRow(metric_key='distance_covered', player_value=MetricValue.parse('5.1')),)
    return PlayerHistory(player_name=name, matches=(HistoricalMatch(match_url='m', rows=rows),))


class TestEndToEnd:
    def test_identical_players(self, strong_history):
        result = run_models(strong_history, strong_history)

        assert result.comparison.wins_a == result.comparison.wins_b
        assert result.bradley_p1 == pytest.approx(50.0)
        assert result.logreg_p1 == pytest.approx(50.0)
        assert 0 <= result.final_p1 <= 100
        assert result.weights.total == pytest.approx(1.0)

    def test_dominant_player(self, strong_history, weak_history):
        result = run_models(strong_history, weak_history)

        assert result.final_p1 > 70
        assert result.active_models == 4
        assert result.warnings == ()
        assert result.comparison_count == 16
        assert result.comparison_coverage == 1.0
        assert result.pca_sample_size == 10
        assert result.pclass_ev == 101
        assert result.pclass_dep == 202

    def test_single_match_disables_pca(self, aggregate_builder, strong_stats, weak_stats):
        home = aggregate_builder(strong_stats, n_rows=1)
        away = aggregate_builder(weak_stats)

        result = EnsembleCombiner().run(home, away)

        assert result.pca_p1 is None
        assert 'pca_unavailable' in result.warnings
        assert result.logreg_p1 is not None
        assert result.markov_p1 is not None
        assert result.bradley_p1 is not None
        assert result.weights.pca == 0
        assert result.active_models == 3

    def test_no_comparable_metrics(self):
        result = run_models(empty_history('Alpha'), empty_history('Bravo'))

        assert result.logreg_p1 is None
        assert result.bradley_p1 is None
        assert result.markov_p1 == pytest.approx(50.0)
        assert result.final_p1 == pytest.approx(50.0)
        assert result.weights.markov == pytest.approx(1.0)
        assert result.warnings == (
            'comparison_metrics_missing',
            'logreg_unavailable',
            'bradley_unavailable',
            'pca_unavailable',
        )

    def test_all_models_unavailable(self, aggregate_builder):
        home = aggregate_builder({})
        result = EnsembleCombiner(models=[]).run(home, home)

        assert result.final_p1 == 50.0
        assert result.active_models == 0
        assert result.weights == ModelWeights.uniform()
        assert result.warnings == (
            'comparison_metrics_missing',
            'logreg_unavailable',
            'markov_unavailable',
            'bradley_unavailable',
            'pca_unavailable',
        )

    def test_swapping_players_mirrors_pairwise_models(self, strong_history, weak_history):
        forward = run_models(strong_history, weak_history)
        backward = run_models(weak_history, strong_history)

        assert forward.logreg_p1 + backward.logreg_p1 == pytest.approx(100.0)
        assert forward.bradley_p1 + backward.bradley_p1 == pytest.approx(100.0)
        assert backward.final_p1 < 50


def test_result_dict_keeps_unavailable_models_empty(strong_history):
    aggregator = HistoryAggregator()
    home = aggregator.aggregate(strong_history)
    result = EnsembleCombiner().run(home, aggregator.aggregate(PlayerHistory(player_name='Nobody')))

    restored = EnsembleResult.from_dict(result.to_dict())

    assert restored.logreg_p1 is None
    assert restored.pca_p1 == result.pca_p1
    assert restored.final_p1 == result.final_p1
    assert restored.weights == result.weights
    assert restored.warnings == result.warnings
