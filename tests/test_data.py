import json

import pytest

from tennis_predictor.data import HistoryLoader, MetricValue, player_history_from_dict


class TestMetricValueParse:
    def test_percent_with_ratio(self):
        value = MetricValue.parse('64% (32/50)')
        assert value.percent == 64.0
        assert value.made == 32.0
        assert value.total == 50.0

    def test_ratio_only(self):
        value = MetricValue.parse('32 / 50')
        assert value.percent is None
        assert (value.made, value.total) == (32.0, 50.0)

    def test_percent_only(self):
        assert MetricValue.parse('71.5%').percent == 71.5

    def test_plain_number(self):
        assert MetricValue.parse('7').percent == 7.0

    def test_whitespace_is_normalized(self):
        assert MetricValue.parse('  64%   (32/50) ').raw == '64% (32/50)'

    @pytest.mark.parametrize('raw', ['', '-', '--', 'N/A', None, 'unknown'])
    def test_empty_or_unknown(self, raw):
        value = MetricValue.parse(raw)
        assert value.percent is None
        assert value.made is None
        assert value.total is None


class TestMetricValueFromJson:
    def test_number(self):
        assert MetricValue.from_json(12).percent == 12.0

    def test_object(self):
        value = MetricValue.from_json({'percent': 64, 'made': 32, 'total': 50})
        assert (value.percent, value.made, value.total) == (64.0, 32.0, 50.0)

    def test_bool_is_rejected(self):
        with pytest.raises(ValueError):
            MetricValue.from_json(True)


def test_player_history_from_dict():
    history = player_history_from_dict({
        'player_name': 'Alpha',
        'profile_url': 'https://example.com/player/101',
        'errors': ['one match without stats'],
        'matches': [
            {
                'match_url': 'https://example.com/match/1',
                'rows': [
                    {'metric_key': 'aces', 'player_value': '7', 'opponent_value': '3'},
                    {'metric_label': '1st Serve Points Won', 'player_value': '70% (35/50)'},
                ],
            },
        ],
    })
    assert history.player_name == 'Alpha'
    assert history.errors == ('one match without stats',)
    assert len(history.matches) == 1
    rows = history.matches[0].rows
    assert rows[0].player_value.percent == 7.0
    assert rows[1].metric_label == '1st Serve Points Won'
    assert rows[1].player_value.total == 50.0


def test_player_history_must_be_object():
    with pytest.raises(ValueError):
        player_history_from_dict(['not', 'a', 'history'])


@pytest.mark.parametrize('document', [
    {'matches': None},
    {'matches': {'match_url': 'm1'}},
    {'matches': ['m1']},
    {'matches': [{'rows': None}]},
    {'matches': [{'rows': ['oops']}]},
    {'matches': [{'rows': [], 'warnings': 'late'}]},
    {'errors': None},
])
def test_malformed_history_raises_value_error(document):
    with pytest.raises(ValueError):
        player_history_from_dict(dict(document, player_name='Alpha'))


def test_missing_lists_are_empty():
    history = player_history_from_dict({'player_name': 'Alpha', 'matches': [{'match_url': 'm1'}]})
    assert history.matches[0].rows == ()
    assert history.errors == ()


class TestHistoryLoader:
    def test_load_match(self, tmp_path):
        path = tmp_path / 'match.json'
        path.write_text(json.dumps({
            'context': {
                'match_url': 'https://example.com/match/9',
                'tournament': 'Example Open',
                'odds': {'home': 1.6, 'away': 2.3},
            },
            'home': {'player_name': 'Alpha', 'matches': []},
            'away': {'player_name': 'Bravo', 'matches': []},
        }))

        context, home, away = HistoryLoader().load_match(str(path))

        assert context.player_a_name == 'Alpha'
        assert context.player_b_name == 'Bravo'
        assert context.home_odd == 1.6
        assert context.away_odd == 2.3
        assert home.player_name == 'Alpha'
        assert away.matches == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            HistoryLoader().load_player_history(str(tmp_path / 'missing.json'))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"player_name": ')
        with pytest.raises(ValueError):
            HistoryLoader().load_player_history(str(path))

    def test_match_without_sections(self, tmp_path):
        path = tmp_path / 'match.json'
        path.write_text(json.dumps({'context': {}}))
        with pytest.raises(ValueError):
            HistoryLoader().load_match(str(path))

    def test_malformed_match_file(self, tmp_path):
        path = tmp_path / 'match.json'
        path.write_text(json.dumps({
            'context': {'odds': [1.5, 2.5]},
            'home': {'player_name': 'Alpha', 'matches': [{'rows': ['oops']}]},
            'away': {'player_name': 'Bravo'},
        }))
        with pytest.raises(ValueError, match='Malformed stat row for Alpha'):
            HistoryLoader().load_match(str(path))

    def test_malformed_context(self, tmp_path):
        path = tmp_path / 'match.json'
        path.write_text(json.dumps({
            'context': {'odds': [1.5, 2.5]},
            'home': {'player_name': 'Alpha'},
            'away': {'player_name': 'Bravo'},
        }))
        with pytest.raises(ValueError, match='odds'):
            HistoryLoader().load_match(str(path))

    def test_load_audit_cases(self, tmp_path):
        path = tmp_path / 'cases.json'
        path.write_text(json.dumps({'cases': [
            {
                'home': {'player_name': 'Alpha'},
                'away': {'player_name': 'Bravo'},
                'oracle': {'final_p1': 50},
            },
        ]}))

        cases = HistoryLoader().load_audit_cases(str(path))

        assert len(cases) == 1
        assert cases[0]['label'] == 'Alpha vs Bravo'
        assert cases[0]['oracle'] == {'final_p1': 50}

    def test_audit_case_without_oracle(self, tmp_path):
        path = tmp_path / 'cases.json'
        path.write_text(json.dumps([{'home': {}, 'away': {}}]))
        with pytest.raises(ValueError):
            HistoryLoader().load_audit_cases(str(path))

    def test_load_outcome_cases(self, tmp_path):
        path = tmp_path / 'finished.json'
        path.write_text(json.dumps({'matches': [
            {
                'label': 'final',
                'home': {'player_name': 'Alpha'},
                'away': {'player_name': 'Bravo'},
                'winner_side': 'b',
            },
        ]}))

        cases = HistoryLoader().load_outcome_cases(str(path))

        assert cases[0]['label'] == 'final'
        assert cases[0]['winner_side'] == 'B'
        assert cases[0]['home'].player_name == 'Alpha'

    def test_outcome_case_without_winner(self, tmp_path):
        path = tmp_path / 'finished.json'
        path.write_text(json.dumps([{'home': {}, 'away': {}}]))
        with pytest.raises(ValueError):
            HistoryLoader().load_outcome_cases(str(path))
