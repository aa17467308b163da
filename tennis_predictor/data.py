"""
Data structures and loading for player match histories.
"""

import json
import math
import os
import re
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

_PERCENT_WITH_RATIO = re.compile(r'^(\d+(?:\.\d+)?)%\s*\((\d+)\s*/\s*(\d+)\)$')
_RATIO_ONLY = re.compile(r'^(\d+)\s*/\s*(\d+)$')
_PERCENT_ONLY = re.compile(r'^(\d+(?:\.\d+)?)%$')
_PLAIN_NUMBER = re.compile(r'^-?\d+(?:\.\d+)?$')
_EMPTY_VALUES = {'', '-', '--', 'n/a'}


@dataclass(frozen=True)
class MetricValue:
    """One side of a statistics row, e.g. '64% (32/50)'."""

    raw: str = ''
    percent: Optional[float] = None
    made: Optional[float] = None
    total: Optional[float] = None

    @classmethod
    def parse(cls, raw_input: Optional[str]) -> 'MetricValue':
        """
        Parse the text of a statistics cell.

        Recognized forms: '64% (32/50)', '32/50', '64%', '7'.
        Anything else keeps only the raw text.
        """
        raw = ' '.join(str(raw_input or '').split())

        if raw.lower() in _EMPTY_VALUES:
            return cls(raw=raw)

        match = _PERCENT_WITH_RATIO.match(raw)
        if match:
            return cls(
                raw=raw,
                percent=float(match.group(1)),
                made=float(match.group(2)),
                total=float(match.group(3)),
            )

        match = _RATIO_ONLY.match(raw)
        if match:
            return cls(raw=raw, made=float(match.group(1)), total=float(match.group(2)))

        match = _PERCENT_ONLY.match(raw)
        if match:
            return cls(raw=raw, percent=float(match.group(1)))

        if _PLAIN_NUMBER.match(raw):
            return cls(raw=raw, percent=float(raw))

        return cls(raw=raw)

    @classmethod
    def from_json(cls, value: Any) -> 'MetricValue':
        """Build from a raw string, a bare number or a {percent, made, total} object."""
        if value is None or isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, bool):
            raise ValueError(f"Unsupported metric value: {value!r}")
        if isinstance(value, (int, float)):
            return cls(raw=str(value), percent=float(value))
        if isinstance(value, dict):
            return cls(
                raw=str(value.get('raw', '')),
                percent=_optional_float(value.get('percent')),
                made=_optional_float(value.get('made')),
                total=_optional_float(value.get('total')),
            )
        raise ValueError(f"Unsupported metric value: {value!r}")


@dataclass(frozen=True)
class TechStatRow:
    """A single statistic from one historical match."""

    metric_key: str
    player_value: MetricValue
    opponent_value: MetricValue = field(default_factory=MetricValue)
    metric_label: str = ''
    section: str = ''


@dataclass(frozen=True)
class HistoricalMatch:
    """Parsed statistics of one past match, seen from the player's side."""

    match_url: str
    rows: Tuple[TechStatRow, ...] = ()
    player_name: str = ''
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PlayerHistory:
    """Recent match history collected for one player."""

    player_name: str
    matches: Tuple[HistoricalMatch, ...] = ()
    profile_url: Optional[str] = None
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchContext:
    """The upcoming match being predicted."""

    match_url: str
    player_a_name: str
    player_b_name: str
    tournament: Optional[str] = None
    home_odd: Optional[float] = None
    away_odd: Optional[float] = None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _list_field(data: Dict[str, Any], name: str, owner: str) -> List[Any]:
    """A JSON array field; missing means empty, anything but a list is malformed."""
    value = data.get(name, [])
    if not isinstance(value, list):
        raise ValueError(f"'{name}' of {owner} must be a list")
    return value


def _stat_row_from_dict(row: Any, owner: str) -> TechStatRow:
    if not isinstance(row, dict):
        raise ValueError(f"Malformed stat row for {owner}")
    return TechStatRow(
        metric_key=str(row.get('metric_key', '')),
        metric_label=str(row.get('metric_label', '')),
        section=str(row.get('section', '')),
        player_value=MetricValue.from_json(row.get('player_value')),
        opponent_value=MetricValue.from_json(row.get('opponent_value')),
    )


def player_history_from_dict(data: Dict[str, Any]) -> PlayerHistory:
    """
    Build a PlayerHistory from its JSON representation.

    Raises:
        ValueError: If the document is not shaped like a player history
    """
    if not isinstance(data, dict):
        raise ValueError("Player history must be a JSON object")

    player_name = str(data.get('player_name', ''))
    owner = player_name or 'unknown player'
    matches = []
    for match in _list_field(data, 'matches', owner):
        if not isinstance(match, dict):
            raise ValueError(f"Malformed match entry for {owner}")
        rows = tuple(_stat_row_from_dict(row, owner) for row in _list_field(match, 'rows', owner))
        matches.append(HistoricalMatch(
            match_url=str(match.get('match_url', '')),
            rows=rows,
            player_name=str(match.get('player_name', player_name)),
            warnings=tuple(str(w) for w in _list_field(match, 'warnings', owner)),
        ))

    return PlayerHistory(
        player_name=player_name,
        matches=tuple(matches),
        profile_url=data.get('profile_url'),
        errors=tuple(str(e) for e in _list_field(data, 'errors', owner)),
    )


def match_context_from_dict(
    data: Dict[str, Any],
    home: PlayerHistory,
    away: PlayerHistory
) -> MatchContext:
    """Build a MatchContext, falling back to the history player names."""
    if not isinstance(data, dict):
        raise ValueError("Match context must be a JSON object")
    odds = data.get('odds') or {}
    if not isinstance(odds, dict):
        raise ValueError("Match odds must be a JSON object")
    return MatchContext(
        match_url=str(data.get('match_url', '')),
        player_a_name=str(data.get('player_a_name') or home.player_name),
        player_b_name=str(data.get('player_b_name') or away.player_name),
        tournament=data.get('tournament'),
        home_odd=_optional_float(odds.get('home')),
        away_odd=_optional_float(odds.get('away')),
    )


class HistoryLoader:
    """Handles loading of player histories exported by the collection stage."""

    def __init__(self, verbose: bool = False):
        """
        Initialize history loader.

        Args:
            verbose: Whether to print loading messages
        """
        self.verbose = verbose

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def _read_json(self, path: str) -> Any:
        """
        Read a JSON document.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid JSON
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"History file '{path}' not found.")

        with open(path, 'r') as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in '{path}': {e}") from e

    def load_player_history(self, path: str) -> PlayerHistory:
        """Load a single player history file."""
        history = player_history_from_dict(self._read_json(path))
        self._log(f"Loaded {len(history.matches)} matches for {history.player_name or os.path.basename(path)}")
        return history

    def load_match(self, path: str) -> Tuple[MatchContext, PlayerHistory, PlayerHistory]:
        """
        Load a match file with 'context', 'home' and 'away' sections.

        Returns:
            Tuple of (context, home_history, away_history)
        """
        data = self._read_json(path)
        if not isinstance(data, dict) or 'home' not in data or 'away' not in data:
            raise ValueError(f"Match file '{path}' needs 'home' and 'away' sections")

        home = player_history_from_dict(data['home'])
        away = player_history_from_dict(data['away'])
        context = match_context_from_dict(data.get('context') or {}, home, away)

        self._log(f"Loaded match {context.player_a_name} vs {context.player_b_name}")
        self._log(f"  History: {len(home.matches)} / {len(away.matches)} matches")
        return context, home, away

    def load_audit_cases(self, path: str) -> List[Dict[str, Any]]:
        """
        Load audit cases: each has 'label', 'home', 'away' and 'oracle'.

        Returns:
            List of dicts with parsed histories and the raw oracle result
        """
        data = self._read_json(path)
        cases = data.get('cases') if isinstance(data, dict) else data
        if not isinstance(cases, list):
            raise ValueError(f"Audit file '{path}' must hold a list of cases")

        parsed = []
        for index, case in enumerate(cases):
            if not isinstance(case, dict) or 'oracle' not in case:
                raise ValueError(f"Audit case #{index + 1} has no 'oracle' result")
            home = player_history_from_dict(case.get('home', {}))
            away = player_history_from_dict(case.get('away', {}))
            parsed.append({
                'label': case.get('label') or f"{home.player_name} vs {away.player_name}",
                'home': home,
                'away': away,
                'oracle': case['oracle'],
            })

        self._log(f"Loaded {len(parsed)} audit cases from {os.path.basename(path)}")
        return parsed

    def load_outcome_cases(self, path: str) -> List[Dict[str, Any]]:
        """
        Load finished matches: each has 'label', 'home', 'away' and 'winner_side' ('A'/'B').

        Returns:
            List of dicts with parsed histories and the winner side
        """
        data = self._read_json(path)
        cases = data.get('matches') if isinstance(data, dict) else data
        if not isinstance(cases, list):
            raise ValueError(f"Outcome file '{path}' must hold a list of matches")

        parsed = []
        for index, case in enumerate(cases):
            winner_side = str(case.get('winner_side', '')).upper() if isinstance(case, dict) else ''
            if winner_side not in ('A', 'B'):
                raise ValueError(f"Match #{index + 1} needs winner_side 'A' or 'B'")
            home = player_history_from_dict(case.get('home', {}))
            away = player_history_from_dict(case.get('away', {}))
            parsed.append({
                'label': case.get('label') or f"{home.player_name} vs {away.player_name}",
                'home': home,
                'away': away,
                'winner_side': winner_side,
            })

        self._log(f"Loaded {len(parsed)} finished matches from {os.path.basename(path)}")
        return parsed
