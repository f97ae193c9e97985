# tests/helpers.py

from datetime import datetime
from typing import List, Sequence, Tuple

from errors import StoreError

HISTORY_DATE = '3/15/2016 9:42:13 PM'


def make_leaderboard_html(player_ids: Sequence[int]) -> bytes:
    """Rankings grid with one rgRow/rgAltRow per player, like Hotslogs renders it."""
    rows = []
    for rank, player_id in enumerate(player_ids):
        cls = 'rgRow' if rank % 2 == 0 else 'rgAltRow'
        rows.append(
            f'<tr class="{cls}" id="ctl00_MainContent_RadGridRankings_ctl00__{rank}">'
            f'<td style="display:none;">{player_id}</td>'
            f'<td>{rank + 1}</td>'
            f'<td><a href="/Player/Profile?PlayerID={player_id}">Player{player_id}</a></td>'
            f'<td>{3000 - rank}</td>'
            f'</tr>'
        )
    return (
        '<html><body><table class="rgMasterTable">'
        '<thead><tr class="rgHeader"><th>PlayerID</th><th>Rank</th><th>Name</th><th>MMR</th></tr></thead>'
        f'<tbody>{"".join(rows)}</tbody>'
        '</table></body></html>'
    ).encode('utf-8')


def make_history_html(matches: Sequence[Tuple[int, str]]) -> bytes:
    """Match history grid; `matches` is (replay id, played-at text), newest first."""
    rows = []
    for i, (match_id, played) in enumerate(matches):
        cells = ['<td>&nbsp;</td>', f'<td>{match_id}</td>']
        cells += [f'<td>filler{c}</td>' for c in range(2, 10)]
        cells.append(f'<td>{played}</td>')
        rows.append(f'<tr class="rgRow" id="__{i}">{"".join(cells)}</tr>')
    return (
        '<html><body><table><tbody>'
        f'{"".join(rows)}'
        '</tbody></table></body></html>'
    ).encode('utf-8')


def _scoreboard_row(player_id: int, name: str, score) -> str:
    cells = ['<td class="rgGroupCol">&nbsp;</td>', f'<td style="display:none;">{player_id}</td>',
             f'<td><a href="/Player/Profile?PlayerID={player_id}">{name}</a></td>']
    cells += [f'<td>{c}</td>' for c in range(3, 21)]
    cells.append(f'<td>{score}</td>')
    return f'<tr class="rgRow">{"".join(cells)}</tr>'


def make_match_summary_html(team_one: List[Tuple[int, str, object]],
                            team_two: List[Tuple[int, str, object]]) -> bytes:
    """Scoreboard with a separator row between the two teams"""
    separator = '<tr class="rgGroupHeader"><td class="rgGroupCol"></td><td colspan="21">Team 2</td></tr>'
    rows = [_scoreboard_row(*p) for p in team_one] + [separator] + [_scoreboard_row(*p) for p in team_two]
    return (
        '<html><body><table>'
        '<tr class="rgGroupHeader"><td colspan="14">Team 1</td></tr>'
        f'{"".join(rows)}'
        '</table></body></html>'
    ).encode('utf-8')


def team(base_id: int, scores: Sequence[int], prefix: str) -> List[Tuple[int, str, int]]:
    return [(base_id + i, f'{prefix}{i}', score) for i, score in enumerate(scores)]


class FakeRequestHandler:
    """Serves canned pages keyed by request"""

    def __init__(self, leaderboards=None, histories=None, matches=None):
        self.leaderboards = leaderboards or {}
        self.histories = histories or {}
        self.matches = matches or {}
        self.calls = []

    def _serve(self, pages, key, kind):
        self.calls.append((kind, key))
        page = pages[key]
        if isinstance(page, Exception):
            raise page
        return page

    def fetch_leaderboard(self, region):
        return self._serve(self.leaderboards, region, 'leaderboard')

    def fetch_history(self, player_id):
        return self._serve(self.histories, player_id, 'history')

    def fetch_match(self, match_id):
        return self._serve(self.matches, match_id, 'match')


class FakeDatabase:
    """
    In-memory store. `fail` maps an operation name to how many of its next
    calls raise StoreError.
    """

    def __init__(self, matches=None, cursors=None):
        self.matches = dict(matches or {})
        self.cursors = dict(cursors or {})
        self.fail = {}
        self.calls = []
        self.stats_calls = 0
        self.reconnect_calls = 0
        self.closed = False

    def _maybe_fail(self, op):
        self.calls.append(op)
        if self.fail.get(op, 0) > 0:
            self.fail[op] -= 1
            raise StoreError(f"{op}: connection refused")

    def match_exists(self, match_id):
        self._maybe_fail('match_exists')
        return match_id in self.matches

    def insert_match(self, record):
        self._maybe_fail('insert_match')
        if record.match_id in self.matches:
            return False
        self.matches[record.match_id] = record
        return True

    def record_stats(self):
        self._maybe_fail('record_stats')
        self.stats_calls += 1

    def reconnect(self):
        self.reconnect_calls += 1
        self._maybe_fail('reconnect')

    def persist_cursor(self, place):
        self._maybe_fail('persist_cursor')
        self.cursors[place.region] = place

    def load_cursors(self):
        self._maybe_fail('load_cursors')
        return dict(self.cursors)

    def close(self):
        self.closed = True


def played(text: str = HISTORY_DATE) -> datetime:
    return datetime.strptime(text, '%m/%d/%Y %I:%M:%S %p')
