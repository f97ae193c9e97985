# scraper/parsers/hotslogs_parser.py

from bs4 import BeautifulSoup
from datetime import datetime
from typing import List, Tuple, Union
import re
import logging

from config import (
    HOTSLOGS_DATE_FORMAT, LEADERBOARD_ROW_CLASSES, LEADERBOARD_PLAYER_ID_COLUMN,
    HISTORY_MATCH_ID_COLUMN, HISTORY_PLAYED_AT_COLUMN,
    MATCH_PLAYER_ID_COLUMN, MATCH_NAME_COLUMN, MATCH_SCORE_COLUMN, TEAM_SIZE,
)
from errors import ExtractionError
from models import MatchRecord, Region

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'^[+-]?\d+')
_LETTER = re.compile(r'[^\W\d_]')


class HotslogsParser:
    """
    Parser for Hotslogs leaderboard, match history and match summary pages.

    Hotslogs has no API, so everything here reads Telerik grid markup at fixed
    column offsets (see config.py). Any missing row or cell raises
    ExtractionError; nothing is guessed.
    """

    def _soup(self, html: Union[bytes, str]) -> BeautifulSoup:
        return BeautifulSoup(html, 'html.parser')

    def _cell(self, row, index: int, what: str):
        cells = row.find_all('td', recursive=False)
        if index >= len(cells):
            raise ExtractionError(
                f"{what}: expected column {index}, row has {len(cells)} cells"
            )
        return cells[index]

    def _cell_text(self, cell) -> str:
        text = cell.get_text(' ', strip=True)
        return re.sub(r'\s+', ' ', text).strip()

    def parse_int_cell(self, text: str) -> int:
        """Parse a numeric cell. Hotslogs renders some stats as "(N)", so one
        leading parenthesis is dropped first."""
        raw = text.strip()
        if raw.startswith('('):
            raw = raw[1:]
        m = _LEADING_INT.match(raw)
        if not m or _LETTER.search(raw[m.end():]):
            raise ExtractionError(f"Expected a number, got '{text}'")
        return int(m.group(0))

    def parse_played_at(self, text: str) -> datetime:
        try:
            return datetime.strptime(text.strip(), HOTSLOGS_DATE_FORMAT)
        except ValueError as e:
            raise ExtractionError(f"Bad match date '{text}': {e}") from e

    def format_played_at(self, played_at: datetime) -> str:
        return played_at.strftime(HOTSLOGS_DATE_FORMAT)

    def extract_leaderboard(self, html: Union[bytes, str]) -> List[int]:
        """Player ids from a rankings page, in rank order"""
        soup = self._soup(html)
        rows = soup.find_all('tr', class_=LEADERBOARD_ROW_CLASSES)
        if not rows:
            raise ExtractionError("Leaderboard: no rgRow/rgAltRow rows found")

        players = []
        for rank, row in enumerate(rows):
            cell = self._cell(row, LEADERBOARD_PLAYER_ID_COLUMN, f"Leaderboard row {rank}")
            players.append(self.parse_int_cell(self._cell_text(cell)))

        logger.debug(f"Extracted {len(players)} leaderboard players")
        return players

    def extract_last_match(self, html: Union[bytes, str],
                           cursor_index: int) -> Tuple[int, datetime]:
        """(match id, played at) of the `cursor_index`-th row of a match history page"""
        if cursor_index < 0:
            raise ExtractionError(f"History row index must be >= 0, got {cursor_index}")

        soup = self._soup(html)
        row = soup.find('tr', id=f'__{cursor_index}')
        if row is None:
            raise ExtractionError(f"Match history: row __{cursor_index} not found")

        what = f"Match history row {cursor_index}"
        match_id = self.parse_int_cell(
            self._cell_text(self._cell(row, HISTORY_MATCH_ID_COLUMN, what))
        )
        played_at = self.parse_played_at(
            self._cell_text(self._cell(row, HISTORY_PLAYED_AT_COLUMN, what))
        )
        return match_id, played_at

    def _scoreboard_rows(self, soup: BeautifulSoup) -> list:
        """Both teams' rows; the single separator row between them is dropped"""
        entry = soup.find('td', attrs={'colspan': '14'})
        if entry is None:
            raise ExtractionError("Match summary: scoreboard (colspan=14) not found")

        rows = [cell.find_parent('tr') for cell in entry.find_all_next('td', class_='rgGroupCol')]
        needed = TEAM_SIZE * 2 + 1
        if len(rows) < needed or any(r is None for r in rows[:needed]):
            raise ExtractionError(
                f"Match summary: expected {needed} scoreboard rows, found {len(rows)}"
            )
        return rows[:TEAM_SIZE] + rows[TEAM_SIZE + 1:needed]

    def _scoreboard_player(self, row, position: int) -> Tuple[int, str, int]:
        what = f"Scoreboard row {position}"
        name = self._cell_text(self._cell(row, MATCH_NAME_COLUMN, what))
        if not name:
            raise ExtractionError(f"{what}: empty player name")
        score = self.parse_int_cell(self._cell_text(self._cell(row, MATCH_SCORE_COLUMN, what)))
        player_id = self.parse_int_cell(
            self._cell_text(self._cell(row, MATCH_PLAYER_ID_COLUMN, what))
        )
        return score, name, player_id

    def extract_match_summary(self, html: Union[bytes, str], match_id: int,
                              region: Region, played_at: datetime) -> MatchRecord:
        """
        Build a MatchRecord from a match summary page.

        The page does not say which team won. The score column is taken as
        monotonic with the outcome for the two boundary players, so after
        sorting all ten (score, name) pairs the lowest is the loser and the
        highest the winner.
        """
        soup = self._soup(html)
        players = sorted(
            self._scoreboard_player(row, i)
            for i, row in enumerate(self._scoreboard_rows(soup))
        )
        _, loser_name, loser_id = players[0]
        _, winner_name, winner_id = players[-1]

        return MatchRecord(
            match_id=match_id,
            played_at=played_at,
            winner_id=winner_id,
            winner_name=winner_name,
            loser_id=loser_id,
            loser_name=loser_name,
            region=region,
        )
