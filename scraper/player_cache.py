# scraper/player_cache.py

import logging
from pathlib import Path
from typing import Dict, Iterable, List

from errors import ExtractionError, LogicError
from models import GlobalPlace, Region

logger = logging.getLogger(__name__)


class PlayerCache:
    """
    Leaderboard places -> Hotslogs player ids.

    Filled by FetchGrandmasters (or a players file) and read by FetchLastMatch.
    Entries are only ever overwritten, never removed, so a shorter leaderboard
    leaves the higher ranks of the previous one in place.
    """

    def __init__(self):
        self._players: Dict[GlobalPlace, int] = {}

    def merge(self, region: Region, player_ids: Iterable[int]) -> int:
        """Write ids at ranks 0..N-1 of `region`. Returns N."""
        count = 0
        for rank, player_id in enumerate(player_ids):
            self._players[GlobalPlace(region, rank)] = player_id
            count += 1
        logger.info(f"Player cache: merged {count} {region.name} players "
                    f"({self.region_size(region)} known)")
        return count

    def lookup(self, place: GlobalPlace) -> int:
        try:
            return self._players[place]
        except KeyError:
            raise LogicError(
                f"No player cached for {place}; FetchGrandmasters({place.region.name}) must run first"
            )

    def region_size(self, region: Region) -> int:
        """Number of ranks known for a region (highest cached rank + 1)"""
        ranks = [p.rank for p in self._players if p.region == region]
        return max(ranks) + 1 if ranks else 0

    def snapshot(self) -> Dict[GlobalPlace, int]:
        return dict(self._players)

    def __len__(self):
        return len(self._players)

    def __contains__(self, place):
        return place in self._players


class ScanCursors:
    """Current FetchLastMatch position per region"""

    def __init__(self, cursors: Dict[Region, GlobalPlace] = None):
        self._cursors: Dict[Region, GlobalPlace] = dict(cursors or {})

    def current(self, default: GlobalPlace) -> GlobalPlace:
        return self._cursors.get(default.region, default)

    def set(self, place: GlobalPlace):
        self._cursors[place.region] = place

    def advance(self, place: GlobalPlace, size: int) -> GlobalPlace:
        nxt = place.successor(size)
        self._cursors[place.region] = nxt
        return nxt

    def snapshot(self) -> Dict[Region, GlobalPlace]:
        return dict(self._cursors)


def load_players_file(path: str) -> List[int]:
    """Read player ids, one per line, in rank order"""
    players = []
    p = Path(path)
    with open(p, 'r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                players.append(int(line))
            except ValueError:
                raise ExtractionError(f"{p.name}:{line_no}: not a player id: '{line}'")
    logger.info(f"Loaded {len(players)} players from {path}")
    return players
