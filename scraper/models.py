# scraper/models.py

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class Region(Enum):
    """Leaderboard partitions. Values are the codes Hotslogs expects in ?Region="""
    US = 1
    EU = 2

    @classmethod
    def from_name(cls, name: str) -> 'Region':
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown region '{name}' (expected one of: "
                             f"{', '.join(r.name.lower() for r in cls)})")


@dataclass(frozen=True)
class GlobalPlace:
    """A (region, rank) coordinate on the leaderboard, used as the scan cursor."""
    region: Region
    rank: int

    def successor(self, size: int) -> 'GlobalPlace':
        """Next rank in the same region, wrapping to 0 after `size` places"""
        if size <= 0:
            return GlobalPlace(self.region, 0)
        return GlobalPlace(self.region, (self.rank + 1) % size)

    def __str__(self):
        return f"{self.region.name}#{self.rank}"


@dataclass(frozen=True)
class MatchRecord:
    match_id: int
    played_at: datetime
    winner_id: int
    winner_name: str
    loser_id: int
    loser_name: str
    region: Region


@dataclass(frozen=True)
class FetchGrandmasters:
    region: Region

    def __str__(self):
        return f"FetchGrandmasters({self.region.name})"


@dataclass(frozen=True)
class FetchLastMatch:
    place: GlobalPlace

    def __str__(self):
        return f"FetchLastMatch({self.place})"


@dataclass(frozen=True)
class FetchMatch:
    region: Region
    played_at: datetime
    match_id: int

    def __str__(self):
        return f"FetchMatch({self.region.name}, {self.match_id}, {self.played_at:%Y-%m-%d %H:%M:%S})"


Task = Union[FetchGrandmasters, FetchLastMatch, FetchMatch]
