# scraper/task_handler.py

import logging
from typing import Iterable

from errors import ExtractionError, LogicError, TransportError
from models import FetchGrandmasters, FetchLastMatch, FetchMatch, GlobalPlace, Region, Task
from parsers.hotslogs_parser import HotslogsParser
from player_cache import PlayerCache, ScanCursors

logger = logging.getLogger(__name__)


class TaskHandler:
    """
    Runs one task: fetch, extract, store.

    The cache and cursors belong to the scheduler and are passed in, so the
    handler itself keeps no state between tasks.
    """

    def __init__(self, request_handler, db, parser: HotslogsParser = None,
                 cache: PlayerCache = None, cursors: ScanCursors = None):
        self.request_handler = request_handler
        self.db = db
        self.parser = parser or HotslogsParser()
        self.cache = cache if cache is not None else PlayerCache()
        self.cursors = cursors if cursors is not None else ScanCursors()
        self.matches_inserted = 0

    def handle(self, task: Task):
        if isinstance(task, FetchGrandmasters):
            self.fetch_grandmasters(task.region)
        elif isinstance(task, FetchLastMatch):
            self.fetch_last_match(task.place)
        elif isinstance(task, FetchMatch):
            self.fetch_match(task)
        else:
            raise LogicError(f"Unknown task {task!r}")

    def seed_players(self, region: Region, player_ids: Iterable[int]) -> int:
        """Fill the cache from a list of ids instead of the leaderboard page"""
        return self.cache.merge(region, player_ids)

    def fetch_grandmasters(self, region: Region):
        html = self.request_handler.fetch_leaderboard(region)
        players = self.parser.extract_leaderboard(html)
        self.cache.merge(region, players)

    def _scan_place(self, place: GlobalPlace) -> GlobalPlace:
        """Where this region's scan actually is; restarts at the top once past the known ranks"""
        current = self.cursors.current(place)
        size = self.cache.region_size(current.region)
        if size and current.rank >= size:
            logger.info(f"Cursor {current} is past the leaderboard ({size} places), restarting at the top")
            current = GlobalPlace(current.region, 0)
            self.cursors.set(current)
        return current

    def fetch_last_match(self, place: GlobalPlace):
        current = self._scan_place(place)
        player_id = self.cache.lookup(current)

        html = self.request_handler.fetch_history(player_id)
        # An unreadable page or a dead replay must not pin the scan on one player
        try:
            match_id, played_at = self.parser.extract_last_match(html, 0)
            if self.db.match_exists(match_id):
                logger.info(f"  {current} (player {player_id}): match {match_id} already stored")
            else:
                logger.info(f"  {current} (player {player_id}): new match {match_id}")
                try:
                    self.fetch_match(FetchMatch(current.region, played_at, match_id))
                except TransportError:
                    self._advance(current)
                    raise
        except ExtractionError:
            self._advance(current)
            raise

        self._advance(current)

    def _advance(self, current: GlobalPlace):
        nxt = self.cursors.advance(current, self.cache.region_size(current.region))
        self.db.persist_cursor(nxt)
        logger.debug(f"  cursor {current} -> {nxt}")

    def fetch_match(self, task: FetchMatch):
        html = self.request_handler.fetch_match(task.match_id)
        record = self.parser.extract_match_summary(html, task.match_id, task.region, task.played_at)
        if self.db.insert_match(record):
            self.matches_inserted += 1
            logger.info(f"  Saved match {record.match_id}: {record.winner_name} beat {record.loser_name}")
