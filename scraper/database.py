# scraper/database.py

import logging
from contextlib import contextmanager
from typing import Dict

import psycopg2

from config import DATABASE_URL
from errors import StoreError
from models import GlobalPlace, MatchRecord, Region

logger = logging.getLogger(__name__)


SCHEMA = """
    CREATE TABLE IF NOT EXISTS matches (
        match_id BIGINT PRIMARY KEY,
        played_at TIMESTAMP NOT NULL,
        winner_id BIGINT NOT NULL,
        winner_name TEXT NOT NULL,
        loser_id BIGINT NOT NULL,
        loser_name TEXT NOT NULL,
        region SMALLINT NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT NOW()
    );
    CREATE TABLE IF NOT EXISTS scan_cursors (
        region SMALLINT PRIMARY KEY,
        place_rank INTEGER NOT NULL,
        updated_at TIMESTAMP NOT NULL DEFAULT NOW()
    );
    CREATE TABLE IF NOT EXISTS match_stats (
        region SMALLINT PRIMARY KEY,
        match_count INTEGER NOT NULL,
        last_played_at TIMESTAMP,
        updated_at TIMESTAMP NOT NULL DEFAULT NOW()
    );
"""


class DatabaseManager:
    """Handles all PostgreSQL operations for the scraper. Every psycopg2 error leaves as StoreError."""

    def __init__(self, database_url: str = None):
        self.database_url = database_url or DATABASE_URL
        self.conn = None

    def _get_conn(self):
        if self.conn is None or self.conn.closed:
            self.conn = psycopg2.connect(self.database_url)
        return self.conn

    def _rollback(self):
        if self.conn is not None and not self.conn.closed:
            try:
                self.conn.rollback()
            except psycopg2.Error as e:
                logger.debug(f"Rollback failed: {e}")

    @contextmanager
    def _cursor(self, what: str):
        """Cursor inside one committed transaction"""
        try:
            conn = self._get_conn()
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            self._rollback()
            raise StoreError(f"{what} failed: {e}") from e

    def close(self):
        if self.conn and not self.conn.closed:
            self.conn.close()

    def reconnect(self):
        """Drop the current connection and open a new one"""
        try:
            self.close()
        except psycopg2.Error as e:
            logger.debug(f"Closing stale connection failed: {e}")
        self.conn = None
        try:
            self._get_conn()
        except psycopg2.Error as e:
            raise StoreError(f"Reconnect failed: {e}") from e

    def ensure_schema(self):
        with self._cursor('Schema setup') as cur:
            cur.execute(SCHEMA)

    def match_exists(self, match_id: int) -> bool:
        with self._cursor(f"Lookup of match {match_id}") as cur:
            cur.execute("SELECT 1 FROM matches WHERE match_id = %s", (match_id,))
            return cur.fetchone() is not None

    def insert_match(self, record: MatchRecord) -> bool:
        """Insert a match once. Returns False when the id was already stored."""
        with self._cursor(f"Insert of match {record.match_id}") as cur:
            cur.execute("""
                INSERT INTO matches (match_id, played_at, winner_id, winner_name,
                    loser_id, loser_name, region, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, NOW())
                ON CONFLICT (match_id) DO NOTHING
            """, (
                record.match_id,
                record.played_at,
                record.winner_id,
                record.winner_name,
                record.loser_id,
                record.loser_name,
                record.region.value,
            ))
            inserted = cur.rowcount == 1

        if not inserted:
            logger.info(f"Match {record.match_id} already stored, skipped")
        return inserted

    def record_stats(self):
        """Refresh per-region match counts"""
        with self._cursor('Stats update') as cur:
            cur.execute("""
                INSERT INTO match_stats (region, match_count, last_played_at, updated_at)
                SELECT region, COUNT(*), MAX(played_at), NOW()
                FROM matches
                GROUP BY region
                ON CONFLICT (region) DO UPDATE SET
                    match_count = EXCLUDED.match_count,
                    last_played_at = EXCLUDED.last_played_at,
                    updated_at = NOW()
            """)

    def persist_cursor(self, place: GlobalPlace):
        with self._cursor(f"Saving cursor {place}") as cur:
            cur.execute("""
                INSERT INTO scan_cursors (region, place_rank, updated_at)
                VALUES (%s, %s, NOW())
                ON CONFLICT (region) DO UPDATE SET
                    place_rank = EXCLUDED.place_rank,
                    updated_at = NOW()
            """, (place.region.value, place.rank))

    def load_cursors(self) -> Dict[Region, GlobalPlace]:
        with self._cursor('Loading cursors') as cur:
            cur.execute("SELECT region, place_rank FROM scan_cursors")
            rows = cur.fetchall()

        cursors = {}
        for code, rank in rows:
            try:
                region = Region(code)
            except ValueError:
                logger.warning(f"Ignoring cursor for unknown region code {code}")
                continue
            cursors[region] = GlobalPlace(region, rank)
        return cursors

    def match_counts(self) -> Dict[Region, int]:
        with self._cursor('Counting matches') as cur:
            cur.execute("SELECT region, COUNT(*) FROM matches GROUP BY region")
            rows = cur.fetchall()
        return {Region(code): count for code, count in rows if code in {r.value for r in Region}}
