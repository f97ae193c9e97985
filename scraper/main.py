# scraper/main.py

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Tuple

from config import SCRAPE_CONFIG, ERROR_CONFIG, REQUEST_CONFIG
from database import DatabaseManager
from errors import ScrapeError, StoreError
from models import Region
from parsers.hotslogs_parser import HotslogsParser
from player_cache import PlayerCache, ScanCursors, load_players_file
from request_handler import HotslogsRequestHandler
from scheduler import ScrapeScheduler, build_task_list
from task_handler import TaskHandler

logger = logging.getLogger(__name__)


def setup_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        handlers=[
            logging.FileHandler(Path(__file__).parent / 'scraper.log'),
            logging.StreamHandler()
        ]
    )


def parse_players_file_arg(value: str) -> Tuple[Region, str]:
    """'us=players.txt' -> (Region.US, 'players.txt')"""
    if '=' not in value:
        raise argparse.ArgumentTypeError(f"Expected REGION=PATH, got '{value}'")
    name, path = value.split('=', 1)
    try:
        return Region.from_name(name), path
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_regions_arg(value: str) -> List[Region]:
    try:
        return [Region.from_name(name) for name in value.split(',') if name.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


class MatchmakingScraper:
    def __init__(self, regions: List[Region], include_leaderboard: bool = True,
                 db: DatabaseManager = None, request_handler: HotslogsRequestHandler = None):
        self.db = db or DatabaseManager()
        self.request_handler = request_handler or HotslogsRequestHandler(REQUEST_CONFIG)
        self.stop_event = threading.Event()
        self.handler = TaskHandler(
            self.request_handler,
            self.db,
            parser=HotslogsParser(),
            cache=PlayerCache(),
            cursors=ScanCursors(self._load_cursors()),
        )
        tasks = build_task_list(regions, SCRAPE_CONFIG['leaderboard_every'], include_leaderboard)
        self.scheduler = ScrapeScheduler(
            tasks, self.handler, self.db,
            config=SCRAPE_CONFIG,
            error_config=ERROR_CONFIG,
            stop_event=self.stop_event,
        )

    def _load_cursors(self):
        try:
            cursors = self.db.load_cursors()
        except StoreError as e:
            # The loop's reconnect handling takes over once it starts
            logger.warning(f"Could not load scan cursors, starting at rank 0: {e}")
            return {}
        for place in cursors.values():
            logger.info(f"Resuming {place.region.name} scan at rank {place.rank}")
        return cursors

    def seed_players(self, players_files: List[Tuple[Region, str]]):
        for region, path in players_files:
            self.handler.seed_players(region, load_players_file(path))

    def install_signal_handlers(self):
        def _stop(signum, frame):
            logger.warning(f"Received signal {signum}, stopping after the current task")
            self.stop_event.set()

        signal.signal(signal.SIGINT, _stop)
        signal.signal(signal.SIGTERM, _stop)

    def run(self, once: bool = False):
        self.install_signal_handlers()
        try:
            self.scheduler.run(max_tasks=len(self.scheduler.tasks) if once else None)
        finally:
            print(self.scheduler.get_status_report())
            self.db.close()


def print_store_status(db: DatabaseManager):
    cursors = db.load_cursors()
    counts = db.match_counts()
    print("\n========================================")
    print("STORE STATUS")
    print("========================================")
    for region in Region:
        cursor = cursors.get(region)
        print(f"  {region.name}: {counts.get(region, 0)} matches, "
              f"cursor at {cursor.rank if cursor else '-'}")
    print("========================================\n")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Hotslogs Matchmaking Scraper')
    parser.add_argument('command', choices=['run', 'once', 'status', 'init-db'],
                        help='run=scrape until stopped, once=one pass over the task list, '
                             'status=show stored cursors and counts, init-db=create tables')
    parser.add_argument('--regions', type=parse_regions_arg, default=list(Region),
                        help='Comma separated regions to scrape (default: us,eu)')
    parser.add_argument('--players-file', type=parse_players_file_arg, action='append',
                        default=[], metavar='REGION=PATH',
                        help='Seed the player cache from a file with one player id per line')
    parser.add_argument('--no-leaderboard', action='store_true',
                        help='Do not fetch leaderboards (use with --players-file)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.command in ('status', 'init-db'):
        db = DatabaseManager()
        try:
            if args.command == 'init-db':
                db.ensure_schema()
                logger.info("Schema ready")
            else:
                print_store_status(db)
        except ScrapeError as e:
            logger.error(str(e))
            return 1
        finally:
            db.close()
        return 0

    if args.no_leaderboard and not args.players_file:
        parser.error('--no-leaderboard needs at least one --players-file')

    scraper = MatchmakingScraper(args.regions, include_leaderboard=not args.no_leaderboard)
    try:
        scraper.seed_players(args.players_file)
    except (OSError, ScrapeError) as e:
        logger.error(f"Could not seed players: {e}")
        return 1
    scraper.run(once=args.command == 'once')
    return 0


if __name__ == '__main__':
    sys.exit(main())
