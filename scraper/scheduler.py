# scraper/scheduler.py

import logging
import threading
from enum import Enum
from typing import Dict, List, Optional, Sequence

from config import SCRAPE_CONFIG, ERROR_CONFIG
from errors import ErrorKind, LogicError, ScrapeError, StoreError
from models import FetchGrandmasters, FetchLastMatch, GlobalPlace, Region, Task

logger = logging.getLogger(__name__)


class LoopState(Enum):
    RUNNING = 'running'
    RECOVERING = 'recovering'


def build_task_list(regions: Sequence[Region], leaderboard_every: int = None,
                    include_leaderboard: bool = True) -> List[Task]:
    """
    Leaderboard refreshes first, then `leaderboard_every` history scans per
    region, interleaved so both regions progress at the same pace.
    """
    if leaderboard_every is None:
        leaderboard_every = SCRAPE_CONFIG['leaderboard_every']

    tasks: List[Task] = []
    if include_leaderboard:
        tasks.extend(FetchGrandmasters(region) for region in regions)
    for _ in range(max(leaderboard_every, 1)):
        tasks.extend(FetchLastMatch(GlobalPlace(region, 0)) for region in regions)
    return tasks


class ScrapeScheduler:
    """
    Runs the fixed task list round-robin until stopped.

    Transport, extraction and logic failures skip the task until its next
    turn. Store failures park the loop in a reconnect sub-loop until
    PostgreSQL answers again; no task runs meanwhile.
    """

    def __init__(self, tasks: Sequence[Task], handler, db,
                 config: dict = None, error_config: dict = None,
                 stop_event: threading.Event = None):
        if not tasks:
            raise ValueError("Scheduler needs at least one task")
        self.tasks = list(tasks)
        self.handler = handler
        self.db = db
        self.config = config or SCRAPE_CONFIG
        self.error_config = error_config or ERROR_CONFIG
        self.stop_event = stop_event or threading.Event()

        self.state = LoopState.RUNNING
        self.recovering_kind: Optional[ErrorKind] = None
        self.position = 0
        self.tasks_run = 0
        self.reconnects = 0
        self.error_counts: Dict[ErrorKind, int] = {kind: 0 for kind in ErrorKind}

    def stop(self):
        self.stop_event.set()

    def _sleep(self, seconds: float) -> bool:
        """Sleep unless stopped. Returns False if the loop should end."""
        return not self.stop_event.wait(seconds)

    def next_task(self) -> Task:
        task = self.tasks[self.position]
        self.position = (self.position + 1) % len(self.tasks)
        return task

    def run(self, max_tasks: int = None):
        """Loop forever, or for `max_tasks` dispatches, or until stop() is called"""
        logger.info(f"Scheduler started with {len(self.tasks)} tasks")
        dispatched = 0

        while not self.stop_event.is_set():
            task = self.next_task()
            self.run_task(task)
            dispatched += 1

            if max_tasks is not None and dispatched >= max_tasks:
                break
            self._sleep(self.config['between_tasks'])

        logger.info(f"Scheduler stopped after {dispatched} tasks")

    def run_task(self, task: Task):
        logger.info(f"scraping {task}")
        try:
            self.handler.handle(task)
        except ScrapeError as e:
            self._recover(e)
        except Exception as e:
            logger.exception(f"Unexpected error in {task}")
            self._recover(LogicError(f"{type(e).__name__}: {e}"))
        self.tasks_run += 1

        if self.stop_event.is_set():
            return
        try:
            self.db.record_stats()
        except StoreError as e:
            self._recover(e)

    def _recover(self, error: ScrapeError):
        self.state = LoopState.RECOVERING
        self.recovering_kind = error.kind
        self.error_counts[error.kind] += 1

        if error.kind is ErrorKind.STORE:
            logger.error(f"pg error'd: {error}")
            if self._sleep(self.error_config['store_error_sleep']):
                self._reconnect()
        else:
            logger.error(f"scraper error'd: {error}")
            self._sleep(self.error_config['task_error_sleep'])

        self.state = LoopState.RUNNING
        self.recovering_kind = None

    def _reconnect(self) -> bool:
        """Retry the store connection at a fixed interval until it works or we are stopped"""
        attempt = 0
        while not self.stop_event.is_set():
            attempt += 1
            logger.info(f"Reconnecting to pg (attempt {attempt})")
            try:
                self.db.reconnect()
            except StoreError as e:
                logger.warning(f"pg reconnect failed: {e}")
                if not self._sleep(self.error_config['reconnect_interval']):
                    break
                continue
            self.reconnects += 1
            logger.info("pg reconnect successful")
            return True
        return False

    def get_status_report(self) -> str:
        """Human-readable status report"""
        cache = self.handler.cache
        cursors = self.handler.cursors.snapshot()

        region_lines = []
        for region in Region:
            cursor = cursors.get(region)
            region_lines.append(
                f"  {region.name}: {cache.region_size(region)} players cached, "
                f"cursor at {cursor.rank if cursor else '-'}"
            )
        error_lines = [f"  {kind.value}: {count}" for kind, count in self.error_counts.items()]

        report = "\n".join([
            "",
            "========================================",
            "SCRAPER STATUS REPORT",
            "========================================",
            f"State: {self.state.value}",
            f"Tasks run: {self.tasks_run} (list of {len(self.tasks)})",
            f"Matches inserted: {self.handler.matches_inserted}",
            f"Reconnects: {self.reconnects}",
            "",
            "By Region:",
            *region_lines,
            "",
            "Errors:",
            *error_lines,
            "========================================",
            "",
        ])
        return report
