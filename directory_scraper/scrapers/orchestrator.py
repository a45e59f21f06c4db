"""
Crawl Orchestrator - Task queue, worker pool and dispatch for one crawl.

Responsibilities:
1. Accepts tasks emitted by the scraper (deduplicated per task kind)
2. Enforces the run's request budget
3. Fetches pages on a bounded thread pool
4. Parses HTML and dispatches to the scraper's handlers
5. Runs the scraper's end-of-run hook once the queue drains
"""
import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Deque, Dict, Optional, Set

from bs4 import BeautifulSoup

from .base import BaseScraper, TaskEmitter
from .errors import FetchError
from .fetcher import PageFetcher
from .models import CrawlTask, TaskKind

logger = logging.getLogger(__name__)

HTML_PARSER = "html.parser"


class CrawlOrchestrator(TaskEmitter):
    """
    Runs a scraper to completion.

    Handlers only enqueue follow-up tasks; the orchestrator owns all fetching.
    """

    def __init__(
        self,
        scraper: BaseScraper,
        fetcher: PageFetcher,
        max_concurrency: int = 3,
        max_requests: int = 0,
    ):
        """
        Args:
            scraper: Page handlers for the run
            fetcher: Anything with fetch(url, kind) -> str
            max_concurrency: Worker threads
            max_requests: Fetch budget (0 = unlimited)
        """
        self.scraper = scraper.bind(self)
        self.fetcher = fetcher
        self.max_concurrency = max(1, int(max_concurrency))
        self.max_requests = max(0, int(max_requests))

        self._lock = threading.Lock()
        self._queue: Deque[CrawlTask] = deque()
        self._enqueued: Set[str] = set()
        self._requests_scheduled = 0
        self._rejected = 0

    # =========================================================================
    # Task emission
    # =========================================================================

    def emit(self, url: str, kind: TaskKind, context: Optional[Dict[str, Any]] = None) -> bool:
        return self.enqueue(CrawlTask(url=url, kind=kind, context=dict(context or {})))

    def enqueue(self, task: CrawlTask) -> bool:
        """
        Add a task unless its URL was already enqueued for the same kind
        or the request budget is spent.

        Returns:
            True if the task was queued
        """
        with self._lock:
            if task.dedupe_key in self._enqueued:
                logger.debug(f"Skipping already enqueued {task.kind.value} {task.url}")
                self._rejected += 1
                return False
            if self.max_requests and self._requests_scheduled >= self.max_requests:
                logger.warning(
                    f"Request budget of {self.max_requests} exhausted, not scheduling {task.url}"
                )
                self._rejected += 1
                return False
            self._enqueued.add(task.dedupe_key)
            self._requests_scheduled += 1
            self._queue.append(task)
            return True

    def _pop_task(self) -> Optional[CrawlTask]:
        with self._lock:
            return self._queue.popleft() if self._queue else None

    # =========================================================================
    # Run loop
    # =========================================================================

    def run(self) -> Dict[str, Any]:
        """
        Crawl until no task is queued or running.

        The scraper's end-of-run hook runs even if the crawl loop raises.

        Returns:
            The scraper's end-of-run summary plus request counters
        """
        for task in self.scraper.start_tasks():
            self.enqueue(task)

        logger.info(
            f"Starting crawl with {len(self._queue)} start URL(s), "
            f"concurrency={self.max_concurrency}"
        )

        try:
            self._drain()
        finally:
            summary = self.scraper.finish()
        summary.update({
            "requests_scheduled": self._requests_scheduled,
            "requests_rejected": self._rejected,
        })
        return summary

    def _drain(self):
        running: Set[Future] = set()
        with ThreadPoolExecutor(max_workers=self.max_concurrency) as pool:
            while True:
                while len(running) < self.max_concurrency:
                    task = self._pop_task()
                    if task is None:
                        break
                    running.add(pool.submit(self._process, task))

                if not running:
                    break

                done, running = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    # _process handles its own errors; surface anything else
                    future.result()

    def _process(self, task: CrawlTask):
        try:
            html = self.fetcher.fetch(task.url, task.kind)
        except FetchError as e:
            try:
                self.scraper.handle_failure(task, e)
            except Exception:
                logger.exception(f"Failure handler failed for {task.kind.value} {task.url}")
                self.scraper.increment_stat("errors_count")
            return

        soup = BeautifulSoup(html, HTML_PARSER)
        try:
            self.scraper.handle(task, soup)
        except Exception:
            logger.exception(f"Handler failed for {task.kind.value} {task.url}")
            self.scraper.increment_stat("errors_count")
