"""
Base Scraper - Page-handler contract between the crawl engine and a scraper.

Provides:
- Task emission interface (implemented by the orchestrator)
- Dispatch of fetched pages by task kind
- Run statistics
"""
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from .models import CrawlTask, TaskKind


class TaskEmitter(ABC):
    """Schedules follow-up page fetches on behalf of a scraper."""

    @abstractmethod
    def emit(self, url: str, kind: TaskKind, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        Schedule a page fetch.

        Args:
            url: Page to fetch
            kind: LISTING or DETAIL
            context: page_number (LISTING) or the in-flight record (DETAIL)

        Returns:
            True if scheduled, False if rejected (duplicate URL or budget spent)
        """
        pass


class BaseScraper(ABC):
    """
    Abstract base class for page-driven scrapers.

    Subclasses must implement:
    - start_tasks(): Initial tasks for the run
    - handle_listing(): Process a fetched listing page
    - handle_detail(): Process a fetched detail page
    - handle_failure(): React to a page that could not be fetched

    Handlers never perform network I/O; they emit follow-up tasks and
    return without waiting on them.
    """

    # Override in subclass
    SCRAPER_NAME: str = "base"

    def __init__(self, emitter: Optional[TaskEmitter] = None):
        self.emitter = emitter
        self._stats_lock = threading.Lock()
        self._stats = {
            "pages_fetched": 0,
            "tasks_emitted": 0,
            "errors_count": 0,
        }

    def bind(self, emitter: TaskEmitter) -> "BaseScraper":
        """Attach the task emitter (the orchestrator). Returns self."""
        self.emitter = emitter
        return self

    @abstractmethod
    def start_tasks(self) -> List[CrawlTask]:
        """Tasks that seed the run."""
        pass

    @abstractmethod
    def handle_listing(self, task: CrawlTask, soup: BeautifulSoup) -> None:
        pass

    @abstractmethod
    def handle_detail(self, task: CrawlTask, soup: BeautifulSoup) -> None:
        pass

    @abstractmethod
    def handle_failure(self, task: CrawlTask, error: Exception) -> None:
        """Log a failed page; must not schedule tasks derived from it."""
        pass

    def handle(self, task: CrawlTask, soup: BeautifulSoup) -> None:
        """Dispatch a fetched page to the handler for its task kind."""
        self.increment_stat("pages_fetched")
        if task.kind is TaskKind.DETAIL:
            self.handle_detail(task, soup)
        else:
            self.handle_listing(task, soup)

    def emit(self, url: str, kind: TaskKind, context: Optional[Dict[str, Any]] = None) -> bool:
        if self.emitter is None:
            raise RuntimeError(f"{self.SCRAPER_NAME}: no task emitter bound")
        scheduled = self.emitter.emit(url, kind, context)
        if scheduled:
            self.increment_stat("tasks_emitted")
        return scheduled

    def finish(self) -> Dict[str, Any]:
        """Run-end hook. Returns the run summary."""
        return self.stats

    def increment_stat(self, stat_name: str, amount: int = 1):
        """Increment a run statistic."""
        with self._stats_lock:
            if stat_name in self._stats:
                self._stats[stat_name] += amount

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)
