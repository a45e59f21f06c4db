"""
Listing Pipeline - Extraction and continuation for a paginated directory.

Listing page:
    extract (structured, else markup) -> normalize -> dedupe
    -> detail tasks (collect_details) or direct save
    -> pagination decision -> next listing task

Detail page:
    enrich (soft failure keeps the listing record) -> buffered save

All shared counters live in RunState; handlers may run concurrently.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup

from .adapters import FINDLAW, SiteProfile
from .base import BaseScraper, TaskEmitter
from .dedupe import Deduplicator
from .enrichment import DetailEnricher
from .errors import ExtractionError
from .extractors import default_strategies, extract_candidates
from .models import CrawlTask, Record, RunState, TaskKind
from .output import DEFAULT_DETAIL_BATCH_SIZE, OutputBatcher, RecordSink
from .pagination import REASON_NO_RESULTS, PaginationController
from .utils.normalize import normalize_candidate

logger = logging.getLogger(__name__)


class ListingPipeline(BaseScraper):
    """Page handlers for listing and detail pages of one directory run."""

    SCRAPER_NAME = "directory_listing"

    def __init__(
        self,
        start_urls: Sequence[str],
        state: RunState,
        sink: RecordSink,
        profile: SiteProfile = FINDLAW,
        strategies: Optional[Sequence[Any]] = None,
        batch_size: int = DEFAULT_DETAIL_BATCH_SIZE,
        emitter: Optional[TaskEmitter] = None,
    ):
        """
        Args:
            start_urls: First listing page(s)
            state: Run state shared by every handler
            sink: Output destination
            profile: Site selectors
            strategies: Extraction strategies in priority order
            batch_size: Detail-mode flush chunk size
            emitter: Task emitter (usually bound later by the orchestrator)
        """
        super().__init__(emitter)
        self.start_urls = list(start_urls)
        self.state = state
        self.profile = profile
        self.strategies = list(strategies) if strategies else default_strategies(profile)
        self.dedupe = Deduplicator()
        self.pagination = PaginationController(profile)
        self.enricher = DetailEnricher(profile)
        self.batcher = OutputBatcher(sink, state, batch_size=batch_size)

    def start_tasks(self) -> List[CrawlTask]:
        return [
            CrawlTask(url=url, kind=TaskKind.LISTING, context={"page_number": 1})
            for url in self.start_urls
        ]

    # =========================================================================
    # Listing pages
    # =========================================================================

    def extract_records(self, soup: BeautifulSoup, page_url: str) -> List[Record]:
        """
        Run the extraction strategies and normalize the winning candidates.

        Raises:
            ExtractionError: A strategy or the normalizer failed on this page
        """
        strategy, candidates = extract_candidates(soup, page_url, self.strategies)
        try:
            records = [normalize_candidate(raw, page_url) for raw in candidates]
        except (AttributeError, TypeError, ValueError) as e:
            raise ExtractionError(f"Could not normalize candidates from {page_url}: {e}") from e
        if strategy:
            logger.debug(f"{len(records)} candidate(s) from {strategy} extraction")
        return records

    def handle_listing(self, task: CrawlTask, soup: BeautifulSoup) -> None:
        state = self.state
        page_no = task.page_number
        logger.info(f"Processing page {page_no}: {task.url}")

        try:
            records = self.extract_records(soup, task.url)
        except ExtractionError as e:
            logger.error(f"Extraction failed on page {page_no} ({task.url}): {e}")
            state.record_page(failed=True)
            self.increment_stat("errors_count")
            return

        state.record_page()
        logger.info(f"Found {len(records)} listing(s) on page {page_no}")

        if not records:
            logger.info(f"Stopping pagination: {REASON_NO_RESULTS}")
            return

        if state.collect_details:
            admitted = self.dedupe.admit_page(records, state)
            self._log_admission(records, admitted)
            self._schedule_details(admitted)
        else:
            # Direct-mode quota is saved_count, so admission and commit share one lock hold
            with state.lock:
                admitted = self.dedupe.admit_page(records, state)
                self._log_admission(records, admitted)
                if admitted:
                    self.batcher.save_direct(admitted, include_detail_fields=False)

        decision = self.pagination.decide(soup, task.url, page_no, state)
        if not decision.should_continue:
            logger.info(f"Stopping pagination: {decision.reason}")
            return

        if not self.emit(decision.next_url, TaskKind.LISTING, {"page_number": page_no + 1}):
            logger.info(f"Next page not scheduled: {decision.next_url}")

    @staticmethod
    def _log_admission(records: List[Record], admitted: List[Record]) -> None:
        logger.info(
            f"Processing {len(admitted)} new listing(s) "
            f"({len(records) - len(admitted)} duplicate or over quota)"
        )

    def _schedule_details(self, records: List[Record]) -> None:
        """One DETAIL task per record; records that cannot get one are saved as-is."""
        scheduled = 0
        for record in records:
            if record.profile_url and self.emit(
                record.profile_url, TaskKind.DETAIL, {"record": record}
            ):
                scheduled += 1
                continue
            logger.debug(f"No detail task for {record!r}, saving listing data")
            self.batcher.save_direct([record], include_detail_fields=False)
        if scheduled:
            logger.info(f"Enqueued {scheduled} detail page(s)")

    # =========================================================================
    # Detail pages
    # =========================================================================

    def handle_detail(self, task: CrawlTask, soup: BeautifulSoup) -> None:
        state = self.state
        record = task.record
        if record is None:
            logger.warning(f"Detail task without listing data: {task.url}")
            return

        if state.target_reached():
            with state.lock:
                state.details_skipped += 1
            logger.info(
                f"Skipping detail page, already at target "
                f"({state.saved_count}/{state.target}): {task.url}"
            )
            return

        enriched, ok = self.enricher.enrich(record, soup)
        with state.lock:
            if ok:
                state.details_completed += 1
            else:
                state.details_failed += 1
        self.batcher.add(enriched)

    # =========================================================================
    # Failures and run end
    # =========================================================================

    def handle_failure(self, task: CrawlTask, error: Exception) -> None:
        state = self.state
        logger.error(f"Request {task.url} failed: {error}")
        self.increment_stat("errors_count")

        if task.kind is TaskKind.LISTING:
            state.record_page(failed=True)
            return

        record = task.record
        with state.lock:
            state.details_failed += 1
        if record is not None and not state.target_reached():
            logger.warning(f"Saving {record!r} without detail data")
            self.batcher.add(record)

    def finish(self) -> Dict[str, Any]:
        """Flush any pending detail batch and return the run summary."""
        self.batcher.flush()
        self.state.complete()
        summary = {**self.state.summary(), **self.stats}
        logger.info(
            f"Scraping completed. Saved {summary['saved']} listing(s) "
            f"in {summary['duration_seconds']}s"
        )
        return summary
