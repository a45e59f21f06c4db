"""
Run State

Single run-scoped object shared by every page handler of one crawl.
Replaces ambient counters: handlers receive it by reference and all mutation
goes through Deduplicator / OutputBatcher while holding `lock`.

Usage:
    state = RunState(target=100, page_limit=20, collect_details=False)

    # Inside a handler
    admitted = dedupe.admit_page(records, state, limit=state.remaining_quota())

    # After the crawl
    batcher.flush()
    logger.info(state.summary())
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

from .record import Record

UNBOUNDED_TARGET = 2 ** 53 - 1


@dataclass
class RunState:
    """
    Dedup set, commit counters and pending detail batch for one crawl.

    target and page_limit are fixed for the run. saved_count only moves when
    a batch is committed to the sink.
    """

    target: int = 100
    page_limit: int = 20
    collect_details: bool = False

    run_id: str = field(default_factory=lambda: str(uuid4()))
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    # Identity keys already admitted (insert-only)
    seen: Set[str] = field(default_factory=set)

    # Records committed to the sink
    saved_count: int = 0

    # Enriched records awaiting a flush (detail mode only)
    pending_detail_batch: List[Record] = field(default_factory=list)

    # Reporting counters
    details_completed: int = 0
    details_failed: int = 0
    details_skipped: int = 0
    pages_processed: int = 0
    pages_failed: int = 0
    records_discarded: int = 0

    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def admitted_count(self) -> int:
        return len(self.seen)

    def effective_saved(self) -> int:
        """
        Count used for the "target reached" pagination check.

        In detail mode every admitted identity is guaranteed to reach the sink
        (enriched, or unenriched on soft failure), so admissions count.
        """
        with self.lock:
            if self.collect_details:
                return self.admitted_count
            return self.saved_count

    def remaining_quota(self) -> int:
        with self.lock:
            return max(0, self.target - self.effective_saved())

    def target_reached(self) -> bool:
        with self.lock:
            return self.saved_count >= self.target

    def record_page(self, failed: bool = False):
        with self.lock:
            if failed:
                self.pages_failed += 1
            else:
                self.pages_processed += 1

    def complete(self):
        """Mark the run as completed."""
        self.completed_at = datetime.utcnow()

    @property
    def duration_seconds(self) -> float:
        end = self.completed_at or datetime.utcnow()
        return (end - self.started_at).total_seconds()

    def summary(self) -> Dict[str, Any]:
        """Snapshot of the run counters."""
        with self.lock:
            return {
                "run_id": self.run_id,
                "target": self.target,
                "page_limit": self.page_limit,
                "collect_details": self.collect_details,
                "saved": self.saved_count,
                "admitted": self.admitted_count,
                "pending": len(self.pending_detail_batch),
                "details_completed": self.details_completed,
                "details_failed": self.details_failed,
                "details_skipped": self.details_skipped,
                "pages_processed": self.pages_processed,
                "pages_failed": self.pages_failed,
                "records_discarded": self.records_discarded,
                "duration_seconds": round(self.duration_seconds, 2),
            }

    def __repr__(self):
        return f"<RunState {self.run_id[:8]} saved={self.saved_count}/{self.target}>"
