"""
Output Batcher - Bounded, ordered commits to an append-only record sink.

Direct mode: each listing page's admitted records are committed at once.
Detail mode: enriched records are buffered in RunState.pending_detail_batch
and flushed in fixed-size chunks, or as soon as buffer + saved would reach
the target. A final flush at run end commits the remainder.

saved_count only moves at commit time, and a commit never pushes more than
the remaining quota (the batch is truncated to fit exactly).
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .models import Record, RunState

logger = logging.getLogger(__name__)

DEFAULT_DETAIL_BATCH_SIZE = 10


class RecordSink(ABC):
    """Append-only, order-preserving destination for output items."""

    @abstractmethod
    def push_batch(self, items: List[Dict[str, Any]]) -> None:
        """Append items. Committed items are final."""
        pass


class MemorySink(RecordSink):
    """Keeps items in a list (tests, offline extraction)."""

    def __init__(self):
        self.items: List[Dict[str, Any]] = []
        self.batches: List[int] = []

    def push_batch(self, items: List[Dict[str, Any]]) -> None:
        self.items.extend(items)
        self.batches.append(len(items))


class JsonLinesSink(RecordSink):
    """Appends one JSON object per line to a file."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def push_batch(self, items: List[Dict[str, Any]]) -> None:
        if not items:
            return
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                for item in items:
                    f.write(json.dumps(item, ensure_ascii=False, default=str))
                    f.write("\n")


class OutputBatcher:
    """Commits records to a sink while enforcing the run target."""

    def __init__(
        self,
        sink: RecordSink,
        state: RunState,
        batch_size: int = DEFAULT_DETAIL_BATCH_SIZE,
    ):
        """
        Args:
            sink: Output destination
            state: Shared run state (saved_count, pending batch, target)
            batch_size: Detail-mode flush chunk size
        """
        self.sink = sink
        self.state = state
        self.batch_size = max(1, int(batch_size))

    def save_direct(self, records: Sequence[Record], include_detail_fields: bool = False) -> int:
        """
        Commit records immediately.

        Args:
            records: Records to commit, in order
            include_detail_fields: Emit bio/people keys

        Returns:
            Number of records committed
        """
        with self.state.lock:
            return self._commit(list(records), include_detail_fields)

    def add(self, record: Record) -> int:
        """
        Buffer an enriched record, flushing when a chunk is full or the
        target would be reached.

        Returns:
            Number of records committed by this call (0 if only buffered)
        """
        state = self.state
        with state.lock:
            state.pending_detail_batch.append(record)
            pending = len(state.pending_detail_batch)
            if pending >= self.batch_size or state.saved_count + pending >= state.target:
                return self.flush()
            return 0

    def flush(self) -> int:
        """Commit everything buffered. Returns the number committed."""
        state = self.state
        with state.lock:
            if not state.pending_detail_batch:
                return 0
            committed = self._commit(list(state.pending_detail_batch), include_detail_fields=True)
            # Cleared only once the sink accepted the batch
            state.pending_detail_batch = []
            return committed

    def _commit(self, records: List[Record], include_detail_fields: bool) -> int:
        # Caller holds state.lock
        state = self.state
        if not records:
            return 0

        remaining = state.target - state.saved_count
        if remaining <= 0:
            logger.info(
                f"Target already reached ({state.saved_count}/{state.target}), "
                f"dropping {len(records)} record(s)"
            )
            return 0

        if len(records) > remaining:
            logger.info(f"Truncating batch of {len(records)} to remaining quota {remaining}")
            records = records[:remaining]

        self.sink.push_batch([r.to_dict(include_detail_fields) for r in records])
        state.saved_count += len(records)
        logger.info(f"Saved {len(records)} record(s) (Total: {state.saved_count}/{state.target})")
        return len(records)
