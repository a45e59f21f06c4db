"""
Deduplicator - Run-wide identity filter for listing records.

Identity key = profile URL, else name. Pagination on some directories
overlaps (unreliable "next" links), so the same listing can show up on
several pages; each identity is admitted at most once per run.
"""
import logging
from typing import Iterable, List, Optional

from .models import Record, RunState

logger = logging.getLogger(__name__)


def identity_key(record: Record) -> Optional[str]:
    """profile_url if present, else name, else None."""
    return record.identity_key


class Deduplicator:
    """Admission control over RunState.seen. All checks run under state.lock."""

    def admit(self, record: Record, state: RunState) -> bool:
        """
        Admit a record if its identity has not been seen.

        Returns:
            True if the key was new and is now recorded, False otherwise
            (missing key or duplicate)
        """
        key = identity_key(record)
        with state.lock:
            if not key:
                state.records_discarded += 1
                return False
            if key in state.seen:
                return False
            state.seen.add(key)
            return True

    def admit_page(
        self,
        records: Iterable[Record],
        state: RunState,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """
        Admit a page's records in order, up to `limit` new identities.

        The whole page is processed under one lock acquisition so the quota
        check and the inserts cannot interleave with another handler.
        Records past the limit are left unseen.

        Args:
            records: Normalized records in document order
            state: Shared run state
            limit: Max identities to admit (None = state's remaining quota)

        Returns:
            Admitted records, in input order
        """
        admitted: List[Record] = []
        duplicates = 0
        with state.lock:
            if limit is None:
                limit = state.remaining_quota()
            for record in records:
                if len(admitted) >= limit:
                    break
                if self.admit(record, state):
                    admitted.append(record)
                elif record.identity_key:
                    duplicates += 1

        if duplicates:
            logger.debug(f"Dropped {duplicates} duplicate record(s)")
        return admitted
