"""Scraper data models."""

from .record import Address, Record, DETAIL_FIELDS
from .run_state import RunState, UNBOUNDED_TARGET
from .task import CrawlTask, TaskKind

__all__ = [
    "Address",
    "Record",
    "DETAIL_FIELDS",
    "RunState",
    "UNBOUNDED_TARGET",
    "CrawlTask",
    "TaskKind",
]
