from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .record import Record


class TaskKind(str, Enum):
    """Kinds of page-fetch tasks the pipeline emits."""
    LISTING = "LISTING"  # Paginated results page; context carries page_number
    DETAIL = "DETAIL"    # Single listing profile; context carries the in-flight record


@dataclass(frozen=True)
class CrawlTask:
    """A page to fetch plus the context its handler needs."""
    url: str
    kind: TaskKind
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def page_number(self) -> int:
        return int(self.context.get("page_number") or 1)

    @property
    def record(self) -> Optional[Record]:
        return self.context.get("record")

    @property
    def dedupe_key(self) -> str:
        return f"{self.kind.value}:{self.url}"
