"""
Pagination Controller - Continue/stop decision for listing pages.

Stop conditions, checked in order (first match wins):
1. effective saved count >= target          -> "target reached"
2. page number >= page limit                -> "page limit reached"
3. no next-page control on the page         -> "end of results"
4. "Results A to B of C" with B >= C        -> "range exhausted"

Next URL priority: next control href -> rel="next" link -> page param + 1.
A next URL equal to the current URL counts as no next page.

Decisions are computed per page and never persisted.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from bs4 import BeautifulSoup

from .adapters import FINDLAW, SiteProfile
from .models import RunState
from .utils.normalize import to_absolute_url

logger = logging.getLogger(__name__)

REASON_TARGET_REACHED = "target reached"
REASON_PAGE_LIMIT = "page limit reached"
REASON_END_OF_RESULTS = "end of results"
REASON_RANGE_EXHAUSTED = "range exhausted"
REASON_NO_RESULTS = "no results on page"

RESULTS_RANGE_RE = re.compile(
    r"Results\s+[\d,]+\s+to\s+([\d,]+)\s+of\s+([\d,]+)", re.IGNORECASE
)


class PaginationAction(Enum):
    CONTINUE = "continue"
    STOP = "stop"


@dataclass(frozen=True)
class PaginationDecision:
    """Outcome for one listing page."""
    action: PaginationAction
    reason: Optional[str] = None
    next_url: Optional[str] = None

    @property
    def should_continue(self) -> bool:
        return self.action is PaginationAction.CONTINUE

    @classmethod
    def stop(cls, reason: str) -> "PaginationDecision":
        return cls(action=PaginationAction.STOP, reason=reason)

    @classmethod
    def proceed(cls, next_url: str) -> "PaginationDecision":
        return cls(action=PaginationAction.CONTINUE, next_url=next_url)


def parse_results_range(text: Optional[str]):
    """
    Parse "Results 1 to 20 of 412" into (shown_upper, total).

    Returns None when the text does not contain a range.
    """
    match = RESULTS_RANGE_RE.search(text or "")
    if not match:
        return None
    return int(match.group(1).replace(",", "")), int(match.group(2).replace(",", ""))


def increment_page_param(url: str, param: str = "page") -> Optional[str]:
    """
    Return url with its page query parameter incremented by one.

    A missing or non-numeric value counts as page 1. Other query parameters
    keep their order.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    pairs = parse_qsl(parsed.query, keep_blank_values=True)

    current = 1
    for key, value in pairs:
        if key == param:
            try:
                current = int(value)
            except ValueError:
                current = 1
            break

    next_value = str(current + 1)
    if any(key == param for key, _ in pairs):
        updated, replaced = [], False
        for key, value in pairs:
            if key == param:
                if not replaced:
                    updated.append((key, next_value))
                    replaced = True
                continue
            updated.append((key, value))
        pairs = updated
    else:
        pairs.append((param, next_value))

    return urlunparse(parsed._replace(query=urlencode(pairs)))


def find_next_page_url(
    soup: BeautifulSoup,
    current_url: str,
    profile: SiteProfile = FINDLAW,
) -> Optional[str]:
    """Resolve the next listing URL: control href, rel=next, then page param."""
    for selector in (profile.next_page_selector, profile.rel_next_selector):
        element = soup.select_one(selector)
        href = element.get("href") if element else None
        if href:
            resolved = to_absolute_url(href, current_url)
            if resolved:
                return resolved
    return increment_page_param(current_url, profile.page_param)


class PaginationController:
    """Two-state (CONTINUE / STOP) decision per listing page."""

    def __init__(self, profile: SiteProfile = FINDLAW):
        self.profile = profile

    def decide(
        self,
        soup: BeautifulSoup,
        current_url: str,
        page_number: int,
        state: RunState,
    ) -> PaginationDecision:
        """
        Decide whether to fetch another listing page.

        Args:
            soup: Parsed listing page
            current_url: URL of that page
            page_number: 1-based page number of that page
            state: Shared run state (target, page limit, counters)

        Returns:
            PaginationDecision with next_url set when continuing
        """
        if state.effective_saved() >= state.target:
            return PaginationDecision.stop(REASON_TARGET_REACHED)

        if page_number >= state.page_limit:
            return PaginationDecision.stop(REASON_PAGE_LIMIT)

        if soup.select_one(self.profile.next_page_selector) is None:
            return PaginationDecision.stop(REASON_END_OF_RESULTS)

        range_el = soup.select_one(self.profile.results_range_selector)
        shown = parse_results_range(range_el.get_text(" ", strip=True) if range_el else None)
        if shown and shown[0] >= shown[1]:
            logger.debug(f"Results range exhausted ({shown[0]} of {shown[1]})")
            return PaginationDecision.stop(REASON_RANGE_EXHAUSTED)

        next_url = find_next_page_url(soup, current_url, self.profile)
        if not next_url or next_url == current_url:
            return PaginationDecision.stop(REASON_END_OF_RESULTS)

        return PaginationDecision.proceed(next_url)
