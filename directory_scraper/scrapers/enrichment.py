"""
Detail Enricher - Merges a profile page into a captured listing record.

Extracted from the detail page:
- practice areas text block
- bio: overview paragraphs joined by a blank line
- rating / review count: the page's own JSON-LD aggregateRating
  (rating badge markup as fallback)
- people: associated attorney names, comma-joined

Merge rule, per field (bio, people, practice_areas, rating, reviews):
the detail value wins when non-empty, otherwise the listing value is kept.
"""
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple

from bs4 import BeautifulSoup

from .adapters import FINDLAW, SiteProfile
from .errors import ExtractionError
from .extractors.structured import iter_json_ld
from .models import Record
from .utils.normalize import clean_text, to_int, to_rating

logger = logging.getLogger(__name__)

OVERVIEW_HEADING_TEXT = "Overview"
BIO_SEPARATOR = "\n\n"
PEOPLE_SEPARATOR = ", "

_RATING_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")

MERGED_FIELDS = ("bio", "people", "practice_areas", "rating", "reviews")


@dataclass
class DetailData:
    """Fields extracted from one detail page (all optional)."""
    bio: Optional[str] = None
    people: Optional[str] = None
    practice_areas: Optional[str] = None
    rating: Optional[str] = None
    reviews: Optional[int] = None


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class DetailEnricher:
    """Extracts detail-page fields and merges them into listing records."""

    def __init__(self, profile: SiteProfile = FINDLAW):
        self.profile = profile

    def extract(self, soup: BeautifulSoup) -> DetailData:
        """
        Extract enrichment fields from a parsed detail page.

        Args:
            soup: Parsed detail page

        Returns:
            DetailData (fields the page does not provide stay None)

        Raises:
            ExtractionError: The page layout could not be read
        """
        data = DetailData()
        try:
            data.practice_areas = self._extract_practice_areas(soup)
            data.rating, data.reviews = self._extract_rating(soup)
            data.bio = self._extract_bio(soup)
            data.people = self._extract_people(soup)
        except (AttributeError, TypeError, ValueError) as e:
            raise ExtractionError(f"Unreadable detail page: {e}") from e
        return data

    @staticmethod
    def merge(record: Record, detail: DetailData) -> Record:
        """Return a new record: detail values win when non-empty."""
        updates = {}
        for name in MERGED_FIELDS:
            value = getattr(detail, name)
            updates[name] = getattr(record, name) if _is_empty(value) else value
        return replace(record, **updates)

    def enrich(self, record: Record, soup: BeautifulSoup) -> Tuple[Record, bool]:
        """
        Extract and merge, degrading to the listing record on failure.

        Returns:
            (record to save, True if enrichment succeeded)
        """
        try:
            detail = self.extract(soup)
        except ExtractionError as e:
            logger.warning(f"Detail extraction failed for {record.profile_url}: {e}")
            return record, False
        return self.merge(record, detail), True

    # =========================================================================
    # Field extractors
    # =========================================================================

    def _extract_practice_areas(self, soup: BeautifulSoup) -> Optional[str]:
        container = soup.select_one(self.profile.detail_practice_areas_selector)
        if container is None:
            return None
        return clean_text(container.get_text(" ", strip=True))

    def _extract_rating(self, soup: BeautifulSoup) -> Tuple[Optional[str], Optional[int]]:
        rating, reviews = None, None
        # Last block carrying an aggregateRating wins
        for block in iter_json_ld(soup):
            aggregate = block.get("aggregateRating")
            if isinstance(aggregate, dict):
                rating = to_rating(aggregate.get("ratingValue"))
                reviews = to_int(aggregate.get("reviewCount"))

        if rating is None:
            badge = soup.select_one(self.profile.detail_rating_selector)
            if badge is not None:
                match = _RATING_NUMBER_RE.search(badge.get_text(" ", strip=True))
                if match:
                    rating = match.group(1)
        return rating, reviews

    def _extract_bio(self, soup: BeautifulSoup) -> Optional[str]:
        paragraphs = []
        overview = soup.select_one(self.profile.detail_overview_selector)
        if overview is not None:
            for p in overview.find_all("p"):
                text = p.get_text(" ", strip=True)
                if text and text != OVERVIEW_HEADING_TEXT:
                    paragraphs.append(text)

        if not paragraphs:
            heading = soup.select_one(self.profile.detail_overview_heading_selector)
            if heading is not None:
                for sibling in heading.find_next_siblings():
                    if sibling.name != "p":
                        break
                    text = sibling.get_text(" ", strip=True)
                    if text:
                        paragraphs.append(text)

        return BIO_SEPARATOR.join(paragraphs) or None

    def _extract_people(self, soup: BeautifulSoup) -> Optional[str]:
        names = [
            el.get_text(" ", strip=True)
            for el in soup.select(self.profile.detail_people_selector)
        ]
        return PEOPLE_SEPARATOR.join(n for n in names if n) or None
