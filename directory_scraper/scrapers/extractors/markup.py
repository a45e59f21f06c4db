"""
Markup Extractor - Fallback extraction from rendered listing cards.

Only runs when the structured extractor finds nothing on the page.
Fields come from selectors plus text patterns:
- rating: number before "out of" (aria-label) or before "(" (visible text)
- reviews: integer inside "(...)"
- address: "<city>, <XX> <12345>" in the first matching location element,
  else the whole card text
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from ..adapters import FINDLAW, SiteProfile
from ..utils.normalize import clean_practice_area, clean_text, to_absolute_url

logger = logging.getLogger(__name__)

RATING_OUT_OF_RE = re.compile(r"(\d+(?:\.\d+)?)\s*out of", re.IGNORECASE)
RATING_BEFORE_PAREN_RE = re.compile(r"(\d+(?:\.\d+)?)\s*\(")
REVIEW_COUNT_RE = re.compile(r"\((\d+)\)")
ADDRESS_RE = re.compile(r"([^,]+),\s*([A-Z]{2})\s+(\d{5})")


def parse_rating_label(*texts: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
    """
    Pull (rating, review_count) out of accessibility labels or visible text.

    Texts are tried in order; the first hit wins for each value.

    Examples:
        "Rated 4.5 out of 5 stars" -> ("4.5", None)
        "4.8 (23)" -> ("4.8", 23)
    """
    rating = None
    reviews = None
    for text in texts:
        if not text:
            continue
        if rating is None:
            match = RATING_OUT_OF_RE.search(text) or RATING_BEFORE_PAREN_RE.search(text)
            if match:
                rating = match.group(1)
        if reviews is None:
            match = REVIEW_COUNT_RE.search(text)
            if match:
                reviews = int(match.group(1))
    return rating, reviews


def parse_address_text(text: Optional[str]) -> Dict[str, Optional[str]]:
    """Split "Springfield, IL 62701" into city / region / postal_code."""
    match = ADDRESS_RE.search(text or "")
    if not match:
        return {}
    return {
        "city": match.group(1).strip(),
        "region": match.group(2),
        "postal_code": match.group(3),
    }


def _first_href(card: Tag, selector: str) -> Optional[str]:
    for element in card.select(selector):
        href = element.get("href")
        if href:
            return href
    return None


class MarkupExtractor:
    """Fallback extraction strategy: listing cards in the markup tree."""

    name = "markup"

    def __init__(self, profile: SiteProfile = FINDLAW):
        self.profile = profile

    def extract(self, soup: BeautifulSoup, page_url: str) -> List[Dict[str, Any]]:
        """
        Extract raw candidates from listing cards.

        Cards without a name or a profile URL are dropped.
        """
        candidates = []
        cards = soup.select(self.profile.card_selector)
        for card in cards:
            raw = self._parse_card(card, page_url)
            if raw.get("name") or raw.get("profile_url"):
                candidates.append(raw)
        logger.debug(f"Markup extractor kept {len(candidates)}/{len(cards)} cards")
        return candidates

    def _parse_card(self, card: Tag, page_url: str) -> Dict[str, Any]:
        p = self.profile

        title = card.select_one(p.title_selector)
        name = clean_text(title.get_text(" ", strip=True)) if title else None

        profile_url = to_absolute_url(_first_href(card, p.profile_link_selector), page_url)
        website = to_absolute_url(_first_href(card, p.website_link_selector), page_url)

        phone = None
        phone_el = card.select_one(p.phone_selector)
        if phone_el:
            phone = clean_text(phone_el.get_text(" ", strip=True)) or clean_text(
                phone_el.get("data-phone")
            )

        rating, reviews = None, None
        reviews_el = card.select_one(p.reviews_link_selector)
        if reviews_el:
            rating, reviews = parse_rating_label(
                reviews_el.get("aria-label"),
                reviews_el.get_text(" ", strip=True),
            )

        image_el = card.select_one(p.image_selector)
        image = image_el.get("src") if image_el else None

        practice_el = card.select_one(p.practice_area_selector)
        practice_areas = (
            clean_practice_area(practice_el.get_text(" ", strip=True)) if practice_el else None
        )

        address = {}
        # Parsed one element at a time; a .firm_name span may hold the firm's name
        for location_el in card.select(p.location_selector):
            address = parse_address_text(location_el.get_text(" ", strip=True))
            if address:
                break
        if not address:
            address = parse_address_text(" ".join(card.get_text(" ").split()))

        return {
            "name": name,
            "profile_url": profile_url,
            "website": website,
            "phone": phone,
            "rating": rating,
            "reviews": reviews,
            "image": image,
            "practice_areas": practice_areas,
            **address,
        }
