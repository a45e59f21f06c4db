"""
Structured Extractor - Listing candidates from embedded JSON-LD blocks.

Recognized shapes:
1. CollectionPage whose mainEntity is an ItemList (all entities accepted)
2. Bare ItemList (entities filtered to the site's listing kinds)

Each block is parsed independently. Malformed blocks are common on
directory pages and are skipped without aborting the page.
"""
import json
import logging
from typing import Any, Dict, Iterator, List, Set

from bs4 import BeautifulSoup

from ..adapters import FINDLAW, SiteProfile
from ..utils.normalize import coerce_url

logger = logging.getLogger(__name__)

JSON_LD_SELECTOR = "script[type='application/ld+json']"


def iter_json_ld(soup: BeautifulSoup) -> Iterator[Dict[str, Any]]:
    """
    Yield every JSON-LD object on the page, in document order.

    Top-level arrays and @graph wrappers are flattened. Blocks that fail to
    parse are logged at debug level and skipped.
    """
    for index, script in enumerate(soup.select(JSON_LD_SELECTOR)):
        raw = script.string or script.get_text() or ""
        if not raw.strip():
            continue
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug(f"Skipping malformed JSON-LD block #{index}: {e}")
            continue

        nodes = parsed if isinstance(parsed, list) else [parsed]
        for node in nodes:
            if not isinstance(node, dict):
                continue
            yield node
            graph = node.get("@graph")
            if isinstance(graph, list):
                for item in graph:
                    if isinstance(item, dict):
                        yield item


def entity_types(entity: Dict[str, Any]) -> Set[str]:
    """@type as a set (JSON-LD allows a string or a list)."""
    raw = entity.get("@type")
    if isinstance(raw, str):
        return {raw}
    if isinstance(raw, list):
        return {t for t in raw if isinstance(t, str)}
    return set()


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class StructuredExtractor:
    """Primary extraction strategy: JSON-LD item lists."""

    name = "structured"

    def __init__(self, profile: SiteProfile = FINDLAW):
        self.profile = profile

    def extract(self, soup: BeautifulSoup, page_url: str) -> List[Dict[str, Any]]:
        """
        Extract raw candidates from every JSON-LD block on a listing page.

        Args:
            soup: Parsed listing page
            page_url: URL the page was fetched from (unused; URLs are
                resolved by the normalizer)

        Returns:
            Raw candidate dicts in document order (possibly empty)
        """
        candidates: List[Dict[str, Any]] = []
        for block in iter_json_ld(soup):
            candidates.extend(self._from_block(block))
        return candidates

    def _from_block(self, block: Dict[str, Any]) -> List[Dict[str, Any]]:
        types = entity_types(block)

        if "CollectionPage" in types:
            main_entity = _as_dict(block.get("mainEntity"))
            items = main_entity.get("itemListElement")
            if isinstance(items, list):
                return [self._map_entity(e) for e in self._unwrap(items)]
            return []

        if "ItemList" in types and isinstance(block.get("itemListElement"), list):
            return [
                self._map_entity(e)
                for e in self._unwrap(block["itemListElement"])
                if entity_types(e) & self.profile.listing_kinds
            ]

        return []

    @staticmethod
    def _unwrap(items: List[Any]) -> Iterator[Dict[str, Any]]:
        """ListItem entries may wrap their subject under 'item'."""
        for item in items:
            if not isinstance(item, dict):
                continue
            entity = item.get("item") or item
            if isinstance(entity, dict):
                yield entity

    @staticmethod
    def _map_entity(entity: Dict[str, Any]) -> Dict[str, Any]:
        address = entity.get("address")
        if isinstance(address, str):
            address = {"streetAddress": address}
        address = _as_dict(address)
        geo = _as_dict(entity.get("geo"))
        rating = _as_dict(entity.get("aggregateRating"))

        return {
            "name": entity.get("name"),
            "street": address.get("streetAddress"),
            "city": address.get("addressLocality"),
            "region": address.get("addressRegion"),
            "postal_code": address.get("postalCode"),
            "phone": entity.get("telephone"),
            "website": coerce_url(entity.get("sameAs")) or coerce_url(entity.get("url")),
            "profile_url": (
                coerce_url(entity.get("mainEntityOfPage")) or coerce_url(entity.get("url"))
            ),
            "rating": rating.get("ratingValue"),
            "reviews": rating.get("reviewCount"),
            "latitude": geo.get("latitude"),
            "longitude": geo.get("longitude"),
            "image": entity.get("image"),
            "practice_areas": entity.get("areaServed") or entity.get("knowsAbout"),
        }
