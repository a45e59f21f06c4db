"""
Listing extractors.

Each strategy exposes `name` and `extract(soup, page_url) -> List[dict]`.
Strategies are tried in a fixed priority order; the first one that yields
candidates wins and later strategies never run.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from ..adapters import FINDLAW, SiteProfile
from ..errors import ExtractionError
from .markup import MarkupExtractor, parse_address_text, parse_rating_label
from .structured import StructuredExtractor, entity_types, iter_json_ld

logger = logging.getLogger(__name__)


def default_strategies(profile: SiteProfile = FINDLAW) -> List[Any]:
    """Structured data first, markup cards as fallback."""
    return [StructuredExtractor(profile), MarkupExtractor(profile)]


def extract_candidates(
    soup: BeautifulSoup,
    page_url: str,
    strategies: Optional[Sequence[Any]] = None,
) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Run strategies in order until one yields candidates.

    Returns:
        (name of the winning strategy or None, raw candidates)

    Raises:
        ExtractionError: A strategy failed on an unexpected page layout
    """
    for strategy in strategies or default_strategies():
        try:
            candidates = strategy.extract(soup, page_url)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"{strategy.name} extraction failed on {page_url}: {e}") from e
        if candidates:
            return strategy.name, candidates
        logger.info(f"{strategy.name} extraction found no candidates on {page_url}")
    return None, []


__all__ = [
    "StructuredExtractor",
    "MarkupExtractor",
    "default_strategies",
    "extract_candidates",
    "entity_types",
    "iter_json_ld",
    "parse_address_text",
    "parse_rating_label",
]
