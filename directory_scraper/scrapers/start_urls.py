"""
Start URL resolution for a crawl run.

Explicit URLs are used as given (validated as absolute http(s) URLs).
Otherwise the listing URL is composed from the path parts:
    {base}/{practice_area}/{region}/[{sub_region}/ | {locality}/]
"""
import logging
from typing import Any, List, Optional, Sequence
from urllib.parse import urlparse

from .adapters import FINDLAW, SiteProfile
from .errors import ConfigError
from .utils.normalize import coerce_url

logger = logging.getLogger(__name__)


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def resolve_start_urls(
    explicit: Optional[Sequence[Any]] = None,
    practice_area: Optional[str] = None,
    region: Optional[str] = None,
    sub_region: Optional[str] = None,
    locality: Optional[str] = None,
    profile: SiteProfile = FINDLAW,
) -> List[str]:
    """
    Resolve the first listing page(s) of a run.

    Args:
        explicit: URL strings or {"url": ...} objects; wins over path parts
        practice_area: Practice area path segment (required without explicit)
        region: Region/state path segment (required without explicit)
        sub_region: Optional county segment
        locality: Optional city segment, used when sub_region is absent
        profile: Site whose base URL composes the default

    Returns:
        Start URLs in input order, duplicates removed

    Raises:
        ConfigError: No usable URL can be produced
    """
    if explicit:
        urls: List[str] = []
        for entry in explicit:
            url = coerce_url(entry)
            url = url.strip() if url else None
            if not url or not _is_http_url(url):
                raise ConfigError(f"Invalid start URL: {entry!r}")
            if url not in urls:
                urls.append(url)
        if any((practice_area, region, sub_region, locality)):
            logger.warning("Explicit start URL(s) given, ignoring practice area/region parameters")
        return urls

    missing = [
        name for name, value in (("practiceArea", practice_area), ("region", region))
        if not value
    ]
    if missing:
        raise ConfigError(
            f"Missing {', '.join(missing)}: provide startUrl(s) or both practiceArea and region"
        )

    url = profile.build_start_url(practice_area, region, sub_region, locality)
    logger.info(f"Built start URL: {url}")
    return [url]
