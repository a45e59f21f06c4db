"""
Record Normalizer - Reshapes raw extracted fields into canonical Records.

Every function here is pure: same input, same output, no document access.
This keeps extraction testable without a live page.

Handles:
- Relative href resolution (malformed input -> None, never raises)
- URL-or-object coercion for JSON-LD fields (url -> @id -> href)
- Image URL repair (append a default extension when missing)
- Address formatting and practice-area cleanup
"""
import re
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from ..models import Address, Record

DEFAULT_BASE_URL = "https://lawyers.findlaw.com"

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")
DEFAULT_IMAGE_EXTENSION = "jpg"

# Priority order when a link is given as an object
URL_OBJECT_KEYS = ("url", "@id", "href")

_IMAGE_EXT_RE = re.compile(r"\.(%s)$" % "|".join(IMAGE_EXTENSIONS), re.IGNORECASE)
_PRACTICE_SUFFIX_RE = re.compile(r"\s*Lawyers?\s*$", re.IGNORECASE)


def clean_text(value: Any) -> Optional[str]:
    """Collapse whitespace; empty -> None."""
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def to_absolute_url(href: Any, base: Optional[str] = DEFAULT_BASE_URL) -> Optional[str]:
    """
    Resolve href against base.

    Returns None for empty or malformed input, and for results that are not
    http(s) URLs (javascript:, mailto:, bare fragments on a bad base).
    """
    if not isinstance(href, str) or not href.strip():
        return None
    try:
        resolved = urljoin(base or DEFAULT_BASE_URL, href.strip())
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return resolved


def coerce_url(value: Any) -> Optional[str]:
    """
    Reduce a URL-or-object field to a single URL string.

    Examples:
        "https://a.com" -> "https://a.com"
        {"@id": "https://a.com"} -> "https://a.com"
        {"url": "u", "href": "h"} -> "u"
        ["https://a.com", "https://b.com"] -> "https://a.com"
        {} / None / 42 -> None
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        for key in URL_OBJECT_KEYS:
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None
    if isinstance(value, (list, tuple)):
        for item in value:
            url = coerce_url(item)
            if url:
                return url
    return None


def fix_image_url(value: Any) -> Optional[str]:
    """
    Normalize an image value to a URL with a recognized image extension.

    Object-shaped values are reduced to a URL first. A path without a known
    extension gets ".jpg" appended (query string and fragment are preserved).
    """
    url = coerce_url(value)
    if not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if _IMAGE_EXT_RE.search(parsed.path):
        return url
    path = f"{parsed.path}.{DEFAULT_IMAGE_EXTENSION}"
    return urlunparse(parsed._replace(path=path))


def join_text_values(value: Any) -> Optional[str]:
    """Flatten a string / list / {name} value into one comma-joined string."""
    if value is None:
        return None
    if isinstance(value, dict):
        return clean_text(value.get("name"))
    if isinstance(value, (list, tuple)):
        parts = [join_text_values(v) for v in value]
        return ", ".join(p for p in parts if p) or None
    return clean_text(value)


def clean_practice_area(text: Any) -> Optional[str]:
    """Strip a trailing 'Lawyer' / 'Lawyers' suffix (markup listing labels)."""
    cleaned = clean_text(text)
    if not cleaned:
        return None
    return _PRACTICE_SUFFIX_RE.sub("", cleaned).strip() or None


def to_rating(value: Any) -> Optional[str]:
    """Numeric-as-string rating: 4 -> '4', 4.5 -> '4.5', ' 4.0 ' -> '4.0'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return clean_text(value)


def to_int(value: Any) -> Optional[int]:
    """Parse a review count; unparsable -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).replace(",", "").strip()
    try:
        return int(float(text))
    except ValueError:
        return None


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_candidate(raw: Dict[str, Any], base_url: Optional[str] = None) -> Record:
    """
    Build a Record from a raw candidate dict produced by an extractor.

    Args:
        raw: Extractor output. URL fields may still be strings or link objects.
        base_url: URL of the page the candidate came from

    Returns:
        Record (never raises on bad field values)
    """
    base = base_url or DEFAULT_BASE_URL
    return Record(
        name=clean_text(raw.get("name")),
        address=Address(
            street=clean_text(raw.get("street")),
            city=clean_text(raw.get("city")),
            region=clean_text(raw.get("region")),
            postal_code=clean_text(raw.get("postal_code")),
        ),
        phone=clean_text(raw.get("phone")),
        website=to_absolute_url(coerce_url(raw.get("website")), base),
        profile_url=to_absolute_url(coerce_url(raw.get("profile_url")), base),
        rating=to_rating(raw.get("rating")),
        reviews=to_int(raw.get("reviews")),
        latitude=to_float(raw.get("latitude")),
        longitude=to_float(raw.get("longitude")),
        image=fix_image_url(to_absolute_url(coerce_url(raw.get("image")), base)),
        practice_areas=join_text_values(raw.get("practice_areas")),
    )
