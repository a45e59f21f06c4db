"""
Shared fixtures for directory scraper tests.

Provides:
- Parsed listing (structured and markup) and detail pages
- Factories for JSON-LD listing pages of any size
- Run state, record and sink helpers
"""
import pytest

from directory_scraper.scrapers.models import Record, RunState
from directory_scraper.scrapers.output import MemorySink

from pages import (
    DETAIL_HTML,
    LISTING_URL,
    MARKUP_LISTING_HTML,
    collection_page_html,
    legal_service,
    parse,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def listing_url():
    return LISTING_URL


@pytest.fixture
def make_listing_page():
    """Factory: (entities, next_href, range_text) -> parsed listing page."""
    def _make(entities, next_href=None, range_text=None, extra_head=""):
        return parse(collection_page_html(entities, next_href, range_text, extra_head))
    return _make


@pytest.fixture
def make_entity():
    return legal_service


@pytest.fixture
def markup_listing_soup():
    return parse(MARKUP_LISTING_HTML)


@pytest.fixture
def detail_soup():
    return parse(DETAIL_HTML)


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def make_state():
    def _make(target=100, page_limit=20, collect_details=False):
        return RunState(target=target, page_limit=page_limit, collect_details=collect_details)
    return _make


@pytest.fixture
def make_record():
    def _make(index, **overrides):
        fields = {
            "name": f"Firm {index}",
            "profile_url": f"https://lawyers.findlaw.com/profile/firm-{index}",
        }
        fields.update(overrides)
        return Record(**fields)
    return _make


@pytest.fixture(autouse=True)
def clear_redis_url(monkeypatch):
    """Keep tests independent of REDIS_URL in the developer's environment."""
    monkeypatch.delenv("REDIS_URL", raising=False)
