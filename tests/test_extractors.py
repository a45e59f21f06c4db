"""
Tests for listing extraction: JSON-LD first, listing cards as fallback.
"""
import json

import pytest
from bs4 import BeautifulSoup

from directory_scraper.scrapers.adapters import FINDLAW
from directory_scraper.scrapers.errors import ExtractionError
from directory_scraper.scrapers.extractors import (
    MarkupExtractor,
    StructuredExtractor,
    default_strategies,
    extract_candidates,
    iter_json_ld,
    parse_address_text,
    parse_rating_label,
)


def _soup(*blocks, body=""):
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in blocks
    )
    return BeautifulSoup(f"<html><head>{scripts}</head><body>{body}</body></html>", "html.parser")


# =============================================================================
# JSON-LD parsing
# =============================================================================

class TestIterJsonLd:
    """Tolerant JSON-LD block iteration."""

    def test_malformed_block_skipped_without_aborting(self):
        soup = _soup("{ nope", {"@type": "ItemList"})
        assert [b["@type"] for b in iter_json_ld(soup)] == ["ItemList"]

    def test_arrays_and_graph_flattened(self):
        soup = _soup([{"@type": "A"}, {"@graph": [{"@type": "B"}, {"@type": "C"}]}])
        types = [b.get("@type") for b in iter_json_ld(soup)]
        assert types == ["A", None, "B", "C"]


# =============================================================================
# StructuredExtractor
# =============================================================================

class TestStructuredExtractor:
    """Primary strategy."""

    def test_collection_page_entities_in_order(self, make_listing_page, make_entity, listing_url):
        soup = make_listing_page([make_entity(1), make_entity(2), make_entity(3)])
        candidates = StructuredExtractor(FINDLAW).extract(soup, listing_url)

        assert [c["name"] for c in candidates] == ["Firm 1", "Firm 2", "Firm 3"]
        assert candidates[0]["city"] == "Austin"
        assert candidates[0]["profile_url"] == "https://lawyers.findlaw.com/profile/firm-1"

    def test_collection_page_accepts_any_entity_type(self, make_listing_page, make_entity, listing_url):
        soup = make_listing_page([make_entity(1, **{"@type": "Person"})])
        assert len(StructuredExtractor().extract(soup, listing_url)) == 1

    def test_bare_item_list_filters_by_kind(self, listing_url):
        block = {
            "@type": "ItemList",
            "itemListElement": [
                {"@type": "LegalService", "name": "Kept"},
                {"@type": ["Attorney", "Person"], "name": "Also kept"},
                {"@type": "BreadcrumbList", "name": "Dropped"},
            ],
        }
        candidates = StructuredExtractor().extract(_soup(block), listing_url)
        assert [c["name"] for c in candidates] == ["Kept", "Also kept"]

    def test_field_mapping(self, listing_url):
        entity = {
            "@type": "LegalService",
            "name": "Oak",
            "address": "1 Main St",
            "sameAs": "https://oak.example.com",
            "mainEntityOfPage": {"@id": "https://lawyers.findlaw.com/profile/oak"},
            "url": "https://ignored.example.com",
            "aggregateRating": {"ratingValue": 4.7, "reviewCount": 9},
            "geo": {"latitude": 30.1, "longitude": -97.2},
            "knowsAbout": ["Divorce"],
        }
        [raw] = StructuredExtractor().extract(_soup({"@type": "ItemList", "itemListElement": [entity]}), listing_url)

        assert raw["street"] == "1 Main St"
        assert raw["website"] == "https://oak.example.com"
        assert raw["profile_url"] == "https://lawyers.findlaw.com/profile/oak"
        assert raw["rating"] == 4.7
        assert raw["reviews"] == 9
        assert raw["latitude"] == 30.1
        assert raw["practice_areas"] == ["Divorce"]

    def test_page_without_json_ld(self, listing_url):
        assert StructuredExtractor().extract(_soup(body="<p>hi</p>"), listing_url) == []


# =============================================================================
# MarkupExtractor
# =============================================================================

class TestMarkupExtractor:
    """Fallback strategy."""

    def test_cards_parsed(self, markup_listing_soup, listing_url):
        candidates = MarkupExtractor(FINDLAW).extract(markup_listing_soup, listing_url)
        assert [c["name"] for c in candidates] == ["Oak Law Group", "Pine Legal"]

        oak, pine = candidates
        assert oak["profile_url"] == "https://lawyers.findlaw.com/profile/oak-law"
        assert oak["website"] == "https://oaklaw.example.com"
        assert oak["phone"] == "(512) 555-0100"
        assert oak["rating"] == "4.5"
        assert oak["reviews"] == 12
        assert oak["practice_areas"] == "Family Law"
        assert oak["image"] == "/images/oak-law-logo"
        assert (oak["city"], oak["region"], oak["postal_code"]) == ("Austin", "TX", "78701")

        assert pine["phone"] == "(512) 555-0200"
        assert pine["city"] == "Round Rock"
        assert pine["rating"] is None

    def test_firm_name_span_kept_out_of_city(self, listing_url):
        soup = BeautifulSoup(
            '<li class="fl-serp-card">'
            '<a class="fl-serp-card-title" href="/profile/oak-law">Oak Law Group</a>'
            '<p class="fl-serp-card-text"><span class="firm_name">Oak Law Group</span></p>'
            '<a class="fl-serp-card-location-link" href="#">Austin, TX 78701</a>'
            "</li>",
            "html.parser",
        )
        [raw] = MarkupExtractor(FINDLAW).extract(soup, listing_url)
        assert (raw["city"], raw["region"], raw["postal_code"]) == ("Austin", "TX", "78701")

    def test_card_without_name_or_profile_dropped(self, markup_listing_soup, listing_url):
        candidates = MarkupExtractor().extract(markup_listing_soup, listing_url)
        assert all(c["name"] for c in candidates)
        assert len(candidates) == 2


class TestMarkupPatterns:

    def test_rating_out_of(self):
        assert parse_rating_label("Rated 4.5 out of 5 stars") == ("4.5", None)

    def test_rating_before_paren_with_count(self):
        assert parse_rating_label(None, "4.8 (23)") == ("4.8", 23)

    def test_first_text_wins(self):
        assert parse_rating_label("3 out of 5 (7)", "4.8 (23)") == ("3", 7)

    def test_address(self):
        assert parse_address_text("Springfield, IL 62701") == {
            "city": "Springfield", "region": "IL", "postal_code": "62701",
        }
        assert parse_address_text("Springfield") == {}


# =============================================================================
# Strategy order
# =============================================================================

class TestExtractCandidates:

    def test_structured_wins_when_present(self, make_listing_page, make_entity, listing_url):
        soup = make_listing_page([make_entity(1)])
        strategy, candidates = extract_candidates(soup, listing_url, default_strategies(FINDLAW))
        assert strategy == "structured"
        assert len(candidates) == 1

    def test_markup_fallback_activates(self, markup_listing_soup, listing_url):
        strategy, candidates = extract_candidates(markup_listing_soup, listing_url)
        assert strategy == "markup"
        assert len(candidates) == 2

    def test_fallback_never_runs_when_primary_succeeds(self, make_listing_page, make_entity, listing_url):
        class Exploding:
            name = "exploding"

            def extract(self, soup, page_url):
                raise AssertionError("fallback should not run")

        soup = make_listing_page([make_entity(1)])
        strategy, _ = extract_candidates(soup, listing_url, [StructuredExtractor(), Exploding()])
        assert strategy == "structured"

    def test_nothing_found(self, listing_url):
        assert extract_candidates(_soup(body="<p>empty</p>"), listing_url) == (None, [])

    def test_strategy_crash_raises_extraction_error(self, listing_url):
        class BrokenLayout:
            name = "broken"

            def extract(self, soup, page_url):
                raise TypeError("unexpected node")

        with pytest.raises(ExtractionError, match="broken extraction failed"):
            extract_candidates(_soup(), listing_url, [BrokenLayout()])
