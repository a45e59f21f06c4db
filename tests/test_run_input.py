"""
Tests for run input validation and start URL resolution.
"""
import pytest
from pydantic import ValidationError

from directory_scraper.schemas import RunInput
from directory_scraper.scrapers.errors import ConfigError
from directory_scraper.scrapers.models import UNBOUNDED_TARGET
from directory_scraper.scrapers.start_urls import resolve_start_urls


# =============================================================================
# Limits
# =============================================================================

class TestLimits:

    def test_defaults(self):
        run_input = RunInput()
        assert run_input.results_wanted == 100
        assert run_input.max_pages == 20
        assert run_input.collect_details is False

    @pytest.mark.parametrize("raw,expected", [
        (25, 25),
        ("40", 40),
        (0, 1),
        (-5, 1),
        ("all", UNBOUNDED_TARGET),
        ("", UNBOUNDED_TARGET),
    ])
    def test_results_wanted(self, raw, expected):
        assert RunInput.model_validate({"resultsWanted": raw}).results_wanted == expected

    @pytest.mark.parametrize("raw,expected", [
        (3, 3),
        ("7", 7),
        (0, 1),
        ("lots", 999),
    ])
    def test_max_pages(self, raw, expected):
        assert RunInput.model_validate({"maxPages": raw}).max_pages == expected

    def test_snake_case_aliases(self):
        run_input = RunInput.model_validate({"results_wanted": 5, "max_pages": 2})
        assert (run_input.results_wanted, run_input.max_pages) == (5, 2)

    def test_to_run_state(self):
        state = RunInput.model_validate({"resultsWanted": 5, "maxPages": 2, "collectDetails": True}).to_run_state()
        assert (state.target, state.page_limit, state.collect_details) == (5, 2, True)

    def test_frozen(self):
        run_input = RunInput()
        with pytest.raises(ValidationError):
            run_input.max_pages = 3


# =============================================================================
# Start URLs
# =============================================================================

class TestStartUrls:

    def test_composed_from_path_parts(self):
        run_input = RunInput.model_validate({"practiceArea": "family-law", "region": "texas"})
        assert run_input.start_urls() == ["https://lawyers.findlaw.com/family-law/texas/"]

    def test_sub_region_wins_over_locality(self):
        run_input = RunInput.model_validate({
            "practiceArea": "dui-law", "region": "ohio", "subRegion": "franklin-county", "locality": "columbus",
        })
        assert run_input.start_urls() == ["https://lawyers.findlaw.com/dui-law/ohio/franklin-county/"]

    def test_legacy_aliases(self):
        run_input = RunInput.model_validate({"practiceArea": "dui-law", "state": "ohio", "city": "columbus"})
        assert run_input.start_urls() == ["https://lawyers.findlaw.com/dui-law/ohio/columbus/"]

    @pytest.mark.parametrize("data", [
        {},
        {"practiceArea": "family-law"},
        {"region": "texas"},
        {"practiceArea": "  ", "region": "texas"},
    ])
    def test_missing_parts_fail_fast(self, data):
        with pytest.raises(ConfigError):
            RunInput.model_validate(data).start_urls()

    def test_explicit_url_wins(self):
        run_input = RunInput.model_validate({
            "startUrl": "https://lawyers.findlaw.com/x/y/", "practiceArea": "family-law", "region": "texas",
        })
        assert run_input.start_urls() == ["https://lawyers.findlaw.com/x/y/"]

    def test_start_urls_objects_and_strings(self):
        run_input = RunInput.model_validate({
            "startUrls": [{"url": "https://a.com/1"}, "https://a.com/2", "https://a.com/1"],
        })
        assert run_input.start_urls() == ["https://a.com/1", "https://a.com/2"]

    def test_single_start_urls_value_wrapped(self):
        assert RunInput.model_validate({"startUrls": "https://a.com/1"}).start_urls() == ["https://a.com/1"]

    def test_invalid_explicit_url(self):
        with pytest.raises(ConfigError):
            resolve_start_urls(["/relative/only"])


class TestProxyConfiguration:

    def test_proxy_urls_passed_through(self):
        run_input = RunInput.model_validate({
            "proxyConfiguration": {"proxyUrls": ["http://p1:8000", ""]},
        })
        assert run_input.proxy_urls == ["http://p1:8000"]

    def test_no_proxy(self):
        assert RunInput().proxy_urls == []
