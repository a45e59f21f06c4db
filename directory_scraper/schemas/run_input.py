"""
Pydantic model for crawl run input.

Key features:
- frozen=True: Immutable once validated
- populate_by_name=True: camelCase keys and snake_case field names both accepted
- Legacy aliases: state -> region, county -> subRegion, city -> locality
- resultsWanted / maxPages coerced the lenient way (non-numeric is not an error)
"""
import math
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..scrapers.adapters import FINDLAW, SiteProfile
from ..scrapers.models import UNBOUNDED_TARGET, RunState
from ..scrapers.start_urls import resolve_start_urls

DEFAULT_RESULTS_WANTED = 100
DEFAULT_MAX_PAGES = 20
# maxPages given but not a number
FALLBACK_MAX_PAGES = 999


def _as_number(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        number = float(v)
    elif isinstance(v, str):
        try:
            number = float(v.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class RunInput(BaseModel):
    """
    Crawl run input.

    Usage:
        run_input = RunInput.model_validate(json.load(f))
        urls = run_input.start_urls()
        state = run_input.to_run_state()
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        extra='ignore',
    )

    # === Start URL: explicit ===
    start_url: Optional[str] = Field(default=None, validation_alias=AliasChoices('startUrl', 'start_url'))
    start_urls_raw: Optional[List[Any]] = Field(
        default=None,
        validation_alias=AliasChoices('startUrls', 'start_urls'),
        description="URL strings or {url: ...} objects",
    )

    # === Start URL: composed ===
    practice_area: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('practiceArea', 'practice_area'),
    )
    region: Optional[str] = Field(default=None, validation_alias=AliasChoices('region', 'state'))
    sub_region: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('subRegion', 'sub_region', 'county'),
    )
    locality: Optional[str] = Field(default=None, validation_alias=AliasChoices('locality', 'city'))

    # === Limits ===
    results_wanted: int = Field(
        default=DEFAULT_RESULTS_WANTED,
        validation_alias=AliasChoices('resultsWanted', 'results_wanted'),
    )
    max_pages: int = Field(
        default=DEFAULT_MAX_PAGES, validation_alias=AliasChoices('maxPages', 'max_pages'),
    )
    collect_details: bool = Field(
        default=False, validation_alias=AliasChoices('collectDetails', 'collect_details'),
    )

    # === Fetch collaborator pass-through ===
    proxy_configuration: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices('proxyConfiguration', 'proxy_configuration'),
    )
    max_request_retries: Optional[int] = Field(
        default=None, validation_alias=AliasChoices('maxRequestRetries', 'max_request_retries'),
    )

    @field_validator('start_urls_raw', mode='before')
    @classmethod
    def wrap_single_start_url(cls, v):
        if v is None or isinstance(v, list):
            return v
        return [v]

    @field_validator('practice_area', 'region', 'sub_region', 'locality', 'start_url', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('results_wanted', mode='before')
    @classmethod
    def coerce_results_wanted(cls, v):
        """Non-numeric means no limit; numbers are floored at 1."""
        if v is None:
            return DEFAULT_RESULTS_WANTED
        number = _as_number(v)
        if number is None:
            return UNBOUNDED_TARGET
        return max(1, min(int(number), UNBOUNDED_TARGET))

    @field_validator('max_pages', mode='before')
    @classmethod
    def coerce_max_pages(cls, v):
        if v is None:
            return DEFAULT_MAX_PAGES
        number = _as_number(v)
        if number is None:
            return FALLBACK_MAX_PAGES
        return max(1, int(number))

    @field_validator('max_request_retries', mode='before')
    @classmethod
    def coerce_retries(cls, v):
        number = _as_number(v) if v is not None else None
        return None if number is None else max(0, int(number))

    @property
    def explicit_urls(self) -> List[Any]:
        urls: List[Any] = []
        if self.start_url:
            urls.append(self.start_url)
        urls.extend(self.start_urls_raw or [])
        return urls

    @property
    def proxy_urls(self) -> List[str]:
        """proxyConfiguration.proxyUrls, if any."""
        config = self.proxy_configuration or {}
        urls = config.get('proxyUrls') or config.get('proxy_urls') or []
        return [u for u in urls if isinstance(u, str) and u.strip()]

    def start_urls(self, profile: SiteProfile = FINDLAW) -> List[str]:
        """
        Resolve the run's first listing page(s).

        Raises:
            ConfigError: No explicit URL and practiceArea or region missing
        """
        return resolve_start_urls(
            self.explicit_urls,
            practice_area=self.practice_area,
            region=self.region,
            sub_region=self.sub_region,
            locality=self.locality,
            profile=profile,
        )

    def to_run_state(self) -> RunState:
        return RunState(
            target=self.results_wanted,
            page_limit=self.max_pages,
            collect_details=self.collect_details,
        )
