"""
Site Profile - Selector and URL configuration for one directory site.

The extraction pipeline is site-agnostic; everything it needs to know about
a site's markup lives in a SiteProfile. Add a site by defining a new profile
in its own adapter module.
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class SiteProfile:
    """Selectors and URL conventions for a paginated directory site."""
    name: str
    base_url: str

    # JSON-LD entity types accepted from a bare ItemList
    listing_kinds: FrozenSet[str]

    # Listing cards (markup fallback)
    card_selector: str
    title_selector: str
    profile_link_selector: str
    website_link_selector: str
    phone_selector: str
    reviews_link_selector: str
    image_selector: str
    practice_area_selector: str
    location_selector: str

    # Pagination
    next_page_selector: str
    rel_next_selector: str
    results_range_selector: str

    # Detail page
    detail_practice_areas_selector: str
    detail_overview_selector: str
    detail_overview_heading_selector: str
    detail_people_selector: str
    detail_rating_selector: str

    # Query parameter incremented for manual pagination
    page_param: str = "page"

    def build_start_url(
        self,
        practice_area: str,
        region: str,
        sub_region: Optional[str] = None,
        locality: Optional[str] = None,
    ) -> str:
        """
        Compose the default listing URL from path parts.

        Layout: {base}/{practice_area}/{region}/[{sub_region}/ | {locality}/]
        sub_region wins when both are given.
        """
        path = f"{self.base_url.rstrip('/')}/{practice_area}/{region}/"
        if sub_region:
            path += f"{sub_region}/"
        elif locality:
            path += f"{locality}/"
        return path
