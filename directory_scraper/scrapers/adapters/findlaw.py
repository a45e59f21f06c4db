"""
FindLaw Lawyer Directory - Site profile.

Listing pages: https://lawyers.findlaw.com/{practice}/{state}/[{county}|{city}]/
- JSON-LD CollectionPage / ItemList of LegalService entities (primary)
- li.fl-serp-card result cards (fallback)
- Results range text "Results 1 to 20 of 412"

Detail pages: firm/attorney profile with overview, practice areas, people.
"""
from .base import SiteProfile

FINDLAW = SiteProfile(
    name="findlaw",
    base_url="https://lawyers.findlaw.com",
    listing_kinds=frozenset({"LegalService", "Attorney", "Organization"}),

    card_selector="li.fl-serp-card",
    title_selector=".fl-serp-card-title, [data-testid='serp-card-title-link']",
    profile_link_selector=(
        "a.directory_profile, .fl-serp-card-title, [data-testid='serp-card-title-link']"
    ),
    website_link_selector="a.directory_website",
    phone_selector="a.phone-button",
    reviews_link_selector=".fl-serp-card-reviews-link",
    image_selector=".fl-serp-card-image-link img, .fl-serp-card-image img",
    practice_area_selector="p.fl-serp-card-text > span:not(.firm_name)",
    location_selector=".fl-serp-card-location-link, .firm_name",

    next_page_selector=(
        "a[data-testid='fl-pagination-button-next'], "
        ".fl-pagination-button[aria-label='Next Page']"
    ),
    rel_next_selector="a[rel~='next'], link[rel~='next']",
    results_range_selector=(
        ".fl-pagination-results, [data-testid='fl-pagination-results']"
    ),

    detail_practice_areas_selector=(
        "div.block_content_body, #profile-tabs__panel--profile-info div.block_content_body"
    ),
    detail_overview_selector=".overview",
    detail_overview_heading_selector="h3#overview, h2#overview",
    detail_people_selector=".profile-profile-body",
    detail_rating_selector=".avvo-rating-badge, .fl-rating-value, [data-testid='rating']",
)
