"""
Directory Scraper

Crawls a paginated lawyer/firm directory and writes one record per listing.

Usage:
    directory-scraper run --practice-area personal-injury-plaintiff --region texas
    directory-scraper extract saved_page.html
"""

__version__ = "1.0.0"
