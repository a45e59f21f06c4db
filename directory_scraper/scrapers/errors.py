"""
Scraper exception hierarchy.

- ConfigError: invalid or incomplete run input (fatal, raised before any task)
- ExtractionError: a page could not be parsed (always caught at the page boundary)
- FetchError: raised by the fetch collaborator after retries are exhausted
"""


class ScraperError(Exception):
    """Base exception for directory scraper errors."""
    pass


class ConfigError(ScraperError):
    """Run input is missing a required value or is inconsistent."""
    pass


class ExtractionError(ScraperError):
    """A listing or detail document could not be parsed."""
    pass


class FetchError(ScraperError):
    """A page could not be fetched."""

    def __init__(self, url: str, message: str, status_code=None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code
