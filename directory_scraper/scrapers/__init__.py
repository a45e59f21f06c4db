"""
Directory Scraping Package

Listing crawl for paginated lawyer/firm directories with:
- Structured data (JSON-LD) extraction, markup cards as fallback
- Run-wide deduplication and exact result quotas
- Optional detail-page enrichment with batched output
- Config-driven rate limiting
"""

from .adapters import FINDLAW, SiteProfile
from .base import BaseScraper, TaskEmitter
from .errors import ConfigError, ExtractionError, FetchError, ScraperError
from .fetcher import PageFetcher
from .models import CrawlTask, Record, RunState, TaskKind
from .orchestrator import CrawlOrchestrator
from .output import JsonLinesSink, MemorySink, OutputBatcher, RecordSink
from .pipeline import ListingPipeline
from .rate_limiter import ScraperRateLimiter, get_scraper_rate_limiter
from .start_urls import resolve_start_urls

__all__ = [
    "FINDLAW",
    "SiteProfile",
    "BaseScraper",
    "TaskEmitter",
    "ScraperError",
    "ConfigError",
    "ExtractionError",
    "FetchError",
    "PageFetcher",
    "CrawlTask",
    "Record",
    "RunState",
    "TaskKind",
    "CrawlOrchestrator",
    "RecordSink",
    "MemorySink",
    "JsonLinesSink",
    "OutputBatcher",
    "ListingPipeline",
    "ScraperRateLimiter",
    "get_scraper_rate_limiter",
    "resolve_start_urls",
]
