"""
Page Fetcher - HTTP GET with pacing, retries and header/proxy rotation.

Every attempt goes through the domain rate limiter. Connection errors,
timeouts, 429 and 5xx responses are retried with exponential backoff;
other 4xx responses fail immediately.
"""
import itertools
import logging
import random
import threading
import time
from typing import Optional, Sequence
from urllib.parse import urlparse

import requests

from .errors import FetchError
from .models import TaskKind
from .rate_limiter import ScraperRateLimiter, get_scraper_rate_limiter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_MAX_RETRIES = 2
INITIAL_BACKOFF_SECONDS = 1.0
BACKOFF_MULTIPLIER = 2.0

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.5 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:127.0) Gecko/20100101 Firefox/127.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36 Edg/126.0.0.0",
)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class PageFetcher:
    """Fetches HTML pages for the crawl engine. Safe to share across threads."""

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        proxy_urls: Optional[Sequence[str]] = None,
        rate_limiter: Optional[ScraperRateLimiter] = None,
        session: Optional[requests.Session] = None,
        backoff_seconds: float = INITIAL_BACKOFF_SECONDS,
    ):
        """
        Args:
            timeout: Per-request timeout in seconds
            max_retries: Attempts after the first failure
            proxy_urls: Proxies used round-robin, one per request
            rate_limiter: Domain rate limiter (global instance by default)
            session: requests session (a new one by default)
            backoff_seconds: First retry delay, doubled per attempt
        """
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.rate_limiter = rate_limiter or get_scraper_rate_limiter()
        self.backoff_seconds = backoff_seconds
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)
        self._proxy_lock = threading.Lock()
        self._proxies = itertools.cycle(list(proxy_urls)) if proxy_urls else None

        logger.info(
            f"Page fetcher initialized (timeout={timeout}s, retries={self.max_retries}, "
            f"proxies={len(proxy_urls) if proxy_urls else 0})"
        )

    def _next_proxy(self) -> Optional[dict]:
        if self._proxies is None:
            return None
        with self._proxy_lock:
            proxy = next(self._proxies)
        return {"http": proxy, "https": proxy}

    def fetch(self, url: str, kind: TaskKind = TaskKind.LISTING) -> str:
        """
        Fetch a page.

        Args:
            url: Absolute http(s) URL
            kind: Task kind, used as the rate limiter route group

        Returns:
            Response body as text

        Raises:
            FetchError: Non-retryable status, or all attempts failed
        """
        domain = urlparse(url).netloc
        route_group = kind.value.lower()
        attempts = self.max_retries + 1
        last_error: Optional[FetchError] = None
        last_detail = None

        for attempt in range(attempts):
            try:
                self.rate_limiter.wait(domain, route_group)
            except RuntimeError as e:
                raise FetchError(url, str(e)) from e

            try:
                response = self._session.get(
                    url,
                    timeout=self.timeout,
                    headers={"User-Agent": random.choice(USER_AGENTS)},
                    proxies=self._next_proxy(),
                )

                if response.status_code in RETRYABLE_STATUS_CODES:
                    last_detail = f"HTTP {response.status_code}"
                    last_error = FetchError(url, last_detail, response.status_code)
                elif response.status_code >= 400:
                    raise FetchError(url, f"HTTP {response.status_code}", response.status_code)
                else:
                    return response.text

            except requests.exceptions.RequestException as e:
                last_detail = str(e)
                last_error = FetchError(url, last_detail)

            if attempt < attempts - 1:
                backoff = self.backoff_seconds * (BACKOFF_MULTIPLIER ** attempt)
                logger.warning(
                    f"Fetch attempt {attempt + 1}/{attempts} failed for {url}: {last_detail}. "
                    f"Retrying in {backoff:.1f}s"
                )
                time.sleep(backoff)

        raise FetchError(
            url,
            f"Failed after {attempts} attempts: {last_detail}",
            last_error.status_code if last_error else None,
        )

    def close(self):
        self._session.close()
