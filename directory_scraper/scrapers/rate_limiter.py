"""
Scraper Rate Limiter - Domain-keyed request pacing for directory crawls.

Uses Redis when REDIS_URL is set (several crawler processes share one budget
per domain), in-memory sliding windows otherwise. Each domain/route has
hour and minute windows plus a one-second burst window.

Key format: scrape:{domain}:{route_group}
"""
import logging
import os
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import redis
import yaml

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = {
    "requests_per_minute": 30,
    "requests_per_hour": 1000,
    "burst_limit": 5,
}

# Seconds to keep trying before giving up on a slot
MAX_WAIT_SECONDS = 120

# burst_limit applies to this window
BURST_WINDOW_SECONDS = 1.0


class ScraperRateLimiter:
    """Sliding-window rate limiter with domain/route granularity. Thread-safe."""

    def __init__(self, config_path: Optional[str] = None, redis_url: Optional[str] = None):
        """
        Args:
            config_path: Path to YAML config file.
                         Defaults to directory_scraper/config/scraper_rate_limits.yaml
            redis_url: Redis connection URL. Defaults to REDIS_URL env var.
        """
        self.config_path = config_path or self._default_config_path()
        self.redis_url = redis_url if redis_url is not None else os.environ.get("REDIS_URL")
        self._config = None
        self._redis = None
        self._lock = threading.Lock()
        self._memory_store: Dict[str, List[float]] = defaultdict(list)

    def _default_config_path(self) -> str:
        return str(Path(__file__).parent.parent / "config" / "scraper_rate_limits.yaml")

    @property
    def config(self) -> Dict[str, Any]:
        """Load config (cached)."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def _load_config(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, "r") as f:
                config = yaml.safe_load(f) or {}
                logger.info(f"Loaded rate limits from {self.config_path}")
                return config
        except FileNotFoundError:
            logger.warning(f"Rate limit config not found at {self.config_path}, using defaults")
            return {"defaults": dict(DEFAULT_LIMITS), "domains": {}}

    @property
    def redis(self):
        """Redis client (lazy init), or None for in-memory limiting."""
        if self._redis is None and self.redis_url:
            try:
                client = redis.from_url(self.redis_url)
                client.ping()
                self._redis = client
                logger.info("Scraper rate limiter using Redis")
            except redis.RedisError as e:
                logger.warning(f"Failed to connect to Redis: {e}")
                self._redis = False  # Sentinel to prevent retries
        return self._redis if self._redis else None

    def _get_limits(self, domain: str, route_group: str = "default") -> Dict[str, int]:
        """
        Limits for a domain/route: defaults, overridden by domain then route config.
        """
        defaults = self.config.get("defaults") or {}
        domain_config = (self.config.get("domains") or {}).get(domain) or {}

        limits = {key: defaults.get(key, value) for key, value in DEFAULT_LIMITS.items()}
        for key in limits:
            if key in domain_config:
                limits[key] = domain_config[key]

        route_config = (domain_config.get("routes") or {}).get(route_group) or {}
        for key in limits:
            if key in route_config:
                limits[key] = route_config[key]

        return {key: max(1, int(value)) for key, value in limits.items()}

    def _make_key(self, domain: str, route_group: str = "default") -> str:
        return f"scrape:{domain}:{route_group}"

    def wait(self, domain: str, route_group: str = "default"):
        """
        Block until a request slot is free, then record the request.

        Args:
            domain: Domain being scraped
            route_group: Route group within domain

        Raises:
            RuntimeError: No slot became free within MAX_WAIT_SECONDS
        """
        limits = self._get_limits(domain, route_group)
        if self.redis:
            self._wait_redis(domain, route_group, limits)
        else:
            self._wait_memory(domain, route_group, limits)

    def _wait_redis(self, domain: str, route_group: str, limits: Dict[str, int]):
        key = self._make_key(domain, route_group)
        burst_key = f"{key}:burst"
        minute_key = f"{key}:minute"
        hour_key = f"{key}:hour"
        deadline = time.time() + MAX_WAIT_SECONDS

        while time.time() < deadline:
            now = time.time()
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(burst_key, 0, now - BURST_WINDOW_SECONDS)
            pipe.zremrangebyscore(minute_key, 0, now - 60)
            pipe.zremrangebyscore(hour_key, 0, now - 3600)
            pipe.zcard(burst_key)
            pipe.zcard(minute_key)
            pipe.zcard(hour_key)
            results = pipe.execute()

            if self._within_limits(results[3], results[4], results[5], limits):
                member = f"{now}:{threading.get_ident()}"
                pipe = self.redis.pipeline()
                pipe.zadd(burst_key, {member: now})
                pipe.zadd(minute_key, {member: now})
                pipe.zadd(hour_key, {member: now})
                pipe.expire(burst_key, 10)
                pipe.expire(minute_key, 120)
                pipe.expire(hour_key, 7200)
                pipe.execute()
                return

            wait_time = 60 / limits["requests_per_minute"]
            logger.debug(f"Rate limited for {domain}, waiting {wait_time:.1f}s")
            time.sleep(wait_time)

        raise RuntimeError(f"Rate limit wait timeout for {domain}")

    def _wait_memory(self, domain: str, route_group: str, limits: Dict[str, int]):
        key = self._make_key(domain, route_group)
        deadline = time.time() + MAX_WAIT_SECONDS

        while True:
            with self._lock:
                now = time.time()
                window = [t for t in self._memory_store[key] if now - t < 3600]
                self._memory_store[key] = window
                minute = [t for t in window if now - t < 60]
                second = [t for t in minute if now - t < BURST_WINDOW_SECONDS]

                if self._within_limits(len(second), len(minute), len(window), limits):
                    window.append(now)
                    return

                # Sleep until the oldest request in the full window ages out
                if len(window) >= limits["requests_per_hour"]:
                    wait_time = 3600 - (now - window[0])
                elif len(minute) >= limits["requests_per_minute"]:
                    wait_time = 60 - (now - minute[0])
                else:
                    wait_time = BURST_WINDOW_SECONDS - (now - second[0])

            if time.time() + wait_time > deadline:
                raise RuntimeError(f"Rate limit wait timeout for {domain}")
            logger.debug(f"Rate limited for {domain}, waiting {wait_time:.1f}s (memory)")
            time.sleep(max(wait_time, 0.01))

    @staticmethod
    def _within_limits(burst_count: int, minute_count: int, hour_count: int,
                       limits: Dict[str, int]) -> bool:
        return (
            burst_count < limits["burst_limit"]
            and minute_count < limits["requests_per_minute"]
            and hour_count < limits["requests_per_hour"]
        )

    def is_allowed(self, domain: str, route_group: str = "default") -> bool:
        """Check if a request is allowed without waiting or recording it."""
        return self.get_status(domain, route_group)["is_allowed"]

    def get_status(self, domain: str, route_group: str = "default") -> Dict[str, Any]:
        """
        Current rate limit status for a domain.

        Returns:
            Dict with current counts and limits
        """
        limits = self._get_limits(domain, route_group)
        key = self._make_key(domain, route_group)
        now = time.time()

        if self.redis:
            burst_key = f"{key}:burst"
            minute_key = f"{key}:minute"
            hour_key = f"{key}:hour"
            self.redis.zremrangebyscore(burst_key, 0, now - BURST_WINDOW_SECONDS)
            self.redis.zremrangebyscore(minute_key, 0, now - 60)
            self.redis.zremrangebyscore(hour_key, 0, now - 3600)
            burst_count = self.redis.zcard(burst_key)
            minute_count = self.redis.zcard(minute_key)
            hour_count = self.redis.zcard(hour_key)
        else:
            with self._lock:
                stamps = list(self._memory_store[key])
            burst_count = len([t for t in stamps if now - t < BURST_WINDOW_SECONDS])
            minute_count = len([t for t in stamps if now - t < 60])
            hour_count = len([t for t in stamps if now - t < 3600])

        return {
            "domain": domain,
            "route_group": route_group,
            "burst": {"current": burst_count, "limit": limits["burst_limit"]},
            "minute": {"current": minute_count, "limit": limits["requests_per_minute"]},
            "hour": {"current": hour_count, "limit": limits["requests_per_hour"]},
            "is_allowed": self._within_limits(burst_count, minute_count, hour_count, limits),
        }


# Global instance (lazy init)
_rate_limiter = None


def get_scraper_rate_limiter() -> ScraperRateLimiter:
    """Get the global scraper rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = ScraperRateLimiter()
    return _rate_limiter
