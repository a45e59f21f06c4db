"""
Scraper Configuration - Environment-based crawl settings

Environment Variables (also read from a local .env file):
    SCRAPER_MAX_CONCURRENCY: int (default: 3)
        Pages fetched in parallel.

    SCRAPER_MAX_RETRIES: int (default: 2)
        Extra attempts per page after the first failure.

    SCRAPER_REQUEST_TIMEOUT: int seconds (default: 60)

    SCRAPER_DETAIL_BATCH_SIZE: int (default: 10)
        Detail-mode flush chunk size.

    SCRAPER_MAX_REQUESTS: int (default: 0 = unlimited)
        Hard cap on page fetches per run.

    SCRAPER_OUTPUT_PATH: path (default: output/records.jsonl)

    SCRAPER_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)

    REDIS_URL: optional, shares rate limits across crawler processes.
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _get_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default
    if value < minimum:
        logger.warning(f"{name}={value} is below {minimum}, defaulting to {default}")
        return default
    return value


# =============================================================================
# Crawl engine
# =============================================================================

def get_max_concurrency() -> int:
    """Parallel page fetches (default: 3)."""
    return _get_int('SCRAPER_MAX_CONCURRENCY', 3, minimum=1)


def get_max_retries() -> int:
    """Retries per page after the first attempt (default: 2)."""
    return _get_int('SCRAPER_MAX_RETRIES', 2)


def get_request_timeout() -> int:
    """HTTP timeout in seconds (default: 60)."""
    return _get_int('SCRAPER_REQUEST_TIMEOUT', 60, minimum=1)


def get_max_requests() -> int:
    """
    Page fetch budget for a run.

    Returns:
        Max fetches, 0 meaning unlimited
    """
    return _get_int('SCRAPER_MAX_REQUESTS', 0)


# =============================================================================
# Output
# =============================================================================

def get_detail_batch_size() -> int:
    """Detail-mode flush chunk size (default: 10)."""
    return _get_int('SCRAPER_DETAIL_BATCH_SIZE', 10, minimum=1)


def get_output_path() -> str:
    return os.environ.get('SCRAPER_OUTPUT_PATH') or 'output/records.jsonl'


def get_log_level() -> str:
    level = (os.environ.get('SCRAPER_LOG_LEVEL') or 'INFO').upper()
    if level not in VALID_LOG_LEVELS:
        logger.warning(f"Invalid SCRAPER_LOG_LEVEL '{level}', defaulting to 'INFO'")
        level = 'INFO'
    return level
