"""Fetch client: URL to parsed HTML document, with bounded retry.

fetch_html never raises. Every failure ends as a log line and None so one bad
page cannot stop the rest of a catalog update.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import httpx
from bs4 import BeautifulSoup

from catalog_scraper.storage import DEFAULT_CACHE_DIR, HttpCache

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2

# Retried with back-off; any other httpx error fails immediately.
TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)

T = TypeVar("T")


class FetchError(Exception):
    """Raised when a fetched page cannot be used."""


class HttpStatusError(FetchError):
    """Raised for non-2xx responses."""


class EmptyBodyError(FetchError):
    """Raised when a 2xx response has no body."""


class DocumentParseError(FetchError):
    """Raised when a body cannot be parsed as HTML."""


def parse_html(body: str, description: str) -> BeautifulSoup:
    """Parse markup with lxml.

    Raises:
        DocumentParseError: If the parser fails or finds no elements.
    """
    try:
        doc = BeautifulSoup(body, "lxml")
    except Exception as e:
        raise DocumentParseError(f"Failed to parse HTML for {description}") from e

    if doc.find() is None:
        raise DocumentParseError(f"Failed to parse HTML for {description}")
    return doc


class FetchClient:
    """Fetches pages through an HttpCache, retrying transient transport errors."""

    def __init__(
        self,
        cache: HttpCache | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        cache_dir: Path | str | None = DEFAULT_CACHE_DIR,
    ) -> None:
        """Initialize the client.

        Args:
            cache: HttpCache to use. Created lazily from cache_dir and timeout if None.
            timeout: Request timeout in seconds.
            max_retries: Extra attempts after a transient error.
            retry_delay: Base delay in seconds; attempt n sleeps retry_delay * n.
            cache_dir: Cache directory for the lazily created HttpCache.
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._cache_dir = cache_dir
        self._cache = cache

    @property
    def cache(self) -> HttpCache:
        if self._cache is None:
            self._cache = HttpCache(cache_dir=self._cache_dir, timeout=self.timeout)
        return self._cache

    def fetch_html(self, url: str, description: str) -> BeautifulSoup | None:
        """Fetch and parse a page. Returns None on any failure."""
        return self._fetch(url, description, parse_html)

    def fetch_text(self, url: str, description: str) -> str | None:
        """Fetch a raw body (e.g. a JSON or YAML document). Returns None on any failure."""
        return self._fetch(url, description, lambda body, _description: body)

    def _fetch(
        self,
        url: str,
        description: str,
        parse: Callable[[str, str], T],
    ) -> T | None:
        logger.info(f"Fetching {description} from {url}")
        attempt = 0

        while True:
            try:
                response = self.cache.get(url)

                if not response.success:
                    raise HttpStatusError(f"HTTP {response.status} for {description}")

                if not response.body or not response.body.strip():
                    raise EmptyBodyError(f"Empty response body for {description}")

                return parse(response.body, description)

            except TRANSIENT_ERRORS as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.error(f"Max retries reached for {description}")
                    return None
                kind = "Timeout" if isinstance(e, httpx.TimeoutException) else "Network error"
                logger.warning(f"{kind} fetching {description}, retry {attempt}/{self.max_retries}")
                time.sleep(self.retry_delay * attempt)

            except (httpx.HTTPError, FetchError) as e:
                logger.error(f"Failed to fetch {description}: {e}")
                return None

            except Exception as e:
                logger.error(f"Unexpected error fetching {description}: {type(e).__name__} - {e}")
                return None

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
