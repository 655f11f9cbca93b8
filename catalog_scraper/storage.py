"""Disk-backed TTL cache for HTTP GET responses.

One JSON file per URL, named after the MD5 digest of the URL. Caching is best
effort: unreadable or non-2xx entries count as stale and write failures are
logged, so a broken cache directory only costs extra requests.
"""

import enum
import hashlib
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = ".cache"
DEFAULT_TTL = 300  # seconds
DEFAULT_TIMEOUT = 30.0


class CacheMode(enum.Enum):
    """Whether an HttpCache reads and writes its directory. Fixed at construction."""

    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass(frozen=True)
class Response:
    """HTTP response value shared by the live and cached paths."""

    status: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return 200 <= self.status <= 299

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "Response":
        """Build from a live httpx response."""
        return cls(
            status=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> "Response":
        """Build from the "response" object of a cache file.

        Raises:
            TypeError: If the status is not an integer or the body is not a string.
            AttributeError: If data is not a mapping.
        """
        status = data.get("status")
        if not isinstance(status, int) or isinstance(status, bool):
            raise TypeError(f"Invalid cached status: {status!r}")
        body = data.get("body", "")
        if not isinstance(body, str):
            raise TypeError(f"Invalid cached body type: {type(body).__name__}")
        return cls(
            status=status,
            body=body,
            headers=dict(data.get("headers") or {}),
        )

    def to_cache(self) -> dict[str, Any]:
        return {"body": self.body, "status": self.status, "headers": dict(self.headers)}


def cache_key(url: str) -> str:
    """Return the cache filename for a URL (MD5 hex digest)."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC.

    Raises:
        TypeError: If value is not a string.
        ValueError: If value is not ISO-8601.
    """
    timestamp = datetime.fromisoformat(value)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


@dataclass
class CacheEntry:
    """Cached response for one URL."""

    key: str
    timestamp: datetime
    response: Response

    def is_stale(self, now: datetime, ttl: float = DEFAULT_TTL) -> bool:
        return (now - self.timestamp).total_seconds() > ttl

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp.isoformat(), "response": self.response.to_cache()}

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any]) -> "CacheEntry":
        """Rebuild an entry from a decoded cache file.

        Raises:
            KeyError, TypeError, ValueError, AttributeError: If the data is malformed.
        """
        return cls(
            key=key,
            timestamp=_parse_timestamp(data["timestamp"]),
            response=Response.from_cache(data["response"]),
        )


class HttpCache:
    """Memoizes GET requests on disk for a fixed TTL."""

    def __init__(
        self,
        cache_dir: Path | str | None = DEFAULT_CACHE_DIR,
        ttl: float = DEFAULT_TTL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the cache and decide whether it is usable.

        Args:
            cache_dir: Directory for cache files. None or "" disables caching.
            ttl: Seconds after which an entry is stale.
            timeout: Request timeout in seconds for the lazily created client.
            client: Optional preconfigured httpx client (tests inject a MockTransport).
        """
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self.ttl = ttl
        self.timeout = timeout
        self._client = client
        self.mode = self._setup_cache_dir()
        if self.mode is CacheMode.DISABLED:
            logger.warning("Cache disabled")

    def _setup_cache_dir(self) -> CacheMode:
        """Create the cache directory and check it is writable."""
        if self.cache_dir is None:
            return CacheMode.DISABLED

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to set up cache directory {self.cache_dir}: {e}")
            return CacheMode.DISABLED

        if not os.access(self.cache_dir, os.W_OK):
            logger.warning(f"Cache directory not writable: {self.cache_dir}")
            return CacheMode.DISABLED

        logger.info(f"Cache enabled at {self.cache_dir}")
        return CacheMode.ENABLED

    @property
    def enabled(self) -> bool:
        return self.mode is CacheMode.ENABLED

    @property
    def client(self) -> httpx.Client:
        """The transport, created on first use and reused for the instance lifetime."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout, connect=self.timeout / 2),
                follow_redirects=True,
            )
        return self._client

    def get(self, url: str) -> Response:
        """GET a URL, serving a fresh cached copy when one exists.

        Only 2xx responses are cached or served from disk. Transport errors from
        httpx propagate.
        """
        if not self.enabled:
            return self._request(url)

        key = cache_key(url)
        path = self.cache_dir / key

        if path.exists():
            entry = self._load_entry(path, key)
            if (
                entry is not None
                and entry.response.success
                and not entry.is_stale(datetime.now(timezone.utc), self.ttl)
            ):
                logger.info(f"Cache hit for {url}")
                return entry.response
            logger.info(f"Cache stale for {url}")
        else:
            logger.info(f"Cache miss for {url}")

        response = self._request(url)

        if response.success:
            logger.info(f"Caching response for {url}")
            self._store(path, key, response)

        return response

    def _request(self, url: str) -> Response:
        logger.info(f"Making request to {url}")
        return Response.from_httpx(self.client.get(url))

    def _load_entry(self, path: Path, key: str) -> CacheEntry | None:
        """Read a cache file. Returns None if it cannot be used."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry.from_dict(key, data)
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.debug(f"Unusable cache entry {path}: {e}")
            return None

    def _store(self, path: Path, key: str, response: Response) -> None:
        """Write a cache file, logging instead of raising on failure."""
        entry = CacheEntry(key=key, timestamp=datetime.now(timezone.utc), response=response)
        try:
            path.write_text(json.dumps(entry.to_dict()), encoding="utf-8")
        except (OSError, TypeError) as e:
            logger.warning(f"Failed to write cache entry {path}: {e}")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "HttpCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
