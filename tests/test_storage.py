"""Tests for storage module."""

import json
import logging
import shutil
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import httpx
import pytest

from catalog_scraper.storage import (
    DEFAULT_TTL,
    CacheEntry,
    CacheMode,
    HttpCache,
    Response,
    cache_key,
)

URL = "https://example.com/models"


def write_entry(cache_dir, url, timestamp, body="cached", status=200):
    """Write a cache file the way HttpCache does."""
    path = cache_dir / cache_key(url)
    path.write_text(
        json.dumps(
            {
                "timestamp": timestamp,
                "response": {"body": body, "status": status, "headers": {"content-type": "text/html"}},
            }
        )
    )
    return path


class TestResponse:
    """Tests for the Response value type."""

    @pytest.mark.parametrize(
        "status,expected",
        [(200, True), (204, True), (299, True), (301, False), (404, False), (500, False)],
    )
    def test_success_is_2xx(self, status, expected):
        """Verify only 2xx statuses are successful."""
        assert Response(status=status).success is expected

    @pytest.mark.parametrize(
        "data",
        [{"body": "x"}, {"status": "200", "body": "x"}, {"status": True, "body": "x"}, {"status": 200, "body": 123}],
    )
    def test_from_cache_rejects_invalid_fields(self, data):
        """Verify a record without an integer status or a string body is rejected."""
        with pytest.raises(TypeError):
            Response.from_cache(data)

    def test_from_cache_defaults(self):
        """Verify missing body and headers default to empty values."""
        response = Response.from_cache({"status": 200})
        assert response.body == ""
        assert response.headers == {}

    def test_from_httpx(self):
        """Verify live responses keep status, text and headers."""
        live = httpx.Response(201, text="hello", headers={"x-test": "1"})
        response = Response.from_httpx(live)
        assert response.status == 201
        assert response.body == "hello"
        assert response.headers["x-test"] == "1"


class TestCacheKey:
    """Tests for cache filenames."""

    def test_md5_hex_digest(self):
        """Verify the key is the MD5 hex digest of the URL."""
        assert cache_key("https://example.com") == "c984d06aafbecf6bc55569f964148ea3"

    def test_distinct_urls_distinct_keys(self):
        assert cache_key("https://a.example") != cache_key("https://b.example")


class TestCacheEntry:
    """Tests for CacheEntry staleness and serialization."""

    def test_fresh_within_ttl(self):
        now = datetime.now(timezone.utc)
        entry = CacheEntry(key="k", timestamp=now - timedelta(seconds=10), response=Response(200))
        assert not entry.is_stale(now)

    def test_stale_after_ttl(self):
        now = datetime.now(timezone.utc)
        entry = CacheEntry(key="k", timestamp=now - timedelta(seconds=DEFAULT_TTL + 1), response=Response(200))
        assert entry.is_stale(now)

    def test_naive_timestamp_is_utc(self):
        """Verify timestamps without an offset are read as UTC."""
        entry = CacheEntry.from_dict("k", {"timestamp": "2025-01-01T12:00:00", "response": {"status": 200}})
        assert entry.timestamp == datetime(2025, 1, 1, 12, tzinfo=timezone.utc)

    def test_to_dict_layout(self):
        """Verify the on-disk record layout."""
        timestamp = datetime(2025, 1, 1, tzinfo=timezone.utc)
        entry = CacheEntry(key="k", timestamp=timestamp, response=Response(200, "body", {"a": "b"}))
        assert entry.to_dict() == {
            "timestamp": timestamp.isoformat(),
            "response": {"body": "body", "status": 200, "headers": {"a": "b"}},
        }


class TestHttpCacheSetup:
    """Tests for cache mode decided at construction."""

    def test_creates_directory(self, cache_dir, http_client):
        """Verify the cache directory is created if it does not exist."""
        assert not cache_dir.exists()
        cache = HttpCache(cache_dir=cache_dir, client=http_client)
        assert cache_dir.is_dir()
        assert cache.mode is CacheMode.ENABLED

    def test_none_disables(self, http_client, caplog):
        """Verify no directory means disabled, logged once."""
        with caplog.at_level(logging.WARNING):
            cache = HttpCache(cache_dir=None, client=http_client)
        assert not cache.enabled
        assert [r.message for r in caplog.records].count("Cache disabled") == 1

    def test_empty_string_disables(self, http_client):
        assert not HttpCache(cache_dir="", client=http_client).enabled

    def test_unwritable_directory_disables(self, cache_dir, http_client, caplog):
        """Verify a directory that is not writable disables caching."""
        with patch("catalog_scraper.storage.os.access", return_value=False):
            with caplog.at_level(logging.WARNING):
                cache = HttpCache(cache_dir=cache_dir, client=http_client)
        assert cache.mode is CacheMode.DISABLED
        assert "Cache directory not writable" in caplog.text

    def test_directory_that_is_a_file_disables(self, tmp_path, http_client):
        """Verify a path that cannot become a directory disables caching."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache = HttpCache(cache_dir=blocker / "cache", client=http_client)
        assert not cache.enabled


class TestHttpCacheGet:
    """Tests for HttpCache.get."""

    def test_miss_then_hit(self, cache, server, cache_dir):
        """Verify a 2xx response is cached and served without a second live call."""
        server.add(URL, "<html>models</html>")

        first = cache.get(URL)
        second = cache.get(URL)

        assert first.body == second.body == "<html>models</html>"
        assert server.count(URL) == 1
        assert (cache_dir / cache_key(URL)).exists()

    def test_cache_file_layout(self, cache, server, cache_dir):
        """Verify the stored record has timestamp and response fields."""
        server.add(URL, "body")
        cache.get(URL)

        data = json.loads((cache_dir / cache_key(URL)).read_text())
        assert set(data) == {"timestamp", "response"}
        assert data["response"]["body"] == "body"
        assert data["response"]["status"] == 200
        assert isinstance(data["response"]["headers"], dict)

    def test_stale_entry_refetched_and_refreshed(self, cache, server, cache_dir):
        """Verify an entry older than TTL triggers one live request and is rewritten."""
        old = (datetime.now(timezone.utc) - timedelta(seconds=DEFAULT_TTL + 60)).isoformat()
        path = write_entry(cache_dir, URL, old, body="old body")
        server.add(URL, "new body")

        response = cache.get(URL)

        assert response.body == "new body"
        assert server.count(URL) == 1
        data = json.loads(path.read_text())
        assert data["response"]["body"] == "new body"
        assert data["timestamp"] != old

    def test_fresh_entry_served_from_disk(self, cache, server, cache_dir):
        fresh = datetime.now(timezone.utc).isoformat()
        write_entry(cache_dir, URL, fresh, body="from disk")

        response = cache.get(URL)

        assert response.body == "from disk"
        assert server.count(URL) == 0

    def test_non_2xx_not_cached(self, cache, server, cache_dir):
        """Verify error responses are returned but never written."""
        server.add(URL, "boom", status=503)

        response = cache.get(URL)

        assert response.status == 503
        assert not (cache_dir / cache_key(URL)).exists()
        cache.get(URL)
        assert server.count(URL) == 2

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"timestamp": "yesterday", "response": {"status": 200}}),
            json.dumps({"response": {"status": 200}}),
            json.dumps({"timestamp": "2025-01-01T00:00:00+00:00", "response": "oops"}),
            json.dumps(["a", "list"]),
        ],
    )
    def test_corrupt_entry_behaves_as_miss(self, cache, server, cache_dir, content):
        """Verify unreadable cache files never raise and trigger a live request."""
        (cache_dir / cache_key(URL)).write_text(content)
        server.add(URL, "live")

        response = cache.get(URL)

        assert response.body == "live"
        assert server.count(URL) == 1

    @pytest.mark.parametrize(
        "response",
        [
            {"body": "cached"},
            {"status": 500, "body": "err", "headers": {}},
            {"status": 200, "body": 123},
        ],
    )
    def test_fresh_invalid_entry_behaves_as_miss(self, cache, server, cache_dir, response):
        """Verify a fresh entry with an unusable response is refetched, not served."""
        fresh = datetime.now(timezone.utc).isoformat()
        (cache_dir / cache_key(URL)).write_text(json.dumps({"timestamp": fresh, "response": response}))
        server.add(URL, "live")

        result = cache.get(URL)

        assert (result.status, result.body) == (200, "live")
        assert server.count(URL) == 1
        data = json.loads((cache_dir / cache_key(URL)).read_text())
        assert data["response"]["body"] == "live"

    def test_persist_failure_is_logged(self, cache, server, cache_dir, caplog):
        """Verify the live response is returned when the cache cannot be written."""
        server.add(URL, "live")
        shutil.rmtree(cache_dir)

        with caplog.at_level(logging.WARNING):
            response = cache.get(URL)

        assert response.body == "live"
        assert "Failed to write cache entry" in caplog.text

    def test_disabled_cache_never_touches_disk(self, cache_dir, http_client, server, caplog):
        """Verify a disabled cache always goes live without hit/miss logging."""
        server.add(URL, "live")
        with patch("catalog_scraper.storage.os.access", return_value=False):
            cache = HttpCache(cache_dir=cache_dir, client=http_client)

        with caplog.at_level(logging.INFO):
            cache.get(URL)
            cache.get(URL)

        assert server.count(URL) == 2
        assert list(cache_dir.iterdir()) == []
        assert "Cache hit" not in caplog.text
        assert "Cache miss" not in caplog.text

    def test_log_lines(self, cache, server, caplog):
        """Verify miss, caching and hit are logged."""
        server.add(URL, "body")
        with caplog.at_level(logging.INFO):
            cache.get(URL)
            cache.get(URL)

        assert f"Cache miss for {URL}" in caplog.text
        assert f"Making request to {URL}" in caplog.text
        assert f"Caching response for {URL}" in caplog.text
        assert f"Cache hit for {URL}" in caplog.text

    def test_transport_errors_propagate(self, cache, server):
        """Verify httpx errors are left for the fetch client to classify."""
        server.fail(URL, httpx.ReadTimeout("timed out"))
        with pytest.raises(httpx.ReadTimeout):
            cache.get(URL)


class TestHttpCacheClient:
    """Tests for the lazily created transport."""

    def test_client_created_once(self, cache_dir):
        cache = HttpCache(cache_dir=cache_dir)
        try:
            assert cache.client is cache.client
        finally:
            cache.close()

    def test_close_releases_client(self, cache_dir):
        cache = HttpCache(cache_dir=cache_dir)
        first = cache.client
        cache.close()
        assert first.is_closed
        assert cache.client is not first
        cache.close()

    def test_context_manager_closes(self, cache_dir):
        with HttpCache(cache_dir=cache_dir) as cache:
            client = cache.client
        assert client.is_closed
