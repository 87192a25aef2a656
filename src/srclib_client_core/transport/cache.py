"""Disk-backed HTTP caching transport.

Responses to GET and HEAD requests are stored in a :class:`diskcache.Cache`
directory and reused according to their HTTP caching headers:

- Fresh entries (within ``max-age`` or before ``Expires``) are served without
  touching the network and carry an ``X-From-Cache: 1`` header. A response's
  age includes its ``Age`` header and the time since its ``Date``.
- Stale entries with an ``ETag`` or ``Last-Modified`` are revalidated with a
  conditional request; a 304 reply serves the cached body.
- ``Vary`` is honored: an entry is only reused for requests whose varying
  header values match those of the request that produced it.
- ``Cache-Control: no-store`` on the request or response skips storage.
- A successful POST, PUT, PATCH or DELETE invalidates the entries for its URL.

Cache keys are ``METHOD URL``.

Example:
    ```python
    import httpx

    from srclib_client_core.transport.cache import CachingTransport

    transport = CachingTransport(
        wrapped_transport=httpx.HTTPTransport(),
        cache_dir="/tmp/srclib-cache",
    )

    with httpx.Client(transport=transport) as client:
        response = client.get("https://sourcegraph.com/api/repos")
    ```
"""

import asyncio
import logging
import sqlite3
import time
from collections.abc import Callable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any

import diskcache
import httpx

from srclib_client_core.exceptions import CacheError
from srclib_client_core.transport.base import WrappingTransport

logger = logging.getLogger(__name__)

FROM_CACHE_HEADER = "X-From-Cache"

# Headers describing the stored representation that a 304 must not overwrite
_REPRESENTATION_HEADERS = frozenset(["content-length", "content-encoding", "transfer-encoding"])


def _parse_cache_control(value: str | None) -> dict[str, str | None]:
    """Parse a Cache-Control header into a directive -> argument mapping."""
    directives: dict[str, str | None] = {}
    if not value:
        return directives
    for part in value.split(","):
        name, _, arg = part.strip().partition("=")
        if not name:
            continue
        directives[name.lower()] = arg.strip().strip('"') if arg else None
    return directives


class CachingTransport(WrappingTransport):
    """Transport that caches responses on disk and serves them when fresh.

    Args:
        wrapped_transport: The underlying transport to wrap
        cache_dir: Directory for the cache. Created if missing.
        clock: Returns the current time as a Unix timestamp (default: time.time)

    Raises:
        CacheError: If the cache directory cannot be created or opened.
    """

    CACHEABLE_METHODS: frozenset[str] = frozenset(["GET", "HEAD"])

    # Status codes cacheable by default (RFC 7231 section 6.1, plus 308)
    CACHEABLE_STATUS_CODES: frozenset[int] = frozenset([200, 203, 300, 301, 308, 404, 410])

    INVALIDATING_METHODS: frozenset[str] = frozenset(["POST", "PUT", "PATCH", "DELETE"])

    def __init__(
        self,
        *,
        wrapped_transport: httpx.BaseTransport | httpx.AsyncBaseTransport,
        cache_dir: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(wrapped_transport=wrapped_transport)
        self.cache_dir = Path(cache_dir)
        self._clock = clock
        try:
            self._cache = diskcache.Cache(str(self.cache_dir))
        except (OSError, sqlite3.Error) as e:
            raise CacheError(f"Opening HTTP cache at {self.cache_dir}: {e}", cache_dir=self.cache_dir) from e

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if request.method in self.INVALIDATING_METHODS:
            response = self._wrapped_transport.handle_request(request)
            self._invalidate_after(request, response)
            return response

        if not self._is_cacheable_request(request):
            return self._wrapped_transport.handle_request(request)

        key, entry = self._lookup(request)
        if entry is not None and self._can_serve_without_validation(request, entry):
            logger.debug(f"Cache hit for {key}")
            return self._response_from_entry(entry, request)

        response = self._wrapped_transport.handle_request(request)

        if entry is not None and response.status_code == 304:
            response.close()
            return self._revalidated(key, entry, request, response)

        if self._should_store(request, response):
            content, headers = self._read_body(response)
            return self._store(key, request, response.status_code, headers, content)

        if self._forbids_storage(request, response):
            self._cache.delete(key)
        return response

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        # diskcache calls block, so they run in a worker thread
        if request.method in self.INVALIDATING_METHODS:
            response = await self._wrapped_transport.handle_async_request(request)
            await asyncio.to_thread(self._invalidate_after, request, response)
            return response

        if not self._is_cacheable_request(request):
            return await self._wrapped_transport.handle_async_request(request)

        key, entry = await asyncio.to_thread(self._lookup, request)
        if entry is not None and self._can_serve_without_validation(request, entry):
            logger.debug(f"Cache hit for {key}")
            return self._response_from_entry(entry, request)

        response = await self._wrapped_transport.handle_async_request(request)

        if entry is not None and response.status_code == 304:
            await response.aclose()
            return await asyncio.to_thread(self._revalidated, key, entry, request, response)

        if self._should_store(request, response):
            content, headers = await self._aread_body(response)
            return await asyncio.to_thread(self._store, key, request, response.status_code, headers, content)

        if self._forbids_storage(request, response):
            await asyncio.to_thread(self._cache.delete, key)
        return response

    def close(self) -> None:
        self._cache.close()
        super().close()

    async def aclose(self) -> None:
        self._cache.close()
        await super().aclose()

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._cache.clear()

    def _key(self, method: str, url: httpx.URL) -> str:
        return f"{method} {url}"

    def _is_cacheable_request(self, request: httpx.Request) -> bool:
        if request.method not in self.CACHEABLE_METHODS:
            return False
        return "no-store" not in _parse_cache_control(request.headers.get("Cache-Control"))

    def _lookup(self, request: httpx.Request) -> tuple[str, dict[str, Any] | None]:
        """Find the stored entry for ``request``, adding validators when stale."""
        key = self._key(request.method, request.url)
        entry = self._cache.get(key)
        if entry is None:
            logger.debug(f"Cache miss for {key}")
            return key, None

        if not self._vary_matches(entry, request):
            logger.debug(f"Cache miss for {key} (Vary mismatch)")
            return key, None

        if not self._can_serve_without_validation(request, entry):
            stored = httpx.Headers(entry["headers"])
            if "etag" in stored:
                request.headers["If-None-Match"] = stored["etag"]
            if "last-modified" in stored:
                request.headers["If-Modified-Since"] = stored["last-modified"]
        return key, entry

    def _vary_matches(self, entry: dict[str, Any], request: httpx.Request) -> bool:
        return all(self._header_value(request, name) == value for name, value in entry["vary"].items())

    @staticmethod
    def _header_value(request: httpx.Request, name: str) -> str:
        return ", ".join(request.headers.get_list(name))

    def _can_serve_without_validation(self, request: httpx.Request, entry: dict[str, Any]) -> bool:
        request_directives = _parse_cache_control(request.headers.get("Cache-Control"))
        if "no-cache" in request_directives or request.headers.get("Pragma") == "no-cache":
            return False
        return self._is_fresh(entry)

    def _is_fresh(self, entry: dict[str, Any]) -> bool:
        """Check whether a stored response is still within its freshness lifetime."""
        headers = httpx.Headers(entry["headers"])
        directives = _parse_cache_control(headers.get("Cache-Control"))
        if "no-cache" in directives:
            return False

        age = self._current_age(entry, headers)

        max_age = directives.get("max-age")
        if max_age is not None:
            try:
                return age < int(max_age)
            except ValueError:
                return False

        expires = headers.get("Expires")
        if expires:
            try:
                expires_at = parsedate_to_datetime(expires)
            except (ValueError, TypeError):
                return False
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=UTC)
            return datetime.fromtimestamp(self._clock(), UTC) < expires_at

        return False

    def _current_age(self, entry: dict[str, Any], headers: httpx.Headers) -> float:
        """Age of a stored response, counting the time it spent upstream before it was stored."""
        age_header = headers.get("Age", "").strip()
        initial_age = float(age_header) if age_header.isdecimal() else 0.0

        date = headers.get("Date")
        if date:
            try:
                date_at = parsedate_to_datetime(date)
            except (ValueError, TypeError):
                date_at = None
            if date_at is not None:
                if date_at.tzinfo is None:
                    date_at = date_at.replace(tzinfo=UTC)
                initial_age = max(initial_age, entry["stored_at"] - date_at.timestamp())

        return initial_age + self._clock() - entry["stored_at"]

    def _should_store(self, request: httpx.Request, response: httpx.Response) -> bool:
        if response.status_code not in self.CACHEABLE_STATUS_CODES:
            return False
        if self._forbids_storage(request, response):
            return False
        return response.headers.get("Vary", "").strip() != "*"

    @staticmethod
    def _forbids_storage(request: httpx.Request, response: httpx.Response) -> bool:
        return "no-store" in _parse_cache_control(response.headers.get("Cache-Control")) or "no-store" in (
            _parse_cache_control(request.headers.get("Cache-Control"))
        )

    @staticmethod
    def _read_body(response: httpx.Response) -> tuple[bytes, list[tuple[str, str]]]:
        """Read the body as it came off the wire, returning (content, headers)."""
        if response.is_stream_consumed:
            return CachingTransport._decoded_body(response)
        try:
            content = b"".join(response.iter_raw())
        finally:
            response.close()
        return content, response.headers.multi_items()

    @staticmethod
    async def _aread_body(response: httpx.Response) -> tuple[bytes, list[tuple[str, str]]]:
        if response.is_stream_consumed:
            return CachingTransport._decoded_body(response)
        try:
            content = b"".join([chunk async for chunk in response.aiter_raw()])
        finally:
            await response.aclose()
        return content, response.headers.multi_items()

    @staticmethod
    def _decoded_body(response: httpx.Response) -> tuple[bytes, list[tuple[str, str]]]:
        # Already read: only the decoded content is left, so drop the encoding headers
        content = response.content
        headers = [(k, v) for k, v in response.headers.multi_items() if k.lower() not in _REPRESENTATION_HEADERS]
        headers.append(("Content-Length", str(len(content))))
        return content, headers

    def _store(
        self,
        key: str,
        request: httpx.Request,
        status_code: int,
        headers: list[tuple[str, str]],
        content: bytes,
    ) -> httpx.Response:
        vary_names = [name.strip().lower() for name in httpx.Headers(headers).get("Vary", "").split(",")]
        entry = {
            "status_code": status_code,
            "headers": headers,
            "content": content,
            "stored_at": self._clock(),
            "vary": {name: self._header_value(request, name) for name in vary_names if name},
        }
        self._cache.set(key, entry)
        logger.debug(f"Stored {key} ({status_code}, {len(content)} bytes)")
        return self._response_from_entry(entry, request, from_cache=False)

    def _revalidated(
        self, key: str, entry: dict[str, Any], request: httpx.Request, not_modified: httpx.Response
    ) -> httpx.Response:
        """Refresh a stored entry from a 304 reply and serve its body."""
        headers = httpx.Headers(entry["headers"])
        for name, value in not_modified.headers.items():
            if name.lower() not in _REPRESENTATION_HEADERS:
                headers[name] = value
        entry = {**entry, "headers": headers.multi_items(), "stored_at": self._clock()}
        self._cache.set(key, entry)
        logger.debug(f"Revalidated {key}")
        return self._response_from_entry(entry, request)

    def _invalidate_after(self, request: httpx.Request, response: httpx.Response) -> None:
        if response.status_code >= 400:
            return
        for method in self.CACHEABLE_METHODS:
            self._cache.delete(self._key(method, request.url))

    @staticmethod
    def _response_from_entry(
        entry: dict[str, Any], request: httpx.Request, *, from_cache: bool = True
    ) -> httpx.Response:
        headers = httpx.Headers(entry["headers"])
        if from_cache:
            headers[FROM_CACHE_HEADER] = "1"
        return httpx.Response(
            entry["status_code"],
            headers=headers,
            content=entry["content"],
            request=request,
        )
