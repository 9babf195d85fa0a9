"""
Nabha Shiksha: Cache-Augmented Fetch Gateway

An httpx transport that sits in front of the real one and decides, per GET
request, how the response cache is consulted:

  API (/api/...)      network-first, cache fallback, then 503 offline payload
  static assets       cache-first, network fill, then typed empty fallback
  navigation          network-first, cached page, cached app shell, then 404

Non-GET and unclassified requests go straight to the network. Every request
that enters the gateway leaves it with exactly one response.
"""

import json
import logging
from enum import Enum
from typing import Iterable, Optional

import httpx

from shiksha.config import API_PREFIX, APP_SHELL_PATH
from shiksha.errors import StorageUnavailable
from shiksha.offline.cache import ResponseCache

logger = logging.getLogger(__name__)


OFFLINE_PAYLOAD = {
    "error": "Offline",
    "message": "You are offline. Some features may not be available.",
    "offline": True,
}
OFFLINE_BODY = json.dumps(OFFLINE_PAYLOAD, separators=(",", ":")).encode()

SCRIPT_FALLBACK = b'console.log("Script not available offline");'
STYLE_FALLBACK = b"/* Styles not available offline */"


class RequestKind(str, Enum):
    API = "api"
    STATIC = "static"
    NAVIGATE = "navigate"
    PASSTHROUGH = "passthrough"


def is_navigation(request: httpx.Request) -> bool:
    if request.extensions.get("mode") == "navigate":
        return True
    return request.headers.get("sec-fetch-mode", "").lower() == "navigate"


def classify(request: httpx.Request) -> RequestKind:
    if request.method != "GET":
        return RequestKind.PASSTHROUGH
    path = request.url.path
    if path.startswith(API_PREFIX):
        return RequestKind.API
    if path.startswith("/static/") or path == "/" or path.endswith((".js", ".css")):
        return RequestKind.STATIC
    if is_navigation(request):
        return RequestKind.NAVIGATE
    return RequestKind.PASSTHROUGH


def offline_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        503,
        headers={"Content-Type": "application/json"},
        content=OFFLINE_BODY,
        request=request,
    )


def static_fallback(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith(".js"):
        return httpx.Response(
            200, headers={"Content-Type": "application/javascript"},
            content=SCRIPT_FALLBACK, request=request,
        )
    if path.endswith(".css"):
        return httpx.Response(
            200, headers={"Content-Type": "text/css"},
            content=STYLE_FALLBACK, request=request,
        )
    return httpx.Response(404, text="Resource not available offline", request=request)


class OfflineTransport(httpx.AsyncBaseTransport):
    """Wraps `transport`; every request made through a client using this is intercepted."""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        cache: ResponseCache,
        cache_name: str,
        keep_caches: Iterable[str] = (),
    ):
        self._transport = transport
        self.cache = cache
        self.cache_name = cache_name
        self.keep_caches = {cache_name, *keep_caches}

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        kind = classify(request)
        if kind is RequestKind.API:
            return await self._handle_api(request)
        if kind is RequestKind.STATIC:
            return await self._handle_static(request)
        if kind is RequestKind.NAVIGATE:
            return await self._handle_navigation(request)
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()

    # ─── Helpers ─────────────────────────────────────────────────────────────

    async def _fetch(self, request: httpx.Request) -> httpx.Response:
        response = await self._transport.handle_async_request(request)
        await response.aread()
        return response

    async def _store(self, request: httpx.Request, response: httpx.Response) -> None:
        try:
            await self.cache.put(self.cache_name, request, response)
        except StorageUnavailable as e:
            logger.warning(f"Cache write skipped for {request.url}: {e}")

    async def _lookup(self, request: httpx.Request) -> Optional[httpx.Response]:
        try:
            return await self.cache.match(request)
        except StorageUnavailable as e:
            logger.warning(f"Cache read skipped for {request.url}: {e}")
            return None

    # ─── Policies ────────────────────────────────────────────────────────────

    async def _handle_api(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._fetch(request)
            if response.is_success:
                await self._store(request, response)
                return response
            logger.info(f"API {request.url} returned {response.status_code}, trying cache")
        except httpx.RequestError as e:
            logger.info(f"Network request failed, trying cache: {request.url} ({e.__class__.__name__})")

        cached = await self._lookup(request)
        if cached is not None:
            return cached
        return offline_response(request)

    async def _handle_static(self, request: httpx.Request) -> httpx.Response:
        cached = await self._lookup(request)
        if cached is not None:
            return cached
        try:
            response = await self._fetch(request)
        except httpx.RequestError:
            logger.info(f"Static asset request failed: {request.url}")
            return static_fallback(request)
        if response.is_success:
            await self._store(request, response)
        return response

    async def _handle_navigation(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._fetch(request)
            if response.is_success:
                return response
            logger.info(f"Navigation {request.url} returned {response.status_code}, trying cache")
        except httpx.RequestError:
            logger.info(f"Navigation request failed, trying cache: {request.url}")

        cached = await self._lookup(request)
        if cached is not None:
            return cached
        shell = await self._lookup(httpx.Request("GET", request.url.join(APP_SHELL_PATH)))
        if shell is not None:
            shell.request = request
            return shell
        return httpx.Response(404, text="App not available offline", request=request)

    # ─── Install / Activate ──────────────────────────────────────────────────

    async def install(self, base_url: str, urls: Iterable[str]) -> dict:
        """Pre-cache the app shell and static assets straight from the network."""
        stats = {"cached": 0, "failed": 0}
        base = httpx.URL(base_url)
        for url in urls:
            request = httpx.Request("GET", base.join(url))
            try:
                response = await self._fetch(request)
            except httpx.RequestError as e:
                stats["failed"] += 1
                logger.warning(f"Error caching static asset {url}: {e}")
                continue
            if response.is_success:
                await self._store(request, response)
                stats["cached"] += 1
            else:
                stats["failed"] += 1
                logger.warning(f"Error caching static asset {url}: status {response.status_code}")
        logger.info(f"Static assets cached: {stats}")
        return stats

    async def activate(self) -> list:
        """Drop every cache that isn't current. Returns the names removed."""
        removed = []
        for name in await self.cache.keys():
            if name not in self.keep_caches:
                logger.info(f"Deleting old cache: {name}")
                await self.cache.delete_cache(name)
                removed.append(name)
        return removed
