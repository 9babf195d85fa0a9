"""
Nabha Shiksha: Offline Context

Builds every offline component from an OfflineSettings and owns their
lifecycle. Create one at process start, shut it down on exit.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from shiksha.config import OfflineSettings, MEMORY_STORE_URL
from shiksha.errors import StorageUnavailable, SyncExhausted
from shiksha.offline.cache import ResponseCache
from shiksha.offline.gateway import OfflineTransport
from shiksha.offline.reachability import ReachabilityMonitor
from shiksha.offline.service import OfflineService
from shiksha.offline.store import LocalStore
from shiksha.offline.sync import SyncQueueProcessor

logger = logging.getLogger(__name__)


@dataclass
class OfflineContext:
    settings: OfflineSettings
    store: LocalStore
    cache: ResponseCache
    transport: OfflineTransport
    client: httpx.AsyncClient
    probe_client: httpx.AsyncClient
    processor: SyncQueueProcessor
    monitor: ReachabilityMonitor
    service: OfflineService
    exhausted: list = field(default_factory=list)

    @classmethod
    async def create(
        cls,
        settings: Optional[OfflineSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_exhausted: Optional[Callable[[SyncExhausted], None]] = None,
    ) -> "OfflineContext":
        """
        `transport` is the real network (default: httpx's own). Everything
        the app sends goes through the caching gateway wrapped around it.
        """
        settings = settings or OfflineSettings.from_env()
        network = transport or httpx.AsyncHTTPTransport()

        store = await _open_store(settings)
        cache = ResponseCache(settings.cache_url)
        try:
            await cache.open()
        except StorageUnavailable as e:
            logger.warning(f"{e}; response cache falls back to memory")
            cache = await ResponseCache(MEMORY_STORE_URL).open()

        gateway = OfflineTransport(
            network, cache, settings.cache_name, keep_caches=[settings.offline_cache_name],
        )
        client = httpx.AsyncClient(
            transport=gateway, base_url=settings.api_base_url, timeout=settings.sync_timeout,
        )
        # Probes must see the raw network, never a cached health answer
        probe_client = httpx.AsyncClient(
            transport=_Unowned(network), base_url=settings.api_base_url, timeout=settings.sync_timeout,
        )

        exhausted = []

        def _record_exhausted(error: SyncExhausted) -> None:
            exhausted.append(error)
            if on_exhausted is not None:
                on_exhausted(error)

        processor = SyncQueueProcessor(
            store, client,
            max_retries=settings.max_retries,
            timeout=settings.sync_timeout,
            on_exhausted=_record_exhausted,
        )
        monitor = ReachabilityMonitor(
            initial_online=settings.initial_online,
            on_online=processor.process_queue,
            probe_client=probe_client,
            health_path=settings.health_path,
        )
        service = OfflineService(store, monitor, processor, cache=cache)
        logger.info(f"Offline context ready (online={monitor.is_online}, memory_only={store.in_memory})")
        return cls(
            settings=settings, store=store, cache=cache, transport=gateway,
            client=client, probe_client=probe_client, processor=processor,
            monitor=monitor, service=service, exhausted=exhausted,
        )

    async def start(self) -> None:
        """Prime the caches and start watching connectivity."""
        await self.transport.install(self.settings.api_base_url, self.settings.static_urls)
        await self.transport.activate()
        for url in self.settings.api_urls:
            response = await self.client.get(url)
            logger.debug(f"API warm-up {url}: {response.status_code}")
        if self.settings.probe_interval > 0:
            self.monitor.watch(self.settings.probe_interval)

    async def shutdown(self) -> None:
        await self.monitor.stop()
        await self.probe_client.aclose()
        await self.client.aclose()
        await self.cache.close()
        await self.store.close()
        logger.info("Offline context shut down")


async def _open_store(settings: OfflineSettings) -> LocalStore:
    store = LocalStore(settings.store_url, settings.store_version)
    try:
        return await store.open()
    except StorageUnavailable as e:
        logger.warning(f"{e}; running memory-only for this session")
        return await LocalStore(MEMORY_STORE_URL, settings.store_version).open()


class _Unowned(httpx.AsyncBaseTransport):
    """Shares a transport without closing it; the gateway client owns it."""

    def __init__(self, transport: httpx.AsyncBaseTransport):
        self._transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(request)
