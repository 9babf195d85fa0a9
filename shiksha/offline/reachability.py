"""
Nabha Shiksha: Network Reachability Monitor

Holds one `is_online` flag and fires `became_online` / `became_offline`
on edges only. Each `became_online` edge schedules exactly one sync run.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

BECAME_ONLINE = "became_online"
BECAME_OFFLINE = "became_offline"
EVENTS = (BECAME_ONLINE, BECAME_OFFLINE)


class ReachabilityMonitor:
    def __init__(
        self,
        initial_online: bool = True,
        on_online: Optional[Callable[[], Awaitable]] = None,
        probe_client: Optional[httpx.AsyncClient] = None,
        health_path: str = "/api/health",
    ):
        self.is_online = initial_online
        self._on_online = on_online
        self._probe_client = probe_client
        self._health_path = health_path
        self._subscribers = {event: [] for event in EVENTS}
        self._tasks: set = set()
        self._watcher: Optional[asyncio.Task] = None

    def subscribe(self, event: str, callback: Callable) -> Callable[[], None]:
        """Register a sync or async callback. Returns an unsubscribe function."""
        if event not in self._subscribers:
            raise ValueError(f"unknown event '{event}', expected one of {EVENTS}")
        self._subscribers[event].append(callback)

        def unsubscribe():
            if callback in self._subscribers[event]:
                self._subscribers[event].remove(callback)

        return unsubscribe

    def set_online(self, online: bool) -> bool:
        """Feed the environment signal. Returns True if this was a transition."""
        online = bool(online)
        if online == self.is_online:
            return False
        self.is_online = online
        event = BECAME_ONLINE if online else BECAME_OFFLINE
        logger.info(f"Connectivity changed: {event}")

        if online and self._on_online is not None:
            self._spawn(self._on_online())
        for callback in list(self._subscribers[event]):
            try:
                result = callback()
            except Exception:
                logger.exception(f"{event} subscriber failed")
                continue
            if inspect.isawaitable(result):
                self._spawn(result)
        return True

    def _spawn(self, awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background task failed: {task.exception()!r}")

    async def drain(self) -> None:
        """Wait for every task spawned by transitions so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ─── Probing ─────────────────────────────────────────────────────────────

    async def probe(self) -> bool:
        """GET the health endpoint and feed the result into set_online."""
        if self._probe_client is None:
            return self.is_online
        try:
            response = await self._probe_client.get(self._health_path)
            online = response.is_success
        except httpx.RequestError:
            online = False
        self.set_online(online)
        return online

    def watch(self, interval: float) -> asyncio.Task:
        """Probe every `interval` seconds until stop()."""
        async def _loop():
            while True:
                await self.probe()
                await asyncio.sleep(interval)

        if self._watcher is None or self._watcher.done():
            self._watcher = asyncio.ensure_future(_loop())
        return self._watcher

    async def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.cancel()
            try:
                await self._watcher
            except asyncio.CancelledError:
                pass
            self._watcher = None
        await self.drain()
