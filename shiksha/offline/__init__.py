"""Client-side offline layer: local store, caching gateway, sync queue."""

from shiksha.offline.context import OfflineContext
from shiksha.offline.gateway import OfflineTransport, OFFLINE_PAYLOAD
from shiksha.offline.reachability import ReachabilityMonitor
from shiksha.offline.service import OfflineService
from shiksha.offline.store import LocalStore
from shiksha.offline.sync import SyncQueueProcessor, SyncReport

__all__ = [
    "OfflineContext",
    "OfflineTransport",
    "OFFLINE_PAYLOAD",
    "ReachabilityMonitor",
    "OfflineService",
    "LocalStore",
    "SyncQueueProcessor",
    "SyncReport",
]
