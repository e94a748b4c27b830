# webapp/services/__init__.py

from .shared_data import CacheKey, SharedTeamData, store_loaders
from .yahoo_client import YahooApiClient, client_from_config
from .yahoo_sync import SyncOptions, SyncResult, YahooSyncService

__all__ = [
    "CacheKey",
    "SharedTeamData",
    "store_loaders",
    "YahooApiClient",
    "client_from_config",
    "SyncOptions",
    "SyncResult",
    "YahooSyncService",
]
