# webapp/extensions.py
"""
Per-app collaborators, stored on `app.extensions` by create_app() and
looked up from request handlers through the accessors below.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from flask import current_app

from db import Store
from webapp.services.shared_data import SharedTeamData
from webapp.services.yahoo_sync import YahooSyncService

STORE = "store"
SHARED_DATA = "shared_data"
RATE_LIMITERS = "rate_limiters"
YAHOO_CLIENT_FACTORY = "yahoo_client_factory"
CLOCK = "clock"


def get_store() -> Optional[Store]:
    return current_app.extensions.get(STORE)


def get_shared_data() -> SharedTeamData:
    return current_app.extensions[SHARED_DATA]


def get_clock() -> Callable[[], float]:
    return current_app.extensions.get(CLOCK, time.time)


def build_yahoo_client():
    """
    Yahoo client for one request. Built here (not at startup) so missing
    credentials only fail the endpoints that talk to Yahoo.
    """
    return current_app.extensions[YAHOO_CLIENT_FACTORY](current_app.config)


def build_sync_service() -> YahooSyncService:
    cfg = current_app.config
    return YahooSyncService(
        client=build_yahoo_client(),
        store=get_store(),
        shared_data=get_shared_data(),
        keeper_start_year=int(cfg["KEEPER_LEAGUE_START_YEAR"]),
        sync_cache_hours=int(cfg["SYNC_CACHE_HOURS"]),
        league_delay_seconds=float(cfg["SYNC_LEAGUE_DELAY_SECONDS"]),
    )
