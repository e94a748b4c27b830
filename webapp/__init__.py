# webapp/__init__.py

import time
from typing import Any, Callable, Dict, Optional

from flask import Flask
from flask_cors import CORS

from db import open_store
from .config import Config
from .errors import register_error_handlers
from .extensions import CLOCK, RATE_LIMITERS, SHARED_DATA, STORE, YAHOO_CLIENT_FACTORY
from .logging_conf import setup_logging
from .rate_limit import FixedWindowRateLimiter
from .routes.cache import cache_bp
from .routes.dashboard import dashboard_bp
from .routes.debug import debug_bp
from .routes.draft import draft_bp
from .routes.meta import meta_bp
from .routes.stats import stats_bp
from .routes.sync import sync_bp
from .services.shared_data import SharedTeamData, store_loaders
from .services.yahoo_client import client_from_config

# create_app(store=None) means "run without a database"; only an omitted
# argument opens one from DATABASE_URL.
_OPEN_FROM_CONFIG = object()


def create_app(
    overrides: Optional[Dict[str, Any]] = None,
    store: Any = _OPEN_FROM_CONFIG,
    yahoo_client_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
    clock: Callable[[], float] = time.time,
) -> Flask:
    app = Flask("webapp")

    # Core config
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    setup_logging(app.config.get("LOG_LEVEL"))

    # CORS: allow the frontend dev server to hit /api/*
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Persistent store: decided once, handlers branch on None
    if store is _OPEN_FROM_CONFIG:
        store = open_store(app.config.get("DATABASE_URL"))
    app.extensions[STORE] = store

    app.extensions[SHARED_DATA] = SharedTeamData(
        store_loaders(store),
        ttl_seconds=app.config["SHARED_CACHE_TTL_SECONDS"],
        clock=clock,
    )
    app.extensions[RATE_LIMITERS] = {
        name: FixedWindowRateLimiter(max_requests, window, clock=clock)
        for name, (max_requests, window) in app.config["RATE_LIMITS"].items()
    }
    app.extensions[YAHOO_CLIENT_FACTORY] = yahoo_client_factory or client_from_config
    app.extensions[CLOCK] = clock

    register_error_handlers(app)

    # Register blueprints
    app.register_blueprint(cache_bp)
    app.register_blueprint(sync_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(draft_bp)
    app.register_blueprint(meta_bp)
    app.register_blueprint(debug_bp)

    return app
