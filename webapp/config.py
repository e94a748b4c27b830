# webapp/config.py

import os
from dotenv import load_dotenv

# Load .env into environment variables
load_dotenv()

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///hockey_stats.db")

YAHOO_CLIENT_ID = os.getenv("YAHOO_CLIENT_ID")
YAHOO_CLIENT_SECRET = os.getenv("YAHOO_CLIENT_SECRET")
YAHOO_REFRESH_TOKEN = os.getenv("YAHOO_REFRESH_TOKEN")

CRON_SECRET = os.getenv("CRON_SECRET")

# Shared team/matchup cache lifetime (30 minutes)
SHARED_CACHE_TTL_SECONDS = int(os.getenv("SHARED_CACHE_TTL_SECONDS", "1800"))

# A league synced more recently than this is skipped unless forceRefresh (1 week, weekly cron)
SYNC_CACHE_HOURS = int(os.getenv("SYNC_CACHE_HOURS", "168"))

SYNC_LEAGUE_DELAY_SECONDS = float(os.getenv("SYNC_LEAGUE_DELAY_SECONDS", "2"))
YAHOO_REQUEST_DELAY_SECONDS = float(os.getenv("YAHOO_REQUEST_DELAY_SECONDS", "1"))

# First season of the keeper league
KEEPER_LEAGUE_START_YEAR = int(os.getenv("KEEPER_LEAGUE_START_YEAR", "2015"))

DRAFT_YEAR = os.getenv("DRAFT_YEAR", "2025")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# dev server only (`python app.py`)
PORT = int(os.getenv("PORT", "5001"))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "0").lower() in ("1", "true", "yes")

# ---------------------------------------------------------------------------
# Flask Config object (used by create_app)
# ---------------------------------------------------------------------------

class Config:
    DATABASE_URL = DATABASE_URL

    YAHOO_CLIENT_ID = YAHOO_CLIENT_ID
    YAHOO_CLIENT_SECRET = YAHOO_CLIENT_SECRET
    YAHOO_REFRESH_TOKEN = YAHOO_REFRESH_TOKEN

    CRON_SECRET = CRON_SECRET

    SHARED_CACHE_TTL_SECONDS = SHARED_CACHE_TTL_SECONDS
    SYNC_CACHE_HOURS = SYNC_CACHE_HOURS
    SYNC_LEAGUE_DELAY_SECONDS = SYNC_LEAGUE_DELAY_SECONDS
    YAHOO_REQUEST_DELAY_SECONDS = YAHOO_REQUEST_DELAY_SECONDS

    KEEPER_LEAGUE_START_YEAR = KEEPER_LEAGUE_START_YEAR
    DRAFT_YEAR = DRAFT_YEAR

    LOG_LEVEL = LOG_LEVEL

    # (max_requests, window_seconds) per named limiter
    RATE_LIMITS = {
        "sync": (5, 60),
        "stats": (30, 60),
        "dashboard": (30, 60),
    }
