#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv


# -----------------------------
# dotenv loading (robust)
# -----------------------------
def _load_env() -> None:
    """
    Explicitly point at the repo's .env so the script works from any cwd.
    """
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    dotenv_path = os.path.join(repo_root, ".env")
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _parse_seasons(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    return [s.strip() for s in raw.split(",") if s.strip()] or None


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Sync Yahoo fantasy hockey leagues into the database.")
    ap.add_argument("--mode", choices=["full", "test", "single"], default="full")
    ap.add_argument("--league-key", default=None, help="Required for --mode single, e.g. 427.l.16794")
    ap.add_argument("--season", default=None, help="Only this season, e.g. 2024")
    ap.add_argument("--seasons", default=None, help="Comma separated seasons, e.g. 2024,2022")
    ap.add_argument("--force-refresh", action="store_true", help="Ignore the recently-synced skip window")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    _load_env()
    args = build_parser().parse_args(argv)

    # imported after .env is loaded so config picks it up
    from db import open_store
    from webapp.config import Config
    from webapp.errors import AppError
    from webapp.logging_conf import setup_logging
    from webapp.services.yahoo_client import client_from_config
    from webapp.services.yahoo_sync import SyncOptions, YahooSyncService

    setup_logging(Config.LOG_LEVEL)
    config = {k: getattr(Config, k) for k in dir(Config) if k.isupper()}

    try:
        service = YahooSyncService(
            client=client_from_config(config),
            store=open_store(Config.DATABASE_URL),
            keeper_start_year=Config.KEEPER_LEAGUE_START_YEAR,
            sync_cache_hours=Config.SYNC_CACHE_HOURS,
            league_delay_seconds=Config.SYNC_LEAGUE_DELAY_SECONDS,
        )
        result = service.sync_all_leagues(
            SyncOptions(
                mode=args.mode,
                league_key=args.league_key,
                season=args.season,
                seasons=_parse_seasons(args.seasons),
                force_refresh=args.force_refresh,
            )
        )
    except AppError as e:
        print(json.dumps({"success": False, "error": e.message}, indent=2))
        return 1

    print(json.dumps({"success": True, "mode": args.mode, "data": result.to_json()}, indent=2))
    return 0 if not result.errors else 2


if __name__ == "__main__":
    sys.exit(main())
