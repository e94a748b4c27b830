# webapp/services/yahoo_client.py
"""
Thin client for the Yahoo Fantasy Sports v2 API.

Responses are XML; `xml_to_dict` turns them into nested dicts the way the
rest of the app expects:

- namespaces are stripped from tag names
- a leaf element becomes its (stripped) text
- a tag repeated under one parent becomes a list

Use `as_list()` on anything Yahoo may return either once or many times.
"""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from webapp.errors import UpstreamError

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = "https://api.login.yahoo.com/oauth2/get_token"
BASE_URL = "https://fantasysports.yahooapis.com/fantasy/v2"

LEAGUE_ENDPOINTS = ["metadata", "settings", "standings", "teams"]


@dataclass(frozen=True)
class LeagueKeyInfo:
    league_key: str
    season: str
    game_key: str = ""
    game_code: str = "nhl"


# ---------- XML helpers ----------


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_to_data(el: ET.Element) -> Any:
    children = list(el)
    if not children:
        return (el.text or "").strip()

    out: Dict[str, Any] = {}
    for child in children:
        name = _local_name(child.tag)
        value = _element_to_data(child)
        if name in out:
            existing = out[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                out[name] = [existing, value]
        else:
            out[name] = value
    return out


def xml_to_dict(xml_text: str) -> Dict[str, Any]:
    root = ET.fromstring(xml_text)
    return {_local_name(root.tag): _element_to_data(root)}


def as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def dig(data: Any, *path: str) -> Any:
    """Walk nested dicts; None as soon as a step is missing."""
    cur = data
    for step in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(step)
    return cur


# ---------- retry policy ----------


def _is_auth_failure(error: Optional[BaseException]) -> bool:
    return (
        isinstance(error, requests.HTTPError)
        and error.response is not None
        and error.response.status_code == 401
    )


def _backoff(delay: float):
    exponential = wait_exponential(multiplier=delay, max=60)

    def wait(retry_state: RetryCallState) -> float:
        # a fresh token is all an expired one needs
        if _is_auth_failure(retry_state.outcome.exception()):
            return 0.0
        return exponential(retry_state)

    return wait


# ---------- client ----------


class YahooApiClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        http: Optional[requests.Session] = None,
        timeout: float = 20.0,
        request_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.http = http or requests.Session()
        self.timeout = timeout
        self.request_delay = request_delay
        self._sleep = sleep
        self._access_token: Optional[str] = None

    # ---------- auth ----------

    def refresh_credentials(self) -> None:
        logger.info("Refreshing Yahoo API credentials")
        try:
            resp = self.http.post(
                AUTH_ENDPOINT,
                data={
                    "redirect_uri": "oob",
                    "grant_type": "refresh_token",
                    "refresh_token": self.refresh_token,
                },
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            token = resp.json().get("access_token")
        except (requests.RequestException, ValueError) as e:
            raise UpstreamError(f"Failed to refresh Yahoo credentials: {e}") from e

        if not token:
            raise UpstreamError("Yahoo token endpoint returned no access token")
        self._access_token = token

    # ---------- requests ----------

    def _get(self, url: str) -> Dict[str, Any]:
        if self._access_token is None:
            self.refresh_credentials()

        logger.debug("Yahoo API request", extra={"url": url})
        resp = self.http.get(
            url,
            headers={"Authorization": f"Bearer {self._access_token}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return xml_to_dict(resp.text)

    def _before_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        if _is_auth_failure(error):
            logger.info("Yahoo access token expired, refreshing")
            self.refresh_credentials()
        else:
            logger.warning(
                "Yahoo API request failed, retrying",
                extra={
                    "url": retry_state.args[0] if retry_state.args else None,
                    "attempt": retry_state.attempt_number,
                    "error": str(error),
                    "delay": retry_state.next_action.sleep if retry_state.next_action else None,
                },
            )

    def make_api_request(self, url: str, retries: int = 1, delay: float = 4.0) -> Dict[str, Any]:
        """
        GET one Yahoo resource and return it as a dict.

        401 -> refresh credentials and retry straight away; anything else ->
        wait `delay` seconds and retry with the delay doubled each time.
        Raises UpstreamError when retries are exhausted.
        """
        retrying = Retrying(
            stop=stop_after_attempt(retries + 1),
            wait=_backoff(delay),
            retry=retry_if_exception_type((requests.RequestException, ET.ParseError)),
            before_sleep=self._before_retry,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            return retrying(self._get, url)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise UpstreamError(f"Yahoo API request failed ({status}): {url}") from e
        except (requests.RequestException, ET.ParseError) as e:
            raise UpstreamError(f"Yahoo API request failed: {e}") from e

    # ---------- resources ----------

    def get_all_league_keys(self, seasons: Iterable[str], game_code: str = "nhl") -> List[LeagueKeyInfo]:
        wanted = {str(s) for s in seasons}
        url = f"{BASE_URL}/users;use_login=1/games;game_codes={game_code}/leagues"
        data = self.make_api_request(url)

        games = as_list(dig(data, "fantasy_content", "users", "user", "games", "game"))
        keys: List[LeagueKeyInfo] = []
        for game in games:
            season = str(game.get("season", ""))
            if season not in wanted:
                continue
            for league in as_list(dig(game, "leagues", "league")):
                league_key = league.get("league_key") if isinstance(league, dict) else None
                if league_key:
                    keys.append(
                        LeagueKeyInfo(
                            league_key=league_key,
                            season=season,
                            game_key=str(game.get("game_key", "")),
                            game_code=str(game.get("code", game_code)),
                        )
                    )

        logger.info("Found league keys", extra={"count": len(keys), "seasons": sorted(wanted)})
        return keys

    def fetch_league_data(self, league_key: str) -> Dict[str, Optional[Dict[str, Any]]]:
        """
        League sub-resources keyed by endpoint name. An endpoint that fails
        comes back as None; the rest are still returned.
        """
        out: Dict[str, Optional[Dict[str, Any]]] = {}
        for endpoint in LEAGUE_ENDPOINTS:
            url = f"{BASE_URL}/league/{league_key}/{endpoint}"
            try:
                out[endpoint] = self.make_api_request(url)
            except UpstreamError as e:
                logger.error(
                    "Yahoo endpoint failed",
                    extra={"operation": "fetch_league_data", "league_key": league_key, "endpoint": endpoint, "error": str(e)},
                )
                out[endpoint] = None
            self._sleep(self.request_delay)
        return out

    def fetch_scoreboard(self, league_key: str, week: int) -> Dict[str, Any]:
        url = f"{BASE_URL}/league/{league_key}/scoreboard;week={int(week)}"
        data = self.make_api_request(url)
        self._sleep(self.request_delay)
        return data


def client_from_config(config: Dict[str, Any]) -> YahooApiClient:
    client_id = config.get("YAHOO_CLIENT_ID")
    client_secret = config.get("YAHOO_CLIENT_SECRET")
    refresh_token = config.get("YAHOO_REFRESH_TOKEN")
    if not (client_id and client_secret and refresh_token):
        raise UpstreamError("Yahoo API credentials are not configured")
    return YahooApiClient(
        client_id=client_id,
        client_secret=client_secret,
        refresh_token=refresh_token,
        request_delay=float(config.get("YAHOO_REQUEST_DELAY_SECONDS", 1.0)),
    )
