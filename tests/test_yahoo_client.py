import pytest
import requests

from webapp.errors import UpstreamError
from webapp.services.yahoo_client import YahooApiClient, as_list, client_from_config, dig, xml_to_dict

LEAGUES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<fantasy_content xmlns="http://fantasysports.yahooapis.com/fantasy/v2/base.rng">
  <users count="1">
    <user>
      <games count="2">
        <game>
          <game_key>419</game_key>
          <code>nhl</code>
          <season>2022</season>
          <leagues count="1">
            <league><league_key>419.l.16794</league_key><name>Keeper</name></league>
          </leagues>
        </game>
        <game>
          <game_key>453</game_key>
          <code>nhl</code>
          <season>2024</season>
          <leagues count="2">
            <league><league_key>453.l.16794</league_key></league>
            <league><league_key>453.l.99</league_key></league>
          </leagues>
        </game>
      </games>
    </user>
  </users>
</fantasy_content>
"""


class FakeResponse:
    def __init__(self, status=200, text="", payload=None):
        self.status_code = status
        self.text = text
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeHttp:
    def __init__(self, get_responses):
        self.get_responses = list(get_responses)
        self.get_calls = []
        self.post_calls = 0

    def post(self, url, **kwargs):
        self.post_calls += 1
        return FakeResponse(payload={"access_token": f"token-{self.post_calls}"})

    def get(self, url, headers=None, timeout=None):
        self.get_calls.append((url, headers["Authorization"]))
        response = self.get_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(http, sleeps=None):
    return YahooApiClient(
        "id",
        "secret",
        "refresh",
        http=http,
        request_delay=0,
        sleep=(sleeps.append if sleeps is not None else (lambda s: None)),
    )


def test_xml_to_dict_strips_namespaces_and_lists_repeats():
    data = xml_to_dict(LEAGUES_XML)

    games = as_list(dig(data, "fantasy_content", "users", "user", "games", "game"))
    assert len(games) == 2
    assert games[0]["season"] == "2022"
    assert games[0]["leagues"]["league"]["league_key"] == "419.l.16794"
    assert len(games[1]["leagues"]["league"]) == 2


def test_dig_and_as_list_handle_missing_values():
    assert dig({"a": {"b": 1}}, "a", "b") == 1
    assert dig({"a": "leaf"}, "a", "b") is None
    assert as_list(None) == []
    assert as_list("") == []
    assert as_list({"x": 1}) == [{"x": 1}]


def test_get_all_league_keys_filters_by_season():
    http = FakeHttp([FakeResponse(text=LEAGUES_XML)])

    keys = _client(http).get_all_league_keys(["2024"])

    assert [k.league_key for k in keys] == ["453.l.16794", "453.l.99"]
    assert all(k.season == "2024" and k.game_key == "453" for k in keys)
    assert http.post_calls == 1  # lazy token refresh before the first request


def test_expired_token_is_refreshed_and_retried():
    sleeps = []
    http = FakeHttp([FakeResponse(status=401), FakeResponse(text="<fantasy_content><ok>1</ok></fantasy_content>")])

    data = _client(http, sleeps).make_api_request("https://example.test/league")

    assert data == {"fantasy_content": {"ok": "1"}}
    assert http.post_calls == 2
    assert [auth for _, auth in http.get_calls] == ["Bearer token-1", "Bearer token-2"]
    # no backoff for an expired token
    assert sum(sleeps) == 0


def test_other_failures_back_off_then_raise():
    sleeps = []
    http = FakeHttp([FakeResponse(status=500), FakeResponse(status=500), FakeResponse(status=500)])

    with pytest.raises(UpstreamError):
        _client(http, sleeps).make_api_request("https://example.test/league", retries=2, delay=4.0)

    assert sleeps == [4.0, 8.0]
    assert len(http.get_calls) == 3


def test_connection_errors_are_retried_then_wrapped():
    sleeps = []
    http = FakeHttp([requests.ConnectionError("reset"), requests.ConnectionError("reset again")])

    with pytest.raises(UpstreamError) as exc:
        _client(http, sleeps).make_api_request("https://example.test/league", retries=1, delay=2.0)

    assert isinstance(exc.value.__cause__, requests.ConnectionError)
    assert sleeps == [2.0]


def test_connection_error_then_success():
    http = FakeHttp([requests.Timeout("slow"), FakeResponse(text="<fantasy_content><ok>1</ok></fantasy_content>")])

    assert _client(http).make_api_request("https://example.test/league") == {"fantasy_content": {"ok": "1"}}
    assert len(http.get_calls) == 2


def test_fetch_league_data_tolerates_a_failing_endpoint():
    ok = "<fantasy_content><league><name>x</name></league></fantasy_content>"
    # metadata ok, settings fails twice (initial + retry), standings ok, teams ok
    http = FakeHttp(
        [
            FakeResponse(text=ok),
            FakeResponse(status=500),
            FakeResponse(status=500),
            FakeResponse(text=ok),
            FakeResponse(text=ok),
        ]
    )

    data = _client(http).fetch_league_data("453.l.1")

    assert data["settings"] is None
    assert data["metadata"]["fantasy_content"]["league"]["name"] == "x"
    assert data["teams"] is not None


def test_client_from_config_requires_credentials():
    with pytest.raises(UpstreamError) as exc:
        client_from_config({"YAHOO_CLIENT_ID": "id", "YAHOO_CLIENT_SECRET": None, "YAHOO_REFRESH_TOKEN": "r"})
    assert exc.value.message == "Yahoo API credentials are not configured"
