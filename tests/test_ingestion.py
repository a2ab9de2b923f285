"""Tests for the OddsShopper client: request shape, error mapping and caching."""

import asyncio
import json
from datetime import datetime
from unittest.mock import patch

import aiohttp
import pytest

from evcalc.errors import ApiError, OfferNotFoundError
from evcalc.ingestion.base import OfferProvider
from evcalc.ingestion.oddsshopper import OddsShopperClient, _iso_utc
from evcalc.result import Err, Ok

BASE_URL = "https://api.oddsshopper.example.com"


def make_session(status=200, body="[]", reason="OK", error=None, calls=None):
    """Build an aiohttp.ClientSession stand-in returning one canned response."""

    class MockResponse:
        def __init__(self):
            self.status = status
            self.reason = reason

        async def text(self):
            return body

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc_val, exc_tb):
            pass

    class MockSession:
        def __init__(self, *args, **kwargs):
            if calls is not None:
                calls.append(("session", kwargs))

        def get(self, url, params=None):
            if calls is not None:
                calls.append(("get", url, params))
            if error is not None:
                raise error
            return MockResponse()

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc_val, exc_tb):
            pass

    return MockSession


def offers_json(*offers) -> str:
    return json.dumps([o.model_dump(mode="json", by_alias=True) for o in offers])


@pytest.fixture
def client():
    return OddsShopperClient(BASE_URL + "/", timeout_seconds=5.0)


def test_client_implements_provider():
    assert issubclass(OddsShopperClient, OfferProvider)
    assert OddsShopperClient(BASE_URL).base_url == BASE_URL


def test_iso_utc_matches_javascript_format():
    ts = datetime(2026, 10, 19, 18, 5, 9, 123456)
    assert _iso_utc(ts) == "2026-10-19T18:05:09.123Z"


@pytest.mark.asyncio
async def test_fetch_success(client, offer):
    calls = []
    session = make_session(body=offers_json(offer), calls=calls)

    with patch("aiohttp.ClientSession", session):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Ok)
    assert len(result.value) == 1
    assert result.value[0].participants[0].id == "player-1"
    assert result.value[0].sides[0].outcomes[0].sportsbook_code == "PINNACLE"

    _, session_kwargs = calls[0]
    assert session_kwargs["timeout"].total == 5.0
    _, url, params = calls[1]
    assert url == f"{BASE_URL}/api/offers/offer-123/outcomes/live"
    assert params["sortBy"] == "Time"
    start = datetime.strptime(params["startDate"], "%Y-%m-%dT%H:%M:%S.%fZ")
    end = datetime.strptime(params["endDate"], "%Y-%m-%dT%H:%M:%S.%fZ")
    assert (end - start).total_seconds() == pytest.approx(24 * 3600, abs=1)


@pytest.mark.asyncio
async def test_fetch_not_found(client):
    with patch("aiohttp.ClientSession", make_session(status=404, reason="Not Found")):
        result = await client.fetch_from_api("missing")

    assert isinstance(result, Err)
    assert isinstance(result.error, OfferNotFoundError)
    assert result.error.http_status == 404
    assert result.error.message == "Offer not found for ID: missing"


@pytest.mark.asyncio
async def test_fetch_upstream_status(client):
    session = make_session(status=503, reason="Service Unavailable")
    with patch("aiohttp.ClientSession", session):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Err)
    assert isinstance(result.error, ApiError)
    assert result.error.code == "API_ERROR"
    assert result.error.http_status == 503
    assert result.error.message == "Upstream error: Service Unavailable"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        aiohttp.ClientConnectionError("Connection refused"),
        asyncio.TimeoutError(),
    ],
)
async def test_fetch_network_failure(client, error):
    with patch("aiohttp.ClientSession", make_session(error=error)):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Err)
    assert result.error.code == "API_ERROR"
    assert result.error.http_status == 502
    assert result.error.message.startswith("Network or parsing failure: ")
    assert result.error.message != "Network or parsing failure: "


@pytest.mark.asyncio
async def test_fetch_invalid_json(client):
    with patch("aiohttp.ClientSession", make_session(body="<html>oops</html>")):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Err)
    assert result.error.code == "API_ERROR"
    assert result.error.http_status == 502


@pytest.mark.asyncio
async def test_fetch_non_list_body(client):
    with patch("aiohttp.ClientSession", make_session(body='{"message": "gone"}')):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Err)
    assert result.error.code == "OFFER_NOT_FOUND"


@pytest.mark.asyncio
async def test_fetch_schema_mismatch(client):
    with patch("aiohttp.ClientSession", make_session(body='[{"eventName": "x"}]')):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Err)
    assert result.error.code == "API_ERROR"
    assert result.error.http_status == 502
    assert result.error.message.startswith("Upstream error: ")


@pytest.mark.asyncio
async def test_fetch_empty_list(client):
    with patch("aiohttp.ClientSession", make_session(body="[]")):
        result = await client.fetch_from_api("offer-123")

    assert isinstance(result, Ok)
    assert result.value == []


@pytest.mark.asyncio
async def test_fetch_offer_data_caches(offer, cache, fake_redis):
    client = OddsShopperClient(BASE_URL, cache=cache)

    with patch("aiohttp.ClientSession", make_session(body=offers_json(offer))):
        result = await client.fetch_offer_data("offer-123")

    assert isinstance(result, Ok)
    assert "oddsshopper:offers:offer-123:player-1" in fake_redis.store


@pytest.mark.asyncio
async def test_fetch_offer_data_skip_cache_does_not_write(offer, cache, fake_redis):
    client = OddsShopperClient(BASE_URL, cache=cache)

    with patch("aiohttp.ClientSession", make_session(body=offers_json(offer))):
        result = await client.fetch_offer_data("offer-123", skip_cache=True)

    assert isinstance(result, Ok)
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_participant_served_from_cache(offer, cache):
    client = OddsShopperClient(BASE_URL, cache=cache)
    await cache.set_offer("offer-123", "player-1", offer)
    failing = make_session(error=AssertionError("network must not be used"))

    with patch("aiohttp.ClientSession", failing):
        result = await client.fetch_offer_for_participant("offer-123", "player-1")

    assert isinstance(result, Ok)
    assert result.value.participants[0].name == "LeBron James"


@pytest.mark.asyncio
async def test_participant_skip_cache_fetches_and_refreshes(offer, cache, fake_redis):
    client = OddsShopperClient(BASE_URL, cache=cache)
    stale = offer.model_copy(update={"offer_name": "Rebounds"})
    await cache.set_offer("offer-123", "player-1", stale)

    with patch("aiohttp.ClientSession", make_session(body=offers_json(offer))):
        result = await client.fetch_offer_for_participant(
            "offer-123", "player-1", skip_cache=True
        )

    assert result.value.offer_name == "Points"
    cached = await cache.get_offer("offer-123", "player-1")
    assert cached.offer_name == "Points"


@pytest.mark.asyncio
async def test_participant_missing_from_feed(offer, cache):
    client = OddsShopperClient(BASE_URL, cache=cache)

    with patch("aiohttp.ClientSession", make_session(body=offers_json(offer))):
        result = await client.fetch_offer_for_participant("offer-123", "player-99")

    assert isinstance(result, Err)
    assert result.error.code == "PARTICIPANT_NOT_FOUND"


@pytest.mark.asyncio
async def test_participant_fetch_error_propagates(cache):
    client = OddsShopperClient(BASE_URL, cache=cache)

    with patch("aiohttp.ClientSession", make_session(status=404, reason="Not Found")):
        result = await client.fetch_offer_for_participant("offer-123", "player-1")

    assert isinstance(result, Err)
    assert result.error.code == "OFFER_NOT_FOUND"
