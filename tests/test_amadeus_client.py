import httpx
import pytest

from tripchat.errors import ProviderNotConfiguredError, SearchProviderError
from tripchat.interfaces.amadeus_client import AmadeusClient


def make_client(handler):
    return AmadeusClient(
        base_url="https://amadeus.test",
        client_id="id",
        client_secret="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_search_flights_authenticates_once():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path == "/v1/security/oauth2/token":
            assert b"grant_type=client_credentials" in request.content
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.params["originLocationCode"] == "DEL"
        assert request.url.params["currencyCode"] == "USD"
        return httpx.Response(200, json={"data": [{"id": "1"}]})

    client = make_client(handler)
    first = await client.search_flights("DEL", "GOI", "2026-04-01", adults=2)
    await client.search_flights("DEL", "GOI", "2026-04-02")

    assert first == {"data": [{"id": "1"}]}
    assert calls.count("/v1/security/oauth2/token") == 1
    assert calls.count("/v2/shopping/flight-offers") == 2


@pytest.mark.asyncio
async def test_hotel_offers_joins_ids():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        assert request.url.params["hotelIds"] == "H1,H2"
        assert request.url.params["roomQuantity"] == "1"
        return httpx.Response(200, json={"data": []})

    result = await make_client(handler).get_hotel_offers(["H1", "H2"], "2026-04-01", "2026-04-03")
    assert result == {"data": []}


@pytest.mark.asyncio
async def test_http_error_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        return httpx.Response(500, json={"errors": []})

    with pytest.raises(SearchProviderError) as exc_info:
        await make_client(handler).search_hotels_by_city("GOI")
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_unconfigured_client():
    client = AmadeusClient(client_id="", client_secret="")
    assert not client.configured
    with pytest.raises(ProviderNotConfiguredError):
        await client.search_locations("goa")


@pytest.mark.asyncio
async def test_html_body_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        return httpx.Response(200, text="<html><body>Service Unavailable</body></html>")

    with pytest.raises(SearchProviderError):
        await make_client(handler).search_flights("DEL", "GOI", "2026-04-01")


@pytest.mark.asyncio
async def test_token_response_without_token():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "invalid_client"})

    client = make_client(handler)
    with pytest.raises(SearchProviderError):
        await client.search_hotels_by_city("GOI")
    assert client._access_token is None
