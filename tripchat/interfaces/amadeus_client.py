"""
Amadeus API Client - flight offers, hotel lists and hotel offers

OAuth2 client-credentials token is cached until shortly before it expires.
All calls raise SearchProviderError on HTTP, transport or decoding failures; the
chat handlers decide what to show instead.
"""

import time
from typing import Dict, List, Optional, Any

import httpx
from loguru import logger

from ..config import settings
from ..errors import ProviderNotConfiguredError, SearchProviderError


class AmadeusClient:
    """Async client for the Amadeus self-service APIs"""

    # Refresh the token this many seconds before Amadeus expires it
    TOKEN_MARGIN_SECONDS = 30

    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.AMADEUS_API_URL).rstrip("/")
        self.client_id = client_id if client_id is not None else settings.AMADEUS_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else settings.AMADEUS_CLIENT_SECRET
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.transport = transport

        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _authenticate(self) -> str:
        """Get a bearer token, reusing the cached one while valid"""
        if not self.configured:
            raise ProviderNotConfiguredError("Amadeus")

        if self._access_token and time.time() < self._token_expiry:
            return self._access_token

        try:
            async with self._client() as client:
                response = await client.post(
                    "/v1/security/oauth2/token",
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"}
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SearchProviderError("Amadeus", "authentication failed", e.response.status_code)
        except httpx.HTTPError as e:
            raise SearchProviderError("Amadeus", f"authentication failed: {e}")

        try:
            payload = response.json()
            self._access_token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 1799))
        except (ValueError, KeyError, TypeError) as e:
            self._access_token = None
            raise SearchProviderError("Amadeus", f"unusable token response: {e!r}")

        self._token_expiry = time.time() + max(expires_in - self.TOKEN_MARGIN_SECONDS, 0)
        logger.debug("Amadeus token refreshed")
        return self._access_token

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        token = await self._authenticate()
        try:
            async with self._client() as client:
                response = await client.get(
                    endpoint,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"}
                )
                response.raise_for_status()
                data = response.json()
        except ValueError as e:
            raise SearchProviderError("Amadeus", f"{endpoint} returned invalid JSON: {e}")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                # Token revoked early; next call re-authenticates
                self._access_token = None
            raise SearchProviderError("Amadeus", f"{endpoint} returned {status}", status)
        except httpx.HTTPError as e:
            raise SearchProviderError("Amadeus", f"{endpoint} failed: {e}")

        if not isinstance(data, dict):
            raise SearchProviderError("Amadeus", f"{endpoint} returned an unexpected payload")
        return data

    async def search_flights(
        self,
        origin: str,
        destination: str,
        departure_date: str,
        adults: int = 1,
        return_date: Optional[str] = None,
        travel_class: Optional[str] = None,
        max_results: int = 20
    ) -> Dict[str, Any]:
        """
        Search flight offers

        Args:
            origin: Origin IATA code
            destination: Destination IATA code
            departure_date: YYYY-MM-DD
            adults: Number of adult passengers

        Returns:
            Raw /v2/shopping/flight-offers payload (prices in USD)
        """
        params: Dict[str, Any] = {
            "originLocationCode": origin,
            "destinationLocationCode": destination,
            "departureDate": departure_date,
            "adults": adults,
            "max": max_results,
            "currencyCode": "USD",
        }
        if return_date:
            params["returnDate"] = return_date
        if travel_class:
            params["travelClass"] = travel_class.upper()

        logger.info(f"Amadeus flight search: {origin} -> {destination} on {departure_date}")
        return await self._get("/v2/shopping/flight-offers", params)

    async def search_hotels_by_city(
        self,
        city_code: str,
        radius: int = 5,
        radius_unit: str = "KM",
        hotel_source: str = "ALL"
    ) -> Dict[str, Any]:
        logger.info(f"Amadeus hotel list: {city_code}")
        return await self._get("/v1/reference-data/locations/hotels/by-city", {
            "cityCode": city_code,
            "radius": radius,
            "radiusUnit": radius_unit,
            "hotelSource": hotel_source,
        })

    async def get_hotel_offers(
        self,
        hotel_ids: List[str],
        check_in: str,
        check_out: str,
        adults: int = 1,
        rooms: int = 1
    ) -> Dict[str, Any]:
        return await self._get("/v3/shopping/hotel-offers", {
            "hotelIds": ",".join(hotel_ids),
            "checkInDate": check_in,
            "checkOutDate": check_out,
            "adults": adults,
            "roomQuantity": rooms,
            "currency": "USD",
        })

    async def search_locations(self, keyword: str, sub_type: str = "CITY,AIRPORT") -> Dict[str, Any]:
        """Airport/city lookup for codes missing from the local table"""
        return await self._get("/v1/reference-data/locations", {
            "keyword": keyword,
            "subType": sub_type,
        })


# Singleton instance
_client_instance: Optional[AmadeusClient] = None


def get_amadeus_client() -> AmadeusClient:
    """Get singleton instance of AmadeusClient"""
    global _client_instance
    if _client_instance is None:
        _client_instance = AmadeusClient()
    return _client_instance
