"""
Travel Helper Utilities
Lookups, formatting and result shaping shared by the chat handlers
"""

import random
import string
import time
from datetime import datetime
from typing import List, Dict, Any, Optional
from urllib.parse import urlparse

from ..config import settings
from ..schemas.chat_schemas import ExtractedParams, SearchResultItem, WebSource


CITY_TO_IATA: Dict[str, str] = {
    "delhi": "DEL", "new delhi": "DEL", "mumbai": "BOM", "bombay": "BOM",
    "bangalore": "BLR", "bengaluru": "BLR", "chennai": "MAA", "madras": "MAA",
    "kolkata": "CCU", "calcutta": "CCU", "hyderabad": "HYD", "pune": "PNQ",
    "ahmedabad": "AMD", "jaipur": "JAI", "lucknow": "LKO", "goa": "GOI",
    "kochi": "COK", "cochin": "COK", "guwahati": "GAU", "varanasi": "VNS",
    "amritsar": "ATQ", "chandigarh": "IXC", "indore": "IDR", "bhopal": "BHO",
    "nagpur": "NAG", "patna": "PAT", "ranchi": "IXR", "srinagar": "SXR",
    "leh": "IXL", "dehradun": "DED", "agra": "AGR", "udaipur": "UDR",
    "jodhpur": "JDH", "dubai": "DXB", "singapore": "SIN", "bangkok": "BKK",
    "london": "LHR", "paris": "CDG", "new york": "JFK", "tokyo": "NRT",
}

# Hotel search wants metropolitan city codes, not airports
HOTEL_CITY_CODES: Dict[str, str] = {
    "london": "LON", "paris": "PAR", "new york": "NYC", "tokyo": "TYO",
}

AIRLINE_NAMES: Dict[str, str] = {
    "AI": "Air India", "6E": "IndiGo", "UK": "Vistara",
    "SG": "SpiceJet", "G8": "GoAir", "IX": "Air India Express",
    "QP": "Akasa Air", "EK": "Emirates", "EY": "Etihad",
    "QR": "Qatar Airways", "SQ": "Singapore Airlines",
    "TG": "Thai Airways", "BA": "British Airways",
}


def get_iata_code(city: str) -> str:
    """
    Map a city name to its airport code.
    Unknown cities fall back to their first three letters, upper-cased.
    """
    key = city.strip().lower()
    if key in CITY_TO_IATA:
        return CITY_TO_IATA[key]
    return key.replace(" ", "")[:3].upper()


def get_hotel_city_code(city: str) -> str:
    return HOTEL_CITY_CODES.get(city.strip().lower()) or get_iata_code(city)


def get_airline_name(code: str) -> str:
    return AIRLINE_NAMES.get(code, code)


def display_city(city: Optional[str], default: str = "") -> str:
    """'new delhi' -> 'New Delhi'"""
    if not city:
        return default
    return city.strip().title()


def format_display_date(date_str: str) -> str:
    """
    Format an ISO date for chat messages

    Returns:
        str: e.g. "January 15, 2026", or the input unchanged if it isn't ISO
    """
    try:
        parsed = datetime.strptime(date_str, "%Y-%m-%d")
    except (TypeError, ValueError):
        return date_str
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def source_hostname(url: str) -> str:
    return urlparse(url).hostname or url


def convert_price(amount: Any, rate: Optional[float] = None) -> int:
    """Provider USD amount -> rounded display-currency amount"""
    rate = settings.PRICE_CONVERSION_RATE if rate is None else rate
    try:
        return round(float(amount or 0) * rate)
    except (TypeError, ValueError):
        return 0


def generate_chat_id() -> str:
    """chat-<epoch ms>-<9 random chars>"""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"chat-{int(time.time() * 1000)}-{suffix}"


def _format_duration(iso_duration: Optional[str]) -> str:
    # "PT2H30M" -> "2h 30m"
    if not iso_duration:
        return "N/A"
    text = iso_duration.replace("PT", "").lower()
    return text.replace("h", "h ").strip()


def _clock(timestamp: Optional[str]) -> str:
    # "2026-01-15T06:15:00" -> "06:15"
    if not timestamp or "T" not in timestamp:
        return "N/A"
    return timestamp.split("T")[1][:5]


# ============================================
# Result shaping
# ============================================

def transform_flight_offers(
    data: Dict[str, Any],
    params: ExtractedParams,
    limit: int = 5
) -> List[SearchResultItem]:
    """
    Turn an Amadeus flight-offers payload into chat result cards

    Args:
        data: Raw response of /v2/shopping/flight-offers
        params: Slots used for the search (for the card title)
        limit: Max cards

    Returns:
        List[SearchResultItem]: Flight cards, cheapest first as Amadeus returns them
    """
    results = []
    for index, offer in enumerate((data or {}).get("data", [])[:limit]):
        itinerary = (offer.get("itineraries") or [{}])[0]
        segments = itinerary.get("segments") or []
        first_seg = segments[0] if segments else {}
        last_seg = segments[-1] if segments else {}
        carrier = first_seg.get("carrierCode", "XX")
        stops = max(len(segments) - 1, 0)

        results.append(SearchResultItem(
            type="flight",
            id=str(offer.get("id") or f"flight-{index}"),
            title=f"{(params.origin or '').upper()} → {(params.destination or '').upper()}",
            subtitle=get_airline_name(carrier),
            price=convert_price((offer.get("price") or {}).get("total")),
            details={
                "departure": _clock((first_seg.get("departure") or {}).get("at")),
                "arrival": _clock((last_seg.get("arrival") or {}).get("at")),
                "duration": _format_duration(itinerary.get("duration")),
                "stops": "Non-stop" if stops == 0 else f"{stops} stop(s)",
                "flightNumber": f"{carrier} {first_seg.get('number', '000')}",
                "origin": (first_seg.get("departure") or {}).get("iataCode", ""),
                "destination": (last_seg.get("arrival") or {}).get("iataCode", ""),
                "date": params.departureDate or "",
            },
        ))
    return results


def transform_hotel_offers(
    data: Dict[str, Any],
    destination: str,
    limit: int = 5
) -> List[SearchResultItem]:
    """Turn an Amadeus hotel-offers payload into chat result cards"""
    results = []
    city = display_city(destination)
    for index, entry in enumerate((data or {}).get("data", [])[:limit]):
        hotel = entry.get("hotel") or {}
        offers = entry.get("offers") or [{}]
        offer = offers[0]
        rating = str(hotel.get("rating", "")) if hotel.get("rating") else ""
        stars = "⭐" * int(rating) if rating.isdigit() else ""

        results.append(SearchResultItem(
            type="hotel",
            id=str(hotel.get("hotelId") or f"hotel-{index}"),
            title=display_city(hotel.get("name"), default=f"Hotel {index + 1}"),
            subtitle=f"{stars} • {city}" if stars else city,
            price=convert_price((offer.get("price") or {}).get("total")),
            details={
                "rating": rating or "N/A",
                "location": destination,
                "checkIn": offer.get("checkInDate", ""),
                "checkOut": offer.get("checkOutDate", ""),
                "room": ((offer.get("room") or {}).get("typeEstimated") or {}).get("category", ""),
            },
        ))
    return results


_FALLBACK_FLIGHTS = [
    ("Air India", "AI", 9055, "06:15", "09:20"),
    ("IndiGo", "6E", 9313, "10:30", "13:45"),
    ("Vistara", "UK", 10798, "14:00", "17:15"),
    ("SpiceJet", "SG", 12500, "18:30", "21:45"),
    ("Akasa Air", "QP", 14200, "21:00", "00:15"),
]

_FALLBACK_HOTELS = [
    ("Taj Hotel", 5, 12500),
    ("Marriott", 5, 9800),
    ("Hyatt Regency", 4, 7500),
    ("Radisson Blu", 4, 5500),
    ("Holiday Inn", 3, 3500),
]


def fallback_flights(params: ExtractedParams) -> List[SearchResultItem]:
    """Static flight cards shown when the flight provider is unavailable"""
    title = f"{display_city(params.origin, 'Origin')} → {display_city(params.destination, 'Destination')}"
    return [
        SearchResultItem(
            type="flight",
            id=f"fallback-flight-{i}",
            title=title,
            subtitle=airline,
            price=price,
            details={
                "departure": dep,
                "arrival": arr,
                "duration": "2h 30m",
                "stops": "Non-stop" if i % 2 == 0 else "1 stop",
                "flightNumber": f"{code} {1000 + i * 123}",
                "date": params.departureDate or "",
            },
        )
        for i, (airline, code, price, dep, arr) in enumerate(_FALLBACK_FLIGHTS)
    ]


def fallback_hotels(destination: str) -> List[SearchResultItem]:
    """Static hotel cards shown when the hotel provider is unavailable"""
    city = display_city(destination)
    return [
        SearchResultItem(
            type="hotel",
            id=f"fallback-hotel-{i}",
            title=f"{name} {city}",
            subtitle=f"{'⭐' * stars} • {city}",
            price=price,
            details={"rating": str(stars), "location": destination},
        )
        for i, (name, stars, price) in enumerate(_FALLBACK_HOTELS)
    ]


def info_results(
    sources: List[WebSource],
    limit: int = 3,
    snippet_length: int = 150
) -> List[SearchResultItem]:
    """Web search hits -> info cards"""
    return [
        SearchResultItem(
            type="info",
            id=f"info-{i}",
            title=source.title,
            subtitle=truncate_text(source.content, snippet_length),
            details={"source": source_hostname(source.url)},
            url=source.url,
        )
        for i, source in enumerate(sources[:limit])
    ]
