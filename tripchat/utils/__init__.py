"""
Utilities Module
Helper functions for the chat service
"""

from .travel_helpers import (
    get_iata_code,
    get_hotel_city_code,
    get_airline_name,
    display_city,
    format_display_date,
    convert_price,
    generate_chat_id
)

__all__ = [
    "get_iata_code",
    "get_hotel_city_code",
    "get_airline_name",
    "display_city",
    "format_display_date",
    "convert_price",
    "generate_chat_id"
]
