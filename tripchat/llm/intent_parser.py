# llm/intent_parser.py
"""
Pattern-based Intent Parser
Classifies travel chat messages without an LLM:
- Intent from prioritised regex tables
- Origin/destination from known city names
- Dates ("5 jan", "jan 5th, 2026", "tomorrow", "next week", ISO)
- Trip length and number of travelers
"""

import calendar
import re
from datetime import date, timedelta
from typing import Optional, List, Tuple
from loguru import logger

from ..schemas.chat_schemas import IntentType, ExtractedParams, ClassifiedIntent
from ..utils.travel_helpers import CITY_TO_IATA


# Intent patterns with priorities (higher = more specific)
INTENT_PATTERNS: List[Tuple[IntentType, List[re.Pattern], int]] = [
    (IntentType.BOOKING_FLIGHT, [
        re.compile(r"\b(book|find|search|get|show|gave)\s*(me\s*)?(a\s*)?(flights?|airfare|plane)", re.I),
        re.compile(r"\bflights?\s+(from|to)\b", re.I),
        re.compile(r"\b(fly|flying)\s+(from|to)\b", re.I),
        re.compile(r"\bfrom\s+\w+\s+to\s+\w+", re.I),
    ], 10),
    (IntentType.BOOKING_HOTEL, [
        re.compile(r"\b(book|find|search|get|show)\s*(me\s*)?(a\s*)?(hotels?|rooms?|stay|accommodation)", re.I),
        re.compile(r"\bhotels?\s+(in|at|near)\b", re.I),
        re.compile(r"\bstay\s+(in|at)\b", re.I),
        re.compile(r"\bwhere\s+to\s+stay\b", re.I),
    ], 10),
    (IntentType.BOOKING_TRIP, [
        re.compile(r"\b(plan|book|arrange)\s*(my|a)?\s*trip\b", re.I),
        re.compile(r"\btrip\s+to\b", re.I),
        re.compile(r"\bgoing\s+to\s+\w+\s+(on|next|this)", re.I),
    ], 8),
    (IntentType.INFO_ITINERARY, [
        re.compile(r"\bitinerary\b", re.I),
        re.compile(r"\b(plan|prepare|create|make)\s*(me\s*)?(a\s*)?(trip|travel)\s*(plan)?", re.I),
        re.compile(r"\b(\d+)\s*(day|days|night|nights)\s*(trip|plan|itinerary)?\s*(in|to|for)?\b", re.I),
        re.compile(r"\bwhat\s+to\s+do\s+for\s+\d+\s+days\b", re.I),
    ], 9),
    (IntentType.INFO_DESTINATION, [
        re.compile(r"\b(places?|spots?|attractions?|things?)\s+(to\s+)?(visit|see|do|explore)\b", re.I),
        re.compile(r"\btourist\s+(places?|spots?|attractions?)\b", re.I),
        re.compile(r"\bsightseeing\b", re.I),
        re.compile(r"\bmust\s+(see|visit)\b", re.I),
        re.compile(r"\bwhat\s+(to\s+do|are\s+the)\s+(in|at)\b", re.I),
        re.compile(r"\bbest\s+(places?|things?|attractions?)\b", re.I),
    ], 9),
    (IntentType.INFO_GENERAL, [
        re.compile(r"\b(weather|climate|temperature)\s+(in|at|for)?\b", re.I),
        re.compile(r"\b(visa|passport)\s+(for|to|requirements?)?\b", re.I),
        re.compile(r"\b(currency|money|exchange\s+rate)\b", re.I),
        re.compile(r"\b(safety|safe|dangerous)\b", re.I),
        re.compile(r"\b(best\s+time)\s+(to\s+visit)?\b", re.I),
        re.compile(r"\b(food|cuisine|restaurants?)\s+(in|at)?\b", re.I),
        re.compile(r"\b(culture|customs|traditions?)\b", re.I),
        re.compile(r"\bhow\s+is\b", re.I),
        re.compile(r"\btell\s+me\s+about\b", re.I),
    ], 7),
    # Lowest priority - greetings and acknowledgements
    (IntentType.GENERAL, [
        re.compile(r"\b(hi|hello|hey|greetings)\b", re.I),
        re.compile(r"\b(thanks?|thank\s+you|thx)\b", re.I),
        re.compile(r"\bhow\s+are\s+you\b", re.I),
        re.compile(r"\b(bye|goodbye|see\s+you)\b", re.I),
        re.compile(r"\b(ok|okay|sure|great|nice)\b", re.I),
    ], 1),
]

NO_MATCH_CONFIDENCE = 0.3

CITY_NAMES: List[str] = [
    "delhi", "new delhi", "mumbai", "bombay", "bangalore", "bengaluru",
    "chennai", "madras", "kolkata", "calcutta", "hyderabad", "pune",
    "ahmedabad", "jaipur", "lucknow", "goa", "kochi", "cochin",
    "thiruvananthapuram", "trivandrum", "guwahati", "varanasi",
    "amritsar", "chandigarh", "indore", "bhopal", "nagpur", "patna",
    "ranchi", "srinagar", "leh", "ladakh", "manali", "shimla",
    "darjeeling", "gangtok", "rishikesh", "dehradun", "agra",
    "udaipur", "jodhpur", "jaisalmer", "mysore", "ooty", "coorg",
    "pondicherry", "andaman", "lakshadweep",
    # International
    "dubai", "singapore", "bangkok", "london", "paris", "new york",
    "tokyo", "sydney", "hong kong", "kuala lumpur", "bali", "maldives",
    "mauritius", "sri lanka", "colombo", "kathmandu", "bhutan", "thimphu",
]
CITY_NAMES += [city for city in CITY_TO_IATA if city not in CITY_NAMES]

_CITY_PATTERNS = [(city, re.compile(rf"\b{re.escape(city)}\b")) for city in CITY_NAMES]

_MONTH = (r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?"
          r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)")

DAY_MONTH_PATTERN = re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s*{_MONTH}\b(?:\s*,?\s*(\d{{4}}))?", re.I)
MONTH_DAY_PATTERN = re.compile(rf"\b{_MONTH}\s*(\d{{1,2}})(?:st|nd|rd|th)?\b(?:\s*,?\s*(\d{{4}}))?", re.I)
RELATIVE_DATE_PATTERN = re.compile(r"\b(tomorrow|today|next\s+week|next\s+month)\b", re.I)
ISO_DATE_PATTERN = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")

FROM_TO_PATTERN = re.compile(r"\bfrom\s+([a-zA-Z\s]+?)\s+to\s+([a-zA-Z\s]+)", re.I)
CITY_TO_CITY_PATTERN = re.compile(r"^\s*([a-zA-Z\s]+?)\s+to\s+([a-zA-Z\s]+?)\s*(?:\bon\b|\bfor\b|$|\.|\?|,)", re.I)
FROM_PATTERN = re.compile(r"\bfrom\s+([a-zA-Z\s]+?)(?:\s+on\b|\s+for\b|$|\.|\?|,)", re.I)
TO_PATTERN = re.compile(r"\b(?:to|in|visit|visiting)\s+([a-zA-Z\s]+?)(?:\s+on\b|\s+for\b|\s+from\b|$|\.|\?|,)", re.I)
NIGHTS_PATTERN = re.compile(r"\b(\d+)\s*(day|days|night|nights)\b", re.I)
TRAVELERS_PATTERN = re.compile(
    r"\b(\d+)\s*(person|persons|people|traveler|travelers|traveller|travellers"
    r"|passenger|passengers|adult|adults)\b", re.I
)

MONTHS = {name: i for i, name in enumerate(
    ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"], start=1
)}


def find_city(text: str) -> Optional[str]:
    """Return the first known city mentioned in text (lower-case), if any"""
    lower_text = text.lower().strip()
    for city, pattern in _CITY_PATTERNS:
        if pattern.search(lower_text):
            return city
    return None


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _build_date(day: int, month_name: str, year: Optional[str], today: date) -> Optional[date]:
    month = MONTHS[month_name[:3].lower()]
    try:
        if year:
            return date(int(year), month, day)
        candidate = date(today.year, month, day)
        # Without a year, a date already behind us means next year
        if candidate < today:
            candidate = date(today.year + 1, month, day)
        return candidate
    except ValueError:
        return None


def parse_date(message: str, today: Optional[date] = None) -> Optional[str]:
    """
    Pull the first travel date out of a message.

    Args:
        message: Raw user message
        today: Reference date (defaults to date.today())

    Returns:
        ISO date string or None
    """
    today = today or date.today()

    match = DAY_MONTH_PATTERN.search(message)
    if match:
        parsed = _build_date(int(match.group(1)), match.group(2), match.group(3), today)
        return parsed.isoformat() if parsed else None

    match = MONTH_DAY_PATTERN.search(message)
    if match:
        parsed = _build_date(int(match.group(2)), match.group(1), match.group(3), today)
        return parsed.isoformat() if parsed else None

    match = RELATIVE_DATE_PATTERN.search(message)
    if match:
        phrase = re.sub(r"\s+", " ", match.group(1).lower())
        if phrase == "today":
            return today.isoformat()
        if phrase == "tomorrow":
            return (today + timedelta(days=1)).isoformat()
        if phrase == "next week":
            return (today + timedelta(days=7)).isoformat()
        return _add_months(today, 1).isoformat()

    match = ISO_DATE_PATTERN.search(message)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3))).isoformat()
        except ValueError:
            return None

    return None


def extract_params(message: str, today: Optional[date] = None) -> ExtractedParams:
    """
    Extract search slots from a single message.
    Nothing here looks at earlier turns; merging happens in slot_filling.
    """
    params = ExtractedParams()

    from_to = FROM_TO_PATTERN.search(message)
    if from_to:
        params.origin = find_city(from_to.group(1))
        params.destination = find_city(from_to.group(2))
    else:
        # "mumbai to goa" without a leading "from"
        bare = CITY_TO_CITY_PATTERN.search(message)
        if bare and find_city(bare.group(1)):
            params.origin = find_city(bare.group(1))
            params.destination = find_city(bare.group(2))

    if not params.destination:
        to_match = TO_PATTERN.search(message)
        if to_match:
            params.destination = find_city(to_match.group(1))

    if not params.origin:
        from_match = FROM_PATTERN.search(message)
        if from_match:
            params.origin = find_city(from_match.group(1))

    # Any city mentioned at all is taken as the destination
    if not params.destination and not params.origin:
        params.destination = find_city(message)

    params.departureDate = parse_date(message, today)

    nights = NIGHTS_PATTERN.search(message)
    if nights:
        params.nights = int(nights.group(1))

    travelers = TRAVELERS_PATTERN.search(message)
    if travelers:
        params.travelers = int(travelers.group(1))

    return params


class IntentParser:
    """
    Classifies a message with the priority-ordered regex tables.
    Deterministic, no network; used when no LLM is configured and as
    the reference behaviour in tests.
    """

    def __init__(self, patterns: Optional[List[Tuple[IntentType, List[re.Pattern], int]]] = None):
        self.patterns = patterns or INTENT_PATTERNS

    def match_intents(self, message: str) -> List[Tuple[IntentType, int]]:
        """All intents whose patterns match, highest priority first"""
        matches = []
        for intent_type, patterns, priority in self.patterns:
            if any(p.search(message) for p in patterns):
                matches.append((intent_type, priority))
        # Stable sort keeps table order on ties
        matches.sort(key=lambda m: m[1], reverse=True)
        return matches

    def parse(self, message: str, today: Optional[date] = None) -> ClassifiedIntent:
        """
        Classify a single message.

        Returns:
            ClassifiedIntent with params from this message only; missing
            params are filled in later by classify().
        """
        matches = self.match_intents(message)

        if matches:
            detected, priority = matches[0]
            confidence = min(priority / 10, 1.0)
            reasoning = f"matched {detected.value} patterns"
        else:
            detected = IntentType.GENERAL
            confidence = NO_MATCH_CONFIDENCE
            reasoning = "no pattern matched"

        params = extract_params(message, today)

        logger.debug(f"Pattern parse: intent={detected.value}, confidence={confidence:.2f}, "
                     f"params={params.filled()}")

        return ClassifiedIntent(
            type=detected,
            confidence=confidence,
            params=params,
            reasoning=reasoning,
        )


# ============================================
# Global Instance
# ============================================

intent_parser = IntentParser()
