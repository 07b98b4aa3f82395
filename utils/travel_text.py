"""
Pattern based extraction of (country, date) pairs from travel emails.

Understands boarding passes and flight routes written with airport codes,
hotel / Booking.com / Airbnb / Expedia confirmations, visa notices and
plain "travelling to <country>" mentions. Anything it cannot resolve to a
country is ignored; dates are optional.
"""

import logging
import re
from core.countries import COUNTRIES, search_country
from datetime import date
from dateutil.parser import parserinfo

logger = logging.getLogger(__name__)

AIRPORT_COUNTRIES = {
    # North America
    'JFK': 'US', 'LAX': 'US', 'ORD': 'US', 'DFW': 'US', 'ATL': 'US', 'SFO': 'US', 'MIA': 'US', 'BOS': 'US',
    'SEA': 'US', 'DEN': 'US', 'EWR': 'US', 'LGA': 'US', 'IAH': 'US', 'PHX': 'US', 'LAS': 'US',
    'YYZ': 'CA', 'YVR': 'CA', 'YUL': 'CA', 'MEX': 'MX', 'CUN': 'MX',
    # Europe
    'LHR': 'GB', 'LGW': 'GB', 'STN': 'GB', 'MAN': 'GB', 'EDI': 'GB',
    'CDG': 'FR', 'ORY': 'FR', 'NCE': 'FR', 'MRS': 'FR',
    'FRA': 'DE', 'MUC': 'DE', 'BER': 'DE', 'DUS': 'DE', 'HAM': 'DE',
    'AMS': 'NL', 'MAD': 'ES', 'BCN': 'ES', 'PMI': 'ES', 'AGP': 'ES', 'IBZ': 'ES',
    'FCO': 'IT', 'MXP': 'IT', 'VCE': 'IT', 'NAP': 'IT', 'FLR': 'IT',
    'LIS': 'PT', 'OPO': 'PT', 'ZRH': 'CH', 'GVA': 'CH', 'VIE': 'AT', 'BRU': 'BE',
    'CPH': 'DK', 'ARN': 'SE', 'OSL': 'NO', 'HEL': 'FI', 'PRG': 'CZ', 'WAW': 'PL',
    'ATH': 'GR', 'IST': 'TR', 'DUB': 'IE', 'KEF': 'IS',
    # Asia
    'HND': 'JP', 'NRT': 'JP', 'KIX': 'JP', 'ICN': 'KR', 'HKG': 'HK', 'TPE': 'TW', 'SIN': 'SG',
    'BKK': 'TH', 'KUL': 'MY', 'CGK': 'ID', 'DPS': 'ID', 'MNL': 'PH', 'SGN': 'VN', 'HAN': 'VN',
    'DEL': 'IN', 'BOM': 'IN', 'PEK': 'CN', 'PVG': 'CN', 'CAN': 'CN',
    # Middle East and Africa
    'DXB': 'AE', 'AUH': 'AE', 'DOH': 'QA', 'TLV': 'IL', 'CAI': 'EG', 'CMN': 'MA',
    # Oceania
    'SYD': 'AU', 'MEL': 'AU', 'BNE': 'AU', 'AKL': 'NZ', 'CHC': 'NZ',
    # South America and Caribbean
    'GRU': 'BR', 'GIG': 'BR', 'EZE': 'AR', 'SCL': 'CL', 'BOG': 'CO', 'LIM': 'PE',
    'SJU': 'PR', 'NAS': 'BS', 'MBJ': 'JM', 'PUJ': 'DO', 'AUA': 'AW',
}

# Destination is a lookahead so chained legs (LAX → HND → ICN) share their middle airport
ROUTE_PATTERN = re.compile(r'\b([A-Z]{3})\s*(?:→|->|–|—|\bto\b)\s*(?=([A-Z]{3})\b)')

PLACE_PATTERNS = [
    ('hotel', re.compile(r'(?:hotel|accommodation|stay)\s+(?:confirmation|booking|reservation).*?\b(?:in|at)\s+([A-Za-z ,]+)', re.I | re.S)),
    ('booking_com', re.compile(r'booking\.com.*?(?:reservation|booking)\s+(?:in|at|for)\s+([A-Za-z ,]+)', re.I | re.S)),
    ('airbnb', re.compile(r'airbnb.*?(?:reservation|booking|trip)\s+(?:in|to|at)\s+([A-Za-z ,]+)', re.I | re.S)),
    ('expedia', re.compile(r'expedia.*?(?:trip|booking|itinerary)\s+(?:to|in|for)\s+([A-Za-z ,]+)', re.I | re.S)),
    ('visa', re.compile(r'(?:visa|travel\s+document|entry\s+permit).*?\b(?:for|to)\s+([A-Za-z ]+)', re.I | re.S)),
    ('travel_mention', re.compile(r'(?:traveling|travelling|flying|going|headed|heading)\s+to\s+([A-Za-z ]+)', re.I)),
]

MONTH_DAY_YEAR = re.compile(r'\b([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s*(\d{4})\b')
DAY_MONTH_YEAR = re.compile(r'\b(\d{1,2})\s+([A-Za-z]{3,9})\.?,?\s+(\d{4})\b')
ISO_DATE = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')
US_DATE = re.compile(r'\b(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})\b')

_month_names = parserinfo()


def _month_number(word: str) -> int | None:
    return _month_names.month(word)


def _safe_date(year: int, month: int | None, day: int) -> date | None:
    if not month:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _date_candidates(text: str):
    """Yield (position, date) for every recognisable date in text"""
    for m in MONTH_DAY_YEAR.finditer(text):
        parsed = _safe_date(int(m.group(3)), _month_number(m.group(1)), int(m.group(2)))
        if parsed:
            yield m.start(), parsed
    for m in DAY_MONTH_YEAR.finditer(text):
        parsed = _safe_date(int(m.group(3)), _month_number(m.group(2)), int(m.group(1)))
        if parsed:
            yield m.start(), parsed
    for m in ISO_DATE.finditer(text):
        parsed = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if parsed:
            yield m.start(), parsed
    for m in US_DATE.finditer(text):
        year = int(m.group(3))
        if year < 100:
            year += 2000
        parsed = _safe_date(year, int(m.group(1)), int(m.group(2)))
        if parsed:
            yield m.start(), parsed


def find_date(text: str, after: int = 0) -> date | None:
    """Earliest-positioned date in text, preferring one at or after the given offset"""
    found = sorted(_date_candidates(text), key=lambda item: item[0])
    if not found:
        return None
    following = [parsed for position, parsed in found if position >= after]
    return following[0] if following else found[0][1]


def _extract_routes(text: str) -> list[tuple[str, int]]:
    routes = []
    for m in ROUTE_PATTERN.finditer(text):
        country_code = AIRPORT_COUNTRIES.get(m.group(2))
        if country_code:
            routes.append((country_code, m.end(2)))
    return routes


def parse_travel_text(text: str) -> list[dict]:
    """
    Extract trip fields from an email's text.

    Returns a list of {'country_code', 'country_name', 'date'} dicts, one per
    distinct (country, date) pair found. 'date' is a datetime.date or None.
    """
    if not text or not text.strip():
        return []

    results = []
    seen = set()

    def add(country_code: str, found_date: date | None):
        key = (country_code, found_date)
        if key in seen:
            return
        seen.add(key)
        results.append({
            'country_code': country_code,
            'country_name': COUNTRIES[country_code],
            'date': found_date,
        })

    for country_code, position in _extract_routes(text):
        add(country_code, find_date(text, after=position))

    for name, pattern in PLACE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        country = search_country(match.group(1))
        if not country:
            logger.debug(f"Pattern '{name}' matched but no country in '{match.group(1).strip()}'")
            continue
        add(country[0], find_date(text))

    return results
