"""ISO 3166-1 alpha-2 country lookup used by the geocoder and the travel text parser"""

import re

COUNTRIES = {
    'AE': 'United Arab Emirates',
    'AR': 'Argentina',
    'AT': 'Austria',
    'AU': 'Australia',
    'AW': 'Aruba',
    'BE': 'Belgium',
    'BG': 'Bulgaria',
    'BR': 'Brazil',
    'BS': 'Bahamas',
    'CA': 'Canada',
    'CH': 'Switzerland',
    'CL': 'Chile',
    'CN': 'China',
    'CO': 'Colombia',
    'CR': 'Costa Rica',
    'CU': 'Cuba',
    'CZ': 'Czech Republic',
    'DE': 'Germany',
    'DK': 'Denmark',
    'DO': 'Dominican Republic',
    'EE': 'Estonia',
    'EG': 'Egypt',
    'ES': 'Spain',
    'FI': 'Finland',
    'FR': 'France',
    'GB': 'United Kingdom',
    'GR': 'Greece',
    'HK': 'Hong Kong',
    'HR': 'Croatia',
    'HU': 'Hungary',
    'ID': 'Indonesia',
    'IE': 'Ireland',
    'IL': 'Israel',
    'IN': 'India',
    'IS': 'Iceland',
    'IT': 'Italy',
    'JM': 'Jamaica',
    'JO': 'Jordan',
    'JP': 'Japan',
    'KE': 'Kenya',
    'KH': 'Cambodia',
    'KR': 'South Korea',
    'LK': 'Sri Lanka',
    'LT': 'Lithuania',
    'LU': 'Luxembourg',
    'LV': 'Latvia',
    'MA': 'Morocco',
    'MC': 'Monaco',
    'MT': 'Malta',
    'MV': 'Maldives',
    'MX': 'Mexico',
    'MY': 'Malaysia',
    'NL': 'Netherlands',
    'NO': 'Norway',
    'NP': 'Nepal',
    'NZ': 'New Zealand',
    'PA': 'Panama',
    'PE': 'Peru',
    'PH': 'Philippines',
    'PL': 'Poland',
    'PR': 'Puerto Rico',
    'PT': 'Portugal',
    'QA': 'Qatar',
    'RO': 'Romania',
    'RS': 'Serbia',
    'SA': 'Saudi Arabia',
    'SE': 'Sweden',
    'SG': 'Singapore',
    'SI': 'Slovenia',
    'SK': 'Slovakia',
    'TH': 'Thailand',
    'TR': 'Turkey',
    'TW': 'Taiwan',
    'TZ': 'Tanzania',
    'US': 'United States',
    'UY': 'Uruguay',
    'VN': 'Vietnam',
    'ZA': 'South Africa',
}

# Alternate spellings and common place names that unambiguously point at a country
COUNTRY_ALIASES = {
    'usa': 'US',
    'united states of america': 'US',
    'america': 'US',
    'uk': 'GB',
    'great britain': 'GB',
    'england': 'GB',
    'scotland': 'GB',
    'london': 'GB',
    'holland': 'NL',
    'czechia': 'CZ',
    'korea': 'KR',
    'republic of korea': 'KR',
    'turkiye': 'TR',
    'türkiye': 'TR',
    'uae': 'AE',
    'dubai': 'AE',
    'viet nam': 'VN',
    'paris': 'FR',
    'rome': 'IT',
    'tokyo': 'JP',
    'kyoto': 'JP',
    'lisbon': 'PT',
    'barcelona': 'ES',
    'madrid': 'ES',
    'berlin': 'DE',
    'amsterdam': 'NL',
    'bangkok': 'TH',
    'bali': 'ID',
    'cancun': 'MX',
    'reykjavik': 'IS',
}


def _build_search_terms() -> list[tuple[str, str]]:
    terms = [(name.lower(), code) for code, name in COUNTRIES.items()]
    terms.extend(COUNTRY_ALIASES.items())
    # Longest first so "South Korea" wins over "Korea"
    return sorted(terms, key=lambda term: len(term[0]), reverse=True)


_SEARCH_TERMS = _build_search_terms()


def get_country_name(code: str | None) -> str | None:
    """Return the English country name for an alpha-2 code"""
    if not code:
        return None
    return COUNTRIES.get(code.upper())


def search_country(text: str) -> tuple[str, str] | None:
    """Find the longest country name or alias mentioned in free text, returned as (code, name)"""
    if not text:
        return None

    haystack = text.lower()
    for term, code in _SEARCH_TERMS:
        if re.search(rf'\b{re.escape(term)}\b', haystack):
            return code, COUNTRIES[code]

    return None
