import json
import logging
import time
from config import (
    CACHE_DIR,
    GEOCODE_REQUEST_DELAY_SECONDS,
    GEOCODER_TIMEOUT_SECONDS,
    GEOCODER_USER_AGENT,
    GEOCODING_CACHE_EXPIRATION_DAYS,
    GEOCODING_CACHE_FILE,
    MAX_VALID_LATITUDE,
    MAX_VALID_LONGITUDE,
    MIN_VALID_LATITUDE,
    MIN_VALID_LONGITUDE,
)
from core.countries import get_country_name
from datetime import UTC, datetime
from dateutil.parser import parse as parse_date
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim
from pathlib import Path

logger = logging.getLogger(__name__)


class GeocodingCache:
    """File-based cache of reverse geocoded countries with rate limiting and expiration"""

    def __init__(
        self,
        cache_file: Path = CACHE_DIR / GEOCODING_CACHE_FILE,
        expiration_days: int = GEOCODING_CACHE_EXPIRATION_DAYS,
        min_api_interval: float = GEOCODE_REQUEST_DELAY_SECONDS,
        clock=None,
    ):
        self.cache_file = cache_file
        self.expiration_days = expiration_days
        self.clock = clock or (lambda: datetime.now(UTC))
        self.last_api_call = 0  # Monotonic timestamp of last API call, 0 before the first
        self.min_api_interval = min_api_interval
        self.cache_data = self._load_cache()
        self.session_hits = 0
        self.session_misses = 0

    def _empty_cache(self) -> dict:
        now = self.clock().isoformat()
        return {
            'metadata': {
                'version': '2.0',
                'created': now,
                'last_updated': now,
                'total_entries': 0,
                'cache_hits': 0,
                'cache_misses': 0,
                'expiration_days': self.expiration_days,
            },
            'entries': {},
        }

    def _load_cache(self) -> dict:
        """Load cache from file, starting fresh when it is missing or unreadable"""
        if self.cache_file.exists():
            try:
                with open(self.cache_file) as f:
                    data = json.load(f)
                if isinstance(data, dict) and 'metadata' in data and 'entries' in data:
                    return data
                logger.warning("Geocoding cache has an unknown layout, starting fresh")
            except (OSError, json.JSONDecodeError):
                logger.warning("Could not load geocoding cache, starting fresh")

        return self._empty_cache()

    @staticmethod
    def _generate_cache_key(latitude: float, longitude: float) -> str:
        return f"reverse_{latitude:.6f}_{longitude:.6f}"

    def _is_expired(self, entry: dict) -> bool:
        try:
            entry_time = parse_date(entry['timestamp'])
            age_days = (self.clock() - entry_time).days
            return age_days > self.expiration_days
        except (KeyError, TypeError, ValueError, OverflowError):
            return True  # Invalid timestamps count as expired

    def get(self, coordinates: tuple[float, float]) -> dict | None:
        """Get a cached country lookup; a cached 'no country' answer is returned as an empty dict"""
        key = self._generate_cache_key(*coordinates)
        entry = self.cache_data['entries'].get(key)

        if entry and not self._is_expired(entry):
            self.session_hits += 1
            self.cache_data['metadata']['cache_hits'] += 1
            return entry.get('response') or {}

        self.session_misses += 1
        self.cache_data['metadata']['cache_misses'] += 1

        if entry:
            del self.cache_data['entries'][key]
            self.cache_data['metadata']['total_entries'] -= 1

        return None

    def set(self, coordinates: tuple[float, float], country: dict | None):
        """Store a country lookup (None records a location with no country)"""
        key = self._generate_cache_key(*coordinates)

        entry = {
            'timestamp': self.clock().isoformat(),
            'query': {'latitude': coordinates[0], 'longitude': coordinates[1]},
            'response': country or {},
        }

        if key not in self.cache_data['entries']:
            self.cache_data['metadata']['total_entries'] += 1

        self.cache_data['entries'][key] = entry
        self.cache_data['metadata']['last_updated'] = self.clock().isoformat()
        self._save_cache()

    def enforce_rate_limit(self):
        """Keep at least min_api_interval seconds between consecutive API calls"""
        current_time = time.monotonic()
        time_since_last = current_time - self.last_api_call

        if self.last_api_call and time_since_last < self.min_api_interval:
            sleep_time = self.min_api_interval - time_since_last
            logger.debug(f"Rate limiting: sleeping {sleep_time:.2f} seconds")
            time.sleep(sleep_time)

        self.last_api_call = time.monotonic()

    def clean_expired(self) -> int:
        """Remove expired entries from cache"""
        expired_keys = [key for key, entry in self.cache_data['entries'].items() if self._is_expired(entry)]

        for key in expired_keys:
            del self.cache_data['entries'][key]

        if expired_keys:
            self.cache_data['metadata']['total_entries'] -= len(expired_keys)
            self.cache_data['metadata']['last_updated'] = self.clock().isoformat()
            self._save_cache()
            logger.info(f"Cleaned {len(expired_keys)} expired geocoding entries")

        return len(expired_keys)

    def clear(self):
        entry_count = len(self.cache_data['entries'])
        self.cache_data['entries'] = {}
        self.cache_data['metadata']['total_entries'] = 0
        self.cache_data['metadata']['last_updated'] = self.clock().isoformat()
        self._save_cache()
        logger.info(f"Cleared {entry_count} geocoding entries")

    def get_stats(self) -> dict:
        total_hits = self.cache_data['metadata']['cache_hits']
        total_misses = self.cache_data['metadata']['cache_misses']
        total_requests = total_hits + total_misses

        hit_ratio = (total_hits / total_requests * 100) if total_requests > 0 else 0

        return {
            'total_entries': self.cache_data['metadata']['total_entries'],
            'cache_hits': total_hits,
            'cache_misses': total_misses,
            'hit_ratio_percent': round(hit_ratio, 1),
            'session_hits': self.session_hits,
            'session_misses': self.session_misses,
            'expiration_days': self.expiration_days,
            'created': self.cache_data['metadata']['created'],
            'last_updated': self.cache_data['metadata']['last_updated'],
        }

    def _save_cache(self):
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, 'w') as f:
                json.dump(self.cache_data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not write geocoding cache {self.cache_file}: {e}")


class ReverseGeocoder:
    """Resolve coordinates to a country using Nominatim, with caching"""

    def __init__(self, geocoder=None, cache: GeocodingCache | None = None):
        self.geocoder = geocoder or Nominatim(user_agent=GEOCODER_USER_AGENT, timeout=GEOCODER_TIMEOUT_SECONDS)
        self.cache = cache or GeocodingCache()

    @staticmethod
    def validate_coordinates(lat: float, lon: float) -> bool:
        return MIN_VALID_LATITUDE <= lat <= MAX_VALID_LATITUDE and MIN_VALID_LONGITUDE <= lon <= MAX_VALID_LONGITUDE

    @staticmethod
    def extract_country(raw: dict | None) -> dict | None:
        """Pull country code and name out of a Nominatim response body"""
        if not isinstance(raw, dict):
            return None

        address = raw.get('address')
        if not isinstance(address, dict):
            return None

        code = address.get('country_code')
        name = address.get('country')
        if not isinstance(code, str) or not code.strip():
            return None

        code = code.strip().upper()
        name = get_country_name(code) or (name.strip() if isinstance(name, str) else None)
        if not name:
            return None

        return {'country_code': code, 'country_name': name}

    def reverse_geocode(self, lat: float, lon: float) -> dict | None:
        """Return {'country_code', 'country_name'} for a coordinate, or None when unresolved"""
        if lat is None or lon is None or not self.validate_coordinates(lat, lon):
            return None

        coordinates = (lat, lon)
        cached = self.cache.get(coordinates)
        if cached is not None:
            return cached or None

        try:
            self.cache.enforce_rate_limit()
            location = self.geocoder.reverse(coordinates, exactly_one=True, language='en', addressdetails=True)
        except GeopyError as e:
            logger.warning(f"Geocoding failed for {lat}, {lon}: {e}")
            return None

        country = self.extract_country(location.raw if location else None)
        self.cache.set(coordinates, country)
        return country
