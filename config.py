from decouple import Csv, config
from pathlib import Path

# Directory paths
INPUT_DIR = Path(config('INPUT_DIR', default='takeout'))
OUTPUT_DIR = Path(config('OUTPUT_DIR', default='results'))
CACHE_DIR = Path(config('CACHE_DIR', default='data'))

# File names
GEOCODING_CACHE_FILE = 'geocoding_cache.json'
SCAN_CACHE_FILE = 'scan_cache.json'
TRIP_SUGGESTIONS_FILE = 'trip_suggestions.json'

# Input layout
PHOTOS_SUBDIR = 'Google Photos'
EMAILS_FILE = 'travel_emails.json'

# Geocoding
GEOCODER_USER_AGENT = config('GEOCODER_USER_AGENT', default='trip-evidence/1.0')
GEOCODER_TIMEOUT_SECONDS = config('GEOCODER_TIMEOUT_SECONDS', default=10, cast=int)
GEOCODE_REQUEST_DELAY_SECONDS = config('GEOCODE_REQUEST_DELAY_SECONDS', default=1.1, cast=float)  # Nominatim: 1 req/sec
GEOCODING_CACHE_EXPIRATION_DAYS = config('GEOCODING_CACHE_EXPIRATION_DAYS', default=30, cast=int)

# Suggestion cache
SCAN_CACHE_KEY = 'find_on_my_phone_cache_v2'
SCAN_CACHE_TTL_HOURS = config('SCAN_CACHE_TTL_HOURS', default=6, cast=float)

# Albums whose photos are receipts/screenshots rather than on-the-ground shots
TRANSIT_ALBUMS = config('TRANSIT_ALBUMS', default='Receipts,Screenshots', cast=Csv())

# Temporal clustering
MAX_GAP_DAYS = 2        # 3+ days without evidence means separate visits
MAX_TRIP_DAYS = 30      # A single run never spans more than 30 days

# Confidence scoring
CONFIDENCE_BASE = 0.35
CONFIDENCE_PHOTO_BONUS = 0.30
CONFIDENCE_EMAIL_BONUS = 0.25
CONFIDENCE_CORROBORATION_BONUS = 0.10
CONFIDENCE_MANY_PHOTOS_BONUS = 0.05
CONFIDENCE_MANY_EMAILS_BONUS = 0.05
CONFIDENCE_TRANSIT_PENALTY = 0.15
MANY_PHOTOS_THRESHOLD = 5
MANY_EMAILS_THRESHOLD = 2
MIN_CONFIDENCE = 0.15
MAX_CONFIDENCE = 0.98
UNDATED_MAX_CONFIDENCE = 0.35

# Cross-country correlation
ADJACENT_TRIP_DAYS = 1

# Validation constants
MIN_VALID_LATITUDE = -90.0
MAX_VALID_LATITUDE = 90.0
MIN_VALID_LONGITUDE = -180.0
MAX_VALID_LONGITUDE = 180.0

# Scan progress steps with their starting percentages
SCAN_STEPS = {
    'permissions': 5,
    'photos': 20,
    'emails': 55,
    'combine': 85,
    'complete': 100,
}
PHOTO_PHASE_SPAN = 30
EMAIL_PHASE_SPAN = 25
