#!/usr/bin/env python

"""
Trip Evidence - find past trips in photos and travel emails

Scans geotagged photos (Google Takeout sidecar JSON) and travel emails,
clusters the evidence by country and date, and writes scored trip
suggestions that can be accepted or rejected later.

Usage:
    main.py [command] [options]

    Default command is 'run-scan' if none specified.

Commands:
    run-scan: Scan photos and emails and write trip suggestions (default)
    cache-stats: Display geocoding cache statistics and clean expired entries
    cache-clear: Clear the geocoding cache and the cached scan result

Options:
    --photos-dir: Google Takeout photos directory (default: takeout/Google Photos)
    --emails-file: JSON list of travel emails (default: takeout/travel_emails.json)
    --home-country: ISO country code whose evidence is ignored
    --exclude-album: Album to skip (repeatable)
    --exclude-folder: Email folder to skip (repeatable)
    --no-photos / --no-emails: Skip a source entirely
    --no-cache: Ignore and do not update the cached scan result
    --output-dir: Path to output directory (default: results)
    --verbose: Enable verbose logging output
"""

import argparse
import json
import logging
import sys
from config import (
    CACHE_DIR,
    EMAILS_FILE,
    INPUT_DIR,
    OUTPUT_DIR,
    PHOTOS_SUBDIR,
    SCAN_CACHE_FILE,
    TRIP_SUGGESTIONS_FILE,
)
from core.models import ScanOptions
from core.normalizer import EvidenceNormalizer
from core.scanner import ScanError, TripScanner
from core.suggestion_cache import JsonFileStore, SuggestionCache
from core.takeout import TakeoutPhotoLoader, load_email_messages
from datetime import UTC, datetime
from pathlib import Path
from utils.geocoding import GeocodingCache, ReverseGeocoder
from utils.travel_text import parse_travel_text

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Trip Evidence - find past trips in photos and travel emails",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument('command', nargs='?', default='run-scan', help='Command to execute (default: run-scan)')
    parser.add_argument('--photos-dir', type=Path, default=INPUT_DIR / PHOTOS_SUBDIR, help='Google Takeout photos directory')
    parser.add_argument('--emails-file', type=Path, default=INPUT_DIR / EMAILS_FILE, help='JSON list of travel emails')
    parser.add_argument('--home-country', default=None, help='ISO country code whose evidence is ignored')
    parser.add_argument('--exclude-album', action='append', default=[], help='Album to skip (repeatable)')
    parser.add_argument('--exclude-folder', action='append', default=[], help='Email folder to skip (repeatable)')
    parser.add_argument('--no-photos', action='store_true', help='Do not scan photos')
    parser.add_argument('--no-emails', action='store_true', help='Do not scan emails')
    parser.add_argument('--no-cache', action='store_true', help='Ignore and do not update the cached scan result')
    parser.add_argument('--output-dir', type=Path, default=OUTPUT_DIR, help='Path to output directory')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging output')

    return parser.parse_args(argv)


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity level"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s - %(levelname)s - %(message)s', force=True)


def build_options(args) -> ScanOptions:
    return ScanOptions(
        include_photos=not args.no_photos,
        include_emails=not args.no_emails,
        excluded_albums=list(args.exclude_album),
        excluded_folders=list(args.exclude_folder),
        home_country_code=args.home_country.upper() if args.home_country else None,
    )


def build_scanner(use_cache: bool = True) -> TripScanner:
    geocoder = ReverseGeocoder()
    normalizer = EvidenceNormalizer(reverse_geocode=geocoder.reverse_geocode, parse_travel_text=parse_travel_text)
    cache = SuggestionCache(store=JsonFileStore(CACHE_DIR / SCAN_CACHE_FILE)) if use_cache else None
    return TripScanner(normalizer=normalizer, cache=cache)


def log_progress(step: str, percent: int, message: str):
    logger.info(f"[{percent:3d}%] {message}")


def run_scan(args) -> bool:
    """Load inputs, run the scan and write suggestions to the output directory"""
    options = build_options(args)
    photos = TakeoutPhotoLoader(args.photos_dir).load() if options.include_photos else []
    emails = load_email_messages(args.emails_file) if options.include_emails else []

    scanner = build_scanner(use_cache=not args.no_cache)
    try:
        result = scanner.run_scan(options, photos, emails, on_progress=log_progress)
    except ScanError as e:
        logger.error(f"Scan failed: {e}")
        return False

    output = {
        'metadata': {
            'generation_date': datetime.now(UTC).isoformat(),
            'options': options.cache_key(),
            **result.to_dict()['summary'],
        },
        'suggestions': [candidate.to_dict() for candidate in result.suggestions],
    }

    try:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        output_file = args.output_dir / TRIP_SUGGESTIONS_FILE
        with open(output_file, 'w') as f:
            json.dump(output, f, indent=2)
    except OSError as e:
        logger.error(f"Failed to write trip suggestions: {e}")
        return False

    for candidate in result.suggestions:
        span = f"{candidate.start_date} to {candidate.end_date}" if candidate.is_dated else "dates unknown"
        related = f" (with {', '.join(candidate.related_countries)})" if candidate.related_countries else ""
        logger.info(
            f"  {candidate.title}: {span}, {candidate.source_label}, confidence {candidate.confidence:.2f}{related}"
        )
    logger.info(f"Output written to {output_file}")
    return True


def main(argv=None):
    args = parse_arguments(argv)

    # Setup logging
    setup_logging(args.verbose)

    command = args.command

    if command == "run-scan":
        success = run_scan(args)
        sys.exit(0 if success else 1)

    elif command == "cache-stats":
        cache = GeocodingCache()
        stats = cache.get_stats()

        print("\n=== Geocoding Cache Statistics ===")
        print(f"Total entries: {stats['total_entries']}")
        print(f"Cache hits: {stats['cache_hits']}")
        print(f"Cache misses: {stats['cache_misses']}")
        print(f"Hit ratio: {stats['hit_ratio_percent']}%")
        print(f"Expiration: {stats['expiration_days']} days")
        print(f"Created: {stats['created']}")
        print(f"Last updated: {stats['last_updated']}")

        expired_count = cache.clean_expired()
        if expired_count > 0:
            print(f"Cleaned {expired_count} expired entries")

        sys.exit(0)

    elif command == "cache-clear":
        GeocodingCache().clear()
        SuggestionCache(store=JsonFileStore(CACHE_DIR / SCAN_CACHE_FILE)).clear()
        print("Caches cleared successfully")
        sys.exit(0)

    else:
        print(__doc__.strip())


if __name__ == "__main__":
    main()
