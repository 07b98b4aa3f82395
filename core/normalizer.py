import logging
from collections.abc import Callable
from config import TRANSIT_ALBUMS
from core.models import EmailMessage, EvidenceEmail, EvidencePhoto, PhotoAsset, ScanOptions
from datetime import UTC, date, datetime, timedelta
from dateutil.parser import isoparse

logger = logging.getLogger(__name__)

ReverseGeocodeFn = Callable[[float, float], dict | None]
ParseTravelTextFn = Callable[[str], list[dict]]


def parse_capture_instant(taken_at) -> datetime | None:
    """Parse an ISO-8601 string or epoch seconds into an aware UTC datetime"""
    if taken_at is None or taken_at == '':
        return None
    try:
        epoch = float(taken_at)
    except (TypeError, ValueError):
        epoch = None

    try:
        if epoch is not None:
            return datetime.fromtimestamp(epoch, tz=UTC)
        parsed = isoparse(str(taken_at).strip())
    except (ValueError, OverflowError, OSError) as e:
        logger.debug(f"Unparseable capture timestamp '{taken_at}': {e}")
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def local_capture_date(taken_at, offset_minutes: int) -> date | None:
    """Calendar date of the capture instant in the photo's own UTC offset"""
    instant = parse_capture_instant(taken_at)
    if instant is None:
        return None
    try:
        return (instant + timedelta(minutes=offset_minutes or 0)).date()
    except (OverflowError, TypeError):
        return None


def coerce_date(value) -> date | None:
    """Accept a date, a datetime or an ISO date string from an external parser"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            logger.debug(f"Ignoring unparseable email date '{value}'")
    return None


def is_home_country(country_code: str, home_country_code: str | None) -> bool:
    if not home_country_code:
        return False
    return country_code.upper() == home_country_code.upper()


def is_transit_album(album: str) -> bool:
    transit = {name.strip().lower() for name in TRANSIT_ALBUMS}
    return (album or '').strip().lower() in transit


class EvidenceNormalizer:
    """Turn raw photos and emails into country-tagged evidence items.

    Every per-item failure (missing GPS, geocoder miss, parser exception) drops
    that item only; nothing here raises for a single bad input.
    """

    def __init__(self, reverse_geocode: ReverseGeocodeFn, parse_travel_text: ParseTravelTextFn):
        self.reverse_geocode = reverse_geocode
        self.parse_travel_text = parse_travel_text

    @staticmethod
    def filter_photos(photos: list[PhotoAsset], options: ScanOptions) -> list[PhotoAsset]:
        excluded = set(options.excluded_albums)
        return [photo for photo in photos if photo.album not in excluded]

    @staticmethod
    def filter_emails(emails: list[EmailMessage], options: ScanOptions) -> list[EmailMessage]:
        excluded = set(options.excluded_folders)
        return [email for email in emails if email.folder not in excluded]

    def normalize_photo(self, photo: PhotoAsset, options: ScanOptions) -> EvidencePhoto | None:
        if photo.latitude is None or photo.longitude is None:
            return None

        try:
            location = self.reverse_geocode(photo.latitude, photo.longitude)
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for photo {photo.id}: {e}")
            return None

        if not location or not location.get('country_code'):
            logger.debug(f"No country for photo {photo.id} at {photo.latitude}, {photo.longitude}")
            return None

        country_code = location['country_code'].upper()
        if is_home_country(country_code, options.home_country_code):
            return None

        return EvidencePhoto(
            id=photo.id,
            date=local_capture_date(photo.taken_at, photo.timezone_offset_minutes),
            country_code=country_code,
            country_name=location.get('country_name') or country_code,
            album=photo.album,
            thumbnail_ref=photo.thumbnail_ref,
            is_transit=is_transit_album(photo.album),
        )

    def normalize_email(self, email: EmailMessage, options: ScanOptions) -> list[EvidenceEmail]:
        text = f"{email.subject}\n{email.body}"
        try:
            extracted = self.parse_travel_text(text) or []
        except Exception as e:
            logger.warning(f"Travel text parsing failed for email {email.id}: {e}")
            return []

        evidence = []
        for fields in extracted:
            country_code = (fields.get('country_code') or '').upper()
            if not country_code or is_home_country(country_code, options.home_country_code):
                continue
            evidence.append(
                EvidenceEmail(
                    id=email.id,
                    date=coerce_date(fields.get('date')),
                    country_code=country_code,
                    country_name=fields.get('country_name') or country_code,
                    subject=email.subject,
                    snippet=email.snippet,
                    folder=email.folder,
                )
            )
        return evidence
