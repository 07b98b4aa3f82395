import json
import logging
from core.models import EmailMessage, PhotoAsset
from pathlib import Path

logger = logging.getLogger(__name__)

# Album-level files Google Takeout writes next to the photo sidecars
ALBUM_METADATA_FILES = {'metadata.json', 'print-subscriptions.json', 'shared_album_comments.json', 'user-generated-memory-titles.json'}


class TakeoutPhotoLoader:
    """Load photo assets from Google Takeout photo sidecar JSON files"""

    def __init__(self, photos_dir: Path):
        self.photos_dir = photos_dir

    @staticmethod
    def extract_coordinates(metadata: dict) -> tuple[float | None, float | None]:
        """Prefer EXIF coordinates; Takeout writes 0.0/0.0 when a photo has no location"""
        for key in ('geoDataExif', 'geoData'):
            geo = metadata.get(key) or {}
            lat = geo.get('latitude')
            lon = geo.get('longitude')
            if lat is None or lon is None:
                continue
            if lat == 0.0 and lon == 0.0:
                continue
            return float(lat), float(lon)
        return None, None

    @staticmethod
    def extract_timestamp(metadata: dict) -> str | None:
        for key in ('photoTakenTime', 'creationTime'):
            timestamp = (metadata.get(key) or {}).get('timestamp')
            if timestamp:
                return timestamp
        return None

    def sidecar_to_asset(self, sidecar: Path, metadata: dict) -> PhotoAsset:
        title = metadata.get('title') or sidecar.name.removesuffix('.json')
        lat, lon = self.extract_coordinates(metadata)
        return PhotoAsset(
            id=str(sidecar.relative_to(self.photos_dir)),
            taken_at=self.extract_timestamp(metadata),
            latitude=lat,
            longitude=lon,
            album=sidecar.parent.name if sidecar.parent != self.photos_dir else '',
            thumbnail_ref=str(sidecar.parent / title),
        )

    def load(self) -> list[PhotoAsset]:
        if not self.photos_dir.exists():
            logger.info(f"Photos directory not found: {self.photos_dir} - no photos to scan")
            return []

        sidecars = sorted(p for p in self.photos_dir.rglob('*.json') if p.name not in ALBUM_METADATA_FILES)
        logger.info(f"Found {len(sidecars)} photo metadata files to process")

        assets = []
        for sidecar in sidecars:
            try:
                with open(sidecar) as f:
                    metadata = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error reading {sidecar}: {e}")
                continue

            if not isinstance(metadata, dict):
                continue
            assets.append(self.sidecar_to_asset(sidecar, metadata))

        geotagged = sum(1 for asset in assets if asset.latitude is not None)
        logger.info(f"Loaded {len(assets)} photos, {geotagged} geotagged")
        return assets


def load_email_messages(emails_file: Path) -> list[EmailMessage]:
    """Load messages from a JSON list of {id, subject, body, snippet, folder, received_at} objects"""
    if not emails_file.exists():
        logger.info(f"Emails file not found: {emails_file} - no emails to scan")
        return []

    try:
        with open(emails_file) as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading {emails_file}: {e}")
        return []

    messages = []
    for i, item in enumerate(raw if isinstance(raw, list) else []):
        if not isinstance(item, dict):
            continue
        messages.append(
            EmailMessage(
                id=str(item.get('id') or f"email_{i}"),
                subject=item.get('subject', ''),
                body=item.get('body', ''),
                snippet=item.get('snippet', ''),
                folder=item.get('folder', ''),
                received_at=item.get('received_at') or item.get('receivedAt'),
            )
        )

    logger.info(f"Loaded {len(messages)} emails from {emails_file}")
    return messages
