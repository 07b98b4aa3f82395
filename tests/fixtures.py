"""Test data fixtures for trip evidence tests"""

import json
from core.models import EmailMessage, EvidenceEmail, EvidencePhoto, PhotoAsset
from datetime import date
from pathlib import Path


class TestDataFixtures:
    """Centralized test data fixtures"""

    GEOFENCE = [
        {'code': 'FR', 'name': 'France', 'lat': (48, 49), 'lon': (2, 3)},
        {'code': 'GB', 'name': 'United Kingdom', 'lat': (51, 52), 'lon': (-1, 1)},
        {'code': 'JP', 'name': 'Japan', 'lat': (35, 36), 'lon': (139, 140)},
        {'code': 'IS', 'name': 'Iceland', 'lat': (64, 65), 'lon': (-23, -20)},
        {'code': 'US', 'name': 'United States', 'lat': (39, 41), 'lon': (-75, -73)},
    ]

    @classmethod
    def fake_reverse_geocode(cls, lat: float, lon: float) -> dict | None:
        """Deterministic stand-in for the network geocoder"""
        for area in cls.GEOFENCE:
            if area['lat'][0] <= lat <= area['lat'][1] and area['lon'][0] <= lon <= area['lon'][1]:
                return {'country_code': area['code'], 'country_name': area['name']}
        return None

    @staticmethod
    def get_demo_photos() -> list[PhotoAsset]:
        return [
            PhotoAsset('photo_paris_1', '2024-06-16T09:15:00Z', 48.8584, 2.2945, 120, 'Family Trips', '/p1.jpg'),
            PhotoAsset('photo_paris_2', '2024-06-19T18:45:00Z', 48.8566, 2.3522, 120, 'Family Trips', '/p2.jpg'),
            PhotoAsset('photo_london_1', '2023-10-03T12:05:00Z', 51.5074, -0.1278, 60, 'Work Travel', '/l1.jpg'),
            PhotoAsset('photo_tokyo_1', '2024-03-30T03:15:00Z', 35.6762, 139.6503, 540, 'Family Trips', '/t1.jpg'),
            PhotoAsset('photo_tokyo_2', '2024-04-05T15:45:00Z', 35.6895, 139.6917, 540, 'Family Trips', '/t2.jpg'),
            PhotoAsset('photo_layover_1', '2024-02-10T07:15:00Z', 64.1466, -21.9426, 0, 'Receipts', '/r1.jpg'),
            PhotoAsset('photo_home_1', '2024-01-05T10:30:00Z', 40.7128, -74.006, -300, 'All Photos', '/h1.jpg'),
        ]

    @staticmethod
    def get_demo_emails() -> list[EmailMessage]:
        return [
            EmailMessage(
                id='email_1',
                folder='Travel',
                subject='Your boarding pass for JL002 Tokyo',
                snippet='Boarding pass confirmation: LAX → HND on Mar 29, 2024',
                body='Boarding pass JL002 LAX → HND. Departure Mar 29, 2024 at 10:30 AM.',
            ),
            EmailMessage(
                id='email_2',
                folder='Inbox',
                subject='Booking.com reservation in Paris, France',
                snippet='Check-in June 16, 2024, check-out June 22, 2024.',
                body='Booking.com reservation in Paris, France. Check-in: June 16, 2024. Check-out: June 22, 2024.',
            ),
            EmailMessage(
                id='email_3',
                folder='Receipts',
                subject='Expedia itinerary to Mexico',
                snippet='Your trip to Mexico from Dec 20, 2023 to Dec 28, 2023.',
                body='Expedia trip to Mexico. Dates: Dec 20, 2023 - Dec 28, 2023.',
            ),
            EmailMessage(
                id='email_4',
                folder='Newsletters',
                subject='Traveling to Portugal this spring?',
                snippet='Look at flights to Lisbon for April 2024.',
                body='Thinking about traveling to Portugal on April 2024? See deals.',
            ),
        ]

    @staticmethod
    def photo(photo_id: str, day: date | None, country_code: str = 'FR', country_name: str = 'France', is_transit: bool = False):
        return EvidencePhoto(
            id=photo_id,
            date=day,
            country_code=country_code,
            country_name=country_name,
            album='Receipts' if is_transit else 'Family Trips',
            is_transit=is_transit,
        )

    @staticmethod
    def email(email_id: str, day: date | None, country_code: str = 'FR', country_name: str = 'France'):
        return EvidenceEmail(
            id=email_id,
            date=day,
            country_code=country_code,
            country_name=country_name,
            subject=f"Booking {email_id}",
            folder='Travel',
        )

    @staticmethod
    def create_takeout_photos(photos_dir: Path) -> Path:
        """Write a small Google Takeout photos tree: two albums and album metadata"""
        paris = photos_dir / 'Paris 2024'
        receipts = photos_dir / 'Receipts'
        paris.mkdir(parents=True)
        receipts.mkdir(parents=True)

        with open(paris / 'IMG_0001.jpg.json', 'w') as f:
            json.dump({
                'title': 'IMG_0001.jpg',
                'photoTakenTime': {'timestamp': '1718529300'},
                'geoDataExif': {'latitude': 48.8584, 'longitude': 2.2945, 'altitude': 35.0},
            }, f)
        with open(paris / 'IMG_0002.jpg.json', 'w') as f:
            json.dump({
                'title': 'IMG_0002.jpg',
                'photoTakenTime': {'timestamp': '1718822700'},
                'geoDataExif': {'latitude': 0.0, 'longitude': 0.0},
                'geoData': {'latitude': 0.0, 'longitude': 0.0},
            }, f)
        with open(paris / 'metadata.json', 'w') as f:
            json.dump({'title': 'Paris 2024'}, f)
        with open(receipts / 'receipt.png.json', 'w') as f:
            json.dump({
                'title': 'receipt.png',
                'creationTime': {'timestamp': '1707549300'},
                'geoData': {'latitude': 64.1466, 'longitude': -21.9426},
            }, f)

        return photos_dir

    @staticmethod
    def create_emails_file(path: Path, messages: list[EmailMessage]) -> Path:
        with open(path, 'w') as f:
            json.dump([message.__dict__ for message in messages], f, indent=2)
        return path
