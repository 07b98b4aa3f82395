"""Data shapes shared by the scan pipeline: raw inputs, evidence items, trip candidates"""

from dataclasses import asdict, dataclass, field
from datetime import date


def _date_to_str(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _date_from_str(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


@dataclass
class PhotoAsset:
    """A photo as it comes off the device or out of an export"""

    id: str
    taken_at: str | int | float | None
    latitude: float | None = None
    longitude: float | None = None
    timezone_offset_minutes: int = 0
    album: str = ''
    thumbnail_ref: str = ''


@dataclass
class EmailMessage:
    """A raw mailbox message"""

    id: str
    subject: str = ''
    body: str = ''
    snippet: str = ''
    folder: str = ''
    received_at: str | None = None


@dataclass
class EvidencePhoto:
    id: str
    date: date | None
    country_code: str
    country_name: str
    album: str = ''
    thumbnail_ref: str = ''
    is_transit: bool = False
    source: str = field(default='photo', init=False)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['date'] = _date_to_str(self.date)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'EvidencePhoto':
        return cls(
            id=data['id'],
            date=_date_from_str(data.get('date')),
            country_code=data['country_code'],
            country_name=data['country_name'],
            album=data.get('album', ''),
            thumbnail_ref=data.get('thumbnail_ref', ''),
            is_transit=bool(data.get('is_transit', False)),
        )


@dataclass
class EvidenceEmail:
    id: str
    date: date | None
    country_code: str
    country_name: str
    subject: str = ''
    snippet: str = ''
    folder: str = ''
    source: str = field(default='email', init=False)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['date'] = _date_to_str(self.date)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'EvidenceEmail':
        return cls(
            id=data['id'],
            date=_date_from_str(data.get('date')),
            country_code=data['country_code'],
            country_name=data['country_name'],
            subject=data.get('subject', ''),
            snippet=data.get('snippet', ''),
            folder=data.get('folder', ''),
        )


@dataclass
class TripCandidate:
    """A proposed trip: one country, one contiguous run of evidence dates"""

    id: str
    country_code: str
    country_name: str
    start_date: date | None
    end_date: date | None
    photos: list[EvidencePhoto] = field(default_factory=list)
    emails: list[EvidenceEmail] = field(default_factory=list)
    confidence: float = 0.0
    related_countries: list[str] = field(default_factory=list)
    source_label: str = ''
    source_type: str = ''
    trip_name: str | None = None

    @property
    def is_dated(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def title(self) -> str:
        return self.trip_name or self.country_name

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'country_code': self.country_code,
            'country_name': self.country_name,
            'start_date': _date_to_str(self.start_date),
            'end_date': _date_to_str(self.end_date),
            'photos': [photo.to_dict() for photo in self.photos],
            'emails': [email.to_dict() for email in self.emails],
            'confidence': self.confidence,
            'related_countries': list(self.related_countries),
            'source_label': self.source_label,
            'source_type': self.source_type,
            'trip_name': self.trip_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TripCandidate':
        return cls(
            id=data['id'],
            country_code=data['country_code'],
            country_name=data['country_name'],
            start_date=_date_from_str(data.get('start_date')),
            end_date=_date_from_str(data.get('end_date')),
            photos=[EvidencePhoto.from_dict(p) for p in data.get('photos', [])],
            emails=[EvidenceEmail.from_dict(e) for e in data.get('emails', [])],
            confidence=float(data['confidence']),
            related_countries=list(data.get('related_countries', [])),
            source_label=data.get('source_label', ''),
            source_type=data.get('source_type', ''),
            trip_name=data.get('trip_name'),
        )


@dataclass
class ScanOptions:
    include_photos: bool = True
    include_emails: bool = True
    excluded_albums: list[str] = field(default_factory=list)
    excluded_folders: list[str] = field(default_factory=list)
    home_country_code: str | None = None

    def cache_key(self) -> dict:
        """Every option that changes the scan output, in a comparable form"""
        return {
            'include_photos': self.include_photos,
            'include_emails': self.include_emails,
            'excluded_albums': sorted(self.excluded_albums),
            'excluded_folders': sorted(self.excluded_folders),
            'home_country_code': self.home_country_code.upper() if self.home_country_code else None,
        }


@dataclass
class ScanSummary:
    photos_scanned: int = 0
    emails_scanned: int = 0
    trips_suggested: int = 0


@dataclass
class ScanResult:
    suggestions: list[TripCandidate]
    summary: ScanSummary

    def to_dict(self) -> dict:
        return {
            'suggestions': [candidate.to_dict() for candidate in self.suggestions],
            'summary': asdict(self.summary),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ScanResult':
        return cls(
            suggestions=[TripCandidate.from_dict(c) for c in data['suggestions']],
            summary=ScanSummary(**data['summary']),
        )
