from config import (
    CONFIDENCE_BASE,
    CONFIDENCE_CORROBORATION_BONUS,
    CONFIDENCE_EMAIL_BONUS,
    CONFIDENCE_MANY_EMAILS_BONUS,
    CONFIDENCE_MANY_PHOTOS_BONUS,
    CONFIDENCE_PHOTO_BONUS,
    CONFIDENCE_TRANSIT_PENALTY,
    MANY_EMAILS_THRESHOLD,
    MANY_PHOTOS_THRESHOLD,
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
)
from core.models import EvidenceEmail, EvidencePhoto


def calculate_confidence(photos: list[EvidencePhoto], emails: list[EvidenceEmail]) -> float:
    """Score how well a candidate's evidence mix supports a real trip, clamped to [0.15, 0.98]"""
    score = CONFIDENCE_BASE
    if photos:
        score += CONFIDENCE_PHOTO_BONUS
    if emails:
        score += CONFIDENCE_EMAIL_BONUS
    if photos and emails:
        score += CONFIDENCE_CORROBORATION_BONUS
    if len(photos) >= MANY_PHOTOS_THRESHOLD:
        score += CONFIDENCE_MANY_PHOTOS_BONUS
    if len(emails) >= MANY_EMAILS_THRESHOLD:
        score += CONFIDENCE_MANY_EMAILS_BONUS

    # Receipts and screenshots alone usually mean a layover
    if photos and not emails and all(photo.is_transit for photo in photos):
        score -= CONFIDENCE_TRANSIT_PENALTY

    return round(min(max(score, MIN_CONFIDENCE), MAX_CONFIDENCE), 4)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def build_source_label(photos: list[EvidencePhoto], emails: list[EvidenceEmail]) -> str:
    if photos and emails:
        return f"{_plural(len(photos), 'photo')} + {_plural(len(emails), 'email')}"
    if photos:
        return _plural(len(photos), 'photo')
    return _plural(len(emails), 'email')
