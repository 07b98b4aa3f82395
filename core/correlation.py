from config import ADJACENT_TRIP_DAYS
from core.models import TripCandidate


def dates_related(a: TripCandidate, b: TripCandidate, adjacent_days: int = ADJACENT_TRIP_DAYS) -> bool:
    """True when two dated candidates overlap or one ends within adjacent_days of the other starting"""
    if not (a.is_dated and b.is_dated):
        return False
    overlap = a.start_date <= b.end_date and b.start_date <= a.end_date
    near = abs((a.start_date - b.end_date).days) <= adjacent_days or abs((b.start_date - a.end_date).days) <= adjacent_days
    return overlap or near


def attach_related_countries(candidates: list[TripCandidate]) -> list[TripCandidate]:
    """Cross-reference candidates in other countries that look like legs of the same journey.

    Candidates are annotated in place and never merged.
    """
    for a in candidates:
        related = []
        for b in candidates:
            if b is a or b.country_code == a.country_code:
                continue
            if dates_related(a, b) and b.country_name not in related:
                related.append(b.country_name)
        a.related_countries = related
    return candidates
