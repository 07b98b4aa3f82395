"""
Country bucketing and temporal clustering of evidence into trip candidates.

Within one country, dated evidence is sorted and swept greedily: an item
joins the current run while it is at most MAX_GAP_DAYS after the run's end
and at most MAX_TRIP_DAYS after the run's start (both inclusive). Anything
else closes the run and opens a new one.
"""

import logging
from config import MAX_GAP_DAYS, MAX_TRIP_DAYS, UNDATED_MAX_CONFIDENCE
from core.countries import get_country_name
from core.models import EvidenceEmail, EvidencePhoto, TripCandidate
from core.scoring import build_source_label, calculate_confidence

logger = logging.getLogger(__name__)

Evidence = EvidencePhoto | EvidenceEmail

SOURCE_TYPE_PHOTO = 'photo_exif'
SOURCE_TYPE_EMAIL = 'email'


def bucket_by_country(evidence: list[Evidence]) -> dict[str, list[Evidence]]:
    """Group evidence by country code, keeping input order inside each bucket"""
    buckets = {}
    for item in evidence:
        buckets.setdefault(item.country_code, []).append(item)
    return buckets


def cluster_by_date(
    items: list[Evidence], max_gap_days: int = MAX_GAP_DAYS, max_trip_days: int = MAX_TRIP_DAYS
) -> list[list[Evidence]]:
    """Split dated evidence into date-contiguous runs; undated items are left out"""
    dated = sorted((item for item in items if item.date is not None), key=lambda item: item.date)
    if not dated:
        return []

    runs = []
    current = [dated[0]]
    run_start = run_end = dated[0].date

    for item in dated[1:]:
        gap = (item.date - run_end).days
        span = (item.date - run_start).days
        if gap <= max_gap_days and span <= max_trip_days:
            current.append(item)
            run_end = item.date
        else:
            runs.append(current)
            current = [item]
            run_start = run_end = item.date

    runs.append(current)
    return runs


def _split_by_source(items: list[Evidence]) -> tuple[list[EvidencePhoto], list[EvidenceEmail]]:
    photos = [item for item in items if isinstance(item, EvidencePhoto)]
    emails = [item for item in items if isinstance(item, EvidenceEmail)]
    return photos, emails


def _make_candidate(country_code: str, country_name: str, items: list[Evidence], index: int, generated_ms: int) -> TripCandidate:
    photos, emails = _split_by_source(items)
    dates = [item.date for item in items if item.date is not None]
    return TripCandidate(
        id=f"{country_code}_{index}_{generated_ms}",
        country_code=country_code,
        country_name=country_name,
        start_date=min(dates) if dates else None,
        end_date=max(dates) if dates else None,
        photos=photos,
        emails=emails,
        confidence=calculate_confidence(photos, emails),
        source_label=build_source_label(photos, emails),
        source_type=SOURCE_TYPE_PHOTO if photos else SOURCE_TYPE_EMAIL,
    )


def build_candidates(evidence: list[Evidence], generated_ms: int) -> list[TripCandidate]:
    """Bucket, cluster and score evidence into trip candidates (not yet correlated)"""
    candidates = []

    for country_code, items in bucket_by_country(evidence).items():
        country_name = items[0].country_name or get_country_name(country_code) or country_code
        runs = cluster_by_date(items)

        if not runs:
            # Only undated evidence: one low-confidence candidate instead of dropping it
            candidate = _make_candidate(country_code, country_name, items, 0, generated_ms)
            candidate.confidence = min(candidate.confidence, UNDATED_MAX_CONFIDENCE)
            candidates.append(candidate)
            logger.debug(f"{country_name}: {len(items)} undated evidence items, emitted undated candidate")
            continue

        skipped = sum(1 for item in items if item.date is None)
        if skipped:
            logger.debug(f"{country_name}: {skipped} undated evidence items left unclustered")

        for index, run in enumerate(runs):
            candidates.append(_make_candidate(country_code, country_name, run, index, generated_ms))

    return candidates
