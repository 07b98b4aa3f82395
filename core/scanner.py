"""
Scan orchestration: photos, then emails, then clustering and correlation.

The scan runs sequentially, one item at a time, reporting progress after
each item so a UI can show incremental status. The suggestion cache is
read once before any work and written once after a successful scan.
"""

import logging
import time
from collections.abc import Callable
from config import EMAIL_PHASE_SPAN, PHOTO_PHASE_SPAN, SCAN_STEPS
from core.clustering import build_candidates
from core.correlation import attach_related_countries
from core.models import EmailMessage, PhotoAsset, ScanOptions, ScanResult, ScanSummary, TripCandidate
from core.normalizer import EvidenceNormalizer
from core.suggestion_cache import SuggestionCache

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str, int, str], None]
CancelFn = Callable[[], bool]


class ScanError(Exception):
    """The scan could not run; the caller should show a failure and offer a retry"""


class ScanCancelledError(ScanError):
    """The caller asked the scan to stop between items"""


def sort_suggestions(candidates: list[TripCandidate]) -> list[TripCandidate]:
    """Most recent trips first, undated candidates last"""
    dated = sorted((c for c in candidates if c.start_date), key=lambda c: (c.start_date, c.country_code), reverse=True)
    undated = [c for c in candidates if not c.start_date]
    return dated + undated


class TripScanner:
    """Runs the evidence pipeline and owns the suggestion cache"""

    def __init__(self, normalizer: EvidenceNormalizer, cache: SuggestionCache | None = None, clock_ms=None):
        self.normalizer = normalizer
        self.cache = cache
        self.clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)

    @staticmethod
    def _report(on_progress: ProgressFn | None, step: str, percent: int, message: str):
        logger.debug(f"[{step} {percent}%] {message}")
        if on_progress:
            on_progress(step, percent, message)

    @staticmethod
    def _check_cancelled(should_cancel: CancelFn | None):
        if should_cancel and should_cancel():
            logger.info("Scan cancelled by caller")
            raise ScanCancelledError("Scan cancelled")

    def _scan_photos(self, photos, options, on_progress, should_cancel) -> list:
        start = SCAN_STEPS['photos']
        self._report(on_progress, 'photos', start, "Scanning photos with location metadata…")

        candidates = self.normalizer.filter_photos(photos, options)
        evidence = []
        for i, photo in enumerate(candidates):
            self._check_cancelled(should_cancel)
            item = self.normalizer.normalize_photo(photo, options)
            if item:
                evidence.append(item)
            percent = start + round((i + 1) / len(candidates) * PHOTO_PHASE_SPAN)
            self._report(on_progress, 'photos', percent, f"Scanning photos… ({i + 1}/{len(candidates)})")

        logger.info(f"Photo scan: {len(evidence)} evidence items from {len(candidates)} photos ({len(photos) - len(candidates)} excluded)")
        return evidence

    def _scan_emails(self, emails, options, on_progress, should_cancel) -> list:
        start = SCAN_STEPS['emails']
        self._report(on_progress, 'emails', start, "Scanning travel emails…")

        candidates = self.normalizer.filter_emails(emails, options)
        evidence = []
        for i, email in enumerate(candidates):
            self._check_cancelled(should_cancel)
            evidence.extend(self.normalizer.normalize_email(email, options))
            percent = start + round((i + 1) / len(candidates) * EMAIL_PHASE_SPAN)
            self._report(on_progress, 'emails', percent, f"Scanning emails… ({i + 1}/{len(candidates)})")

        logger.info(f"Email scan: {len(evidence)} evidence items from {len(candidates)} emails ({len(emails) - len(candidates)} excluded)")
        return evidence

    def run_scan(
        self,
        options: ScanOptions,
        photos: list[PhotoAsset] | None = None,
        emails: list[EmailMessage] | None = None,
        on_progress: ProgressFn | None = None,
        should_cancel: CancelFn | None = None,
    ) -> ScanResult:
        """Scan photos and emails for trips, returning suggestions and a summary.

        Raises ScanError when neither source is enabled or the pipeline fails
        outside the per-item guards, and ScanCancelledError when should_cancel
        returns True between items.
        """
        if not options.include_photos and not options.include_emails:
            raise ScanError("Nothing to scan: both photos and emails are disabled")

        photos = photos or []
        emails = emails or []

        self._report(on_progress, 'permissions', SCAN_STEPS['permissions'], "Requesting device access…")

        if self.cache:
            cached = self.cache.get(options)
            if cached:
                logger.info(f"Loaded {len(cached.suggestions)} cached trip suggestions")
                self._report(on_progress, 'complete', SCAN_STEPS['complete'], "Loaded cached scan results.")
                return cached

        try:
            evidence = []
            if options.include_photos:
                evidence.extend(self._scan_photos(photos, options, on_progress, should_cancel))
            if options.include_emails:
                evidence.extend(self._scan_emails(emails, options, on_progress, should_cancel))

            self._check_cancelled(should_cancel)
            self._report(on_progress, 'combine', SCAN_STEPS['combine'], "Combining evidence into trips…")

            candidates = build_candidates(evidence, generated_ms=self.clock_ms())
            suggestions = sort_suggestions(attach_related_countries(candidates))
        except ScanError:
            raise
        except Exception as e:
            logger.error(f"Scan failed: {e}")
            raise ScanError(f"Scan failed: {e}") from e

        result = ScanResult(
            suggestions=suggestions,
            summary=ScanSummary(
                photos_scanned=len(photos) if options.include_photos else 0,
                emails_scanned=len(emails) if options.include_emails else 0,
                trips_suggested=len(suggestions),
            ),
        )

        if self.cache:
            self.cache.set(options, result)

        logger.info(f"Scan complete: {len(suggestions)} trip suggestions from {len(evidence)} evidence items")
        self._report(on_progress, 'complete', SCAN_STEPS['complete'], "Scan complete!")
        return result
