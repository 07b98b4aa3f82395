import json
import main
import pytest
from core.clustering import build_candidates
from core.models import PhotoAsset, ScanOptions
from core.normalizer import EvidenceNormalizer
from core.scanner import ScanCancelledError, ScanError, TripScanner, sort_suggestions
from core.suggestion_cache import MemoryStore, SuggestionCache
from core.takeout import TakeoutPhotoLoader, load_email_messages
from datetime import date
from fixtures import TestDataFixtures
from unittest.mock import Mock, patch
from utils.travel_text import parse_travel_text


def _signature(result):
    """Everything about a result except generated ids"""
    return [
        (c.country_code, c.start_date, c.end_date, c.confidence, tuple(c.related_countries), c.source_label)
        for c in result.suggestions
    ]


class TestTripScanner:
    """Test suite for TripScanner"""

    @pytest.fixture
    def normalizer(self):
        return EvidenceNormalizer(reverse_geocode=TestDataFixtures.fake_reverse_geocode, parse_travel_text=parse_travel_text)

    @pytest.fixture
    def scanner(self, normalizer):
        return TripScanner(normalizer=normalizer, clock_ms=lambda: 1000)

    @pytest.fixture
    def options(self):
        return ScanOptions(home_country_code='US')

    @pytest.fixture
    def photos(self):
        return TestDataFixtures.get_demo_photos()

    @pytest.fixture
    def emails(self):
        return TestDataFixtures.get_demo_emails()

    def test_demo_scan(self, scanner, options, photos, emails):
        result = scanner.run_scan(options, photos, emails)

        by_country = {}
        for candidate in result.suggestions:
            by_country.setdefault(candidate.country_code, []).append(candidate)

        assert set(by_country) == {'FR', 'GB', 'JP', 'IS', 'MX', 'PT'}
        assert 'US' not in by_country

        japan = sorted(by_country['JP'], key=lambda c: c.start_date)
        assert [(c.start_date, c.end_date) for c in japan] == [
            (date(2024, 3, 29), date(2024, 3, 30)),
            (date(2024, 4, 6), date(2024, 4, 6)),
        ]
        assert japan[0].confidence == pytest.approx(0.98)

        iceland = by_country['IS'][0]
        assert iceland.confidence == pytest.approx(0.50)
        assert iceland.photos[0].is_transit

        portugal = by_country['PT'][0]
        assert portugal.start_date is None
        assert portugal.confidence <= 0.35
        assert result.suggestions[-1] is portugal

        assert result.summary.photos_scanned == 7
        assert result.summary.emails_scanned == 4
        assert result.summary.trips_suggested == len(result.suggestions)

    def test_confidence_bounds(self, scanner, options, photos, emails):
        for candidate in scanner.run_scan(options, photos, emails).suggestions:
            assert 0.15 <= candidate.confidence <= 0.98

    def test_idempotent(self, normalizer, options, photos, emails):
        first = TripScanner(normalizer=normalizer, clock_ms=lambda: 1000).run_scan(options, photos, emails)
        second = TripScanner(normalizer=normalizer, clock_ms=lambda: 2000).run_scan(options, photos, emails)

        assert _signature(first) == _signature(second)
        assert first.suggestions[0].id != second.suggestions[0].id

    def test_exclusions_applied_before_geocoding(self, options, photos, emails):
        geocode = Mock(side_effect=TestDataFixtures.fake_reverse_geocode)
        parser = Mock(side_effect=parse_travel_text)
        scanner = TripScanner(normalizer=EvidenceNormalizer(reverse_geocode=geocode, parse_travel_text=parser))
        options.excluded_albums = ['Receipts']
        options.excluded_folders = ['Newsletters', 'Receipts']

        result = scanner.run_scan(options, photos, emails)

        assert geocode.call_count == 6
        assert parser.call_count == 2
        assert {c.country_code for c in result.suggestions} == {'FR', 'GB', 'JP'}

    def test_home_country_never_suggested(self, scanner, photos, emails):
        result = scanner.run_scan(ScanOptions(home_country_code='fr'), photos, emails)
        assert 'FR' not in {c.country_code for c in result.suggestions}

    def test_multi_leg_trip_is_correlated(self, scanner, options):
        photos = [
            PhotoAsset('kef', '2024-02-10T07:15:00Z', 64.1466, -21.9426, 0, 'Receipts'),
            PhotoAsset('cdg', '2024-02-11T10:00:00Z', 48.8566, 2.3522, 60, 'Family Trips'),
        ]

        result = scanner.run_scan(options, photos, [])

        related = {c.country_code: c.related_countries for c in result.suggestions}
        assert related == {'FR': ['Iceland'], 'IS': ['France']}

    def test_failing_items_do_not_abort(self, options):
        def flaky_geocode(lat, lon):
            if lat > 60:
                raise TimeoutError("geocoder timed out")
            return TestDataFixtures.fake_reverse_geocode(lat, lon)

        def flaky_parser(text):
            if 'Expedia' in text:
                raise RuntimeError("parser crashed")
            return parse_travel_text(text)

        scanner = TripScanner(normalizer=EvidenceNormalizer(reverse_geocode=flaky_geocode, parse_travel_text=flaky_parser))

        result = scanner.run_scan(options, TestDataFixtures.get_demo_photos(), TestDataFixtures.get_demo_emails())

        countries = {c.country_code for c in result.suggestions}
        assert 'IS' not in countries
        assert 'MX' not in countries
        assert {'FR', 'JP', 'GB'} <= countries

    def test_nothing_to_scan_is_fatal(self, scanner):
        with pytest.raises(ScanError):
            scanner.run_scan(ScanOptions(include_photos=False, include_emails=False), [], [])

    def test_unexpected_failure_is_wrapped(self, scanner, options, photos):
        with patch('core.scanner.build_candidates', side_effect=KeyError('boom')):
            with pytest.raises(ScanError) as excinfo:
                scanner.run_scan(options, photos, [])
        assert isinstance(excinfo.value.__cause__, KeyError)

    def test_progress_steps_in_order(self, scanner, options, photos, emails):
        events = []

        scanner.run_scan(options, photos, emails, on_progress=lambda step, percent, message: events.append((step, percent)))

        steps = [step for step, _ in events]
        assert steps[0] == 'permissions'
        assert steps[-1] == 'complete'
        order = ['permissions', 'photos', 'emails', 'combine', 'complete']
        assert [s for i, s in enumerate(steps) if i == 0 or steps[i - 1] != s] == order
        assert steps.count('photos') == 1 + len(photos)
        assert steps.count('emails') == 1 + len(emails)
        percents = [percent for _, percent in events]
        assert percents == sorted(percents)
        assert events[-1] == ('complete', 100)

    def test_disabled_source_is_not_scanned(self, options, photos, emails):
        parser = Mock(return_value=[])
        scanner = TripScanner(normalizer=EvidenceNormalizer(TestDataFixtures.fake_reverse_geocode, parser))
        options.include_emails = False

        result = scanner.run_scan(options, photos, emails)

        parser.assert_not_called()
        assert result.summary.emails_scanned == 0

    def test_cancellation_between_items(self, scanner, options, photos, emails):
        calls = []

        def should_cancel():
            calls.append(1)
            return len(calls) > 2

        cache = SuggestionCache(store=MemoryStore())
        scanner.cache = cache

        with pytest.raises(ScanCancelledError):
            scanner.run_scan(options, photos, emails, should_cancel=should_cancel)
        assert cache.get(options) is None

    def test_cache_hit_skips_scanning(self, options, photos, emails):
        geocode = Mock(side_effect=TestDataFixtures.fake_reverse_geocode)
        cache = SuggestionCache(store=MemoryStore())
        scanner = TripScanner(normalizer=EvidenceNormalizer(geocode, parse_travel_text), cache=cache)

        first = scanner.run_scan(options, photos, emails)
        events = []
        second = scanner.run_scan(options, photos, emails, on_progress=lambda *event: events.append(event[0]))

        assert second == first
        assert geocode.call_count == len(photos)
        assert events == ['permissions', 'complete']

    def test_changed_exclusions_bypass_cache(self, options, photos, emails):
        cache = SuggestionCache(store=MemoryStore())
        scanner = TripScanner(normalizer=EvidenceNormalizer(TestDataFixtures.fake_reverse_geocode, parse_travel_text), cache=cache)

        scanner.run_scan(options, photos, emails)
        options.excluded_albums = ['Receipts']
        result = scanner.run_scan(options, photos, emails)

        assert 'IS' not in {c.country_code for c in result.suggestions}

    def test_sort_suggestions(self):
        older = TestDataFixtures.photo('a', date(2023, 1, 1))
        newer = TestDataFixtures.photo('b', date(2024, 1, 1))

        built = build_candidates([older, newer, TestDataFixtures.email('u', None, 'PT', 'Portugal')], generated_ms=1)
        ordered = sort_suggestions(built)

        assert [(c.country_code, c.start_date) for c in ordered] == [
            ('FR', date(2024, 1, 1)),
            ('FR', date(2023, 1, 1)),
            ('PT', None),
        ]


class TestTakeoutLoading:
    """Test suite for Takeout photo and email loaders"""

    def test_load_photo_sidecars(self, tmp_path):
        photos_dir = TestDataFixtures.create_takeout_photos(tmp_path / 'Google Photos')

        assets = {asset.album + '/' + asset.thumbnail_ref.split('/')[-1]: asset for asset in TakeoutPhotoLoader(photos_dir).load()}

        assert len(assets) == 3
        geotagged = assets['Paris 2024/IMG_0001.jpg']
        assert (geotagged.latitude, geotagged.longitude) == (48.8584, 2.2945)
        assert geotagged.taken_at == '1718529300'
        assert assets['Paris 2024/IMG_0002.jpg'].latitude is None
        receipt = assets['Receipts/receipt.png']
        assert receipt.taken_at == '1707549300'
        assert receipt.latitude == 64.1466

    def test_missing_photos_dir(self, tmp_path):
        assert TakeoutPhotoLoader(tmp_path / 'absent').load() == []

    def test_load_emails(self, tmp_path):
        path = TestDataFixtures.create_emails_file(tmp_path / 'emails.json', TestDataFixtures.get_demo_emails())

        messages = load_email_messages(path)

        assert [m.id for m in messages] == ['email_1', 'email_2', 'email_3', 'email_4']
        assert messages[1].folder == 'Inbox'

    def test_unreadable_emails_file(self, tmp_path):
        path = tmp_path / 'emails.json'
        path.write_text('{oops')
        assert load_email_messages(path) == []
        assert load_email_messages(tmp_path / 'absent.json') == []


class TestCommandLine:
    """Test suite for the command line entry point"""

    @pytest.fixture
    def inputs(self, tmp_path):
        photos_dir = TestDataFixtures.create_takeout_photos(tmp_path / 'Google Photos')
        emails_file = TestDataFixtures.create_emails_file(tmp_path / 'emails.json', TestDataFixtures.get_demo_emails())
        return photos_dir, emails_file

    def test_build_options(self):
        args = main.parse_arguments(['--home-country', 'us', '--exclude-album', 'Receipts', '--exclude-album', 'Screenshots', '--no-emails'])

        options = main.build_options(args)

        assert options == ScanOptions(
            include_photos=True,
            include_emails=False,
            excluded_albums=['Receipts', 'Screenshots'],
            excluded_folders=[],
            home_country_code='US',
        )

    @patch('main.ReverseGeocoder')
    def test_run_scan_writes_suggestions(self, mock_geocoder_class, inputs, tmp_path):
        mock_geocoder_class.return_value.reverse_geocode.side_effect = TestDataFixtures.fake_reverse_geocode
        photos_dir, emails_file = inputs
        output_dir = tmp_path / 'results'

        with pytest.raises(SystemExit) as exit_info:
            main.main([
                'run-scan',
                '--photos-dir', str(photos_dir),
                '--emails-file', str(emails_file),
                '--output-dir', str(output_dir),
                '--home-country', 'US',
                '--no-cache',
            ])

        assert exit_info.value.code == 0
        with open(output_dir / 'trip_suggestions.json') as f:
            output = json.load(f)
        assert output['metadata']['photos_scanned'] == 3
        assert output['metadata']['emails_scanned'] == 4
        countries = {s['country_code'] for s in output['suggestions']}
        assert {'FR', 'IS', 'JP', 'MX', 'PT'} <= countries

    def test_run_scan_with_nothing_enabled_fails(self, tmp_path):
        with pytest.raises(SystemExit) as exit_info:
            main.main(['run-scan', '--no-photos', '--no-emails', '--no-cache', '--output-dir', str(tmp_path)])

        assert exit_info.value.code == 1
