import json
import logging
from config import CACHE_DIR, SCAN_CACHE_FILE, SCAN_CACHE_KEY, SCAN_CACHE_TTL_HOURS
from core.models import ScanOptions, ScanResult
from datetime import UTC, datetime, timedelta
from dateutil.parser import isoparse
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store, mostly for tests and one-off scans"""

    def __init__(self):
        self.items = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk"""

    def __init__(self, path: Path = CACHE_DIR / SCAN_CACHE_FILE):
        self.path = path

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except (OSError, ValueError):
            data = {}  # Overwrite a corrupt store rather than refuse to write
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            with open(self.path, 'w') as f:
                json.dump(data, f, indent=2)


class SuggestionCache:
    """Single-slot, time-limited memo of the last scan result.

    Storage errors and corrupt entries are treated as a miss; nothing here
    raises to the caller.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        ttl: timedelta = timedelta(hours=SCAN_CACHE_TTL_HOURS),
        clock=None,
        key: str = SCAN_CACHE_KEY,
    ):
        self.store = store if store is not None else JsonFileStore()
        self.ttl = ttl
        self.clock = clock or (lambda: datetime.now(UTC))
        self.key = key

    def get(self, options: ScanOptions) -> ScanResult | None:
        try:
            raw = self.store.get_item(self.key)
            if not raw:
                return None

            entry = json.loads(raw)
            stored_at = isoparse(entry['timestamp'])
            age = self.clock() - stored_at
            if age > self.ttl:
                logger.debug(f"Cached scan is {age} old, older than {self.ttl}")
                return None

            if entry['options'] != options.cache_key():
                logger.debug("Cached scan was made with different options")
                return None

            return ScanResult.from_dict(entry['result'])
        except Exception as e:
            logger.warning(f"Ignoring unreadable scan cache: {e}")
            return None

    def set(self, options: ScanOptions, result: ScanResult) -> None:
        entry = {
            'timestamp': self.clock().isoformat(),
            'options': options.cache_key(),
            'result': result.to_dict(),
        }
        try:
            self.store.set_item(self.key, json.dumps(entry))
        except Exception as e:
            logger.warning(f"Could not write scan cache: {e}")

    def clear(self) -> None:
        remove = getattr(self.store, 'remove_item', None)
        try:
            if remove:
                remove(self.key)
            else:
                self.store.set_item(self.key, '')
        except Exception as e:
            logger.warning(f"Could not clear scan cache: {e}")
