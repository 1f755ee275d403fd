# daily_challenge/store.py

import logging
import threading
from typing import Dict, Optional, Protocol

from .generator import ChallengeGenerator
from .scheduler import DateLike
from .schemas import Challenge, normalize_date

logger = logging.getLogger(__name__)


class ChallengeStore(Protocol):
    def find_challenge(self, date: str) -> Optional[Challenge]: ...

    def upsert_challenge(self, challenge: Challenge) -> None: ...


class InMemoryChallengeStore:
    """Date-keyed store for a single process (one challenge per date)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_date: Dict[str, Challenge] = {}

    def find_challenge(self, date: str) -> Optional[Challenge]:
        with self._lock:
            return self._by_date.get(normalize_date(date))

    def upsert_challenge(self, challenge: Challenge) -> None:
        with self._lock:
            self._by_date[challenge.date] = challenge

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_date)


def get_or_create_challenge(store: ChallengeStore, generator: ChallengeGenerator, date: DateLike) -> Challenge:
    """Stored challenge for `date`, generating and storing one on a miss."""
    iso_date = normalize_date(date)
    existing = store.find_challenge(iso_date)
    if existing is not None:
        logger.debug("Challenge for %s served from store", iso_date)
        return existing

    result = generator.generate_challenge(date=iso_date)
    store.upsert_challenge(result.challenge)
    logger.info("Stored %s challenge %s", result.source.value, result.challenge.id)
    return result.challenge
