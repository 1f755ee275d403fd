# daily_challenge/scheduler.py

"""Deterministic date -> difficulty / pool-index assignment (40/40/20 split)."""

from datetime import date as dt_date
from datetime import datetime, timezone
from typing import Union

from .schemas import Difficulty, normalize_date

DateLike = Union[str, dt_date]

# bucket upper bounds over hash % 10
_BUCKETS = (
    (4, Difficulty.EASY),
    (8, Difficulty.MEDIUM),
    (10, Difficulty.HARD),
)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def date_hash(date: DateLike) -> int:
    """Signed 32-bit polynomial rolling hash (h = h*31 + code point) of the ISO date."""
    h = 0
    for ch in normalize_date(date):
        h = _to_int32(h * 31 + ord(ch))
    return h


def challenge_index(date: DateLike) -> int:
    """Non-negative index for the static pool; same hash as the difficulty schedule."""
    return abs(date_hash(date))


def assign_difficulty(date: DateLike) -> Difficulty:
    bucket = challenge_index(date) % 10
    for upper, difficulty in _BUCKETS:
        if bucket < upper:
            return difficulty
    return Difficulty.HARD  # unreachable, bucket is always < 10


def today() -> str:
    """Current calendar date in UTC as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()
