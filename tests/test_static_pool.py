"""Tests for the curated fallback pool."""

import pytest

from daily_challenge.errors import PoolConfigurationError
from daily_challenge.scheduler import challenge_index
from daily_challenge.schemas import Difficulty
from daily_challenge.static_pool import STATIC_CHALLENGE_POOL, StaticChallenge, StaticFallbackPool
from daily_challenge.validator import ContentValidator


@pytest.fixture
def pool():
    return StaticFallbackPool()


class TestSelect:
    def test_index_wraps_around(self, pool):
        size = len(STATIC_CHALLENGE_POOL[Difficulty.EASY])
        assert pool.select(Difficulty.EASY, 1) == pool.select(Difficulty.EASY, 1 + size)
        assert pool.select(Difficulty.EASY, 10**9).title

    def test_same_date_same_puzzle(self, pool):
        first = pool.select_for_date("2024-07-04", Difficulty.HARD)
        second = pool.select_for_date("2024-07-04", Difficulty.HARD)
        assert first == second

    def test_uses_date_index(self, pool):
        bucket = STATIC_CHALLENGE_POOL[Difficulty.MEDIUM]
        expected = bucket[challenge_index("2024-07-04") % len(bucket)]
        assert pool.select_for_date("2024-07-04", Difficulty.MEDIUM).title == expected.title

    def test_empty_bucket_raises(self):
        pool = StaticFallbackPool({Difficulty.EASY: STATIC_CHALLENGE_POOL[Difficulty.EASY]})
        with pytest.raises(PoolConfigurationError):
            pool.select(Difficulty.HARD, 0)


class TestPoolValidation:
    def test_curated_pool_is_valid(self, pool):
        report = pool.validate_pool()
        assert report.valid
        assert report.errors == []

    def test_pool_size(self, pool):
        size = pool.pool_size()
        assert size["total"] == sum(size["by_difficulty"].values())
        assert all(n > 0 for n in size["by_difficulty"].values())

    def test_identical_contents_are_errors(self):
        same = "const x = 1;\nconst y = 2;"
        pool = StaticFallbackPool(
            {
                Difficulty.EASY: [StaticChallenge(same, same, "Already solved")],
                Difficulty.MEDIUM: STATIC_CHALLENGE_POOL[Difficulty.MEDIUM],
                Difficulty.HARD: STATIC_CHALLENGE_POOL[Difficulty.HARD],
            }
        )
        report = pool.validate_pool()
        assert not report.valid
        assert any("identical" in e for e in report.errors)

    def test_missing_bucket_is_warning(self):
        pool = StaticFallbackPool({Difficulty.EASY: STATIC_CHALLENGE_POOL[Difficulty.EASY]})
        report = pool.validate_pool()
        assert report.valid
        assert any("hard" in w for w in report.warnings)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_every_target_passes_content_validation(difficulty):
    validator = ContentValidator()
    for entry in STATIC_CHALLENGE_POOL[difficulty]:
        result = validator.validate(entry.content, difficulty)
        assert result.errors == [], entry.title
        assert result.is_valid, entry.title
