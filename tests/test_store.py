"""Tests for the read-before-generate store helper."""

import threading

import pytest

from daily_challenge.generator import ChallengeGenerator
from daily_challenge.schemas import GenerationSource
from daily_challenge.store import InMemoryChallengeStore, get_or_create_challenge


@pytest.fixture
def store():
    return InMemoryChallengeStore()


def test_miss_generates_and_stores(store, make_generator, valid_response):
    generator, client = make_generator([valid_response])
    challenge = get_or_create_challenge(store, generator, "2024-02-29")

    assert client.calls == 1
    assert store.find_challenge("2024-02-29") == challenge
    assert len(store) == 1


def test_hit_skips_generation(store, make_generator, valid_response):
    generator, client = make_generator([valid_response])
    first = get_or_create_challenge(store, generator, "2024-02-29")
    second = get_or_create_challenge(store, generator, "2024-02-29")

    assert client.calls == 1
    assert first == second


def test_static_challenges_are_stored_too(store, settings):
    generator = ChallengeGenerator(settings.model_copy(update={"llm_enabled": False}))
    challenge = get_or_create_challenge(store, generator, "2024-03-01")
    assert GenerationSource.STATIC.value in challenge.id
    assert store.find_challenge("2024-03-01") is challenge


def test_upsert_replaces(store, settings):
    generator = ChallengeGenerator(settings.model_copy(update={"llm_enabled": False}))
    original = generator.generate_challenge(date="2024-03-01", difficulty="easy").challenge
    replacement = generator.generate_challenge(date="2024-03-01", difficulty="hard").challenge
    store.upsert_challenge(original)
    store.upsert_challenge(replacement)
    assert store.find_challenge("2024-03-01") == replacement
    assert len(store) == 1


def test_bad_date_rejected_before_lookup(store, make_generator):
    generator, client = make_generator([])
    with pytest.raises(ValueError):
        get_or_create_challenge(store, generator, "March 1st")
    assert client.calls == 0


def test_concurrent_upserts(store, settings):
    generator = ChallengeGenerator(settings.model_copy(update={"llm_enabled": False}))
    challenges = [generator.generate_challenge(date=f"2024-04-{day:02d}").challenge for day in range(1, 21)]

    threads = [threading.Thread(target=store.upsert_challenge, args=(c,)) for c in challenges]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 20
