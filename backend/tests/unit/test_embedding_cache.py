"""Unit tests for the two-tier embedding cache

Tests cover:
- Memory tier TTL expiry and size bound
- put/get round trip through the persistent tier
- Usage counting on every hit (memory and persistent)
- Memory backfill after clear_memory
- Insert race: existing entry wins
"""

import pytest

from models.embedding_cache import EmbeddingCacheEntry
from services.embedding.embedding_cache import EmbeddingCache, MemoryEmbeddingTier
from services.embedding.text_generator import calculate_text_hash


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryEmbeddingTier:
    """Test the process-local TTL tier"""

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        tier = MemoryEmbeddingTier(ttl_seconds=60, clock=clock)
        tier.set("h1", [1.0, 2.0])

        clock.now += 59
        assert tier.get("h1") == [1.0, 2.0]

        clock.now += 2
        assert tier.get("h1") is None
        assert len(tier) == 0

    def test_oldest_entry_evicted_at_capacity(self):
        tier = MemoryEmbeddingTier(max_entries=2)
        tier.set("h1", [1.0])
        tier.set("h2", [2.0])
        tier.set("h3", [3.0])

        assert tier.get("h1") is None
        assert tier.get("h2") == [2.0]
        assert tier.get("h3") == [3.0]

    def test_returned_vector_is_a_copy(self):
        tier = MemoryEmbeddingTier()
        tier.set("h1", [1.0])
        tier.get("h1").append(99.0)

        assert tier.get("h1") == [1.0]


class TestEmbeddingCache:
    """Test the cache against the SQLAlchemy persistent tier"""

    def test_round_trip_with_usage_increment(self, embedding_cache, cache_repository):
        embedding_cache.put("UBER EATS", [0.1, 0.2, 0.3])
        text_hash = calculate_text_hash("UBER EATS")
        assert cache_repository.find_by_hash(text_hash).usage_count == 1

        assert embedding_cache.get("UBER EATS") == pytest.approx([0.1, 0.2, 0.3])
        first_usage = cache_repository.find_by_hash(text_hash).usage_count

        assert embedding_cache.get("UBER EATS") == pytest.approx([0.1, 0.2, 0.3])
        second_usage = cache_repository.find_by_hash(text_hash).usage_count

        assert first_usage == 2
        assert second_usage == first_usage + 1

    def test_hash_ignores_case(self, embedding_cache):
        embedding_cache.put("UBER EATS", [1.0, 0.0])

        assert embedding_cache.get("uber eats") == pytest.approx([1.0, 0.0])

    def test_miss_returns_none(self, embedding_cache):
        assert embedding_cache.get("NEVER SEEN") is None
        assert embedding_cache.get("") is None

    def test_persistent_hit_backfills_memory(self, embedding_cache, cache_repository):
        embedding_cache.put("LYFT RIDE", [0.5, 0.5])
        embedding_cache.clear_memory()
        assert len(embedding_cache.memory) == 0

        assert embedding_cache.get("LYFT RIDE") == pytest.approx([0.5, 0.5])

        assert embedding_cache.memory.get(calculate_text_hash("LYFT RIDE")) == pytest.approx([0.5, 0.5])
        assert cache_repository.find_by_hash(calculate_text_hash("LYFT RIDE")).usage_count == 2

    def test_existing_entry_wins_insert_race(self, embedding_cache, cache_repository):
        embedding_cache.put("TARGET", [1.0, 0.0])

        stored = embedding_cache.put("TARGET", [0.0, 1.0])

        assert stored == pytest.approx([1.0, 0.0])
        assert cache_repository.statistics().total_cached == 1

    def test_entry_written_by_another_process_is_found(self, cache_repository):
        cache_repository.insert(EmbeddingCacheEntry(
            text_hash=calculate_text_hash("COSTCO"),
            normalized_text="COSTCO",
            embedding=[0.0, 1.0],
            usage_count=1,
        ))
        cache = EmbeddingCache(cache_repository, MemoryEmbeddingTier())

        assert cache.get("COSTCO") == pytest.approx([0.0, 1.0])
