"""Unit tests for SQLAlchemy merchant and embedding cache repositories"""

from datetime import timedelta
from uuid import uuid4

import pytest

from domain.merchants.ports import DuplicateMerchantError, MerchantNotFoundError
from models.base import utcnow
from models.embedding_cache import EmbeddingCacheEntry
from models.merchant import Merchant
from services.embedding.text_generator import calculate_text_hash


def cache_entry(text, usage_count=1, last_used_days_ago=0, embedding=None):
    used_at = utcnow() - timedelta(days=last_used_days_ago)
    return EmbeddingCacheEntry(
        text_hash=calculate_text_hash(text),
        normalized_text=text,
        embedding=embedding or [1.0, 0.0],
        usage_count=usage_count,
        created_at=used_at,
        last_used_at=used_at,
    )


class TestMerchantStore:
    """Test SqlAlchemyMerchantStore lookups and writes"""

    def test_insert_and_find_by_exact_name_case_insensitive(self, merchant_store):
        created = merchant_store.insert(Merchant(display_name="STARBUCKS", category="Coffee"))

        found = merchant_store.find_by_exact_name("starbucks")

        assert found.id == created.id
        assert found.category == "Coffee"
        assert merchant_store.find_by_exact_name("STARBUCKS COFFEE") is None
        assert merchant_store.find_by_exact_name("") is None

    def test_duplicate_display_name_rejected(self, merchant_store):
        merchant_store.insert(Merchant(display_name="TARGET"))

        with pytest.raises(DuplicateMerchantError):
            merchant_store.insert(Merchant(display_name="Target"))

        assert merchant_store.count_statistics().total_merchants == 1

    def test_find_by_alias(self, merchant_store):
        created = merchant_store.insert(
            Merchant(display_name="AMAZON", aliases=["AMZN MKTP US", "Amazon.com"])
        )

        assert merchant_store.find_by_alias("amazon.COM").id == created.id
        assert merchant_store.find_by_alias("AMZN") is None

    def test_find_by_id_loads_aliases(self, merchant_store):
        created = merchant_store.insert(Merchant(display_name="NETFLIX", aliases=["NETFLIX.COM"]))

        found = merchant_store.find_by_id(created.id)

        assert found.aliases == ["NETFLIX.COM"]

    def test_update_persists_new_alias_and_embedding(self, merchant_store):
        merchant = merchant_store.insert(Merchant(display_name="WALMART", aliases=["WAL-MART #1234"]))

        assert merchant.add_alias("WM SUPERCENTER")
        assert not merchant.add_alias("wm supercenter")
        merchant.set_embedding([0.5, 0.5])
        merchant_store.update(merchant)

        reloaded = merchant_store.find_by_id(merchant.id)
        assert reloaded.aliases == ["WAL-MART #1234", "WM SUPERCENTER"]
        assert reloaded.embedding == pytest.approx([0.5, 0.5])
        assert merchant_store.find_by_alias("WM SUPERCENTER").id == merchant.id

    def test_update_from_stale_copies_never_drops_aliases(self, merchant_store):
        created = merchant_store.insert(Merchant(display_name="UBER EATS", aliases=["UBER EATS"]))
        first = merchant_store.find_by_id(created.id)
        second = merchant_store.find_by_id(created.id)

        first.add_alias("UBER EATS SF")
        merchant_store.update(first)
        second.add_alias("UBEREATS LA")
        merchant_store.update(second)

        reloaded = merchant_store.find_by_id(created.id)
        assert reloaded.aliases == ["UBER EATS", "UBER EATS SF", "UBEREATS LA"]

    def test_update_from_stale_copy_keeps_stored_embedding(self, merchant_store):
        created = merchant_store.insert(Merchant(display_name="AMAZON"))
        stale = merchant_store.find_by_id(created.id)
        merchant_store.set_embedding(created.id, [0.6, 0.8])

        stale.add_alias("AMZN MKTP US")
        updated = merchant_store.update(stale)

        assert updated.embedding == pytest.approx([0.6, 0.8])
        assert updated.aliases == ["AMZN MKTP US"]

    def test_update_unknown_merchant(self, merchant_store):
        with pytest.raises(MerchantNotFoundError):
            merchant_store.update(Merchant(display_name="NEVER STORED"))

    def test_add_alias_appends_single_row(self, merchant_store):
        created = merchant_store.insert(Merchant(display_name="WALMART", aliases=["WAL-MART #1234"]))
        merchant_store.set_embedding(created.id, [1.0, 0.0])

        first = merchant_store.add_alias(created.id, "WM SUPERCENTER")
        again = merchant_store.add_alias(created.id, "wm supercenter")

        assert first.aliases == ["WAL-MART #1234", "WM SUPERCENTER"]
        assert again.aliases == first.aliases
        assert again.embedding == pytest.approx([1.0, 0.0])

    def test_targeted_writes_on_unknown_merchant(self, merchant_store):
        missing = uuid4()

        assert merchant_store.add_alias(missing, "ANYTHING") is None
        assert merchant_store.set_embedding(missing, [1.0, 0.0]) is None

    def test_listing_follows_creation_order(self, merchant_store):
        for name in ["ZETA", "ALPHA", "MIDDLE"]:
            merchant_store.insert(Merchant(display_name=name))

        assert [m.display_name for m in merchant_store.list_all()] == ["ZETA", "ALPHA", "MIDDLE"]

    def test_embedding_partitions_and_counts(self, merchant_store):
        merchant_store.insert(Merchant(display_name="WITH ONE", embedding=[1.0, 0.0]))
        merchant_store.insert(Merchant(display_name="WITHOUT ONE"))
        merchant_store.insert(Merchant(display_name="WITHOUT TWO"))

        assert [m.display_name for m in merchant_store.list_with_embeddings()] == ["WITH ONE"]
        assert [m.display_name for m in merchant_store.list_missing_embeddings(1)] == ["WITHOUT ONE"]
        assert len(merchant_store.list_missing_embeddings(50)) == 2

        counts = merchant_store.count_statistics()
        assert counts.total_merchants == 3
        assert counts.with_embeddings == 1
        assert counts.without_embeddings == 2


class TestEmbeddingCacheRepository:
    """Test SqlAlchemyEmbeddingCacheRepository"""

    def test_insert_returns_existing_row_on_conflict(self, cache_repository):
        first = cache_repository.insert(cache_entry("UBER", embedding=[1.0, 0.0]))

        second = cache_repository.insert(cache_entry("UBER", embedding=[0.0, 1.0]))

        assert second.id == first.id
        assert second.embedding == pytest.approx([1.0, 0.0])

    def test_record_hit_increments_usage(self, cache_repository):
        cache_repository.insert(cache_entry("UBER", last_used_days_ago=3))
        now = utcnow()

        assert cache_repository.record_hit(calculate_text_hash("UBER"), now)
        assert cache_repository.record_hit(calculate_text_hash("UBER"), now)

        entry = cache_repository.find_by_hash(calculate_text_hash("UBER"))
        assert entry.usage_count == 3
        assert entry.last_used_at.replace(tzinfo=None) == now.replace(tzinfo=None)

    def test_record_hit_unknown_hash(self, cache_repository):
        assert not cache_repository.record_hit(calculate_text_hash("NOPE"), utcnow())

    def test_delete_stale_requires_old_and_rarely_used(self, cache_repository):
        cache_repository.insert(cache_entry("OLD RARE", usage_count=1, last_used_days_ago=40))
        cache_repository.insert(cache_entry("OLD POPULAR", usage_count=5, last_used_days_ago=40))
        cache_repository.insert(cache_entry("NEW RARE", usage_count=1, last_used_days_ago=1))

        deleted = cache_repository.delete_stale(utcnow() - timedelta(days=30), min_usage_count=2)

        assert deleted == 1
        assert cache_repository.find_by_hash(calculate_text_hash("OLD RARE")) is None
        assert cache_repository.find_by_hash(calculate_text_hash("OLD POPULAR")) is not None
        assert cache_repository.find_by_hash(calculate_text_hash("NEW RARE")) is not None

    def test_statistics_top_used_and_usage_counts(self, cache_repository):
        cache_repository.insert(cache_entry("A", usage_count=1))
        cache_repository.insert(cache_entry("B", usage_count=7))
        cache_repository.insert(cache_entry("C", usage_count=1))

        stats = cache_repository.statistics()
        assert stats.total_cached == 3
        assert stats.total_usage == 9
        assert stats.avg_usage == pytest.approx(3.0)
        assert stats.oldest_entry is not None

        assert [e.normalized_text for e in cache_repository.top_used(1)] == ["B"]
        assert cache_repository.usage_counts() == {1: 2, 7: 1}

    def test_statistics_of_empty_cache(self, cache_repository):
        stats = cache_repository.statistics()

        assert stats.total_cached == 0
        assert stats.total_usage == 0
        assert stats.avg_usage == 0.0
        assert stats.oldest_entry is None
