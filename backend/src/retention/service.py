"""Embedding cache retention and optimization reporting.

The cache persistent tier grows with every distinct merchant string. This
service removes cold entries (old AND rarely used) and reports how much the
cache saves in provider calls.

Cleanup is idempotent and safe to run while matching is in progress: a removed
entry simply becomes a future cache miss.
"""

import logging
import time
from datetime import timedelta
from typing import Dict, Optional

from domain.merchants.ports import EmbeddingCachePersistencePort, MerchantStorePort
from models.base import utcnow
from .schemas import (
    CacheRetentionSettings,
    CacheCleanupResult,
    MerchantEmbeddingStatistics,
    EmbeddingCacheStatistics,
    OptimizationStatistics,
    CacheEntrySummary,
    CacheAnalysis,
    ESTIMATED_COST_PER_EMBEDDING_USD,
    USAGE_BUCKETS,
)

logger = logging.getLogger(__name__)

TOP_USED_LIMIT = 10


def usage_bucket(usage_count: int) -> str:
    """Map a usage count onto its analysis bucket."""
    if usage_count <= 1:
        return "1"
    if usage_count <= 5:
        return "2-5"
    if usage_count <= 10:
        return "6-10"
    if usage_count <= 50:
        return "11-50"
    return "50+"


class EmbeddingCacheRetentionService:
    """Cleanup and statistics for the persistent embedding cache.

    Example:
        service = EmbeddingCacheRetentionService(cache_repository, merchant_store)
        result = service.cleanup(max_age_days=30, min_usage_count=2)
        logger.info(result.message)
    """

    def __init__(
        self,
        cache_persistence: EmbeddingCachePersistencePort,
        merchant_store: MerchantStorePort,
        settings: Optional[CacheRetentionSettings] = None,
    ):
        self.cache_persistence = cache_persistence
        self.merchant_store = merchant_store
        self.settings = settings or CacheRetentionSettings()

    def cleanup(
        self,
        max_age_days: Optional[int] = None,
        min_usage_count: Optional[int] = None,
    ) -> CacheCleanupResult:
        """Delete cache entries unused for max_age_days with usage below min_usage_count.

        Args:
            max_age_days: Override of settings.max_age_days
            min_usage_count: Override of settings.min_usage_count

        Returns:
            CacheCleanupResult with the number of removed entries
        """
        # Validates overrides with the same bounds as the configured settings
        effective = CacheRetentionSettings(
            max_age_days=self.settings.max_age_days if max_age_days is None else max_age_days,
            min_usage_count=self.settings.min_usage_count if min_usage_count is None else min_usage_count,
        )

        start_time = time.time()
        cutoff = utcnow() - timedelta(days=effective.max_age_days)

        deleted = self.cache_persistence.delete_stale(cutoff, effective.min_usage_count)

        result = CacheCleanupResult(
            deleted_count=deleted,
            cutoff_date=cutoff,
            min_usage_count=effective.min_usage_count,
            duration_seconds=time.time() - start_time,
        )

        logger.info(
            f"Cleaned up {deleted} old embedding cache entries "
            f"(unused since {cutoff.isoformat()}, usage < {effective.min_usage_count})",
            extra={"count": deleted},
        )
        return result

    def get_optimization_stats(self) -> OptimizationStatistics:
        """Merchant embedding coverage, cache totals, hit rate and estimated savings."""
        merchant_counts = self.merchant_store.count_statistics()
        cache_counts = self.cache_persistence.statistics()

        if cache_counts.total_usage > 0:
            hit_rate = (
                (cache_counts.total_usage - cache_counts.total_cached)
                / cache_counts.total_usage * 100
            )
        else:
            hit_rate = 0.0

        if merchant_counts.total_merchants > 0:
            coverage = merchant_counts.with_embeddings / merchant_counts.total_merchants * 100
        else:
            coverage = 0.0

        return OptimizationStatistics(
            merchants=MerchantEmbeddingStatistics(
                total_merchants=merchant_counts.total_merchants,
                with_embeddings=merchant_counts.with_embeddings,
                without_embeddings=merchant_counts.without_embeddings,
            ),
            embedding_cache=EmbeddingCacheStatistics(
                total_cached=cache_counts.total_cached,
                total_usage=cache_counts.total_usage,
                avg_usage=cache_counts.avg_usage,
                oldest_entry=cache_counts.oldest_entry,
                newest_entry=cache_counts.newest_entry,
            ),
            cache_hit_rate=max(hit_rate, 0.0),
            estimated_cost_savings_usd=cache_counts.total_usage * ESTIMATED_COST_PER_EMBEDDING_USD,
            embedding_coverage=coverage,
        )

    def get_cache_analysis(self) -> CacheAnalysis:
        """Top used cache entries and usage distribution by bucket."""
        top_used = self.cache_persistence.top_used(TOP_USED_LIMIT)
        usage_counts = self.cache_persistence.usage_counts()

        distribution: Dict[str, int] = {bucket: 0 for bucket in USAGE_BUCKETS}
        for usage_count, entries in usage_counts.items():
            distribution[usage_bucket(usage_count)] += entries

        total_entries = sum(usage_counts.values())
        total_usage = sum(usage * entries for usage, entries in usage_counts.items())

        return CacheAnalysis(
            top_used_entries=[
                CacheEntrySummary(
                    normalized_text=entry.normalized_text,
                    usage_count=entry.usage_count,
                    created_at=entry.created_at,
                    last_used_at=entry.last_used_at,
                )
                for entry in top_used
            ],
            usage_distribution=distribution,
            total_entries=total_entries,
            avg_usage_count=(total_usage / total_entries) if total_entries else 0.0,
        )
