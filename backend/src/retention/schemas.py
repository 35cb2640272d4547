"""Pydantic schemas for embedding cache retention and optimization statistics.

This module defines:
- CacheRetentionSettings: Age and usage thresholds for cache cleanup
- CacheCleanupResult: Outcome of one cleanup run
- OptimizationStatistics: Merchant embedding coverage and cache efficiency
- CacheAnalysis: Most used cache entries and usage distribution
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

# Estimated provider price of one embedding call in USD
ESTIMATED_COST_PER_EMBEDDING_USD = 0.0001

# Usage-count buckets for cache analysis, in display order
USAGE_BUCKETS = ("1", "2-5", "6-10", "11-50", "50+")


class CacheRetentionSettings(BaseModel):
    """Thresholds for removing cold embedding cache entries.

    An entry is removed when it has not been used for max_age_days AND has
    fewer than min_usage_count hits. Removed entries become future cache misses.
    """

    max_age_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Entries unused for longer than this are eligible (1-3650)"
    )

    min_usage_count: int = Field(
        default=2,
        ge=1,
        description="Entries with at least this many hits are always kept"
    )


class CacheCleanupResult(BaseModel):
    """Outcome of an embedding cache cleanup run."""

    deleted_count: int = Field(ge=0, description="Number of cache entries removed")
    cutoff_date: datetime = Field(description="Entries last used before this were eligible")
    min_usage_count: int = Field(ge=1, description="Usage threshold applied")
    duration_seconds: float = Field(ge=0.0, description="Cleanup duration in seconds")

    @property
    def message(self) -> str:
        return f"Cleaned up {self.deleted_count} old cache entries"


class MerchantEmbeddingStatistics(BaseModel):
    total_merchants: int = Field(ge=0)
    with_embeddings: int = Field(ge=0)
    without_embeddings: int = Field(ge=0)


class EmbeddingCacheStatistics(BaseModel):
    total_cached: int = Field(ge=0)
    total_usage: int = Field(ge=0)
    avg_usage: float = Field(ge=0.0)
    oldest_entry: Optional[datetime] = None
    newest_entry: Optional[datetime] = None


class OptimizationStatistics(BaseModel):
    """Merchant embedding coverage and cache efficiency.

    cache_hit_rate: share of cache usages that did not create an entry,
        (total_usage - total_cached) / total_usage * 100
    estimated_cost_savings_usd: total_usage * ESTIMATED_COST_PER_EMBEDDING_USD
    embedding_coverage: with_embeddings / total_merchants * 100
    """

    merchants: MerchantEmbeddingStatistics
    embedding_cache: EmbeddingCacheStatistics
    cache_hit_rate: float = Field(ge=0.0, le=100.0)
    estimated_cost_savings_usd: float = Field(ge=0.0)
    embedding_coverage: float = Field(ge=0.0, le=100.0)


class CacheEntrySummary(BaseModel):
    normalized_text: str
    usage_count: int
    created_at: datetime
    last_used_at: datetime


class CacheAnalysis(BaseModel):
    """Most used cache entries and how usage is distributed."""

    top_used_entries: List[CacheEntrySummary]
    usage_distribution: Dict[str, int] = Field(
        description="Entry count per usage bucket: 1, 2-5, 6-10, 11-50, 50+"
    )
    total_entries: int = Field(ge=0)
    avg_usage_count: float = Field(ge=0.0)
