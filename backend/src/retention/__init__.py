"""Embedding cache retention module.

Provides:
- Age + usage based cleanup of the persistent embedding cache
- Optimization statistics (embedding coverage, cache hit rate, estimated savings)
- Cache analysis (top used entries, usage distribution)
"""

from .schemas import (
    CacheRetentionSettings,
    CacheCleanupResult,
    OptimizationStatistics,
    CacheAnalysis,
)
from .service import EmbeddingCacheRetentionService, usage_bucket

__all__ = [
    "CacheRetentionSettings",
    "CacheCleanupResult",
    "OptimizationStatistics",
    "CacheAnalysis",
    "EmbeddingCacheRetentionService",
    "usage_bucket",
]
