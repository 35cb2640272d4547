"""Merchant domain layer - normalization, string similarity, match models and ports"""

from .models import MatchMethod, MatchTier, MerchantMatchResult, MerchantSimilarityResult
from .normalization import TextNormalizer, normalize_merchant_name
from .string_similarity import StringSimilarityScorer, COMMON_MAPPINGS, generate_variations
from .ports import (
    MerchantStorePort,
    EmbeddingCachePersistencePort,
    MerchantCounts,
    EmbeddingCacheCounts,
    MerchantNotFoundError,
    DuplicateMerchantError,
)

__all__ = [
    "MatchMethod",
    "MatchTier",
    "MerchantMatchResult",
    "MerchantSimilarityResult",
    "TextNormalizer",
    "normalize_merchant_name",
    "StringSimilarityScorer",
    "COMMON_MAPPINGS",
    "generate_variations",
    "MerchantStorePort",
    "EmbeddingCachePersistencePort",
    "MerchantCounts",
    "EmbeddingCacheCounts",
    "MerchantNotFoundError",
    "DuplicateMerchantError",
]
