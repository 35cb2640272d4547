"""Embedding services - cache keys, two-tier embedding cache and vector search"""

from .text_generator import calculate_text_hash, truncate_text_for_embedding
from .embedding_cache import EmbeddingCache, MemoryEmbeddingTier
from .vector_search import (
    cosine_similarity,
    find_most_similar_merchant,
    rank_merchants_by_similarity,
)

__all__ = [
    "calculate_text_hash",
    "truncate_text_for_embedding",
    "EmbeddingCache",
    "MemoryEmbeddingTier",
    "cosine_similarity",
    "find_most_similar_merchant",
    "rank_merchants_by_similarity",
]
