"""Tiered merchant matcher combining string matching and embedding search.

Pipeline, short-circuiting at the first hit:
1. String tier: exact name (1.0), mapping table (0.95), alias (0.95), fuzzy scan
2. Cached-embedding tier: cached vector vs. merchant embeddings (no provider cost)
3. New-embedding tier: provider call, result cached, same nearest search

Only tier 3 costs money; its vector is cached so each distinct normalized
string is paid for at most once.
"""

import logging
import time
from typing import List, Optional

from domain.ai.ports import EmbeddingProviderPort, EmbeddingError
from domain.merchants.models import MatchMethod, MerchantMatchResult
from domain.merchants.normalization import TextNormalizer
from domain.merchants.ports import MerchantStorePort
from domain.merchants.string_similarity import StringSimilarityScorer
from models.merchant import Merchant
from observability.correlation import correlation_scope
from observability.metrics import (
    merchant_matches_total,
    merchant_match_misses_total,
    merchant_match_duration_seconds,
    merchant_match_score,
)
from services.embedding.embedding_cache import EmbeddingCache
from services.embedding.vector_search import find_most_similar_merchant
from .ports import MerchantMatcherPort, DEFAULT_SIMILARITY_THRESHOLD

logger = logging.getLogger(__name__)

EXACT_SCORE = 1.0
MAPPING_SCORE = 0.95
ALIAS_SCORE = 0.95
DEFAULT_FUZZY_THRESHOLD = 0.8


class TieredMerchantMatcher(MerchantMatcherPort):
    """Resolve raw merchant strings against the merchant store.

    Instances hold no per-request state and can be shared across threads.

    Example:
        matcher = TieredMerchantMatcher(store, cache, provider)
        result = matcher.find_best_match("SQ *UBER EATS 09/12 #4471 CA")
        if result:
            print(result.merchant.display_name, result.match_method.value)
    """

    def __init__(
        self,
        store: MerchantStorePort,
        cache: EmbeddingCache,
        provider: EmbeddingProviderPort,
        normalizer: Optional[TextNormalizer] = None,
        scorer: Optional[StringSimilarityScorer] = None,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
    ):
        """Initialize matcher.

        Args:
            store: Merchant store
            cache: Two-tier embedding cache
            provider: Embedding provider (called on cache miss only)
            normalizer: Text normalizer (default instance if None)
            scorer: String similarity scorer (default mapping table if None)
            fuzzy_threshold: Fixed string-similarity threshold for the fuzzy scan,
                independent of the caller's embedding threshold
        """
        self.store = store
        self.cache = cache
        self.provider = provider
        self.normalizer = normalizer or TextNormalizer()
        self.scorer = scorer or StringSimilarityScorer()
        self.fuzzy_threshold = fuzzy_threshold

    def find_best_match(
        self,
        raw_merchant_name: str,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> Optional[MerchantMatchResult]:
        """Find the canonical merchant for a raw merchant string.

        Args:
            raw_merchant_name: Raw description fragment from a bank transaction
            similarity_threshold: Minimum cosine similarity for embedding-tier matches

        Returns:
            MerchantMatchResult, or None if no tier produced a match.
            Embedding provider failures degrade to None.
        """
        with correlation_scope():
            start_time = time.perf_counter()

            normalized = self.normalizer.normalize(raw_merchant_name or "")
            result = None
            if normalized:
                result = self._match_normalized(normalized, similarity_threshold)

            tier_label = result.match_method.tier.value if result else "none"
            merchant_match_duration_seconds.labels(tier=tier_label).observe(
                time.perf_counter() - start_time
            )

            if result is None:
                merchant_match_misses_total.inc()
                logger.debug(f"No merchant match for {raw_merchant_name!r} (normalized {normalized!r})")
                return None

            merchant_matches_total.labels(method=result.match_method.value).inc()
            merchant_match_score.observe(result.similarity_score)
            logger.info(
                f"Matched {raw_merchant_name!r} to {result.merchant.display_name!r} "
                f"via {result.match_method.value} ({result.similarity_score:.3f})",
                extra={
                    "merchant_id": result.merchant.id,
                    "match_method": result.match_method.value,
                    "similarity": result.similarity_score,
                },
            )
            return result

    def _match_normalized(
        self,
        normalized: str,
        similarity_threshold: float,
    ) -> Optional[MerchantMatchResult]:
        result = self._match_string_tier(normalized)
        if result is not None:
            return result

        # Tier 2: previously embedded text
        cached = self.cache.get(normalized)
        if cached is not None:
            result = self._nearest(
                cached, self.store.list_with_embeddings(), similarity_threshold, MatchMethod.EMBEDDING_CACHED
            )
            if result is not None:
                return result
            # The cached vector is the provider's answer for this text; a new call would not differ
            return None

        # Tier 3: paid provider call
        try:
            embedding = self.provider.embed_text(normalized).embedding
        except EmbeddingError as e:
            logger.warning(f"Embedding generation failed for {normalized!r}, skipping embedding tier: {e}")
            return None

        self.cache.put(normalized, embedding)
        return self._nearest(
            embedding, self.store.list_with_embeddings(), similarity_threshold, MatchMethod.EMBEDDING_GENERATED
        )

    def _match_string_tier(self, normalized: str) -> Optional[MerchantMatchResult]:
        """Tier 1: exact name, mapping table, alias, fuzzy scan."""
        merchant = self.store.find_by_exact_name(normalized)
        if merchant is not None:
            return MerchantMatchResult(merchant, EXACT_SCORE, MatchMethod.EXACT)

        resolved = self.scorer.try_resolve_mapping(normalized)
        if resolved is not None:
            merchant = self.store.find_by_exact_name(resolved)
            if merchant is not None:
                return MerchantMatchResult(merchant, MAPPING_SCORE, MatchMethod.MAPPING)

        merchant = self.store.find_by_alias(normalized)
        if merchant is not None:
            return MerchantMatchResult(merchant, ALIAS_SCORE, MatchMethod.ALIAS)

        best_merchant = None
        best_score = 0.0
        upper = normalized.upper()
        for candidate in self.store.list_all():
            score = self.scorer.similarity(upper, candidate.display_name.upper())
            # Strict comparison keeps the first merchant reaching the maximum
            if best_merchant is None or score > best_score:
                best_merchant, best_score = candidate, score

        if best_merchant is not None and best_score >= self.fuzzy_threshold:
            return MerchantMatchResult(best_merchant, best_score, MatchMethod.FUZZY)

        return None

    def _nearest(
        self,
        vector: List[float],
        candidates: List[Merchant],
        similarity_threshold: float,
        method: MatchMethod,
    ) -> Optional[MerchantMatchResult]:
        best = find_most_similar_merchant(vector, candidates)
        if best is None:
            return None

        merchant, score = best
        if score < similarity_threshold:
            logger.debug(
                f"Nearest merchant {merchant.display_name!r} below threshold "
                f"({score:.3f} < {similarity_threshold})"
            )
            return None

        return MerchantMatchResult(merchant, score, method)
