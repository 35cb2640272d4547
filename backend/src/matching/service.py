"""Merchant service facade.

Single entry point for callers (import pipeline, admin tooling): merchant
matching, idempotent creation, similar-merchant search and embedding
maintenance.
"""

import logging
from typing import List, Optional
from uuid import UUID

from domain.merchants.models import MerchantMatchResult, MerchantSimilarityResult
from domain.merchants.ports import MerchantStorePort, MerchantNotFoundError
from models.merchant import Merchant
from services.embedding.vector_search import rank_merchants_by_similarity
from .ports import MerchantMatcherPort, DEFAULT_SIMILARITY_THRESHOLD
from .registrar import MerchantRegistrar

logger = logging.getLogger(__name__)


class MerchantService:
    """Facade over TieredMerchantMatcher and MerchantRegistrar.

    Example:
        service = build_merchant_service()
        merchant = service.create_or_get_merchant("SQ *UBER EATS 09/12 #4471 CA")
        similar = service.find_similar_merchants(merchant.id, limit=5)
    """

    def __init__(
        self,
        store: MerchantStorePort,
        matcher: MerchantMatcherPort,
        registrar: MerchantRegistrar,
        default_similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        self.store = store
        self.matcher = matcher
        self.registrar = registrar
        self.default_similarity_threshold = default_similarity_threshold

    def find_best_match(
        self,
        raw_merchant_name: str,
        similarity_threshold: Optional[float] = None,
    ) -> Optional[MerchantMatchResult]:
        """Resolve a raw merchant string; None if no tier matches."""
        if similarity_threshold is None:
            similarity_threshold = self.default_similarity_threshold
        return self.matcher.find_best_match(raw_merchant_name, similarity_threshold)

    def create_or_get_merchant(self, merchant_name: str, category: Optional[str] = None) -> Merchant:
        return self.registrar.create_or_get_merchant(merchant_name, category)

    def find_similar_merchants(
        self,
        merchant_id: UUID,
        limit: int = 10,
        min_similarity: float = 0.5,
    ) -> List[MerchantSimilarityResult]:
        """Rank other merchants by embedding similarity to the given merchant.

        Returns:
            Up to `limit` results with similarity >= min_similarity, most similar
            first. Empty if the merchant is unknown or has no embedding.
        """
        merchant = self.store.find_by_id(merchant_id)
        if merchant is None:
            logger.warning(f"Cannot find similar merchants: merchant {merchant_id} not found")
            return []
        if not merchant.has_embedding:
            logger.warning(
                f"Cannot find similar merchants: {merchant.display_name!r} has no embedding",
                extra={"merchant_id": merchant_id},
            )
            return []

        others = [m for m in self.store.list_with_embeddings() if m.id != merchant_id]
        ranked = rank_merchants_by_similarity(merchant.embedding, others, limit, min_similarity)

        return [MerchantSimilarityResult(m, score) for m, score in ranked]

    def generate_missing_embeddings(self) -> int:
        return self.registrar.generate_missing_embeddings()

    def update_merchant_embedding(self, merchant_id: UUID) -> Merchant:
        return self.registrar.update_merchant_embedding(merchant_id)

    def add_alias(self, merchant_id: UUID, alias: str) -> Merchant:
        """Append an alias to a merchant (no-op if already known, case-insensitive).

        Raises:
            MerchantNotFoundError: Unknown merchant id
            ValueError: Empty alias
        """
        if not alias or not alias.strip():
            raise ValueError("Alias cannot be empty")

        merchant = self.store.add_alias(merchant_id, alias.strip())
        if merchant is None:
            raise MerchantNotFoundError(merchant_id)

        logger.info(
            f"Recorded alias {alias.strip()!r} for merchant {merchant.display_name!r}",
            extra={"merchant_id": merchant_id},
        )
        return merchant
