"""Matching ports and interfaces for hexagonal architecture."""

from abc import ABC, abstractmethod
from typing import Optional

from domain.merchants.models import MerchantMatchResult

DEFAULT_SIMILARITY_THRESHOLD = 0.7


class MerchantMatcherPort(ABC):
    """Port interface for resolving raw merchant strings to canonical merchants.

    Implementations:
    - TieredMerchantMatcher: string tier, cached-embedding tier, new-embedding tier
    """

    @abstractmethod
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
            MerchantMatchResult, or None if no tier produced a match

        Raises:
            sqlalchemy.exc.SQLAlchemyError: The merchant store is unavailable
        """
        pass
