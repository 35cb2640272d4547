"""Merchant Matching Domain Models

Dataclasses and enums for merchant match results.
"""

from dataclasses import dataclass
from enum import Enum

from models.merchant import Merchant


class MatchTier(str, Enum):
    """Pipeline stage that produced a match."""
    STRING = "string"
    EMBEDDING_CACHED = "embedding_cached"
    EMBEDDING_GENERATED = "embedding_generated"


class MatchMethod(str, Enum):
    """Technique that produced a merchant match.

    String-tier methods (exact, mapping, alias) carry fixed scores;
    fuzzy and embedding methods carry the computed similarity.
    """
    EXACT = "exact"
    MAPPING = "mapping"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    EMBEDDING_CACHED = "embedding-cached"
    EMBEDDING_GENERATED = "embedding-generated"

    @property
    def tier(self) -> MatchTier:
        if self is MatchMethod.EMBEDDING_CACHED:
            return MatchTier.EMBEDDING_CACHED
        if self is MatchMethod.EMBEDDING_GENERATED:
            return MatchTier.EMBEDDING_GENERATED
        return MatchTier.STRING


@dataclass(frozen=True)
class MerchantMatchResult:
    """Best canonical merchant found for a raw merchant string.

    Attributes:
        merchant: Matched canonical merchant (lookup result, not owned)
        similarity_score: 0.0-1.0, 1.0 meaning exact equality
        match_method: Technique that produced the match
    """
    merchant: Merchant
    similarity_score: float
    match_method: MatchMethod


@dataclass(frozen=True)
class MerchantSimilarityResult:
    """Merchant ranked by embedding similarity to another merchant."""
    merchant: Merchant
    similarity_score: float
