"""Merchant persistence ports for hexagonal architecture.

The matcher and registrar depend on these interfaces; SQLAlchemy repositories in
infrastructure.repositories implement them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from models.merchant import Merchant
from models.embedding_cache import EmbeddingCacheEntry


@dataclass
class MerchantCounts:
    """Merchant totals for optimization statistics."""
    total_merchants: int
    with_embeddings: int
    without_embeddings: int


@dataclass
class EmbeddingCacheCounts:
    """Embedding cache totals for optimization statistics."""
    total_cached: int
    total_usage: int
    avg_usage: float
    oldest_entry: Optional[datetime]
    newest_entry: Optional[datetime]


class MerchantStorePort(ABC):
    """Persistent collection of canonical merchants.

    Name and alias lookups are case-insensitive. list_all and
    list_with_embeddings return merchants in a stable store-defined order,
    which the matcher uses as its tie-break.
    """

    @abstractmethod
    def find_by_exact_name(self, name: str) -> Optional[Merchant]:
        pass

    @abstractmethod
    def find_by_alias(self, name: str) -> Optional[Merchant]:
        pass

    @abstractmethod
    def find_by_id(self, merchant_id: UUID) -> Optional[Merchant]:
        pass

    @abstractmethod
    def list_all(self) -> List[Merchant]:
        pass

    @abstractmethod
    def list_with_embeddings(self) -> List[Merchant]:
        pass

    @abstractmethod
    def list_missing_embeddings(self, limit: int) -> List[Merchant]:
        pass

    @abstractmethod
    def insert(self, merchant: Merchant) -> Merchant:
        """Persist a new merchant.

        Raises:
            DuplicateMerchantError: A merchant with the same display name exists
        """
        pass

    @abstractmethod
    def update(self, merchant: Merchant) -> Merchant:
        """Apply a merchant's changes additively.

        Aliases are only ever appended and a stored embedding is never
        cleared, whatever the state of the passed-in copy.

        Raises:
            MerchantNotFoundError: The merchant does not exist
        """
        pass

    @abstractmethod
    def add_alias(self, merchant_id: UUID, alias: str) -> Optional[Merchant]:
        """Append one alias (no-op if already present); None for an unknown id."""
        pass

    @abstractmethod
    def set_embedding(self, merchant_id: UUID, embedding: List[float]) -> Optional[Merchant]:
        """Overwrite the embedding only; None for an unknown id."""
        pass

    @abstractmethod
    def count_statistics(self) -> MerchantCounts:
        pass


class EmbeddingCachePersistencePort(ABC):
    """Persistent tier of the embedding cache (source of truth)."""

    @abstractmethod
    def find_by_hash(self, text_hash: str) -> Optional[EmbeddingCacheEntry]:
        pass

    @abstractmethod
    def insert(self, entry: EmbeddingCacheEntry) -> EmbeddingCacheEntry:
        """Insert an entry, or return the existing row if another writer won the race."""
        pass

    @abstractmethod
    def update(self, entry: EmbeddingCacheEntry) -> EmbeddingCacheEntry:
        pass

    @abstractmethod
    def record_hit(self, text_hash: str, used_at: datetime) -> bool:
        """Atomically increment usage_count and set last_used_at.

        Returns:
            False if no entry exists for the hash
        """
        pass

    @abstractmethod
    def delete_stale(self, last_used_before: datetime, min_usage_count: int) -> int:
        """Delete entries unused since the cutoff with usage below the minimum."""
        pass

    @abstractmethod
    def statistics(self) -> EmbeddingCacheCounts:
        pass

    @abstractmethod
    def top_used(self, limit: int) -> List[EmbeddingCacheEntry]:
        pass

    @abstractmethod
    def usage_counts(self) -> Dict[int, int]:
        """Number of entries per usage_count value."""
        pass


class MerchantNotFoundError(Exception):
    """Referenced merchant id does not exist."""

    def __init__(self, merchant_id: UUID):
        super().__init__(f"Merchant not found: {merchant_id}")
        self.merchant_id = merchant_id


class DuplicateMerchantError(Exception):
    """A merchant with the same canonical display name already exists."""

    def __init__(self, display_name: str):
        super().__init__(f"Merchant already exists: {display_name}")
        self.display_name = display_name
