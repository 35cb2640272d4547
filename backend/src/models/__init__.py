"""SQLAlchemy Models for merchant resolution"""

from .base import Base, PortableVector, EMBEDDING_DIMENSIONS
from .merchant import Merchant, MerchantAlias
from .embedding_cache import EmbeddingCacheEntry

__all__ = [
    "Base",
    "PortableVector",
    "EMBEDDING_DIMENSIONS",
    "Merchant",
    "MerchantAlias",
    "EmbeddingCacheEntry",
]
