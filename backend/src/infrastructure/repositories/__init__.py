"""SQLAlchemy repositories implementing the merchant persistence ports"""

from .merchant_repository import SqlAlchemyMerchantStore
from .embedding_cache_repository import SqlAlchemyEmbeddingCacheRepository

__all__ = [
    "SqlAlchemyMerchantStore",
    "SqlAlchemyEmbeddingCacheRepository",
]
