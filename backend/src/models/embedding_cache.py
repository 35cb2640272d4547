"""EmbeddingCacheEntry Model - Persistent tier of the embedding cache.

Caches embedding vectors keyed by the hash of normalized merchant text so a
paid embedding call is made at most once per distinct string.
"""

from uuid import uuid4

from sqlalchemy import Column, String, Text, Integer, DateTime, Index, Uuid

from .base import Base, PortableVector, EMBEDDING_DIMENSIONS, utcnow


class EmbeddingCacheEntry(Base):
    """Cached embedding vector for a normalized text.

    The cache indexes text, not merchants: entries need not correspond 1:1 with
    Merchant rows.

    Attributes:
        id: Primary key (UUID)
        text_hash: SHA256 hex of the upper-cased normalized text (unique)
        normalized_text: Text that was embedded (diagnostics)
        embedding: Cached vector
        usage_count: Incremented on every cache hit, starts at 1
        created_at: Creation timestamp
        last_used_at: Updated on every cache hit

    Indexes:
        - UNIQUE(text_hash): at most one entry per distinct text
        - (last_used_at, usage_count): retention scans
    """

    __tablename__ = "embedding_cache"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    text_hash = Column(String(64), nullable=False)  # SHA256 hex = 64 chars
    normalized_text = Column(Text, nullable=False)

    embedding = Column(PortableVector(EMBEDDING_DIMENSIONS), nullable=False)

    usage_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_embedding_cache_text_hash", "text_hash", unique=True),
        Index("idx_embedding_cache_retention", "last_used_at", "usage_count"),
    )

    def __repr__(self) -> str:
        return (
            f"<EmbeddingCacheEntry(text_hash={self.text_hash[:12]}..., "
            f"usage_count={self.usage_count})>"
        )
