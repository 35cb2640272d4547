"""Merchant SQLAlchemy models.

Canonical merchants resolved from raw bank transaction descriptions, plus the
ordered alias list that grows as new surface forms are resolved to them.
"""

from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableVector, EMBEDDING_DIMENSIONS, utcnow


class Merchant(Base):
    """Canonical merchant entity.

    display_name holds the normalized canonical name. Case-insensitive
    uniqueness is enforced through display_name_key (upper-cased name) so two
    concurrent creations of the same merchant collide on a unique constraint
    instead of producing duplicate rows.

    Attributes:
        id: Primary key (UUID), immutable
        display_name: Normalized canonical name
        display_name_key: Upper-cased display_name (unique)
        category: Optional free-text classification
        embedding: Optional 1536-dim embedding of display_name
        created_at: Creation timestamp
        updated_at: Bumped on any mutation (alias, embedding, category)
    """
    __tablename__ = "merchant"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    display_name = Column(String(500), nullable=False)
    display_name_key = Column(String(500), nullable=False, unique=True, index=True)
    category = Column(Text, nullable=True)

    embedding = Column(PortableVector(EMBEDDING_DIMENSIONS), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    alias_entries = relationship(
        "MerchantAlias",
        order_by="MerchantAlias.position",
        cascade="all, delete-orphan",
        lazy="selectin",
        back_populates="merchant",
    )

    def __init__(
        self,
        display_name: str,
        category: Optional[str] = None,
        aliases: Optional[List[str]] = None,
        embedding: Optional[List[float]] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if self.id is None:
            self.id = uuid4()
        now = utcnow()
        if self.created_at is None:
            self.created_at = now
        if self.updated_at is None:
            self.updated_at = now
        self.display_name = display_name
        self.display_name_key = display_name.upper()
        self.category = category
        self.embedding = embedding
        for alias in aliases or []:
            self.add_alias(alias)

    @property
    def aliases(self) -> List[str]:
        """Alias strings in insertion order."""
        return [entry.alias for entry in self.alias_entries]

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None and len(self.embedding) > 0

    def add_alias(self, alias: str) -> bool:
        """Append an alias unless it is already known (case-insensitive).

        Returns:
            True if the alias was added
        """
        alias = alias.strip()
        if not alias:
            return False
        key = alias.upper()
        if any(entry.alias_key == key for entry in self.alias_entries):
            return False
        self.alias_entries.append(
            MerchantAlias(
                id=uuid4(),
                merchant_id=self.id,
                alias=alias,
                alias_key=key,
                position=len(self.alias_entries),
            )
        )
        self.touch()
        return True

    def set_embedding(self, embedding: List[float]) -> None:
        self.embedding = list(embedding)
        self.touch()

    def touch(self) -> None:
        """Bump updated_at after a mutation."""
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<Merchant(id={self.id}, display_name={self.display_name!r})>"


class MerchantAlias(Base):
    """Alternate raw string known to resolve to a merchant.

    alias_key is the upper-cased alias used for case-insensitive lookup.
    """
    __tablename__ = "merchant_alias"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    merchant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("merchant.id", ondelete="CASCADE"),
        nullable=False,
    )
    alias = Column(Text, nullable=False)
    alias_key = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    merchant = relationship("Merchant", back_populates="alias_entries")

    __table_args__ = (
        Index("idx_merchant_alias_key", "alias_key"),
        Index("idx_merchant_alias_unique", "merchant_id", "alias_key", unique=True),
    )

    def __repr__(self) -> str:
        return f"<MerchantAlias(merchant_id={self.merchant_id}, alias={self.alias!r})>"
