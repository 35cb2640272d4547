"""Merchant repository for database operations"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from database import session_scope
from domain.merchants.ports import (
    MerchantStorePort,
    MerchantCounts,
    DuplicateMerchantError,
    MerchantNotFoundError,
)
from models.base import utcnow
from models.merchant import Merchant, MerchantAlias

logger = logging.getLogger(__name__)


class SqlAlchemyMerchantStore(MerchantStorePort):
    """SQLAlchemy implementation of MerchantStorePort.

    Every call runs in its own short-lived session, so one instance can be
    shared by concurrent callers. Returned merchants are detached with their
    aliases loaded.

    Listing order is (created_at, display_name_key); the matcher relies on it
    as the tie-break between equally scored merchants.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy session factory (expire_on_commit=False)
        """
        self.session_factory = session_factory

    def _ordered(self):
        return select(Merchant).order_by(Merchant.created_at, Merchant.display_name_key)

    def find_by_exact_name(self, name: str) -> Optional[Merchant]:
        if not name:
            return None
        with session_scope(self.session_factory) as session:
            query = select(Merchant).where(Merchant.display_name_key == name.upper())
            return session.execute(query).scalars().first()

    def find_by_alias(self, name: str) -> Optional[Merchant]:
        if not name:
            return None
        with session_scope(self.session_factory) as session:
            query = (
                self._ordered()
                .join(MerchantAlias, MerchantAlias.merchant_id == Merchant.id)
                .where(MerchantAlias.alias_key == name.upper())
                .limit(1)
            )
            return session.execute(query).scalars().first()

    def find_by_id(self, merchant_id: UUID) -> Optional[Merchant]:
        with session_scope(self.session_factory) as session:
            return session.get(Merchant, merchant_id)

    def list_all(self) -> List[Merchant]:
        with session_scope(self.session_factory) as session:
            return list(session.execute(self._ordered()).scalars().all())

    def list_with_embeddings(self) -> List[Merchant]:
        with session_scope(self.session_factory) as session:
            query = self._ordered().where(Merchant.embedding.isnot(None))
            return [m for m in session.execute(query).scalars().all() if m.has_embedding]

    def list_missing_embeddings(self, limit: int) -> List[Merchant]:
        with session_scope(self.session_factory) as session:
            query = self._ordered().where(Merchant.embedding.is_(None)).limit(limit)
            return list(session.execute(query).scalars().all())

    def insert(self, merchant: Merchant) -> Merchant:
        """Persist a new merchant.

        Raises:
            DuplicateMerchantError: display_name_key already taken
        """
        try:
            with session_scope(self.session_factory) as session:
                session.add(merchant)
                session.flush()
        except IntegrityError as e:
            logger.info(
                f"Merchant insert conflicted on display name {merchant.display_name!r}",
                extra={"merchant_id": merchant.id},
            )
            raise DuplicateMerchantError(merchant.display_name) from e

        return merchant

    def add_alias(self, merchant_id: UUID, alias: str) -> Optional[Merchant]:
        """Append one alias row to the current merchant row.

        Only the new merchant_alias row and updated_at are written, so
        concurrent alias additions never remove each other's rows. An alias
        that is already present (including one inserted concurrently) is a
        no-op.

        Returns:
            The reloaded merchant, or None if the id is unknown
        """
        try:
            with session_scope(self.session_factory) as session:
                merchant = session.get(Merchant, merchant_id)
                if merchant is None:
                    return None
                merchant.add_alias(alias)
        except IntegrityError:
            logger.debug(
                f"Alias {alias!r} was recorded concurrently",
                extra={"merchant_id": merchant_id},
            )

        return self.find_by_id(merchant_id)

    def set_embedding(self, merchant_id: UUID, embedding: List[float]) -> Optional[Merchant]:
        """Overwrite a merchant's embedding without touching its aliases.

        Returns:
            The reloaded merchant, or None if the id is unknown
        """
        with session_scope(self.session_factory) as session:
            result = session.execute(
                update(Merchant)
                .where(Merchant.id == merchant_id)
                .values(embedding=list(embedding), updated_at=utcnow())
            )
            if result.rowcount == 0:
                return None

        return self.find_by_id(merchant_id)

    def update(self, merchant: Merchant) -> Merchant:
        """Apply a detached merchant's changes onto the current row.

        The row is reloaded first and changes are applied additively: aliases
        missing from the row are appended, an embedding is written only when
        the merchant carries one, and category only when set. A stale copy
        can therefore never drop aliases or clear a stored embedding.

        Raises:
            MerchantNotFoundError: The merchant row does not exist
        """
        with session_scope(self.session_factory) as session:
            current = session.get(Merchant, merchant.id)
            if current is None:
                raise MerchantNotFoundError(merchant.id)

            for alias in merchant.aliases:
                current.add_alias(alias)
            if merchant.has_embedding:
                current.set_embedding(merchant.embedding)
            if merchant.category is not None and merchant.category != current.category:
                current.category = merchant.category
                current.touch()

        return self.find_by_id(merchant.id)

    def count_statistics(self) -> MerchantCounts:
        with session_scope(self.session_factory) as session:
            total = session.execute(select(func.count(Merchant.id))).scalar_one()
            with_embeddings = session.execute(
                select(func.count(Merchant.id)).where(Merchant.embedding.isnot(None))
            ).scalar_one()

        return MerchantCounts(
            total_merchants=total,
            with_embeddings=with_embeddings,
            without_embeddings=total - with_embeddings,
        )
