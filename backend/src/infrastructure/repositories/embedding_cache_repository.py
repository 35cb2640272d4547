"""Embedding cache repository for database operations"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from database import session_scope
from domain.merchants.ports import EmbeddingCachePersistencePort, EmbeddingCacheCounts
from models.embedding_cache import EmbeddingCacheEntry

logger = logging.getLogger(__name__)


class SqlAlchemyEmbeddingCacheRepository(EmbeddingCachePersistencePort):
    """SQLAlchemy implementation of the persistent embedding cache tier.

    Usage counting is done with a single UPDATE ... SET usage_count =
    usage_count + 1 so concurrent hits are never lost.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find_by_hash(self, text_hash: str) -> Optional[EmbeddingCacheEntry]:
        with session_scope(self.session_factory) as session:
            query = select(EmbeddingCacheEntry).where(EmbeddingCacheEntry.text_hash == text_hash)
            return session.execute(query).scalars().first()

    def insert(self, entry: EmbeddingCacheEntry) -> EmbeddingCacheEntry:
        """Insert an entry; on a text_hash conflict return the existing row."""
        try:
            with session_scope(self.session_factory) as session:
                session.add(entry)
                session.flush()
            return entry
        except IntegrityError:
            existing = self.find_by_hash(entry.text_hash)
            if existing is None:
                raise
            logger.debug(
                "Embedding cache entry already present",
                extra={"text_hash": entry.text_hash},
            )
            return existing

    def update(self, entry: EmbeddingCacheEntry) -> EmbeddingCacheEntry:
        with session_scope(self.session_factory) as session:
            merged = session.merge(entry)
        return merged

    def record_hit(self, text_hash: str, used_at: datetime) -> bool:
        with session_scope(self.session_factory) as session:
            result = session.execute(
                update(EmbeddingCacheEntry)
                .where(EmbeddingCacheEntry.text_hash == text_hash)
                .values(
                    usage_count=EmbeddingCacheEntry.usage_count + 1,
                    last_used_at=used_at,
                )
            )
            return result.rowcount > 0

    def delete_stale(self, last_used_before: datetime, min_usage_count: int) -> int:
        with session_scope(self.session_factory) as session:
            result = session.execute(
                delete(EmbeddingCacheEntry).where(
                    and_(
                        EmbeddingCacheEntry.last_used_at < last_used_before,
                        EmbeddingCacheEntry.usage_count < min_usage_count,
                    )
                )
            )
            return result.rowcount

    def statistics(self) -> EmbeddingCacheCounts:
        with session_scope(self.session_factory) as session:
            row = session.execute(
                select(
                    func.count(EmbeddingCacheEntry.id),
                    func.coalesce(func.sum(EmbeddingCacheEntry.usage_count), 0),
                    func.min(EmbeddingCacheEntry.created_at),
                    func.max(EmbeddingCacheEntry.created_at),
                )
            ).one()

        total_cached, total_usage, oldest, newest = row
        total_usage = int(total_usage)
        return EmbeddingCacheCounts(
            total_cached=total_cached,
            total_usage=total_usage,
            avg_usage=(total_usage / total_cached) if total_cached else 0.0,
            oldest_entry=oldest,
            newest_entry=newest,
        )

    def top_used(self, limit: int) -> List[EmbeddingCacheEntry]:
        with session_scope(self.session_factory) as session:
            query = (
                select(EmbeddingCacheEntry)
                .order_by(
                    EmbeddingCacheEntry.usage_count.desc(),
                    EmbeddingCacheEntry.last_used_at.desc(),
                )
                .limit(limit)
            )
            return list(session.execute(query).scalars().all())

    def usage_counts(self) -> Dict[int, int]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(EmbeddingCacheEntry.usage_count, func.count(EmbeddingCacheEntry.id))
                .group_by(EmbeddingCacheEntry.usage_count)
            ).all()
        return {int(usage): int(count) for usage, count in rows}
