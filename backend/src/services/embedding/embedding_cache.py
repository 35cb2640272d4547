"""Embedding Cache - Two-tier cache of embedding vectors keyed by text hash.

Memory tier: process-local, TTL-bounded, lock-guarded dict.
Persistent tier: EmbeddingCachePersistencePort (source of truth).

A hit in either tier bumps the persistent entry's usage_count and
last_used_at; retention relies on both.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, List, Optional, Tuple

from domain.merchants.ports import EmbeddingCachePersistencePort
from models.base import utcnow
from models.embedding_cache import EmbeddingCacheEntry
from observability.metrics import embedding_cache_lookups_total
from .text_generator import calculate_text_hash

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_TTL_SECONDS = 3600
DEFAULT_MEMORY_MAX_ENTRIES = 10_000


class MemoryEmbeddingTier:
    """Process-local TTL cache of text_hash -> embedding.

    Entries expire after ttl_seconds. When max_entries is reached the
    oldest-inserted entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_MEMORY_TTL_SECONDS,
        max_entries: int = DEFAULT_MEMORY_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[List[float], float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, text_hash: str) -> Optional[List[float]]:
        with self._lock:
            item = self._entries.get(text_hash)
            if item is None:
                return None
            embedding, expires_at = item
            if expires_at <= self._clock():
                del self._entries[text_hash]
                return None
            return list(embedding)

    def set(self, text_hash: str, embedding: List[float]) -> None:
        with self._lock:
            self._entries.pop(text_hash, None)
            while self.max_entries > 0 and len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
            self._entries[text_hash] = (list(embedding), self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EmbeddingCache:
    """Embedding lookup across the memory and persistent tiers.

    Example:
        cache = EmbeddingCache(SqlAlchemyEmbeddingCacheRepository(session_factory))
        embedding = cache.get("UBER EATS")
        if embedding is None:
            embedding = provider.embed_text("UBER EATS").embedding
            cache.put("UBER EATS", embedding)
    """

    def __init__(
        self,
        persistence: EmbeddingCachePersistencePort,
        memory_tier: Optional[MemoryEmbeddingTier] = None,
    ):
        self.persistence = persistence
        self.memory = memory_tier or MemoryEmbeddingTier()

    def get(self, text: str) -> Optional[List[float]]:
        """Look up the cached embedding for a normalized text.

        Args:
            text: Normalized merchant text

        Returns:
            Embedding vector, or None on a miss in both tiers
        """
        if not text:
            return None

        text_hash = calculate_text_hash(text)

        embedding = self.memory.get(text_hash)
        if embedding is not None:
            embedding_cache_lookups_total.labels(tier="memory", result="hit").inc()
            self.persistence.record_hit(text_hash, utcnow())
            logger.debug(
                "Embedding cache hit (memory)",
                extra={"text_hash": text_hash, "tier": "memory"},
            )
            return embedding
        embedding_cache_lookups_total.labels(tier="memory", result="miss").inc()

        entry = self.persistence.find_by_hash(text_hash)
        if entry is None:
            embedding_cache_lookups_total.labels(tier="persistent", result="miss").inc()
            logger.debug("Embedding cache miss", extra={"text_hash": text_hash})
            return None

        embedding_cache_lookups_total.labels(tier="persistent", result="hit").inc()
        self.persistence.record_hit(text_hash, utcnow())
        self.memory.set(text_hash, entry.embedding)
        logger.debug(
            "Embedding cache hit (persistent)",
            extra={"text_hash": text_hash, "tier": "persistent"},
        )
        return list(entry.embedding)

    def put(self, text: str, embedding: List[float]) -> List[float]:
        """Store an embedding for a normalized text in both tiers.

        If another writer already stored an entry for the same text, that
        entry is kept and its vector is returned.

        Returns:
            The vector now stored for the text
        """
        text_hash = calculate_text_hash(text)
        now = utcnow()

        stored = self.persistence.insert(
            EmbeddingCacheEntry(
                text_hash=text_hash,
                normalized_text=text,
                embedding=list(embedding),
                usage_count=1,
                created_at=now,
                last_used_at=now,
            )
        )
        self.memory.set(text_hash, stored.embedding)

        logger.debug("Embedding cached", extra={"text_hash": text_hash})
        return list(stored.embedding)

    def clear_memory(self) -> None:
        """Drop the memory tier; the persistent tier is untouched."""
        self.memory.clear()
