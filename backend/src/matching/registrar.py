"""Merchant registrar - idempotent canonical merchant creation and embedding backfill.

Duplicate creation is prevented in two layers:
- a per-normalized-name lock serializes creators within this process
- the unique display_name_key constraint catches creators in other processes;
  the loser re-reads the winner's row instead of failing
"""

import logging
import threading
import weakref
from typing import Optional
from uuid import UUID

from domain.ai.ports import EmbeddingProviderPort, EmbeddingError
from domain.merchants.normalization import TextNormalizer
from domain.merchants.ports import MerchantStorePort, DuplicateMerchantError, MerchantNotFoundError
from models.merchant import Merchant
from observability.correlation import correlation_scope
from observability.metrics import merchants_created_total
from services.embedding.embedding_cache import EmbeddingCache
from .ports import MerchantMatcherPort

logger = logging.getLogger(__name__)

DEFAULT_BACKFILL_BATCH_SIZE = 50


class _NameLocks:
    """Lock per normalized name; entries disappear once no thread holds them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


class MerchantRegistrar:
    """Create canonical merchants without duplicates and backfill embeddings.

    Example:
        registrar = MerchantRegistrar(store, matcher, cache, provider)
        merchant = registrar.create_or_get_merchant("SQ *BLUE BOTTLE 04/12", category="Coffee")
        registrar.create_or_get_merchant("BLUE BOTTLE").id == merchant.id  # True
    """

    def __init__(
        self,
        store: MerchantStorePort,
        matcher: MerchantMatcherPort,
        cache: EmbeddingCache,
        provider: EmbeddingProviderPort,
        normalizer: Optional[TextNormalizer] = None,
        backfill_batch_size: int = DEFAULT_BACKFILL_BATCH_SIZE,
    ):
        self.store = store
        self.matcher = matcher
        self.cache = cache
        self.provider = provider
        self.normalizer = normalizer or TextNormalizer()
        self.backfill_batch_size = backfill_batch_size
        self._name_locks = _NameLocks()

    def create_or_get_merchant(self, merchant_name: str, category: Optional[str] = None) -> Merchant:
        """Return the canonical merchant for a raw name, creating it if unknown.

        Args:
            merchant_name: Raw merchant string
            category: Category for a newly created merchant (ignored on match)

        Returns:
            Existing or newly created Merchant

        Raises:
            ValueError: merchant_name is empty after normalization
        """
        normalized = self.normalizer.normalize(merchant_name or "")
        if not normalized:
            raise ValueError("Merchant name cannot be empty")

        raw = merchant_name.strip()

        with correlation_scope():
            match = self.matcher.find_best_match(merchant_name)
            if match is not None:
                return match.merchant

            with self._name_locks.get(normalized.upper()):
                existing = self.store.find_by_exact_name(normalized)
                if existing is not None:
                    return existing

                merchant = Merchant(display_name=normalized, category=category, aliases=[raw])
                embedding = self._best_effort_embedding(normalized)
                if embedding is not None:
                    merchant.set_embedding(embedding)

                try:
                    created = self.store.insert(merchant)
                except DuplicateMerchantError:
                    existing = self.store.find_by_exact_name(normalized)
                    if existing is None:
                        raise
                    logger.info(
                        f"Merchant {normalized!r} was created concurrently, returning existing row",
                        extra={"merchant_id": existing.id},
                    )
                    return existing

            merchants_created_total.labels(with_embedding=str(created.has_embedding).lower()).inc()
            logger.info(
                f"Created merchant {created.display_name!r} from {raw!r}",
                extra={"merchant_id": created.id},
            )
            return created

    def generate_missing_embeddings(self) -> int:
        """Generate embeddings for up to one batch of merchants that lack them.

        One batched provider call per run; vectors are written back to the
        merchants and seeded into the embedding cache.

        Returns:
            Number of merchants updated (0 when none are missing)

        Raises:
            EmbeddingError: Provider failure (nothing is written)
        """
        merchants = self.store.list_missing_embeddings(self.backfill_batch_size)
        if not merchants:
            return 0

        texts = [merchant.display_name for merchant in merchants]

        try:
            results = self.provider.batch_embed_texts(texts)
        except EmbeddingError as e:
            logger.error(f"Batch embedding generation failed for {len(texts)} merchants: {e}")
            raise

        for merchant, result in zip(merchants, results):
            self.store.set_embedding(merchant.id, result.embedding)
            self.cache.put(merchant.display_name, result.embedding)

        logger.info(f"Generated embeddings for {len(merchants)} merchants", extra={"count": len(merchants)})
        return len(merchants)

    def update_merchant_embedding(self, merchant_id: UUID) -> Merchant:
        """Regenerate a merchant's embedding from its display name.

        Raises:
            MerchantNotFoundError: Unknown merchant id
            EmbeddingError: Provider failure
        """
        merchant = self.store.find_by_id(merchant_id)
        if merchant is None:
            raise MerchantNotFoundError(merchant_id)

        embedding = self.provider.embed_text(merchant.display_name).embedding
        self.cache.put(merchant.display_name, embedding)

        updated = self.store.set_embedding(merchant_id, embedding)
        if updated is None:
            raise MerchantNotFoundError(merchant_id)

        logger.info(
            f"Updated embedding for merchant {merchant.display_name!r}",
            extra={"merchant_id": merchant.id},
        )
        return updated

    def _best_effort_embedding(self, normalized: str):
        cached = self.cache.get(normalized)
        if cached is not None:
            return cached

        try:
            embedding = self.provider.embed_text(normalized).embedding
        except EmbeddingError as e:
            logger.warning(f"Creating merchant {normalized!r} without embedding: {e}")
            return None

        return self.cache.put(normalized, embedding)
