"""Composition root for merchant resolution.

Wires settings, database, repositories, embedding cache, provider, matcher and
registrar into a MerchantService. Callers build one service per process and
share it across threads.

Example:
    from config import get_settings
    from dependencies import build_merchant_service
    from observability import configure_logging

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    service = build_merchant_service()
    merchant = service.create_or_get_merchant("POS STARBUCKS #2291 SEATTLE WA")
"""

from typing import Optional

from sqlalchemy.orm import sessionmaker

from config import Settings, get_settings
from database import build_engine, build_session_factory
from domain.ai.ports import EmbeddingProviderPort
from domain.merchants.normalization import TextNormalizer
from domain.merchants.string_similarity import StringSimilarityScorer
from infrastructure.ai.openai_embeddings import OpenAIEmbeddingAdapter
from infrastructure.repositories import SqlAlchemyMerchantStore, SqlAlchemyEmbeddingCacheRepository
from matching.registrar import MerchantRegistrar
from matching.service import MerchantService
from matching.tiered_matcher import TieredMerchantMatcher
from retention.schemas import CacheRetentionSettings
from retention.service import EmbeddingCacheRetentionService
from services.embedding.embedding_cache import EmbeddingCache, MemoryEmbeddingTier


def build_embedding_cache(session_factory: sessionmaker, settings: Optional[Settings] = None) -> EmbeddingCache:
    settings = settings or get_settings()
    return EmbeddingCache(
        SqlAlchemyEmbeddingCacheRepository(session_factory),
        MemoryEmbeddingTier(
            ttl_seconds=settings.EMBEDDING_MEMORY_CACHE_TTL_SECONDS,
            max_entries=settings.EMBEDDING_MEMORY_CACHE_MAX_ENTRIES,
        ),
    )


def build_merchant_service(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    provider: Optional[EmbeddingProviderPort] = None,
    cache: Optional[EmbeddingCache] = None,
) -> MerchantService:
    """Build a fully wired MerchantService.

    Args:
        settings: Settings (defaults to get_settings())
        session_factory: Session factory (defaults to one built from DATABASE_URL)
        provider: Embedding provider (defaults to OpenAIEmbeddingAdapter)
        cache: Embedding cache (defaults to a memory + database cache)

    Returns:
        MerchantService ready for concurrent use
    """
    settings = settings or get_settings()
    if session_factory is None:
        session_factory = build_session_factory(build_engine(settings.DATABASE_URL))
    if provider is None:
        provider = OpenAIEmbeddingAdapter(
            api_key=settings.OPENAI_API_KEY,
            model=settings.EMBEDDING_MODEL,
            timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
            dimensions=settings.EMBEDDING_DIMENSIONS,
        )
    if cache is None:
        cache = build_embedding_cache(session_factory, settings)

    store = SqlAlchemyMerchantStore(session_factory)
    normalizer = TextNormalizer()

    matcher = TieredMerchantMatcher(
        store=store,
        cache=cache,
        provider=provider,
        normalizer=normalizer,
        scorer=StringSimilarityScorer(),
        fuzzy_threshold=settings.FUZZY_SIMILARITY_THRESHOLD,
    )
    registrar = MerchantRegistrar(
        store=store,
        matcher=matcher,
        cache=cache,
        provider=provider,
        normalizer=normalizer,
        backfill_batch_size=settings.EMBEDDING_BACKFILL_BATCH_SIZE,
    )

    return MerchantService(
        store=store,
        matcher=matcher,
        registrar=registrar,
        default_similarity_threshold=settings.MATCH_SIMILARITY_THRESHOLD,
    )


def build_retention_service(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
) -> EmbeddingCacheRetentionService:
    settings = settings or get_settings()
    if session_factory is None:
        session_factory = build_session_factory(build_engine(settings.DATABASE_URL))

    return EmbeddingCacheRetentionService(
        SqlAlchemyEmbeddingCacheRepository(session_factory),
        SqlAlchemyMerchantStore(session_factory),
        CacheRetentionSettings(
            max_age_days=settings.CACHE_RETENTION_MAX_AGE_DAYS,
            min_usage_count=settings.CACHE_RETENTION_MIN_USAGE_COUNT,
        ),
    )
