"""Pytest fixtures for merchant resolution tests.

Provides reusable test fixtures for:
- In-memory SQLite database with a fresh schema per test
- SQLAlchemy merchant store and embedding cache repositories
- Deterministic fake embedding provider (no network, call counting)
- Fully wired matcher, registrar and MerchantService

Usage:
    def test_exact_match(merchant_service, merchant_store):
        merchant_store.insert(Merchant(display_name="STARBUCKS"))
        assert merchant_service.find_best_match("STARBUCKS").match_method.value == "exact"
"""

import sys
import os
import threading
from pathlib import Path
from typing import Dict, Generator, List, Optional

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings
from database import build_session_factory
from domain.ai.ports import EmbeddingProviderPort, EmbeddingResult
from infrastructure.repositories import SqlAlchemyMerchantStore, SqlAlchemyEmbeddingCacheRepository
from matching.registrar import MerchantRegistrar
from matching.service import MerchantService
from matching.tiered_matcher import TieredMerchantMatcher
from models.base import Base
from services.embedding.embedding_cache import EmbeddingCache, MemoryEmbeddingTier

# Small vectors keep fixtures readable; nothing below depends on 1536 dims
TEST_DIMENSIONS = 32


def vec(*head: float) -> List[float]:
    """Build a TEST_DIMENSIONS vector from its leading components (rest zero)."""
    values = [float(v) for v in head]
    return values + [0.0] * (TEST_DIMENSIONS - len(values))


class FakeEmbeddingProvider(EmbeddingProviderPort):
    """Deterministic in-process embedding provider.

    Texts listed in `vectors` get that vector. Any other text gets its own
    basis vector counted down from the last dimension, so distinct unknown
    texts are orthogonal to each other and to vectors built with vec().

    Set `error` to an EmbeddingError instance to make every call fail.
    """

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None):
        self.vectors: Dict[str, List[float]] = dict(vectors or {})
        self.calls: List[str] = []
        self.batch_calls: List[List[str]] = []
        self.error: Optional[Exception] = None
        self._basis: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _vector_for(self, text: str) -> List[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        index = self._basis.setdefault(text, TEST_DIMENSIONS - 1 - len(self._basis))
        vector = [0.0] * TEST_DIMENSIONS
        vector[index] = 1.0
        return vector

    def _result(self, text: str) -> EmbeddingResult:
        embedding = self._vector_for(text)
        return EmbeddingResult(
            embedding=embedding,
            model="fake-embedding",
            dimension=len(embedding),
            tokens=len(text.split()),
            cost_micros=0,
        )

    def embed_text(self, text: str) -> EmbeddingResult:
        with self._lock:
            self.calls.append(text)
            if self.error is not None:
                raise self.error
            return self._result(text)

    def batch_embed_texts(self, texts: list[str]) -> list[EmbeddingResult]:
        with self._lock:
            self.batch_calls.append(list(texts))
            if self.error is not None:
                raise self.error
            return [self._result(text) for text in texts]


@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared across threads; schema created per test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: Engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture(scope="function")
def merchant_store(session_factory) -> SqlAlchemyMerchantStore:
    return SqlAlchemyMerchantStore(session_factory)


@pytest.fixture(scope="function")
def cache_repository(session_factory) -> SqlAlchemyEmbeddingCacheRepository:
    return SqlAlchemyEmbeddingCacheRepository(session_factory)


@pytest.fixture(scope="function")
def embedding_cache(cache_repository) -> EmbeddingCache:
    return EmbeddingCache(cache_repository, MemoryEmbeddingTier(ttl_seconds=3600))


@pytest.fixture(scope="function")
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture(scope="function")
def matcher(merchant_store, embedding_cache, fake_provider) -> TieredMerchantMatcher:
    return TieredMerchantMatcher(merchant_store, embedding_cache, fake_provider)


@pytest.fixture(scope="function")
def registrar(merchant_store, matcher, embedding_cache, fake_provider) -> MerchantRegistrar:
    return MerchantRegistrar(merchant_store, matcher, embedding_cache, fake_provider)


@pytest.fixture(scope="function")
def merchant_service(merchant_store, matcher, registrar) -> MerchantService:
    return MerchantService(merchant_store, matcher, registrar)


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", OPENAI_API_KEY="test-key", LOG_JSON=False)
