"""Embedding Provider Port - Abstract interface for embedding providers.

Hexagonal Architecture: This is a domain port that infrastructure adapters implement.
Merchant matching depends on this port, not on concrete implementations (OpenAI, local models, etc).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class EmbeddingResult:
    """Result from embedding generation call.

    Contains embedding vector and metadata for logging/tracking.

    Attributes:
        embedding: Vector embedding (list of floats, 1536-dim for text-embedding-3-small)
        model: Model name (e.g., 'text-embedding-3-small')
        dimension: Embedding dimension (e.g., 1536)
        tokens: Number of tokens used
        cost_micros: Cost in micros (1 micro = 1/1,000,000 USD)
    """
    embedding: list[float]
    model: str
    dimension: int
    tokens: int
    cost_micros: int


class EmbeddingProviderPort(ABC):
    """Abstract interface for embedding providers.

    Implementations must handle:
    - API authentication
    - Request timeouts (calls must fail closed, never hang the match pipeline)
    - Response parsing
    - Error mapping onto the EmbeddingError hierarchy
    - Token/cost tracking

    Provider calls are cost-bearing. Callers consult the embedding cache first
    and only reach the provider on a cache miss.

    Example Usage:
        provider = OpenAIEmbeddingAdapter()
        result = provider.embed_text("UBER EATS")
        # result.embedding is list[float] of length 1536
    """

    @abstractmethod
    def embed_text(self, text: str) -> EmbeddingResult:
        """Generate embedding vector for one text.

        Args:
            text: Normalized merchant text

        Returns:
            EmbeddingResult with vector and metadata

        Raises:
            ValueError: Text is empty
            EmbeddingTimeoutError: Request timed out
            EmbeddingRateLimitError: Rate limit or quota exceeded
            EmbeddingAuthError: Authentication failed
            EmbeddingServiceError: Provider service unavailable
            EmbeddingInvalidResponseError: Provider returned invalid response
        """
        pass

    @abstractmethod
    def batch_embed_texts(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts in one round trip.

        Args:
            texts: Ordered list of texts to embed

        Returns:
            List of EmbeddingResult, one per input text (same order)

        Raises:
            Same as embed_text. If any text fails, the entire batch fails.
        """
        pass


class EmbeddingError(Exception):
    """Base exception for embedding operations"""
    pass


class EmbeddingTimeoutError(EmbeddingError):
    """Embedding request timed out"""
    pass


class EmbeddingRateLimitError(EmbeddingError):
    """Rate limit or quota exceeded"""
    pass


class EmbeddingAuthError(EmbeddingError):
    """Authentication failed"""
    pass


class EmbeddingServiceError(EmbeddingError):
    """Provider service unavailable or returned error"""
    pass


class EmbeddingInvalidResponseError(EmbeddingError):
    """Provider returned invalid/unexpected response"""
    pass
