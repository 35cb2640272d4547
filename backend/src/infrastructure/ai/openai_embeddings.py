"""OpenAI Embedding Adapter - Implementation of EmbeddingProviderPort using OpenAI API.

This adapter embeds normalized merchant names with text-embedding-3-small (1536 dimensions).

Architecture: Hexagonal - Infrastructure adapter implementing domain port
"""

import logging
import time
from typing import Optional

from openai import OpenAI, APIError, APITimeoutError, RateLimitError, AuthenticationError

from config import get_settings
from domain.ai.ports import (
    EmbeddingProviderPort,
    EmbeddingResult,
    EmbeddingError,
    EmbeddingTimeoutError,
    EmbeddingRateLimitError,
    EmbeddingAuthError,
    EmbeddingServiceError,
    EmbeddingInvalidResponseError,
)
from observability.metrics import (
    embedding_provider_calls_total,
    embedding_provider_texts_total,
    embedding_provider_cost_micros_total,
)
from services.embedding.text_generator import truncate_text_for_embedding

logger = logging.getLogger(__name__)

# OpenAI batch limit per request
MAX_BATCH_SIZE = 2048


class OpenAIEmbeddingAdapter(EmbeddingProviderPort):
    """OpenAI implementation of EmbeddingProviderPort.

    Configuration (settings / environment variables):
        OPENAI_API_KEY: OpenAI API key (required)
        EMBEDDING_MODEL: Model name (default: text-embedding-3-small)
        EMBEDDING_TIMEOUT_SECONDS: Request timeout (default: 30)
        EMBEDDING_DIMENSIONS: Requested vector size (default: 1536)

    Pricing (as of 2025):
        text-embedding-3-small: $0.020 per 1M tokens

    Example Usage:
        adapter = OpenAIEmbeddingAdapter()
        result = adapter.embed_text("UBER EATS")
        # result.embedding is list[float] of length 1536
        # result.cost_micros is cost in micros
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        dimensions: Optional[int] = None,
        client: Optional[OpenAI] = None,
    ):
        """Initialize OpenAI embedding adapter.

        Args:
            api_key: OpenAI API key (defaults to settings.OPENAI_API_KEY)
            model: Embedding model (defaults to settings.EMBEDDING_MODEL)
            timeout: Request timeout in seconds (defaults to settings.EMBEDDING_TIMEOUT_SECONDS)
            dimensions: Output vector size requested from the API (defaults to
                settings.EMBEDDING_DIMENSIONS, must match the vector columns)
            client: Preconfigured OpenAI client (tests)

        Raises:
            EmbeddingAuthError: If no API key is configured
        """
        settings = get_settings()
        self.model = model or settings.EMBEDDING_MODEL
        self.timeout = timeout if timeout is not None else settings.EMBEDDING_TIMEOUT_SECONDS
        self.dimensions = dimensions or settings.EMBEDDING_DIMENSIONS

        if client is not None:
            self.client = client
            return

        self.api_key = api_key or settings.OPENAI_API_KEY
        if not self.api_key:
            raise EmbeddingAuthError("OPENAI_API_KEY not provided and not found in environment")

        self.client = OpenAI(api_key=self.api_key, timeout=self.timeout)

    def embed_text(self, text: str) -> EmbeddingResult:
        """Generate embedding vector for text using OpenAI API.

        Overlong text is truncated to the model's token limit.

        Raises:
            ValueError: If text is empty
            EmbeddingError: Subclass matching the OpenAI failure
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        start_time = time.time()

        try:
            response = self._create(truncate_text_for_embedding(text))

            if not response.data:
                raise EmbeddingInvalidResponseError("No embedding returned from API")

            embedding = list(response.data[0].embedding)
            tokens = response.usage.total_tokens if response.usage else 0
            cost_micros = self._calculate_cost_micros(tokens)

        except Exception as e:
            embedding_provider_calls_total.labels(operation="single", status="error").inc()
            raise self._map_error(e) from e

        self._record_success("single", 1, tokens, cost_micros, start_time)

        return EmbeddingResult(
            embedding=embedding,
            model=self.model,
            dimension=len(embedding),
            tokens=tokens,
            cost_micros=cost_micros,
        )

    def batch_embed_texts(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts in one request.

        Results follow input order (the API response is re-sorted by index).
        Overlong texts are truncated to the model's token limit. Tokens and cost
        are split evenly across results.

        Raises:
            ValueError: If texts is empty, contains empty strings or exceeds 2048 items
            EmbeddingError: Subclass matching the OpenAI failure
        """
        if not texts:
            raise ValueError("Texts list cannot be empty")

        if any(not t or not t.strip() for t in texts):
            raise ValueError("All texts must be non-empty")

        if len(texts) > MAX_BATCH_SIZE:
            raise ValueError(f"Batch size exceeds OpenAI limit of {MAX_BATCH_SIZE} texts")

        start_time = time.time()

        try:
            response = self._create([truncate_text_for_embedding(t) for t in texts])

            if not response.data or len(response.data) != len(texts):
                raise EmbeddingInvalidResponseError(
                    f"Expected {len(texts)} embeddings, got {len(response.data) if response.data else 0}"
                )

            sorted_data = sorted(response.data, key=lambda x: x.index)
            total_tokens = response.usage.total_tokens if response.usage else 0
            total_cost_micros = self._calculate_cost_micros(total_tokens)

        except Exception as e:
            embedding_provider_calls_total.labels(operation="batch", status="error").inc()
            raise self._map_error(e) from e

        self._record_success("batch", len(texts), total_tokens, total_cost_micros, start_time)

        tokens_per_text = total_tokens // len(texts)
        cost_per_text = total_cost_micros // len(texts)

        return [
            EmbeddingResult(
                embedding=list(data.embedding),
                model=self.model,
                dimension=len(data.embedding),
                tokens=tokens_per_text,
                cost_micros=cost_per_text,
            )
            for data in sorted_data
        ]

    def _create(self, payload):
        return self.client.embeddings.create(
            model=self.model,
            input=payload,
            dimensions=self.dimensions,
        )

    def _record_success(
        self,
        operation: str,
        count: int,
        tokens: int,
        cost_micros: int,
        start_time: float,
    ) -> None:
        latency_ms = int((time.time() - start_time) * 1000)

        embedding_provider_calls_total.labels(operation=operation, status="success").inc()
        embedding_provider_texts_total.inc(count)
        embedding_provider_cost_micros_total.inc(cost_micros)

        logger.info(
            f"Generated {count} embedding(s) with {self.model}: "
            f"{tokens} tokens, ${cost_micros / 1_000_000:.6f}, {latency_ms}ms",
            extra={"count": count, "cost_micros": cost_micros},
        )

    def _calculate_cost_micros(self, tokens: int) -> int:
        cost_per_million = self._get_cost_per_million_tokens(self.model)
        return int((tokens / 1_000_000) * cost_per_million * 1_000_000)

    @staticmethod
    def _map_error(error: Exception) -> EmbeddingError:
        """Translate an OpenAI SDK exception into the EmbeddingError hierarchy."""
        if isinstance(error, EmbeddingError):
            return error
        if isinstance(error, AuthenticationError):
            return EmbeddingAuthError(f"OpenAI authentication failed: {error}")
        if isinstance(error, RateLimitError):
            return EmbeddingRateLimitError(f"OpenAI rate limit exceeded: {error}")
        if isinstance(error, APITimeoutError):
            return EmbeddingTimeoutError(f"OpenAI request timed out: {error}")
        if isinstance(error, APIError):
            return EmbeddingServiceError(f"OpenAI API error: {error}")
        return EmbeddingInvalidResponseError(f"Unexpected error from OpenAI: {error}")

    def _get_cost_per_million_tokens(self, model: str) -> float:
        """Get cost per million tokens for a given model.

        Notes:
            Pricing as of January 2025:
            - text-embedding-3-small: $0.020 per 1M tokens
            - text-embedding-3-large: $0.130 per 1M tokens
            - text-embedding-ada-002: $0.100 per 1M tokens (legacy)
        """
        pricing = {
            "text-embedding-3-small": 0.020,
            "text-embedding-3-large": 0.130,
            "text-embedding-ada-002": 0.100,
        }

        return pricing.get(model, 0.020)  # Default to small model pricing
