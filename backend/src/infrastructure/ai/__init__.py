"""AI Infrastructure - Adapters for embedding providers.

This module contains concrete implementations of AI domain ports.
"""

from .openai_embeddings import OpenAIEmbeddingAdapter

__all__ = [
    "OpenAIEmbeddingAdapter",
]
