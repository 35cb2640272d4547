"""Embedding Text Utilities - Cache keys and provider input preparation.

The cache key is derived from the upper-cased normalized text so surface-case
differences of the same merchant share one cached embedding.
"""

import hashlib


def calculate_text_hash(text: str) -> str:
    """Calculate SHA256 hash of normalized text for cache lookup.

    Args:
        text: Normalized merchant text

    Returns:
        SHA256 hex digest (64 characters) of the upper-cased text

    Example:
        >>> calculate_text_hash("uber eats") == calculate_text_hash("UBER EATS")
        True
    """
    return hashlib.sha256(text.upper().encode('utf-8')).hexdigest()


def truncate_text_for_embedding(text: str, max_tokens: int = 8191) -> str:
    """Truncate text to fit within token limit.

    OpenAI text-embedding-3-small has 8191 token limit.
    Rough approximation: 1 token ≈ 4 characters.

    Args:
        text: Text to truncate
        max_tokens: Maximum tokens (default: 8191 for OpenAI)

    Returns:
        Truncated text
    """
    max_chars = max_tokens * 4

    if len(text) <= max_chars:
        return text

    return text[:max_chars - 3] + "..."
