"""Vector Search Service - Cosine similarity over merchant embeddings.

Nearest-merchant search used by the embedding tiers and by similar-merchant
ranking. Merchants without an embedding are skipped.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from models.merchant import Merchant


def cosine_similarity(
    vector1: Optional[Sequence[float]],
    vector2: Optional[Sequence[float]],
) -> float:
    """Cosine similarity dot(u, v) / (|u| * |v|).

    Returns:
        Similarity in [-1.0, 1.0]; 0.0 if either vector is missing, empty,
        zero-norm, or the dimensions differ
    """
    if vector1 is None or vector2 is None:
        return 0.0

    a = np.asarray(vector1, dtype=np.float64)
    b = np.asarray(vector2, dtype=np.float64)

    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def find_most_similar_merchant(
    query_vector: Sequence[float],
    merchants: Iterable[Merchant],
) -> Optional[Tuple[Merchant, float]]:
    """Find the merchant whose embedding is closest to the query vector.

    Ties are broken by iteration order (first merchant reaching the maximum wins).

    Returns:
        (merchant, similarity) or None if no merchant has an embedding
    """
    best: Optional[Tuple[Merchant, float]] = None

    for merchant in merchants:
        if not merchant.has_embedding:
            continue
        score = cosine_similarity(query_vector, merchant.embedding)
        if best is None or score > best[1]:
            best = (merchant, score)

    return best


def rank_merchants_by_similarity(
    query_vector: Sequence[float],
    merchants: Iterable[Merchant],
    limit: int = 10,
    min_similarity: float = 0.0,
) -> List[Tuple[Merchant, float]]:
    """Rank merchants by cosine similarity to the query vector.

    Returns:
        Up to `limit` (merchant, similarity) tuples with similarity >= min_similarity,
        sorted by similarity descending (stable for equal scores)
    """
    scored = [
        (merchant, cosine_similarity(query_vector, merchant.embedding))
        for merchant in merchants
        if merchant.has_embedding
    ]

    filtered = [item for item in scored if item[1] >= min_similarity]
    filtered.sort(key=lambda item: item[1], reverse=True)

    return filtered[:max(limit, 0)]
