"""Prometheus metrics for merchant resolution.

Defines operational metrics for match quality, cache efficiency and
embedding provider cost.
"""

from prometheus_client import Counter, Histogram

# Matching metrics
merchant_matches_total = Counter(
    "merchant_matches_total",
    "Total merchant matches by method",
    ["method"]  # exact|mapping|alias|fuzzy|embedding-cached|embedding-generated
)

merchant_match_misses_total = Counter(
    "merchant_match_misses_total",
    "Total merchant lookups that found no match"
)

merchant_match_duration_seconds = Histogram(
    "merchant_match_duration_seconds",
    "Time spent resolving a merchant string in seconds",
    ["tier"],  # tier: string|embedding_cached|embedding_generated|none
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

merchant_match_score = Histogram(
    "merchant_match_score",
    "Similarity score distribution of accepted matches",
    buckets=[0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
)

merchants_created_total = Counter(
    "merchants_created_total",
    "Total canonical merchants created",
    ["with_embedding"]  # true|false
)

# Embedding cache metrics
embedding_cache_lookups_total = Counter(
    "embedding_cache_lookups_total",
    "Embedding cache lookups",
    ["tier", "result"]  # tier: memory|persistent, result: hit|miss
)

# Embedding provider metrics
embedding_provider_calls_total = Counter(
    "embedding_provider_calls_total",
    "Total embedding provider calls",
    ["operation", "status"]  # operation: single|batch, status: success|error
)

embedding_provider_texts_total = Counter(
    "embedding_provider_texts_total",
    "Total texts sent to the embedding provider"
)

embedding_provider_cost_micros_total = Counter(
    "embedding_provider_cost_micros_total",
    "Total embedding cost in micros (1 micro = 0.000001 USD)"
)
