"""Observability module for merchant resolution.

Provides structured logging, correlation IDs and Prometheus metrics.
"""

from .logging_config import configure_logging, get_logger, JSONFormatter
from .correlation import (
    correlation_id_var,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from .metrics import (
    merchant_matches_total,
    merchant_match_misses_total,
    merchant_match_duration_seconds,
    merchant_match_score,
    merchants_created_total,
    embedding_cache_lookups_total,
    embedding_provider_calls_total,
    embedding_provider_texts_total,
    embedding_provider_cost_micros_total,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "JSONFormatter",
    # Correlation ID
    "correlation_id_var",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    # Metrics
    "merchant_matches_total",
    "merchant_match_misses_total",
    "merchant_match_duration_seconds",
    "merchant_match_score",
    "merchants_created_total",
    "embedding_cache_lookups_total",
    "embedding_provider_calls_total",
    "embedding_provider_texts_total",
    "embedding_provider_cost_micros_total",
]
