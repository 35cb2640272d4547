"""Merchant matching module.

Resolves raw bank transaction merchant strings to canonical merchants:
- String tier: exact name, abbreviation mapping, alias, fuzzy (Levenshtein)
- Cached-embedding tier: cosine search with a previously embedded vector
- New-embedding tier: provider call, cached for reuse
- Registrar: duplicate-free creation and embedding backfill
"""

from .ports import MerchantMatcherPort, DEFAULT_SIMILARITY_THRESHOLD
from .tiered_matcher import TieredMerchantMatcher
from .registrar import MerchantRegistrar
from .service import MerchantService

__all__ = [
    "MerchantMatcherPort",
    "DEFAULT_SIMILARITY_THRESHOLD",
    "TieredMerchantMatcher",
    "MerchantRegistrar",
    "MerchantService",
]
