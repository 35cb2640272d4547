"""String similarity scoring and known merchant abbreviations.

Levenshtein-based similarity used by the fuzzy string tier, plus the static
abbreviation table used by the mapping tier (AMZN -> AMAZON).
"""

import re
from typing import Dict, List, Optional

from rapidfuzz.distance import Levenshtein

# Abbreviation -> canonical name. Order matters: the first contained key wins.
COMMON_MAPPINGS: Dict[str, str] = {
    # Financial
    "AMZN": "AMAZON",
    "PYPL": "PAYPAL",
    "SQ": "SQUARE",
    "VENMO": "PAYPAL",
    # Food & Dining
    "MCD": "MCDONALDS",
    "SBUX": "STARBUCKS",
    "DQ": "DAIRY QUEEN",
    "KFC": "KENTUCKY FRIED CHICKEN",
    "BK": "BURGER KING",
    # Retail
    "TGT": "TARGET",
    "WMT": "WALMART",
    "HD": "HOME DEPOT",
    "LOWES": "LOWE'S",
    # Gas Stations
    "BP": "BRITISH PETROLEUM",
    "EXXON": "EXXONMOBIL",
    "CHEVRON": "CHEVRON",
    # Technology
    "GOOG": "GOOGLE",
    "MSFT": "MICROSOFT",
    "AAPL": "APPLE",
    "NFLX": "NETFLIX",
    # Transportation
    "UBER": "UBER",
    "LYFT": "LYFT",
    # Utilities
    "ATT": "AT&T",
    "VZ": "VERIZON",
    "CMCSA": "COMCAST",
}

# Partial (substring) lookups ignore keys shorter than this
MIN_PARTIAL_KEY_LENGTH = 3

# Substring containment counts as similar when shorter >= 60% of longer
CONTAINMENT_RATIO = 0.6

_SEPARATORS = re.compile(r"[\s\-_]")
_FILLER_WORDS = re.compile(r"\b(?:THE|AND|CO|CORP|INC|LLC|LTD|COMPANY|STORE|SHOP)\b")
_WORD_SPLIT = re.compile(r"[\s\-_]+")


class StringSimilarityScorer:
    """Edit-distance similarity between normalized merchant strings."""

    def __init__(self, mappings: Optional[Dict[str, str]] = None):
        """Initialize scorer.

        Args:
            mappings: Abbreviation table (defaults to COMMON_MAPPINGS)
        """
        self.mappings = dict(COMMON_MAPPINGS if mappings is None else mappings)

    @staticmethod
    def distance(a: str, b: str) -> int:
        """Levenshtein edit distance (unit cost insert/delete/substitute)."""
        return Levenshtein.distance(a or "", b or "")

    def similarity(self, a: str, b: str) -> float:
        """Normalized similarity in [0, 1].

        Returns 1.0 for two empty strings and 0.0 when exactly one is empty.
        """
        if not a and not b:
            return 1.0
        if not a or not b:
            return 0.0
        return 1.0 - self.distance(a, b) / max(len(a), len(b))

    def are_similar(self, a: str, b: str, threshold: float = 0.8) -> bool:
        """Check whether two merchant strings likely name the same merchant.

        True on any of:
        - case-insensitive equality
        - equality after dropping spaces, hyphens and underscores
        - similarity >= threshold
        - containment (both >= 3 chars) where the shorter is >= 60% of the longer
        """
        if not a or not b:
            return False

        upper_a, upper_b = a.upper(), b.upper()
        if upper_a == upper_b:
            return True

        if _SEPARATORS.sub("", upper_a) == _SEPARATORS.sub("", upper_b):
            return True

        if self.similarity(upper_a, upper_b) >= threshold:
            return True

        if len(a) >= MIN_PARTIAL_KEY_LENGTH and len(b) >= MIN_PARTIAL_KEY_LENGTH:
            longer, shorter = (upper_a, upper_b) if len(a) > len(b) else (upper_b, upper_a)
            if shorter in longer and len(shorter) >= len(longer) * CONTAINMENT_RATIO:
                return True

        return False

    def try_resolve_mapping(self, text: str) -> Optional[str]:
        """Resolve a known abbreviation to its canonical merchant name.

        Exact key lookup first, then the first key of 3+ characters contained
        in the text (table order).

        Returns:
            Canonical name, or None if nothing matches
        """
        if not text:
            return None

        clean = text.strip().upper()

        direct = self.mappings.get(clean)
        if direct is not None:
            return direct

        for key, canonical in self.mappings.items():
            if len(key) >= MIN_PARTIAL_KEY_LENGTH and key in clean:
                return canonical

        return None


def generate_variations(merchant_name: str) -> List[str]:
    """Generate common variations of a merchant name.

    Returns the name itself, the name without filler words, the acronym of a
    multi-word name and the name without separators; duplicates removed,
    order preserved.

    Example:
        >>> generate_variations("The Home Depot")
        ['The Home Depot', 'HOME DEPOT', 'THD', 'THEHOMEDEPOT']
    """
    variations = [merchant_name]
    upper = merchant_name.upper()

    without_filler = re.sub(r"\s+", " ", _FILLER_WORDS.sub("", upper)).strip()
    if without_filler and without_filler != upper:
        variations.append(without_filler)

    words = [w for w in _WORD_SPLIT.split(upper) if w]
    if len(words) > 1:
        acronym = "".join(w[0] for w in words)
        if len(acronym) >= 2:
            variations.append(acronym)

    no_separators = _SEPARATORS.sub("", upper)
    if no_separators != upper:
        variations.append(no_separators)

    return list(dict.fromkeys(variations))
