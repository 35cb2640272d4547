"""Merchant name normalization.

Turns a noisy bank transaction description into the key used for matching,
caching and as the canonical display name of newly created merchants.

Example:
    >>> normalize_merchant_name("SQ *UBER EATS 09/12 #4471 CA")
    'UBER EATS'
"""

import logging
import re

logger = logging.getLogger(__name__)


class TextNormalizer:
    """Deterministic, stateless merchant name normalizer.

    Steps (applied to the upper-cased, trimmed input, in order):
    1. Strip transaction processor prefixes (PURCHASE, POS, DEBIT, CREDIT, ATM)
    2. Strip legal entity suffixes (INC, LLC, CORP, CO, LTD, LIMITED)
    3. Remove reference numbers (4+ digits)
    4. Remove dates (D/D, D/D/YY, D/D/YYYY)
    5. Remove #<digits> transaction id markers
    6. Remove trailing ZIP code and trailing 2-letter state code
    7. Strip payment aggregator markers (SQ *, SP *, PP *, PAYPAL *)
    8. Collapse whitespace
    9. Fall back to the trimmed input if fewer than 2 characters remain
    """

    PROCESSOR_PREFIX = re.compile(r"^(?:PURCHASE|POS|DEBIT|CREDIT|ATM)\s+")
    LEGAL_SUFFIX = re.compile(r"\s+(?:INC|LLC|CORP|CO|LTD|LIMITED)\.?$")
    # Digits after "#" belong to step 5, digits after "/" to the date step
    REFERENCE_NUMBER = re.compile(r"(?<![#/])\b\d{4,}(?:-\d{4})?\b")
    DATE = re.compile(r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b")
    TRANSACTION_ID = re.compile(r"#\d+")
    TRAILING_ZIP = re.compile(r"\b\d{5}(?:-\d{4})?\s*$")
    TRAILING_STATE = re.compile(r"\b[A-Z]{2}\s*$")
    AGGREGATOR_PREFIX = re.compile(r"^\s*(?:SQ|SP|PP|PAYPAL)\s*\*\s*")
    WHITESPACE = re.compile(r"\s+")

    MIN_LENGTH = 2

    def normalize(self, raw: str) -> str:
        """Normalize a raw merchant string.

        Args:
            raw: Merchant text as extracted from the bank transaction

        Returns:
            Normalized key, or "" for empty/whitespace-only input
        """
        if not raw or not raw.strip():
            return ""

        original = raw.strip()
        text = original.upper()

        text = self.PROCESSOR_PREFIX.sub("", text)
        text = self.LEGAL_SUFFIX.sub("", text)
        text = self.REFERENCE_NUMBER.sub("", text)
        text = self.DATE.sub("", text)
        text = self.TRANSACTION_ID.sub("", text)
        text = self.TRAILING_ZIP.sub("", text)
        text = self.TRAILING_STATE.sub("", text)
        text = self.AGGREGATOR_PREFIX.sub("", text)
        text = self.WHITESPACE.sub(" ", text).strip()

        if len(text) < self.MIN_LENGTH:
            # Never destroy all signal
            text = original

        logger.debug("Normalized %r -> %r", raw, text)
        return text


_default_normalizer = TextNormalizer()


def normalize_merchant_name(raw: str) -> str:
    """Normalize a raw merchant string with the default normalizer."""
    return _default_normalizer.normalize(raw)
