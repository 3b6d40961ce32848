"""
Text utilities for product codes.

Supplier documents and the catalog disagree on separators ("A8 CWH66-1500DWM"
vs "CWH661500DWM"), so comparisons go through a normalized key.
"""

import re
from typing import Optional

# Characters ignored when comparing codes
CODE_SEPARATORS = re.compile(r"[\s\-_.]+")


def normalize_code(code: Optional[str]) -> str:
    """
    Normalize a product code for matching.

    Lower-cases and removes whitespace, '-', '_' and '.':
    - "A8 CWH66-1500DWM" → "a8cwh661500dwm"
    - "k_100.b" → "k100b"

    Idempotent: normalize_code(normalize_code(x)) == normalize_code(x).

    Args:
        code: Raw code (may be None)

    Returns:
        Normalized key ("" for empty input)
    """
    if not code:
        return ""
    return CODE_SEPARATORS.sub("", code).lower()


def split_code_tokens(code: Optional[str]) -> list[str]:
    """
    Split a code on separators into lower-cased tokens.

    "A8 CWH66-1500DWM" → ["a8", "cwh66", "1500dwm"]
    """
    if not code:
        return []
    return [t for t in CODE_SEPARATORS.split(code.lower()) if t]


def clean_text(value: Optional[str], max_length: int = 2000) -> Optional[str]:
    """
    Clean extracted cell/line text for storage.

    - Collapses internal whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only strings
    """
    if not value:
        return None

    value = " ".join(value.split())

    if not value:
        return None

    if len(value) > max_length:
        value = value[:max_length]

    return value


def address_initials(address: str) -> str:
    """
    First letter of each word of an address, letters only.

    "12 Ocean View Rd" → "OVR"
    """
    initials = (word[0].upper() for word in address.strip().split() if word)
    return "".join(c for c in initials if "A" <= c <= "Z")
