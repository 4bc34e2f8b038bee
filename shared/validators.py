"""
Input validators - framework-agnostic, pure functions.
"""

from __future__ import annotations

import unicodedata

MIN_PASSWORD_LENGTH = 8


def validate_password_length(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> bool:
    """Return True if *password* has at least *min_length* characters."""
    return len(password) >= min_length


def fold_name(name: str) -> str:
    """Normalise a personal name for comparison.

    NFKC-normalises, strips surrounding whitespace, then applies
    ``str.casefold()`` so ``"Straße"`` and ``"STRASSE"`` compare equal.
    """
    return unicodedata.normalize("NFKC", name).strip().casefold()


def names_match(stored: str, claimed: str) -> bool:
    """Compare a stored name with a claimed one under :func:`fold_name`."""
    return fold_name(stored) == fold_name(claimed)
