"""
Identity helpers.

An identity is an email-like address. It is compared case-insensitively,
so every store keys on the normalized form.
"""

import hashlib
import re

IDENTITY_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_identity(value: str) -> str:
    """Canonical form used as the join key across all stores."""
    return value.strip().lower()


def is_valid_identity(value: str | None) -> bool:
    """Format check: non-empty local part, ``@``, dotted domain, no spaces."""
    if not value:
        return False
    return IDENTITY_PATTERN.match(value.strip()) is not None


def fingerprint_credential(credential: str) -> str:
    """SHA-256 of a credential; lets an auditor match a token without storing it."""
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()
