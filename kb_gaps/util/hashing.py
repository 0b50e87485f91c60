"""
Stable hashing helpers.
"""

import hashlib


def sha256_string(content: str) -> str:
    """Compute SHA256 hash of a string."""
    return hashlib.sha256(content.encode()).hexdigest()


def stable_fraction(content: str) -> float:
    """Map a string to a reproducible value in [0, 1)."""
    return int(sha256_string(content)[:8], 16) / 0x100000000
