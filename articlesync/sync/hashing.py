"""
Content fingerprinting for cheap change detection.

Two algorithms are available:

- ``simple`` (default): a 32-bit rolling hash, ``h = h * 31 + unit``, over the
  UTF-16 code units of the text.  The result is rendered as signed lowercase
  hex ("-1b2c" for negatives), which is exactly the fingerprint the browser
  editor computes, so client-side and server-side hashes of the same text
  compare equal.
- ``sha256``: SHA-256 hex digest.  Collision resistant; use it when the hash
  is relied on for more than "did this text change".

Both are deterministic and unsalted: identical text always yields the
identical fingerprint, across processes and releases.

Exports: compute_content_hash, simple_hash, content_changed, verify_content_hash
"""

from __future__ import annotations

import hashlib
from array import array

from articlesync.config import settings

_UINT32_MASK = 0xFFFFFFFF


def simple_hash(content: str) -> str:
    """Return the 32-bit rolling fingerprint of *content* as signed hex.

    Example:
        >>> simple_hash("")
        '0'
        >>> simple_hash("a")
        '61'
    """
    units = array("H")
    units.frombytes(content.encode("utf-16-le"))

    h = 0
    for unit in units:
        h = (h * 31 + unit) & _UINT32_MASK

    if h & 0x80000000:
        h -= 1 << 32
    return format(h, "x")


def _sha256_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


_ALGORITHMS = {
    "simple": simple_hash,
    "sha256": _sha256_hash,
}


def compute_content_hash(content: str, algorithm: str | None = None) -> str:
    """Fingerprint *content* with the configured algorithm.

    Args:
        content:   Document text.
        algorithm: "simple" or "sha256"; defaults to
                   settings.content_hash_algorithm.

    Raises:
        ValueError: If the algorithm name is unknown.
    """
    name = algorithm or settings.content_hash_algorithm
    try:
        hasher = _ALGORITHMS[name]
    except KeyError:
        raise ValueError(f"Unknown content hash algorithm: {name!r}") from None
    return hasher(content)


def content_changed(old_content: str, new_content: str, algorithm: str | None = None) -> bool:
    """Return True if the two texts fingerprint differently."""
    return compute_content_hash(old_content, algorithm) != compute_content_hash(
        new_content, algorithm
    )


def verify_content_hash(content: str, stored_hash: str | None, algorithm: str | None = None) -> bool:
    """Return True if *content* still matches *stored_hash*.

    A missing stored hash never verifies.
    """
    if stored_hash is None:
        return False
    return compute_content_hash(content, algorithm) == stored_hash
