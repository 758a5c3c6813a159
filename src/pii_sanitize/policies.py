"""Replacement generator — one replacement string per entity and policy.

    redact  →  ***                 (fixed width; says nothing about length)
    pseudo  →  [PhoneNumber]       (category label, stable per category)
    hash    →  5f1c0d9e3a          (truncated SHA-256 of the snippet)

With a hash key configured, ``hash`` uses HMAC-SHA256 instead, so short
values (phone numbers, first names) can't be recovered by hashing a
dictionary of candidates.  Output stays deterministic for a given key.
"""

from __future__ import annotations
import hashlib
import hmac

from .errors import InvalidPolicy
from .types import Entity, Policy

REDACTED_MARKER = "***"
HASH_LENGTH = 10


def pseudonym(category: str) -> str:
    return f"[{category}]"


def digest(snippet: str, key: bytes | None = None) -> str:
    """Irreversible short hash of a snippet, keyed when ``key`` is given."""
    data = snippet.encode("utf-8", "surrogatepass")
    if key:
        return hmac.new(key, data, hashlib.sha256).hexdigest()[:HASH_LENGTH]
    return hashlib.sha256(data).hexdigest()[:HASH_LENGTH]


def replacement_for(
    entity: Entity,
    snippet: str,
    policy: Policy,
    *,
    hash_key: bytes | None = None,
) -> str:
    """Return the string that replaces ``snippet`` in the output text."""
    match policy:
        case Policy.REDACT:
            return REDACTED_MARKER
        case Policy.PSEUDO:
            return pseudonym(entity.category)
        case Policy.HASH:
            return digest(snippet, hash_key)
        case _:
            raise InvalidPolicy(f"Unknown policy {policy!r}")
