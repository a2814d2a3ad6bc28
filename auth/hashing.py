"""
auth/hashing.py -- One-way hashing for passwords and refresh tokens.

Argon2id via argon2-cffi. Argon2id is memory-hard, so GPU brute-force of a
leaked users table is expensive, and the salt and cost parameters are encoded
into the hash string itself -- verification needs nothing but the stored value.

The same hasher covers both credential types. Refresh tokens are high-entropy,
but storing them the same way as passwords means a database dump contains no
usable session.

Cost parameters come from Settings so tests can run with a cheap profile.
"""

from __future__ import annotations

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from core.config import get_settings

_settings = get_settings()

_hasher = PasswordHasher(
    time_cost=_settings.hash_time_cost,
    memory_cost=_settings.hash_memory_cost,
    parallelism=_settings.hash_parallelism,
    type=Type.ID,
)


def hash_secret(plain: str) -> str:
    """Return an encoded Argon2id hash (``$argon2id$v=19$...``) of plain."""
    return _hasher.hash(plain)


def verify_secret(hashed: str | None, plain: str) -> bool:
    """Return True if plain matches hashed.

    False (never an exception) for a missing hash, a mismatch, or a value that
    is not an Argon2 hash at all. Callers that must tell "no credential" apart
    from "wrong credential" check for None before calling.
    """
    if not hashed:
        return False
    try:
        return _hasher.verify(hashed, plain)
    except (VerificationError, InvalidHashError):
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first signin attempt is not measurably
# slower than later ones. The service verifies against it when the username
# does not exist, so both failure paths pay one Argon2 verification.
DUMMY_HASH: str = hash_secret("bucketlist_timing_dummy")
