"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). The store, the token
module and the service do the work; these classes only own the shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TokenKind(str, Enum):
    """Discriminates the two token flows. Each kind has its own signing secret."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass
class User:
    """A registered account as persisted by UserStore.

    hashed_password is an Argon2id hash and is never empty for a stored user.
    hashed_refresh_token is the Argon2id hash of the one refresh token that is
    currently valid for this account, or None when the account is signed out.
    """

    username: str
    hashed_password: str
    id: int | None = None
    hashed_refresh_token: str | None = None  # None = no active session
    created_at: str | None = None

    @property
    def has_active_session(self) -> bool:
        return bool(self.hashed_refresh_token)


@dataclass(frozen=True)
class TokenPair:
    """An access/refresh token pair. Returned once to the client, never stored."""

    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenPayload:
    """Verified claims recovered from a signed token."""

    subject: int
    username: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    token_id: str


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """What a guard hands to the route after a bearer token verified.

    raw_token is only set by the refresh-token guard: the refresh flow has to
    compare the presented token against the stored hash.
    """

    subject: int
    username: str
    raw_token: str | None = None
