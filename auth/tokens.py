"""
auth/tokens.py -- JWT issue and verification for access and refresh tokens.

Security design decisions:
  JWT: python-jose with HS256. Every token carries sub (user id as a string,
       as RFC 7519 requires), username, typ (token kind), iat, exp, and a random
       jti. The jti makes two tokens issued within the same second for the same
       user distinct strings, which rotation depends on.

  Two secrets: access tokens are signed with JWT_ACCESS_SECRET and refresh
       tokens with JWT_REFRESH_SECRET. verify_token() selects the secret from
       the expected kind and additionally checks the typ claim, so a token of
       one kind never verifies as the other.

  Failures: verify_token() raises TokenInvalid on any failure (bad signature,
       malformed, expired, missing claims, wrong kind). The guards in
       auth/dependencies.py turn that into a 401.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import TokenInvalid
from auth.models import TokenKind, TokenPair, TokenPayload, User
from core.config import get_settings

logger = logging.getLogger("bucketlist.auth.tokens")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

_SIGNING_KEYS: dict[TokenKind, str] = {
    TokenKind.ACCESS: _settings.jwt_access_secret,
    TokenKind.REFRESH: _settings.jwt_refresh_secret,
}

_DEFAULT_TTLS: dict[TokenKind, timedelta] = {
    TokenKind.ACCESS: timedelta(seconds=_settings.access_token_expire_seconds),
    TokenKind.REFRESH: timedelta(seconds=_settings.refresh_token_expire_seconds),
}


# ---------------------------------------------------------------------------
# Issue
# ---------------------------------------------------------------------------


def issue_token(user: User, kind: TokenKind, ttl: timedelta | None = None) -> str:
    """Encode a signed JWT for user.

    Args:
        user: A persisted user (id must be set).
        kind: Selects the signing secret and the typ claim.
        ttl:  Lifetime. Defaults to the configured lifetime for kind.
    """
    if user.id is None:
        raise ValueError("Cannot issue a token for an unsaved user.")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "typ": kind.value,
        "iat": now,
        "exp": now + (ttl if ttl is not None else _DEFAULT_TTLS[kind]),
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, _SIGNING_KEYS[kind], algorithm=_ALGORITHM)


def issue_token_pair(user: User) -> TokenPair:
    """Issue an access token and a refresh token for user.

    Any signing failure propagates, so callers get both tokens or an exception.
    """
    return TokenPair(
        access_token=issue_token(user, TokenKind.ACCESS),
        refresh_token=issue_token(user, TokenKind.REFRESH),
    )


# ---------------------------------------------------------------------------
# Verify
# ---------------------------------------------------------------------------


def verify_token(token: str | None, kind: TokenKind) -> TokenPayload:
    """Verify signature, expiry and kind of token. Raises TokenInvalid on failure."""
    if not token:
        raise TokenInvalid("missing bearer token")
    try:
        claims = jwt.decode(token, _SIGNING_KEYS[kind], algorithms=[_ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected %s token: %s", kind.value, exc)
        raise TokenInvalid(f"{kind.value} token failed verification") from exc

    if claims.get("typ") != kind.value:
        raise TokenInvalid(f"expected {kind.value} token, got {claims.get('typ')!r}")
    try:
        return TokenPayload(
            subject=int(claims["sub"]),
            username=str(claims["username"]),
            kind=kind,
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            token_id=str(claims["jti"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenInvalid(f"{kind.value} token is missing required claims") from exc
