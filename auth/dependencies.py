"""
auth/dependencies.py -- FastAPI Depends() guards for bearer tokens.

Both guards read "Authorization: Bearer <token>" and call verify_token() with
the kind they protect. They differ only in the kind (which selects the secret)
and in whether the raw token is carried into the AuthenticatedIdentity:

  require_access_token()  -- ordinary protected routes (signout, me).
  require_refresh_token() -- GET /auth/refresh only; keeps the raw token so the
                             service can compare it against the stored hash.

Any failure is an HTTP 401 with the same structured detail the rest of the API
uses. The identity is returned to the route, which passes it explicitly into
AuthService calls.

auth/dependencies.py may import from fastapi because this module is part of
the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import TokenInvalid
from auth.models import AuthenticatedIdentity, TokenKind
from auth.tokens import verify_token


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def _authenticate(request: Request, kind: TokenKind) -> AuthenticatedIdentity:
    raw = _bearer_token(request)
    try:
        payload = verify_token(raw, kind)
    except TokenInvalid as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"code": exc.code, "message": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    return AuthenticatedIdentity(
        subject=payload.subject,
        username=payload.username,
        raw_token=raw if kind is TokenKind.REFRESH else None,
    )


def require_access_token(request: Request) -> AuthenticatedIdentity:
    """Require a valid access token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: AuthenticatedIdentity = Depends(require_access_token)): ...
    """
    return _authenticate(request, TokenKind.ACCESS)


def require_refresh_token(request: Request) -> AuthenticatedIdentity:
    """Require a valid refresh token. Raises HTTP 401 otherwise."""
    return _authenticate(request, TokenKind.REFRESH)
