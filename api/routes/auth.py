"""
api/routes/auth.py -- Signup, signin, signout and refresh endpoints.

Routes:
  POST /auth/signup   -- create account; returns a token pair (201)
  POST /auth/signin   -- password signin; returns a token pair
  GET  /auth/signout  -- access token required; clears the session (204, always)
  GET  /auth/refresh  -- refresh token required; rotates the token pair
  GET  /auth/me       -- access token required; identity carried by the token

Security:
  POST /signup and /signin are rate-limited per IP (AUTH_RATE_LIMIT).
  Unknown username and wrong password produce the same client error.
  Cache-Control: no-store on every response that carries tokens.
  AuthError subclasses raised by AuthService are rendered by the exception
  handler in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter
from api.models import MeResponse, SigninRequest, SignupRequest, TokenPairResponse
from auth.dependencies import require_access_token, require_refresh_token
from auth.models import AuthenticatedIdentity
from auth.service import AuthService
from core.config import get_settings

_settings = get_settings()

# Auth policy:
# - POST /auth/signup:   public
# - POST /auth/signin:   public
# - GET  /auth/signout:  requires access token (require_access_token)
# - GET  /auth/refresh:  requires refresh token (require_refresh_token)
# - GET  /auth/me:       requires access token (require_access_token)
router = APIRouter()


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.auth_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/signup", response_model=TokenPairResponse, status_code=201)
def signup(request: Request, response: Response, body: SignupRequest) -> TokenPairResponse:
    """Create an account and start its first session."""
    service: AuthService = request.app.state.auth_service
    pair = service.signup(body.username, body.password)
    _no_store(response)
    return TokenPairResponse.from_pair(pair)


@limiter.limit(_settings.auth_rate_limit)
@router.post("/auth/signin", response_model=TokenPairResponse)
def signin(request: Request, response: Response, body: SigninRequest) -> TokenPairResponse:
    """Authenticate with username and password.

    Replaces any active session for the account, so a refresh token issued by
    an earlier signin stops working.
    """
    service: AuthService = request.app.state.auth_service
    pair = service.signin(body.username, body.password)
    _no_store(response)
    return TokenPairResponse.from_pair(pair)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/signout", status_code=204)
def signout(request: Request, identity: AuthenticatedIdentity = Depends(require_access_token)) -> Response:
    """End the session. Succeeds whether or not a session was active."""
    service: AuthService = request.app.state.auth_service
    service.signout(identity.subject)
    return Response(status_code=204)


@router.get("/auth/refresh", response_model=TokenPairResponse)
def refresh(
    request: Request,
    response: Response,
    identity: AuthenticatedIdentity = Depends(require_refresh_token),
) -> TokenPairResponse:
    """Exchange the current refresh token for a brand-new token pair.

    GET because there is no body; the refresh token travels in the
    Authorization header. The presented token is unusable afterwards.
    """
    service: AuthService = request.app.state.auth_service
    pair = service.refresh(identity.subject, identity.raw_token)
    _no_store(response)
    return TokenPairResponse.from_pair(pair)


@router.get("/auth/me", response_model=MeResponse)
async def me(identity: AuthenticatedIdentity = Depends(require_access_token)) -> MeResponse:
    """Return identity information for the presented access token."""
    return MeResponse(user_id=identity.subject, username=identity.username)
