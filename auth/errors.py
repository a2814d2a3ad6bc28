"""
auth/errors.py -- Exception taxonomy for authentication failures.

Every failure is a policy rejection, not a transient fault: each class carries
the HTTP status and the client-facing error code/message that api/main.py
renders into the shared ErrorResponse envelope. None of them are retryable.

Username enumeration: AccountNotFound subclasses InvalidCredentials and shares
its code and message, so clients see one "bad_credentials" error for both an
unknown username and a wrong password. Logs still see the concrete class.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all authentication failures."""

    code: str = "auth_error"
    status_code: int = 400
    message: str = "Authentication failed."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        # Internal detail for logs; never sent to clients.
        self.detail = detail


class DuplicateAccount(AuthError):
    code = "duplicate_account"
    status_code = 400
    message = "An account with that username already exists."


class InvalidCredentials(AuthError):
    code = "bad_credentials"
    status_code = 400
    message = "Invalid username or password."


class AccountNotFound(InvalidCredentials):
    pass


class NoActiveSession(AuthError):
    code = "no_active_session"
    status_code = 403
    message = "No active session. Sign in again."


class TokenMismatch(AuthError):
    code = "token_mismatch"
    status_code = 403
    message = "Refresh token is no longer valid. Sign in again."


class TokenInvalid(AuthError):
    """Bad signature, malformed, expired, missing, or wrong-kind bearer token."""

    code = "unauthorized"
    status_code = 401
    message = "Authentication required."
