"""
auth/sessions.py -- The single active refresh session per account.

A session is nothing more than users.hashed_refresh_token: non-NULL means the
account has exactly one valid refresh token (the one whose hash is stored),
NULL means signed out. Activating overwrites, so every signin or refresh
invalidates whatever refresh token was issued before.
"""

from __future__ import annotations

from auth.errors import NoActiveSession, TokenMismatch
from auth.hashing import hash_secret, verify_secret
from auth.models import User
from auth.store import UserStore


class SessionStore:
    def __init__(self, users: UserStore) -> None:
        self.users = users

    def activate(self, user_id: int, refresh_token: str) -> None:
        """Store the hash of refresh_token as the account's only valid session."""
        self.users.set_refresh_token_hash(user_id, hash_secret(refresh_token))

    def clear(self, user_id: int) -> None:
        """Write an explicit NULL. Safe to call when no session is active."""
        self.users.set_refresh_token_hash(user_id, None)

    def validate(self, user_id: int, presented: str) -> User:
        """Return the user if presented is the current refresh token.

        Raises NoActiveSession when the account is signed out (or gone) and
        TokenMismatch when a different token is current, which is what a
        replayed, already-rotated token looks like.
        """
        user = self.users.get_by_id(user_id)
        if user is None or not user.has_active_session:
            raise NoActiveSession(f"user_id={user_id} has no stored refresh token")
        if not verify_secret(user.hashed_refresh_token, presented):
            raise TokenMismatch(f"user_id={user_id} presented a stale refresh token")
        return user
