"""
auth/service.py -- Signup, signin, signout and refresh-token rotation.

Per-account lifecycle:

    no account --signup--> active session
    any        --signin--> active session   (previous refresh token dies)
    active     --refresh-> active session   (token just used dies)
    any        --signout-> no session       (idempotent)

Guards at the HTTP boundary have already verified signature and expiry of
the bearer token before signout() and refresh() are called; this module only
enforces the stored-session half of the contract.

Timing equalization: signin() always runs one Argon2 verification, against a
dummy hash when the username does not exist, so response time does not reveal
whether an account exists.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import AccountNotFound, AuthError, DuplicateAccount, InvalidCredentials
from auth.hashing import DUMMY_HASH, hash_secret, verify_secret
from auth.models import TokenPair, User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import issue_token_pair

logger = logging.getLogger("bucketlist.auth")


class AuthService:
    """Composes hashing, token issuance and the session store.

    Usage:
        service = AuthService(UserStore())
        pair = service.signup("alice", "Secret123!")
    """

    def __init__(self, users: UserStore, sessions: SessionStore | None = None) -> None:
        self.users = users
        self.sessions = sessions or SessionStore(users)

    def signup(self, username: str, password: str) -> TokenPair:
        if self.users.get_by_username(username) is not None:
            logger.info("Signup rejected: username %r already taken", username)
            raise DuplicateAccount(f"username {username!r} exists")
        try:
            user = self.users.create_user(username, hash_secret(password))
        except IntegrityError as exc:
            # A concurrent signup inserted the same username first.
            logger.info("Signup rejected: username %r created concurrently", username)
            raise DuplicateAccount(f"username {username!r} exists") from exc
        logger.info("Signup user_id=%s", user.id)
        return self._start_session(user)

    def signin(self, username: str, password: str) -> TokenPair:
        user = self.users.get_by_username(username)
        if user is None:
            verify_secret(DUMMY_HASH, password)
            logger.info("Signin failed: unknown username %r", username)
            raise AccountNotFound(f"no user named {username!r}")
        if not verify_secret(user.hashed_password, password):
            logger.info("Signin failed: wrong password for user_id=%s", user.id)
            raise InvalidCredentials(f"wrong password for user_id={user.id}")
        logger.info("Signin user_id=%s", user.id)
        return self._start_session(user)

    def signout(self, user_id: int) -> None:
        self.sessions.clear(user_id)
        logger.info("Signout user_id=%s", user_id)

    def refresh(self, user_id: int, refresh_token: str) -> TokenPair:
        try:
            user = self.sessions.validate(user_id, refresh_token)
        except AuthError as exc:
            logger.warning("Refresh rejected for user_id=%s: %s", user_id, type(exc).__name__)
            raise
        logger.info("Refresh user_id=%s", user_id)
        return self._start_session(user)

    def _start_session(self, user: User) -> TokenPair:
        pair = issue_token_pair(user)
        self.sessions.activate(user.id, pair.refresh_token)
        return pair
