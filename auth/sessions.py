"""
auth/sessions.py -- Login, refresh, revoke and request authorization flows.

SessionManager composes the pieces:

  login      passwords.authenticate_user -> tokens.make_jwt + make_refresh_token
             -> store.create_refresh_token
  authorize  headers.get_bearer_token -> tokens.validate_jwt -> user UUID
  refresh    headers.get_bearer_token -> store.get_refresh_token
             -> validity check -> tokens.make_jwt
  revoke     headers.get_bearer_token -> store.revoke_refresh_token

Session lineage: Unauthenticated -> Authenticated(access, refresh)
-> Refreshed(access') ... -> Revoked (terminal for the refresh token).

Known trade-offs, kept on purpose:
  - Refresh tokens are not rotated on use. The same token mints access tokens
    until it expires or is revoked.
  - Revoking a refresh token does not touch access tokens already minted from
    it; they live until their own exp. Rotating JWT_SECRET is the only way to
    kill every outstanding access token at once.

Granular failure reasons are logged here; callers only see the Unauthorized /
InternalError class.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from auth.errors import RefreshTokenRejected, Unauthorized
from auth.headers import get_bearer_token
from auth.models import RefreshToken, User
from auth.passwords import authenticate_user
from auth.store import REFRESH_TOKEN_TTL, AuthStore
from auth.tokens import ACCESS_TOKEN_TTL, make_jwt, make_refresh_token, validate_jwt

logger = logging.getLogger("chirpy.auth")


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class SessionManager:
    """Stateless coordinator over an AuthStore and a signing secret.

    Safe to share between concurrent requests: the only mutable state is in
    the store, and every store write is a single atomic row operation.
    """

    def __init__(
        self,
        store: AuthStore,
        token_secret: str,
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
    ) -> None:
        self.store = store
        self._token_secret = token_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        """Check the password and issue an access/refresh token pair.

        Raises PasswordMismatch for an unknown email or a wrong password
        (indistinguishable to the caller), InternalError if hashing,
        signing, or the entropy source fails.
        """
        user = authenticate_user(self.store, email, password)
        access_token = make_jwt(user.id, self._token_secret, self.access_ttl)
        refresh_token = make_refresh_token()
        self.store.create_refresh_token(refresh_token, user.id, self.refresh_ttl)
        logger.info("Login succeeded for user %s", user.id)
        return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)

    # ------------------------------------------------------------------
    # Authorize a request
    # ------------------------------------------------------------------

    def authorize(self, headers: Mapping[str, str]) -> UUID:
        """Return the user id asserted by the request's bearer access token."""
        try:
            token = get_bearer_token(headers)
            return validate_jwt(token, self._token_secret)
        except Unauthorized as exc:
            logger.info("Authorization rejected: %s", exc.reason)
            raise

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, headers: Mapping[str, str]) -> str:
        """Mint a new access token from the bearer refresh token.

        The refresh token itself is left untouched.
        """
        token = get_bearer_token(headers)
        record = self.store.get_refresh_token(token)
        try:
            check_refresh_token(record)
        except RefreshTokenRejected as exc:
            logger.info("Refresh rejected: %s", exc.reason)
            raise
        return make_jwt(record.user_id, self._token_secret, self.access_ttl)

    # ------------------------------------------------------------------
    # Revoke
    # ------------------------------------------------------------------

    def revoke(self, headers: Mapping[str, str]) -> None:
        """Revoke the bearer refresh token. Revoking twice is not an error."""
        token = get_bearer_token(headers)
        if not self.store.revoke_refresh_token(token):
            logger.info("Revoke rejected: not_found")
            raise RefreshTokenRejected("not_found")


def check_refresh_token(record: RefreshToken | None, now: datetime | None = None) -> RefreshToken:
    """Apply the refresh token validity predicate.

    Usable iff the record exists, revoked_at is None and now < expires_at.
    Raises RefreshTokenRejected with reason not_found / revoked / expired.
    """
    if record is None:
        raise RefreshTokenRejected("not_found")
    if record.revoked_at is not None:
        raise RefreshTokenRejected("revoked")
    if (now or datetime.now(timezone.utc)) >= record.expires_at:
        raise RefreshTokenRejected("expired")
    return record
