"""
auth/errors.py -- Exception taxonomy for the auth package.

Three client-facing classes, each rendered by api/main.py with a fixed,
generic message:

  Unauthorized  -> 401  bad/missing/expired/revoked credential, bad password
  InvalidInput  -> 400  malformed request (e.g. non-positive token lifetime)
  InternalError -> 500  entropy exhaustion, hashing or signing failure

Every subclass carries a `reason` string naming the granular cause. The reason
is for server-side logs only and must never be copied into a response body --
telling a client "expired" vs "bad signature" hands an attacker an oracle.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised by the auth package."""

    default_reason = "auth_error"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


# ---------------------------------------------------------------------------
# Client-facing classes
# ---------------------------------------------------------------------------


class Unauthorized(AuthError):
    default_reason = "unauthorized"


class InvalidInput(AuthError):
    default_reason = "invalid_input"


class InternalError(AuthError):
    default_reason = "internal_error"


# ---------------------------------------------------------------------------
# Unauthorized causes
# ---------------------------------------------------------------------------


class PasswordMismatch(Unauthorized):
    default_reason = "password_mismatch"


class TokenInvalid(Unauthorized):
    """Access token rejected. reason is one of expired/signature/claims/malformed."""

    default_reason = "malformed"


class MalformedIdentity(Unauthorized):
    """Token verified but its subject is not a valid user id."""

    default_reason = "malformed_identity"


class MissingHeader(Unauthorized):
    default_reason = "missing_header"


class MalformedHeader(Unauthorized):
    default_reason = "malformed_header"


class RefreshTokenRejected(Unauthorized):
    """Refresh token unusable. reason is one of not_found/revoked/expired."""

    default_reason = "not_found"


# ---------------------------------------------------------------------------
# InvalidInput causes
# ---------------------------------------------------------------------------


class InvalidExpiry(InvalidInput):
    default_reason = "invalid_expiry"


# ---------------------------------------------------------------------------
# InternalError causes
# ---------------------------------------------------------------------------


class HashingFailure(InternalError):
    default_reason = "hashing_failure"


class EntropyFailure(InternalError):
    default_reason = "entropy_failure"


class SigningFailure(InternalError):
    default_reason = "signing_failure"
