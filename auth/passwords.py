"""
auth/passwords.py -- Password hashing and timing-equalized login checks.

Security design decisions:
  bcrypt with a fixed work factor of 10. Bcrypt's cost factor makes brute-force
  against a leaked digest expensive while keeping interactive login latency
  acceptable. Salts are generated per hash and embedded in the digest.

  bcrypt.checkpw does the comparison. Never compare digests with == -- the
  library primitive is the only comparison this module performs.

  Wrong password is a normal outcome and raises PasswordMismatch. HashingFailure
  is reserved for a broken digest or a bcrypt error; it is an InternalError.

  Plaintext and digests are never logged, not even on failure.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from auth.errors import HashingFailure, InvalidInput, PasswordMismatch

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import AuthStore

logger = logging.getLogger("chirpy.auth")

BCRYPT_ROUNDS = 10

# bcrypt only reads the first 72 bytes of its input. Longer secrets are refused
# on hash as InvalidInput and can never match on verify.
_BCRYPT_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a salted bcrypt digest of the given plaintext password."""
    encoded = plain.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise InvalidInput("password_too_long")
    try:
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")
    except (ValueError, TypeError) as exc:
        raise HashingFailure("bcrypt_error") from exc


def check_password_hash(hashed: str, plain: str) -> None:
    """Return None if plain matches the digest, raise PasswordMismatch otherwise.

    Raises HashingFailure if the stored digest is not a bcrypt hash.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise PasswordMismatch()
    try:
        ok = bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError as exc:
        raise HashingFailure("malformed_digest") from exc
    if not ok:
        raise PasswordMismatch()


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Always run bcrypt even when the email does not
# exist -- the constant work factor prevents account enumeration via timing.
_DUMMY_HASH: str = hash_password("chirpy_timing_dummy")


def authenticate_user(store: AuthStore, email: str, password: str) -> User:
    """Authenticate an email/password pair with timing equalization.

    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Both raise PasswordMismatch, so the caller cannot tell which one happened.
    """
    user = store.get_by_email(email)
    if user is None:
        try:
            check_password_hash(_DUMMY_HASH, password)
        except PasswordMismatch:
            pass
        logger.info("Login rejected: unknown account")
        raise PasswordMismatch("unknown_account")
    try:
        check_password_hash(user.hashed_password, password)
    except PasswordMismatch:
        logger.info("Login rejected: password mismatch for user %s", user.id)
        raise
    return user
