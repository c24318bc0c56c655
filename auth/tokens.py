"""
auth/tokens.py -- Access token (JWT) and refresh token utilities.

Security design decisions:
  Access tokens: python-jose with HS256. Claims are iss, sub (user UUID), iat,
       exp and a random jti. The jti is a logging aid only; there is no
       server-side denylist, so a stolen access token stays valid until exp.
       Keep the lifetime short (1 hour by default).

       Every verification failure raises an Unauthorized subclass. The reason
       attribute ("expired", "signature", "claims", "malformed") is for the
       server log; the HTTP layer renders all of them as the same 401.

  Refresh tokens: 32 bytes from the OS CSPRNG, hex-encoded (64 chars, 256 bits
       of entropy). A short read is fatal -- a shorter token is a weaker token,
       not a degraded-but-usable one -- so it raises EntropyFailure and is never
       retried.

  The signing secret is passed in by the caller (sourced from
  core.config.get_settings().jwt_secret). Nothing here reads configuration.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import math
import secrets
import time
from collections.abc import Callable
from datetime import timedelta
from uuid import UUID, uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import EntropyFailure, InvalidExpiry, MalformedIdentity, SigningFailure, TokenInvalid

ISSUER = "chirpy"
ACCESS_TOKEN_TTL = timedelta(hours=1)

_ALGORITHM = "HS256"
_REFRESH_TOKEN_BYTES = 32

_DECODE_OPTIONS = {
    "require_exp": True,
    "require_iat": True,
    "require_iss": True,
    "require_sub": True,
    "require_jti": True,
}

# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def make_jwt(user_id: UUID, token_secret: str, expires_in: timedelta | float) -> str:
    """Encode a signed access token for user_id that expires after expires_in.

    expires_in may be a timedelta or a number of seconds. exp is rounded up to
    the next whole second so any positive lifetime yields a token that is valid
    at the moment it is issued.
    """
    seconds = expires_in.total_seconds() if isinstance(expires_in, timedelta) else float(expires_in)
    if seconds <= 0:
        raise InvalidExpiry()
    now = time.time()
    payload = {
        "iss": ISSUER,
        "sub": str(user_id),
        "iat": int(now),
        "exp": math.ceil(now + seconds),
        "jti": str(uuid4()),
    }
    try:
        return jwt.encode(payload, token_secret, algorithm=_ALGORITHM)
    except JWTError as exc:
        raise SigningFailure() from exc


def validate_jwt(token: str, token_secret: str) -> UUID:
    """Verify an access token and return the user id it was issued for.

    Raises TokenInvalid on a bad signature, wrong issuer, missing claim,
    garbage input, or when the current time is at or past exp. Raises
    MalformedIdentity if the subject is not a UUID.
    """
    try:
        payload = jwt.decode(
            token,
            token_secret,
            algorithms=[_ALGORITHM],
            issuer=ISSUER,
            options=_DECODE_OPTIONS,
        )
    except ExpiredSignatureError as exc:
        raise TokenInvalid("expired") from exc
    except JWTClaimsError as exc:
        raise TokenInvalid("claims") from exc
    except JWTError as exc:
        raise TokenInvalid("signature") from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise TokenInvalid("malformed") from exc

    # jose accepts now == exp; the token is already dead at that instant.
    exp = payload["exp"]
    if not isinstance(exp, (int, float)) or time.time() >= exp:
        raise TokenInvalid("expired")

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError, AttributeError) as exc:
        raise MalformedIdentity() from exc


# ---------------------------------------------------------------------------
# Refresh token generation
# ---------------------------------------------------------------------------


def make_refresh_token(randbytes: Callable[[int], bytes] = secrets.token_bytes) -> str:
    """Return 32 CSPRNG bytes as 64 lowercase hex characters.

    randbytes is the entropy source; tests swap it to simulate a short read.
    """
    try:
        raw = randbytes(_REFRESH_TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise EntropyFailure("entropy_source_error") from exc
    if len(raw) != _REFRESH_TOKEN_BYTES:
        raise EntropyFailure(f"short_read_{len(raw)}_of_{_REFRESH_TOKEN_BYTES}")
    return raw.hex()
