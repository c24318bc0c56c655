"""
api/limiter.py -- The one slowapi Limiter shared by the app and the login route.

api/main.py mounts it as middleware; api/routes/auth.py decorates /api/login
with @limiter.limit(login_limit). Counters live in process memory, keyed by
client address, so every route must use this instance or its hits land in a
separate store that never trips.

login_limit is passed as a callable rather than a string so the rate is read
from LOGIN_RATE_LIMIT through get_settings() when requests arrive, not frozen
at import. Tests raise it to keep repeated logins from hitting 429.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_limit() -> str:
    """Login rate limit from settings, e.g. "10/minute"."""
    return get_settings().login_rate_limit
