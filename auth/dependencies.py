"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two credentials are accepted, each on its own routes:
  1. Authorization: Bearer <access token> -- end users (get_current_user_id).
  2. Authorization: ApiKey <key>          -- the Polka webhook caller only
                                            (require_webhook_key).

Both helpers let Unauthorized propagate; auth_error_handler in api/main.py
renders it as the same 401 body every other route returns. The reason a
credential was rejected goes to the server log, never to the client.

Layer rule: auth/dependencies.py may import from fastapi and core/ because this
module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac
import logging
from uuid import UUID

from fastapi import Request

from auth.errors import Unauthorized
from auth.headers import get_api_key
from auth.sessions import SessionManager
from core.config import get_settings

logger = logging.getLogger("chirpy.auth")


def get_current_user_id(request: Request) -> UUID:
    """Require a valid access token. Raises Unauthorized otherwise.

    Use as a FastAPI dependency:
        @router.put("/users")
        def route(user_id: UUID = Depends(get_current_user_id)): ...
    """
    sessions: SessionManager = request.app.state.sessions
    return sessions.authorize(request.headers)


def require_webhook_key(request: Request) -> None:
    """Require the configured webhook API key. Raises Unauthorized otherwise.

    hmac.compare_digest gives no early-exit timing signal on a partial match.
    An unset POLKA_KEY rejects every caller.
    """
    expected = get_settings().polka_key
    try:
        presented = get_api_key(request.headers)
    except Unauthorized as exc:
        logger.info("Webhook rejected: %s", exc.reason)
        raise
    if not expected or not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Webhook rejected: api key mismatch")
        raise Unauthorized("api_key_mismatch")
