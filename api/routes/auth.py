"""
api/routes/auth.py -- Session endpoints.

Routes:
  POST /api/login    -- email + password; returns user, access token, refresh token
  POST /api/refresh  -- Bearer <refresh token>; returns a new access token
  POST /api/revoke   -- Bearer <refresh token>; revokes it, 204

Security:
  POST /login is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  Login returns the same generic 401 for unknown email and wrong password.
  Refresh and revoke failures propagate as auth.errors.Unauthorized and are
  rendered by the exception handler in api/main.py as a generic 401.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_limit
from api.models import Credentials, LoginResponse, RefreshResponse
from auth.errors import Unauthorized
from auth.sessions import SessionManager

# Auth policy:
# - POST /api/login:   public -- the login endpoint must be unauthenticated
# - POST /api/refresh: refresh token in the Authorization header
# - POST /api/revoke:  refresh token in the Authorization header
router = APIRouter()


@limiter.limit(login_limit)  # brute-force mitigation -- must be ABOVE @router to preserve FastAPI introspection
@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: Credentials) -> JSONResponse:
    """Authenticate with email and password; issue an access/refresh token pair.

    Sync def on purpose: bcrypt is CPU-bound, so FastAPI runs this in its
    threadpool instead of blocking the event loop.
    """
    sessions: SessionManager = request.app.state.sessions
    try:
        result = sessions.login(body.email, body.password)
    except Unauthorized:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Incorrect email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    user = result.user
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            id=user.id,
            created_at=user.created_at,
            updated_at=user.updated_at,
            email=user.email,
            is_chirpy_red=user.is_chirpy_red,
            token=result.access_token,
            refresh_token=result.refresh_token,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request) -> JSONResponse:
    """Exchange a valid refresh token for a new access token.

    The refresh token is not rotated -- the same one keeps working until it
    expires or is revoked.
    """
    sessions: SessionManager = request.app.state.sessions
    token = sessions.refresh(request.headers)
    resp = JSONResponse(content=RefreshResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/revoke", status_code=204)
def revoke(request: Request) -> Response:
    """Revoke a refresh token. Revoking an already-revoked token also returns 204."""
    sessions: SessionManager = request.app.state.sessions
    sessions.revoke(request.headers)
    return Response(status_code=204)
