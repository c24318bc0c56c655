"""
api/routes/users.py -- Account endpoints.

Routes:
  POST /api/users  -- create an account (public)
  PUT  /api/users  -- change own email and password (requires access token)

A user can only ever change their own record: the target id comes from the
verified access token, never from the request body.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import Credentials, UserResponse
from auth.dependencies import get_current_user_id
from auth.models import User
from auth.passwords import hash_password
from auth.store import AuthStore

router = APIRouter()

_EMAIL_TAKEN = {"code": "conflict", "message": "A user with that email already exists."}


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: Credentials) -> UserResponse:
    store: AuthStore = request.app.state.store
    new_user = User(email=body.email, hashed_password=hash_password(body.password))
    try:
        user_id = store.create_user(new_user)
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail=_EMAIL_TAKEN) from exc
    return _user_to_response(store.get_by_id(user_id))


@router.put("/users", response_model=UserResponse)
def update_user(
    request: Request,
    body: Credentials,
    user_id: UUID = Depends(get_current_user_id),
) -> UserResponse:
    """Replace the caller's email and password."""
    store: AuthStore = request.app.state.store
    try:
        updated = store.update_credentials(user_id, body.email, hash_password(body.password))
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail=_EMAIL_TAKEN) from exc
    if updated is None:
        # Token is valid but the account is gone (e.g. after a dev reset).
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "User not found."})
    return _user_to_response(updated)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _user_to_response(user: User | None) -> UserResponse:
    if user is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "User not found after write."},
        )
    return UserResponse(
        id=user.id,
        created_at=user.created_at,
        updated_at=user.updated_at,
        email=user.email,
        is_chirpy_red=user.is_chirpy_red,
    )
