"""
API request and response models for Chirpy REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

# bcrypt reads at most 72 bytes; 72 ASCII chars is the safe upper bound.
_PASSWORD_MAX = 72


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /api/users, PUT /api/users and POST /api/login."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=_PASSWORD_MAX)


class WebhookData(BaseModel):
    user_id: Optional[UUID] = None


class PolkaWebhook(BaseModel):
    """Request body for POST /api/polka/webhooks."""

    event: str
    data: WebhookData = Field(default_factory=WebhookData)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    id: UUID
    created_at: datetime
    updated_at: datetime
    email: str
    is_chirpy_red: bool


class LoginResponse(UserResponse):
    """User fields plus the freshly issued token pair.

    token is the access token (JWT, 1 hour). refresh_token is the opaque
    long-lived credential accepted by /api/refresh and /api/revoke.
    """

    token: str
    refresh_token: str


class RefreshResponse(BaseModel):
    token: str


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = {}
