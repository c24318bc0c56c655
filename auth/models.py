"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the session
manager do the work; validity checks on a RefreshToken live in auth/sessions.py.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class User:
    """An account that can log in.

    id is None before the record is written to the database; the store assigns
    a random UUID on insert. hashed_password is a bcrypt digest, never plaintext.
    """

    email: str
    hashed_password: str
    id: UUID | None = None
    is_chirpy_red: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RefreshToken:
    """A long-lived, server-tracked credential used to mint access tokens.

    token is 64 hex chars of CSPRNG output with no embedded meaning.
    revoked_at is set exactly once by revoke and never changes afterwards.
    Rows are never deleted on revoke -- revoked tokens stay queryable for audit.
    """

    token: str
    user_id: UUID
    expires_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None
    revoked_at: datetime | None = None
