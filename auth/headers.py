"""
auth/headers.py -- Pull credentials out of the Authorization header.

Two schemes share one parser:
  Authorization: Bearer <access-or-refresh-token>
  Authorization: ApiKey <key>

The header is split on the first space. The scheme must match exactly
(case-sensitive) and the credential must be non-empty with no further
whitespace. Absent header -> MissingHeader; any other shape -> MalformedHeader.
Both are Unauthorized, so the client sees the same 401 either way.

headers is anything with a .get() -- Starlette's case-insensitive Headers in
production, a plain dict in unit tests.
"""

from __future__ import annotations

from collections.abc import Mapping

from auth.errors import MalformedHeader, MissingHeader

BEARER_SCHEME = "Bearer"
API_KEY_SCHEME = "ApiKey"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    return _parse_authorization_header(headers, BEARER_SCHEME)


def get_api_key(headers: Mapping[str, str]) -> str:
    return _parse_authorization_header(headers, API_KEY_SCHEME)


def _parse_authorization_header(headers: Mapping[str, str], scheme: str) -> str:
    value = headers.get("Authorization") or ""
    if not value:
        raise MissingHeader()
    found_scheme, sep, credential = value.partition(" ")
    if not sep or found_scheme != scheme:
        raise MalformedHeader("wrong_scheme")
    if not credential or any(ch.isspace() for ch in credential):
        raise MalformedHeader("bad_credential")
    return credential
