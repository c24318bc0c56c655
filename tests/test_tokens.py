"""Unit tests for auth/tokens.py -- access JWTs and refresh token generation.

Covers:
- issue/verify round trip, claims shape, unique jti
- non-positive lifetime rejected
- wrong secret, wrong issuer, garbage input, expired token all rejected
- non-UUID subject is MalformedIdentity
- refresh tokens: length, hex alphabet, uniqueness, short-read handling
"""

import re
import string
import time
from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from auth.errors import (
    EntropyFailure,
    InvalidExpiry,
    InvalidInput,
    MalformedIdentity,
    TokenInvalid,
    Unauthorized,
)
from auth.tokens import ISSUER, make_jwt, make_refresh_token, validate_jwt

SECRET = "abcdefg"


class TestMakeJwt:
    def test_round_trip_returns_user_id(self) -> None:
        user_id = uuid4()
        token = make_jwt(user_id, SECRET, timedelta(minutes=15))
        assert validate_jwt(token, SECRET) == user_id

    def test_accepts_seconds(self) -> None:
        user_id = uuid4()
        assert validate_jwt(make_jwt(user_id, SECRET, 60), SECRET) == user_id

    def test_sub_second_lifetime_valid_at_issue(self) -> None:
        user_id = uuid4()
        assert validate_jwt(make_jwt(user_id, SECRET, timedelta(milliseconds=500)), SECRET) == user_id

    def test_claims(self) -> None:
        user_id = uuid4()
        claims = jwt.get_unverified_claims(make_jwt(user_id, SECRET, timedelta(hours=1)))
        assert claims["iss"] == ISSUER
        assert claims["sub"] == str(user_id)
        assert claims["exp"] - claims["iat"] in (3600, 3601)
        assert claims["jti"]

    def test_jti_unique_per_token(self) -> None:
        user_id = uuid4()
        a = jwt.get_unverified_claims(make_jwt(user_id, SECRET, 60))
        b = jwt.get_unverified_claims(make_jwt(user_id, SECRET, 60))
        assert a["jti"] != b["jti"]

    @pytest.mark.parametrize("expires_in", [timedelta(0), timedelta(seconds=-5), 0, -1])
    def test_non_positive_lifetime_rejected(self, expires_in) -> None:
        with pytest.raises(InvalidExpiry) as info:
            make_jwt(uuid4(), SECRET, expires_in)
        assert isinstance(info.value, InvalidInput)


class TestValidateJwt:
    def test_wrong_secret_rejected(self) -> None:
        token = make_jwt(uuid4(), "good", timedelta(minutes=15))
        with pytest.raises(TokenInvalid) as info:
            validate_jwt(token, "bad")
        assert info.value.reason == "signature"

    def test_expired_token_rejected(self) -> None:
        token = make_jwt(uuid4(), SECRET, timedelta(seconds=1))
        time.sleep(2)
        with pytest.raises(TokenInvalid) as info:
            validate_jwt(token, SECRET)
        assert info.value.reason == "expired"

    @pytest.mark.parametrize("garbage", ["", "not.a.jwt", "abc", "a.b.c.d"])
    def test_garbage_rejected(self, garbage: str) -> None:
        with pytest.raises(TokenInvalid):
            validate_jwt(garbage, SECRET)

    def test_wrong_issuer_rejected(self) -> None:
        now = int(time.time())
        token = jwt.encode(
            {"iss": "someone-else", "sub": str(uuid4()), "iat": now, "exp": now + 60, "jti": "x"},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalid) as info:
            validate_jwt(token, SECRET)
        assert info.value.reason == "claims"

    def test_missing_exp_rejected(self) -> None:
        token = jwt.encode(
            {"iss": ISSUER, "sub": str(uuid4()), "iat": int(time.time()), "jti": "x"},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalid):
            validate_jwt(token, SECRET)

    def test_non_uuid_subject_is_malformed_identity(self) -> None:
        now = int(time.time())
        token = jwt.encode(
            {"iss": ISSUER, "sub": "user-42", "iat": now, "exp": now + 60, "jti": "x"},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(MalformedIdentity) as info:
            validate_jwt(token, SECRET)
        assert isinstance(info.value, Unauthorized)

    def test_alg_none_rejected(self) -> None:
        user_id = uuid4()
        token = make_jwt(user_id, SECRET, 60)
        header, payload, _sig = token.split(".")
        # {"alg":"none","typ":"JWT"}
        forged = "eyJhbGciOiJub25lIiwidHlwIjoiSldUIn0." + payload + "."
        with pytest.raises(TokenInvalid):
            validate_jwt(forged, SECRET)


class TestMakeRefreshToken:
    def test_64_hex_chars(self) -> None:
        token = make_refresh_token()
        assert len(token) == 64
        assert set(token) <= set(string.hexdigits.lower())
        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_unique_across_many_calls(self) -> None:
        tokens = {make_refresh_token() for _ in range(10_000)}
        assert len(tokens) == 10_000

    def test_short_read_is_entropy_failure(self) -> None:
        with pytest.raises(EntropyFailure):
            make_refresh_token(lambda n: b"\x00" * (n - 1))

    def test_source_error_is_entropy_failure(self) -> None:
        def broken(n: int) -> bytes:
            raise OSError("getrandom failed")

        with pytest.raises(EntropyFailure):
            make_refresh_token(broken)

    def test_uses_requested_byte_count(self) -> None:
        seen = []

        def source(n: int) -> bytes:
            seen.append(n)
            return bytes(range(n))

        assert make_refresh_token(source) == bytes(range(32)).hex()
        assert seen == [32]
