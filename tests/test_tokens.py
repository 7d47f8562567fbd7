"""
tests/test_tokens.py -- Unit tests for auth/tokens.py.

Covers bcrypt hashing, one-time token generation and comparison, and the
JWT round trip including every fail-closed path of decode_access_token().
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import TokenPayload, UserType
from auth.tokens import (
    create_access_token,
    decode_access_token,
    generate_one_time_token,
    hash_password,
    tokens_match,
    verify_password,
)
from core.config import get_settings
from core.errors import Unauthenticated


def _sign(claims: dict) -> str:
    return jwt.encode(claims, get_settings().secret_key, algorithm="HS256")


class TestPasswordHashing:
    def test_hash_verifies(self) -> None:
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)

    def test_wrong_password_rejected(self) -> None:
        assert not verify_password("other-pass", hash_password("secret123"))

    def test_fresh_salt_per_hash(self) -> None:
        assert hash_password("secret123") != hash_password("secret123")

    def test_malformed_hash_is_a_mismatch(self) -> None:
        assert verify_password("secret123", "not-a-bcrypt-hash") is False


class TestOneTimeTokens:
    def test_token_is_64_hex_chars(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{64}", generate_one_time_token())

    def test_tokens_are_unique(self) -> None:
        assert len({generate_one_time_token() for _ in range(50)}) == 50

    def test_match(self) -> None:
        token = generate_one_time_token()
        assert tokens_match(token, token)
        assert not tokens_match(token, generate_one_time_token())

    def test_missing_stored_token_never_matches(self) -> None:
        assert not tokens_match(None, "")
        assert not tokens_match(None, "anything")


class TestAccessTokens:
    def test_round_trip(self) -> None:
        token = create_access_token(7, UserType.ADMIN)
        assert decode_access_token(token) == TokenPayload(id=7, user_type=UserType.ADMIN)

    def test_accepts_role_as_string(self) -> None:
        payload = decode_access_token(create_access_token(3, "normal_user"))
        assert payload.user_type is UserType.NORMAL_USER

    def test_claims(self) -> None:
        claims = jwt.decode(create_access_token(5, UserType.NORMAL_USER), get_settings().secret_key, algorithms=["HS256"])
        assert claims["sub"] == "5"
        assert claims["id"] == 5
        assert claims["user_type"] == "normal_user"
        assert claims["exp"] > claims["iat"]

    def test_default_expiry_comes_from_settings(self) -> None:
        claims = jwt.decode(create_access_token(5, UserType.NORMAL_USER), get_settings().secret_key, algorithms=["HS256"])
        assert claims["exp"] - claims["iat"] == get_settings().token_expire_seconds

    def test_tampered_token_rejected(self) -> None:
        header, _, signature = create_access_token(1, UserType.NORMAL_USER).split(".")
        elevated = create_access_token(1, UserType.ADMIN).split(".")[1]
        with pytest.raises(Unauthenticated):
            decode_access_token(f"{header}.{elevated}.{signature}")

    def test_wrong_key_rejected(self) -> None:
        forged = jwt.encode({"id": 1, "user_type": "admin"}, "x" * 32, algorithm="HS256")
        with pytest.raises(Unauthenticated):
            decode_access_token(forged)

    def test_expired_token_rejected(self) -> None:
        past = datetime.now(timezone.utc) - timedelta(seconds=30)
        with pytest.raises(Unauthenticated):
            decode_access_token(_sign({"id": 1, "user_type": "admin", "exp": past}))

    @pytest.mark.parametrize(
        "claims",
        [
            {"user_type": "admin"},
            {"id": "1", "user_type": "admin"},
            {"id": True, "user_type": "admin"},
            {"id": 1},
            {"id": 1, "user_type": "superuser"},
        ],
    )
    def test_malformed_claims_rejected(self, claims: dict) -> None:
        with pytest.raises(Unauthenticated):
            decode_access_token(_sign(claims))

    def test_garbage_rejected(self) -> None:
        with pytest.raises(Unauthenticated) as exc_info:
            decode_access_token("not.a.jwt")
        assert exc_info.value.kind == "unauthenticated"
