"""Unit tests for password hashing and access tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from advancia_pay.core.errors import AuthenticationError
from advancia_pay.server.core.config import SecurityConfig
from advancia_pay.server.core.security import (
    create_access_token,
    decode_access_token,
    generate_password,
    hash_password,
    token_subject,
    verify_password,
)

CONFIG = SecurityConfig(jwt_secret="unit-secret", jwt_expires_hours=1)


class TestPasswords:
    def test_hash_and_verify(self):
        password_hash = hash_password("s3cret-pass", rounds=4)

        assert password_hash != "s3cret-pass"
        assert password_hash.startswith("$2")
        assert verify_password("s3cret-pass", password_hash)
        assert not verify_password("wrong", password_hash)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_generated_passwords_are_unique(self):
        assert generate_password() != generate_password()
        assert len(generate_password(8)) >= 8


class TestTokens:
    def test_round_trip_claims(self):
        token = create_access_token(user_id="u1", email="a@example.com", role="ADMIN", config=CONFIG)

        payload = decode_access_token(token, CONFIG)

        assert payload["id"] == payload["userId"] == "u1"
        assert payload["email"] == "a@example.com"
        assert payload["role"] == "ADMIN"
        assert payload["exp"] - payload["iat"] == 3600
        assert token_subject(payload) == "u1"

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode({"id": "u1", "iat": past, "exp": past + timedelta(hours=1)}, "unit-secret")

        with pytest.raises(AuthenticationError, match="Token expired."):
            decode_access_token(token, CONFIG)

    def test_wrong_secret(self):
        token = create_access_token(user_id="u1", email="a@example.com", role="USER", config=CONFIG)
        other = SecurityConfig(jwt_secret="another-secret")

        with pytest.raises(AuthenticationError, match="Invalid token."):
            decode_access_token(token, other)

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token("garbage", CONFIG)
        assert exc_info.value.status_code == 401

    def test_token_without_subject(self):
        token = jwt.encode({"email": "a@example.com"}, "unit-secret")
        with pytest.raises(AuthenticationError, match="Invalid token."):
            decode_access_token(token, CONFIG)

    def test_legacy_user_id_claim(self):
        token = jwt.encode({"userId": "legacy"}, "unit-secret")
        assert token_subject(decode_access_token(token, CONFIG)) == "legacy"
