"""Tests for password hashing and bearer tokens."""
import pytest
from datetime import timedelta

from jose import JWTError, jwt

from tasktrack.config import settings
from tasktrack.utils.auth import (
    create_access_token,
    hash_password,
    verify_access_token,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt hashing."""

    def test_hash_is_salted_bcrypt(self):
        """Hashing twice gives two different bcrypt hashes."""
        first = hash_password("s3cret-frames")
        second = hash_password("s3cret-frames")

        assert first.startswith("$2b$")
        assert first != second

    @pytest.mark.parametrize(
        "attempt,expected",
        [("s3cret-frames", True), ("S3cret-frames", False), ("", False)],
    )
    def test_verify_password(self, attempt, expected):
        hashed = hash_password("s3cret-frames")

        assert verify_password(attempt, hashed) is expected


class TestAccessTokens:
    """Tests for issuing and checking JWTs."""

    def test_round_trip_returns_user(self):
        token = create_access_token(user_id="user123")

        assert verify_access_token(token) == "user123"

    def test_claims(self):
        """Tokens carry subject, issue time and the configured lifetime."""
        token = create_access_token(user_id="user123")

        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

        assert claims["sub"] == "user123"
        assert claims["exp"] - claims["iat"] == settings.jwt_expiration_minutes * 60

    def test_custom_lifetime(self):
        token = create_access_token(user_id="user123", expires_delta=timedelta(minutes=5))

        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

        assert claims["exp"] - claims["iat"] == 300

    def test_expired_token_rejected(self):
        token = create_access_token(user_id="user123", expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(JWTError):
            verify_access_token("invalid.token.here")

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "user123"}, "another-secret", algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_token_without_subject_rejected(self):
        """Tokens that carry no user are refused."""
        token = jwt.encode({"role": "member"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            verify_access_token(token)
