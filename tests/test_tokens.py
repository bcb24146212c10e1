"""
Tests for JWT issuing and verification.
"""

import time

import jwt
import pytest

from auth.tokens import TokenExpiredError, TokenInvalidError, TokenService


def _tamper_signature(token: str) -> str:
    header, payload, signature = token.split(".")
    replacement = "A" if signature[0] != "A" else "B"
    return f"{header}.{payload}.{replacement}{signature[1:]}"


class TestIssueAndVerify:
    def test_valid_token_resolves_subject(self):
        service = TokenService("secret")
        token = service.issue(42)
        assert service.verify(token) == 42

    def test_token_is_reusable(self):
        service = TokenService("secret")
        token = service.issue(7)
        assert service.verify(token) == 7
        assert service.verify(token) == 7

    def test_claims(self):
        service = TokenService("secret", expiry_seconds=3600)
        payload = jwt.decode(service.issue(5), "secret", algorithms=["HS256"])
        assert payload["sub"] == "5"
        assert payload["exp"] - payload["iat"] == 3600

    def test_default_lifetime_is_24_hours(self):
        assert TokenService("secret").expiry_seconds == 86400

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService("")


class TestVerifyFailures:
    def test_expired_token_is_expired_not_invalid(self):
        service = TokenService("secret", expiry_seconds=-1)
        token = service.issue(1)
        with pytest.raises(TokenExpiredError):
            service.verify(token)

    def test_tampered_signature_is_invalid(self):
        service = TokenService("secret")
        with pytest.raises(TokenInvalidError):
            service.verify(_tamper_signature(service.issue(1)))

    def test_appended_garbage_is_invalid(self):
        service = TokenService("secret")
        with pytest.raises(TokenInvalidError):
            service.verify(service.issue(1) + "WRONG")

    def test_other_secret_is_invalid(self):
        token = TokenService("secret").issue(1)
        with pytest.raises(TokenInvalidError):
            TokenService("another-secret").verify(token)

    def test_garbage_is_invalid(self):
        with pytest.raises(TokenInvalidError):
            TokenService("secret").verify("not.a.token")

    def test_missing_subject_is_invalid(self):
        token = jwt.encode({"exp": int(time.time()) + 60}, "secret", algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            TokenService("secret").verify(token)

    def test_non_numeric_subject_is_invalid(self):
        token = jwt.encode({"sub": "alice", "exp": int(time.time()) + 60}, "secret", algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            TokenService("secret").verify(token)

    def test_missing_expiry_is_invalid(self):
        token = jwt.encode({"sub": "1"}, "secret", algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            TokenService("secret").verify(token)
