"""Tests for access-token verification and verifier selection."""

from __future__ import annotations

import time

import pytest
from jose import jwt

from notezcollab.auth import (
    InvalidCredentialError,
    JwtCredentialVerifier,
    MockCredentialVerifier,
    VerifiedCredential,
    get_credential_verifier,
    mock_token_for,
)
from notezcollab.auth.protocol import CredentialVerifier

SECRET = "test-access-secret"


def _token(claims: dict, secret: str = SECRET, *, expires_in: int | None = 300) -> str:
    payload = dict(claims)
    if expires_in is not None:
        payload["exp"] = int(time.time()) + expires_in
    return jwt.encode(payload, secret, algorithm="HS256")


class TestJwtCredentialVerifier:
    """HS256 tokens from the REST backend."""

    def test_valid_token(self) -> None:
        verifier = JwtCredentialVerifier(SECRET)
        credential = verifier.verify(_token({"userId": "u-1", "username": "alice"}))
        assert credential == VerifiedCredential(subject_id="u-1", display_name="alice")

    def test_sub_and_name_fallback(self) -> None:
        verifier = JwtCredentialVerifier(SECRET)
        credential = verifier.verify(_token({"sub": "u-2", "name": "Bob"}))
        assert credential == VerifiedCredential(subject_id="u-2", display_name="Bob")

    def test_display_name_defaults_to_id(self) -> None:
        credential = JwtCredentialVerifier(SECRET).verify(_token({"userId": "u-3"}))
        assert credential.display_name == "u-3"

    def test_expired_token(self) -> None:
        verifier = JwtCredentialVerifier(SECRET)
        with pytest.raises(InvalidCredentialError, match="expired"):
            verifier.verify(_token({"userId": "u-1"}, expires_in=-60))

    def test_leeway_accepts_recently_expired(self) -> None:
        verifier = JwtCredentialVerifier(SECRET, leeway=120)
        credential = verifier.verify(_token({"userId": "u-1"}, expires_in=-30))
        assert credential.subject_id == "u-1"

    def test_wrong_secret(self) -> None:
        verifier = JwtCredentialVerifier(SECRET)
        with pytest.raises(InvalidCredentialError):
            verifier.verify(_token({"userId": "u-1"}, secret="other-secret"))

    def test_missing_exp(self) -> None:
        verifier = JwtCredentialVerifier(SECRET)
        with pytest.raises(InvalidCredentialError):
            verifier.verify(_token({"userId": "u-1"}, expires_in=None))

    def test_no_user_id(self) -> None:
        verifier = JwtCredentialVerifier(SECRET)
        with pytest.raises(InvalidCredentialError, match="user id"):
            verifier.verify(_token({"username": "ghost"}))

    @pytest.mark.parametrize("token", ["", "not.a.jwt", "garbage"])
    def test_malformed(self, token: str) -> None:
        with pytest.raises(InvalidCredentialError):
            JwtCredentialVerifier(SECRET).verify(token)

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            JwtCredentialVerifier("")


class TestMockCredentialVerifier:
    def test_round_trip(self) -> None:
        credential = MockCredentialVerifier().verify(mock_token_for("dev-user"))
        assert credential == VerifiedCredential("dev-user", "dev-user")

    def test_display_names(self, verifier: MockCredentialVerifier) -> None:
        assert verifier.verify(mock_token_for("owner-0001")).display_name == (
            "Olivia Owner"
        )

    @pytest.mark.parametrize("token", ["", "mock-token-", "Bearer mock-token-x"])
    def test_rejects(self, token: str) -> None:
        with pytest.raises(InvalidCredentialError):
            MockCredentialVerifier().verify(token)

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MockCredentialVerifier(), CredentialVerifier)


class TestGetCredentialVerifier:
    """Verifier selection from DEV__AUTH_MOCK and AUTH__JWT_ACCESS_SECRET."""

    def test_mock_mode_returns_singleton(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEV__AUTH_MOCK", "true")
        first = get_credential_verifier()
        assert isinstance(first, MockCredentialVerifier)
        assert get_credential_verifier() is first

    def test_jwt_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEV__AUTH_MOCK", "false")
        monkeypatch.setenv("AUTH__JWT_ACCESS_SECRET", SECRET)
        verifier = get_credential_verifier()
        assert isinstance(verifier, JwtCredentialVerifier)
        assert verifier.verify(_token({"userId": "u-1"})).subject_id == "u-1"

    def test_missing_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEV__AUTH_MOCK", "false")
        monkeypatch.setenv("AUTH__JWT_ACCESS_SECRET", "")
        with pytest.raises(ValueError, match="AUTH__JWT_ACCESS_SECRET"):
            get_credential_verifier()
