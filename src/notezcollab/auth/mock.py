"""Mock credential verifier for development and tests.

Token format: ``mock-token-<user id>``. The display name is the user id.
Never enable outside development (``DEV__AUTH_MOCK``).
"""

from __future__ import annotations

from notezcollab.auth.models import InvalidCredentialError, VerifiedCredential

MOCK_TOKEN_PREFIX = "mock-token-"


def mock_token_for(user_id: str) -> str:
    """Build the mock token that verifies as ``user_id``."""
    return f"{MOCK_TOKEN_PREFIX}{user_id}"


class MockCredentialVerifier:
    """Accepts any ``mock-token-<user id>`` without a signature check."""

    def __init__(self, display_names: dict[str, str] | None = None) -> None:
        self._display_names = dict(display_names or {})

    def verify(self, token: str) -> VerifiedCredential:
        if not token or not token.startswith(MOCK_TOKEN_PREFIX):
            raise InvalidCredentialError("Invalid credential")
        user_id = token.removeprefix(MOCK_TOKEN_PREFIX)
        if not user_id:
            raise InvalidCredentialError("Invalid credential")
        return VerifiedCredential(
            subject_id=user_id,
            display_name=self._display_names.get(user_id, user_id),
        )
