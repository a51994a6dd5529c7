"""Credential verifier factory.

Chooses the real JWT verifier or the mock one based on configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from notezcollab.config import get_settings

if TYPE_CHECKING:
    from notezcollab.auth.protocol import CredentialVerifier


# Cached mock verifier so display names registered in tests persist
_mock_verifier_instance: CredentialVerifier | None = None


def get_credential_verifier() -> CredentialVerifier:
    """Get the verifier selected by configuration.

    If DEV__AUTH_MOCK=true, returns the MockCredentialVerifier singleton.
    Otherwise, returns a JwtCredentialVerifier over the shared access secret.

    Raises:
        ValueError: If AUTH__JWT_ACCESS_SECRET is empty and mock mode is disabled.
    """
    global _mock_verifier_instance  # noqa: PLW0603
    settings = get_settings()

    if settings.dev.auth_mock:
        if _mock_verifier_instance is None:
            from notezcollab.auth.mock import MockCredentialVerifier

            _mock_verifier_instance = MockCredentialVerifier()
        return _mock_verifier_instance

    auth = settings.auth
    secret = auth.jwt_access_secret.get_secret_value()
    if not secret:
        msg = (
            "AUTH__JWT_ACCESS_SECRET is required when DEV__AUTH_MOCK is not "
            "enabled. Set it to the REST backend's access-token secret."
        )
        raise ValueError(msg)

    from notezcollab.auth.jwt import JwtCredentialVerifier

    return JwtCredentialVerifier(
        secret, algorithm=auth.jwt_algorithm, leeway=auth.leeway_seconds
    )


def clear_config_cache() -> None:
    """Clear the settings cache and the mock verifier singleton.

    Useful for tests that change DEV__AUTH_MOCK or the secret.
    """
    global _mock_verifier_instance  # noqa: PLW0603
    get_settings.cache_clear()
    _mock_verifier_instance = None
