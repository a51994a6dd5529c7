"""Bearer credential verification for collaborative sessions."""

from __future__ import annotations

from notezcollab.auth.factory import clear_config_cache, get_credential_verifier
from notezcollab.auth.jwt import JwtCredentialVerifier
from notezcollab.auth.mock import MockCredentialVerifier, mock_token_for
from notezcollab.auth.models import InvalidCredentialError, VerifiedCredential
from notezcollab.auth.protocol import CredentialVerifier

__all__ = [
    "CredentialVerifier",
    "InvalidCredentialError",
    "JwtCredentialVerifier",
    "MockCredentialVerifier",
    "VerifiedCredential",
    "clear_config_cache",
    "get_credential_verifier",
    "mock_token_for",
]
