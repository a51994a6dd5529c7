"""Protocol defining the credential verifier interface.

Both JwtCredentialVerifier and MockCredentialVerifier implement this
protocol, allowing them to be used interchangeably.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from notezcollab.auth.models import VerifiedCredential


@runtime_checkable
class CredentialVerifier(Protocol):
    """Turns a bearer credential into a verified identity."""

    def verify(self, token: str) -> VerifiedCredential:
        """Verify ``token`` and return the identity it carries.

        Raises:
            InvalidCredentialError: The token cannot be trusted.
        """
        ...
