"""HS256 access-token verification with python-jose.

Tokens are issued by the REST backend with the shared access secret; this
side only verifies them.
"""

from __future__ import annotations

import logging

from jose import ExpiredSignatureError, JWTError, jwt

from notezcollab.auth.models import InvalidCredentialError, VerifiedCredential

logger = logging.getLogger(__name__)


class JwtCredentialVerifier:
    """Verify signed access tokens.

    Identity comes from the ``userId`` claim (``sub`` as fallback) and the
    display name from ``username`` (``name``, then the id, as fallbacks).
    """

    def __init__(self, secret: str, algorithm: str = "HS256", leeway: int = 0) -> None:
        if not secret:
            msg = "JWT secret must not be empty"
            raise ValueError(msg)
        self._secret = secret
        self._algorithm = algorithm
        self._leeway = leeway

    def verify(self, token: str) -> VerifiedCredential:
        if not token:
            raise InvalidCredentialError("No credential supplied")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require_exp": True, "leeway": self._leeway},
            )
        except ExpiredSignatureError as e:
            logger.debug("Rejected expired access token")
            raise InvalidCredentialError("Credential expired") from e
        except JWTError as e:
            logger.debug("Rejected access token: %s", e)
            raise InvalidCredentialError("Invalid credential") from e

        subject = claims.get("userId") or claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidCredentialError("Credential carries no user id")

        name = claims.get("username") or claims.get("name") or subject
        return VerifiedCredential(subject_id=subject, display_name=str(name))
