"""Access control for collaborative sessions.

Every connection attempt walks a small state machine::

    UNAUTHENTICATED -> AUTHENTICATED -> AUTHORIZED -> ESTABLISHED
                 \\              \\              \\
                  +-------------+-------------+--> DENIED

The caller only ever sees one opaque ``AccessDeniedError``; the precise
reason is logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import TYPE_CHECKING, Any

from notezcollab.auth.models import InvalidCredentialError
from notezcollab.collab.persistence import parse_document_id

if TYPE_CHECKING:
    from notezcollab.auth.protocol import CredentialVerifier

logger = logging.getLogger(__name__)

# Cursor colours shown to other collaborators, picked by identity hash
CURSOR_COLORS: tuple[str, ...] = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
    "#85C1E9",
    "#F1948A",
    "#82E0AA",
)


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    AUTHORIZED = "authorized"
    ESTABLISHED = "established"
    DENIED = "denied"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.UNAUTHENTICATED: frozenset(
        {SessionState.AUTHENTICATED, SessionState.DENIED}
    ),
    SessionState.AUTHENTICATED: frozenset(
        {SessionState.AUTHORIZED, SessionState.DENIED}
    ),
    SessionState.AUTHORIZED: frozenset(
        {SessionState.ESTABLISHED, SessionState.DENIED}
    ),
    SessionState.ESTABLISHED: frozenset(),
    SessionState.DENIED: frozenset(),
}


class NotePermission(StrEnum):
    """Effective permission of a user on a note."""

    OWNER = "OWNER"
    EDIT = "EDIT"
    VIEW = "VIEW"

    @property
    def read_only(self) -> bool:
        return self is NotePermission.VIEW


class AccessDeniedError(Exception):
    """The connection is refused. Deliberately carries no reason."""

    def __init__(self) -> None:
        super().__init__("Access denied")


def _js_string_hash(value: str) -> int:
    """``h = 31 * h + c`` over UTF-16 code units, wrapped to signed 32 bits."""
    encoded = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def user_color(identity: str) -> str:
    """Deterministic cursor colour for an identity.

    Matches the colour the browser client computes for the same id.
    """
    return CURSOR_COLORS[abs(_js_string_hash(identity)) % len(CURSOR_COLORS)]


@dataclass(frozen=True)
class SessionContext:
    """What an established session knows about its user."""

    identity: str
    display_name: str
    color: str
    read_only: bool
    permission: NotePermission

    def to_hook_context(self) -> dict[str, Any]:
        """The context object handed back to the session server."""
        return {
            "user": {
                "id": self.identity,
                "name": self.display_name,
                "color": self.color,
            },
            "readOnly": self.read_only,
        }


class SessionAttempt:
    """One connection attempt moving through the gate."""

    def __init__(self, document_name: str) -> None:
        self.document_name = document_name
        self.state = SessionState.UNAUTHENTICATED

    def advance(self, target: SessionState) -> None:
        """Move to ``target``.

        Raises:
            RuntimeError: ``target`` is not reachable from the current state.
        """
        if target not in _TRANSITIONS[self.state]:
            msg = f"Illegal session transition {self.state.name} -> {target.name}"
            raise RuntimeError(msg)
        self.state = target

    def deny(self, reason: str) -> AccessDeniedError:
        """Mark the attempt denied and build the error to raise."""
        logger.info(
            "Denied collaboration on %s (%s): %s",
            self.document_name,
            self.state.value,
            reason,
        )
        self.advance(SessionState.DENIED)
        return AccessDeniedError()


async def authorize_session(
    token: str | None,
    document_name: str,
    verifier: CredentialVerifier,
) -> SessionContext:
    """Authenticate ``token`` and authorise it for ``document_name``.

    Owner of the live note gets OWNER, otherwise a share's permission
    applies; anything else is denied. VIEW sessions are read-only.

    Raises:
        AccessDeniedError: For every kind of refusal.
    """
    from notezcollab.db.acl import resolve_note_permission

    attempt = SessionAttempt(document_name)

    if not token:
        raise attempt.deny("no credential")
    try:
        credential = verifier.verify(token)
    except InvalidCredentialError as e:
        raise attempt.deny(f"credential rejected: {e}") from None
    attempt.advance(SessionState.AUTHENTICATED)

    note_id = parse_document_id(document_name)
    if note_id is None:
        raise attempt.deny("document name is not a note id")

    try:
        granted = await resolve_note_permission(note_id, credential.subject_id)
    except Exception:
        logger.exception("Permission lookup failed for note %s", note_id)
        raise attempt.deny("permission lookup failed") from None
    if granted is None:
        raise attempt.deny(f"no grant for user {credential.subject_id}")
    try:
        permission = NotePermission(granted)
    except ValueError:
        raise attempt.deny(f"unknown permission {granted!r}") from None
    attempt.advance(SessionState.AUTHORIZED)

    context = SessionContext(
        identity=credential.subject_id,
        display_name=credential.display_name,
        color=user_color(credential.subject_id),
        read_only=permission.read_only,
        permission=permission,
    )
    attempt.advance(SessionState.ESTABLISHED)
    logger.info(
        "Collaboration on %s for user %s as %s",
        document_name,
        context.identity,
        permission.value,
    )
    return context
