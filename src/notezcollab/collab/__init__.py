"""Persistence bridge, access gate and session-server hooks."""

from __future__ import annotations

from notezcollab.collab.gate import (
    CURSOR_COLORS,
    AccessDeniedError,
    NotePermission,
    SessionContext,
    SessionState,
    authorize_session,
    user_color,
)
from notezcollab.collab.hooks import CollaborationHooks
from notezcollab.collab.persistence import (
    LoadResult,
    LoadSource,
    Phase,
    SaveResult,
    load_document_state,
    save_document_state,
)

__all__ = [
    "CURSOR_COLORS",
    "AccessDeniedError",
    "CollaborationHooks",
    "LoadResult",
    "LoadSource",
    "NotePermission",
    "Phase",
    "SaveResult",
    "SessionContext",
    "SessionState",
    "authorize_session",
    "load_document_state",
    "save_document_state",
    "user_color",
]
