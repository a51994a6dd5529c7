"""Database module.

Async SQLModel access to PostgreSQL: notes, shares and CRDT snapshots.
"""

from __future__ import annotations

from notezcollab.db.acl import resolve_note_permission
from notezcollab.db.crdt_state import (
    delete_crdt_state,
    get_crdt_state,
    save_crdt_state,
    seed_crdt_state,
)
from notezcollab.db.engine import close_db, get_engine, get_session, init_db
from notezcollab.db.models import Note, NoteCrdtState, NoteShare, SharePermission
from notezcollab.db.notes import get_live_note, update_note_content

__all__ = [
    "Note",
    "NoteCrdtState",
    "NoteShare",
    "SharePermission",
    "close_db",
    "delete_crdt_state",
    "get_crdt_state",
    "get_engine",
    "get_live_note",
    "get_session",
    "init_db",
    "resolve_note_permission",
    "save_crdt_state",
    "seed_crdt_state",
    "update_note_content",
]
