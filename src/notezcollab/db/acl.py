"""Note permission resolution for collaborative sessions."""

from __future__ import annotations

from sqlmodel import col, select

from notezcollab.db.engine import get_session
from notezcollab.db.models import Note, NoteShare

OWNER = "OWNER"


async def resolve_note_permission(note_id: str, user_id: str) -> str | None:
    """Resolve the effective permission for a user on a note.

    1. Owner of the non-deleted note: ``"OWNER"``.
    2. Otherwise a share of that note with the user: its permission
       (``"EDIT"`` or ``"VIEW"``).
    3. Default deny: None. A soft-deleted note denies everyone, shares
       included.
    """
    async with get_session() as session:
        note = (
            await session.exec(
                select(Note).where(Note.id == note_id, col(Note.deleted).is_(False))
            )
        ).first()
        if note is None:
            return None
        if note.user_id == user_id:
            return OWNER

        share = (
            await session.exec(
                select(NoteShare).where(
                    NoteShare.note_id == note_id,
                    NoteShare.shared_with_id == user_id,
                )
            )
        ).first()
        return share.permission if share is not None else None
