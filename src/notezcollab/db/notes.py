"""Read access to notes and the markdown mirror update."""

from __future__ import annotations

from sqlalchemy import update
from sqlmodel import col, select

from notezcollab.db.engine import get_session
from notezcollab.db.models import Note, utcnow_naive


async def get_live_note(note_id: str) -> Note | None:
    """The note if it exists and is not soft-deleted."""
    async with get_session() as session:
        result = await session.exec(
            select(Note).where(Note.id == note_id, col(Note.deleted).is_(False))
        )
        return result.first()


async def update_note_content(note_id: str, content: str) -> int:
    """Overwrite the markdown mirror of a live note.

    Soft-deleted notes are left untouched.

    Returns:
        Number of rows updated (0 when the note is missing or deleted).
    """
    async with get_session() as session:
        result = await session.execute(
            update(Note)
            .where(col(Note.id) == note_id, col(Note.deleted).is_(False))
            .values(content=content, updated_at=utcnow_naive())
        )
        return result.rowcount
