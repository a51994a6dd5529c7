"""Repository for NoteCrdtState (binary snapshot) operations."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlmodel import col

from notezcollab.db.engine import get_session
from notezcollab.db.models import NoteCrdtState


async def get_crdt_state(note_id: str) -> bytes | None:
    """Load the stored snapshot for a note, or None if it has none yet."""
    async with get_session() as session:
        row = await session.get(NoteCrdtState, note_id)
        if row is None:
            return None
        return bytes(row.state)


async def save_crdt_state(note_id: str, state: bytes) -> None:
    """Insert or overwrite the snapshot for a note.

    Last writer wins; concurrent stores for the same note converge on one
    row through ``ON CONFLICT DO UPDATE``.
    """
    async with get_session() as session:
        stmt = pg_insert(NoteCrdtState).values(
            note_id=note_id,
            state=state,
            updated_at=datetime.now(UTC),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["note_id"],
            set_={
                "state": stmt.excluded.state,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await session.execute(stmt)


async def delete_crdt_state(note_id: str) -> bool:
    """Drop a note's snapshot so the next session rebuilds it from markdown.

    Returns True if a snapshot existed.
    """
    async with get_session() as session:
        row = await session.get(NoteCrdtState, note_id)
        if row is None:
            return False
        await session.delete(row)
        return True


async def seed_crdt_state(note_id: str, state: bytes) -> bytes:
    """Store the first snapshot for a note unless one already exists.

    Returns the snapshot now stored: ``state`` when this call wrote it,
    otherwise the one a concurrent first load stored before it.
    """
    async with get_session() as session:
        stmt = (
            pg_insert(NoteCrdtState)
            .values(note_id=note_id, state=state, updated_at=datetime.now(UTC))
            .on_conflict_do_nothing(index_elements=["note_id"])
            .returning(col(NoteCrdtState.state))
        )
        inserted = (await session.execute(stmt)).scalar_one_or_none()
        if inserted is not None:
            return bytes(inserted)
        row = await session.get(NoteCrdtState, note_id)
        return bytes(row.state) if row is not None else state
