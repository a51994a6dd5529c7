"""SQLModel database models.

``notes`` and ``note_shares`` belong to the REST application; they are
mapped here only so the collaboration hooks can read them and update the
markdown mirror. ``note_crdt_state`` is owned by this package.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    LargeBinary,
    Text,
)
from sqlalchemy.dialects import postgresql
from sqlmodel import Field, SQLModel


class SharePermission(StrEnum):
    """Access level a share grants to the user it is shared with."""

    VIEW = "VIEW"
    EDIT = "EDIT"


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def utcnow_naive() -> datetime:
    """Return current UTC time without tzinfo, for ``TIMESTAMP(3)`` columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid4())


def _timestamp_column() -> Any:
    """Create a TIMESTAMP(3) column (no time zone, UTC by convention)."""
    return Column(postgresql.TIMESTAMP(precision=3), nullable=False)


def _timestamptz_column() -> Any:
    """Create a TIMESTAMP WITH TIME ZONE column for PostgreSQL."""
    return Column(DateTime(timezone=True), nullable=False)


def _cascade_fk_column(target: str, *, primary_key: bool = False) -> Any:
    """Create a TEXT foreign key column with CASCADE DELETE."""
    return Column(
        Text,
        ForeignKey(target, ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        primary_key=primary_key,
    )


class Note(SQLModel, table=True):
    """A markdown note.

    Attributes:
        id: Primary key (a UUID rendered as text); also the collaborative
            document name.
        user_id: Owner's user id.
        title: Note title (not part of the collaborative document).
        content: Markdown mirror of the document.
        deleted: Soft-delete flag; soft-deleted notes are never synced.
        updated_at: Last modification time (naive UTC).
    """

    __tablename__ = "notes"

    id: str = Field(default_factory=_new_id, sa_column=Column(Text, primary_key=True))
    user_id: str = Field(sa_column=Column(Text, nullable=False, index=True))
    title: str = Field(default="", sa_column=Column(Text, nullable=False))
    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    deleted: bool = Field(
        default=False,
        sa_column=Column(sa.Boolean, nullable=False, server_default="false"),
    )
    updated_at: datetime = Field(
        default_factory=utcnow_naive, sa_column=_timestamp_column()
    )


class NoteShare(SQLModel, table=True):
    """A grant of one note to one other user.

    One row per (note, user) pair. Cascade-deletes with the note.
    """

    __tablename__ = "note_shares"
    __table_args__ = (
        Index(
            "note_shares_note_id_shared_with_id_key",
            "note_id",
            "shared_with_id",
            unique=True,
        ),
        Index("note_shares_note_id_idx", "note_id"),
        Index("note_shares_shared_with_id_idx", "shared_with_id"),
    )

    id: str = Field(default_factory=_new_id, sa_column=Column(Text, primary_key=True))
    note_id: str = Field(sa_column=_cascade_fk_column("notes.id"))
    owner_id: str = Field(sa_column=Column(Text, nullable=False))
    shared_with_id: str = Field(sa_column=Column(Text, nullable=False))
    permission: str = Field(
        default=SharePermission.VIEW.value,
        sa_column=Column(
            sa.Enum(*(p.value for p in SharePermission), name="SharePermission"),
            nullable=False,
            server_default=SharePermission.VIEW.value,
        ),
    )
    created_at: datetime = Field(
        default_factory=utcnow_naive, sa_column=_timestamp_column()
    )
    updated_at: datetime = Field(
        default_factory=utcnow_naive, sa_column=_timestamp_column()
    )


class NoteCrdtState(SQLModel, table=True):
    """Binary CRDT snapshot of a note's collaborative document.

    Created on the first collaborative session and the source of truth
    afterwards. Removed with the note on hard delete; a soft-deleted note
    keeps its snapshot.

    Attributes:
        note_id: The note (and document) this snapshot belongs to.
        state: Full Yjs v1 update of the document.
        updated_at: Time of the last store.
    """

    __tablename__ = "note_crdt_state"

    note_id: str = Field(sa_column=_cascade_fk_column("notes.id", primary_key=True))
    state: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=_timestamptz_column()
    )
