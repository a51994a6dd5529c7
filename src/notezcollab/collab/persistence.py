"""Load and save CRDT state for a collaborative note.

The session server keeps documents in memory and calls these two
operations to fill a document the first time it is opened and to flush it
after edits. The binary snapshot in ``note_crdt_state`` is the source of
truth; ``notes.content`` is a markdown mirror regenerated on every save so
search and the REST API keep working.

Neither operation raises for database or conversion faults. They return a
result naming the phase that failed, and the caller decides how to log it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class LoadSource(StrEnum):
    """Where a loaded state came from."""

    SNAPSHOT = "snapshot"
    MARKDOWN = "markdown"
    MISSING = "missing"
    ERROR = "error"


class Phase(StrEnum):
    """Step of a load or save that produced a non-clean outcome."""

    PARSE_ID = "parse-id"
    FETCH_SNAPSHOT = "fetch-snapshot"
    FETCH_NOTE = "fetch-note"
    CONVERT = "convert"
    PERSIST_INITIAL = "persist-initial"
    STORE_SNAPSHOT = "store-snapshot"
    SYNC_MARKDOWN = "sync-markdown"


@dataclass(frozen=True)
class LoadResult:
    """Outcome of ``load_document_state``.

    Attributes:
        state: CRDT update to seed the document with, or None for "no
            document" (the server then starts from an empty one).
        source: Where ``state`` came from.
        phase: Step that stopped or degraded the load; None on a clean load.
        error: The exception caught in ``phase``, if any.
    """

    state: bytes | None
    source: LoadSource
    phase: Phase | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class SaveResult:
    """Outcome of ``save_document_state``.

    Attributes:
        snapshot_saved: The binary snapshot was written.
        markdown_synced: The markdown mirror update ran to completion.
        notes_updated: Rows the mirror update touched (0 for a missing or
            soft-deleted note).
        phase: Step that failed; None on a clean save.
        error: The exception caught in ``phase``, if any.
    """

    snapshot_saved: bool
    markdown_synced: bool = False
    notes_updated: int = 0
    phase: Phase | None = None
    error: Exception | None = None


def parse_document_id(document_name: str) -> str | None:
    """The note id a document name refers to, or None if it is not a UUID.

    Note ids are stored as text; the name is returned in canonical
    lowercase hyphenated form.
    """
    try:
        return str(UUID(str(document_name)))
    except ValueError:
        return None


async def load_document_state(document_name: str) -> LoadResult:
    """Fetch the state a collaborative document should start from.

    1. A stored snapshot is returned as is.
    2. Otherwise the live (non-deleted) note's markdown is converted and
       stored as the initial snapshot, so it is converted only once. When
       two first loads race, both return the snapshot that was stored.
    3. No live note: ``state`` is None.

    If storing the initial snapshot fails the converted state is still
    returned; the next save writes it. Starting empty instead would let
    that save blank the note.
    """
    from notezcollab.codec import markdown_to_crdt_state
    from notezcollab.db.crdt_state import get_crdt_state, seed_crdt_state
    from notezcollab.db.notes import get_live_note

    note_id = parse_document_id(document_name)
    if note_id is None:
        return LoadResult(None, LoadSource.MISSING, phase=Phase.PARSE_ID)

    try:
        snapshot = await get_crdt_state(note_id)
    except Exception as e:
        return LoadResult(None, LoadSource.ERROR, Phase.FETCH_SNAPSHOT, e)
    if snapshot is not None:
        return LoadResult(snapshot, LoadSource.SNAPSHOT)

    try:
        note = await get_live_note(note_id)
    except Exception as e:
        return LoadResult(None, LoadSource.ERROR, Phase.FETCH_NOTE, e)
    if note is None:
        return LoadResult(None, LoadSource.MISSING)

    try:
        state = markdown_to_crdt_state(note.content or "")
    except Exception as e:
        return LoadResult(None, LoadSource.ERROR, Phase.CONVERT, e)

    try:
        state = await seed_crdt_state(note_id, state)
    except Exception as e:
        return LoadResult(state, LoadSource.MARKDOWN, Phase.PERSIST_INITIAL, e)
    return LoadResult(state, LoadSource.MARKDOWN)


async def save_document_state(document_name: str, state: bytes) -> SaveResult:
    """Persist a document's state and regenerate its markdown mirror.

    The snapshot write is its own transaction; a failure there stops the
    save with the mirror untouched. The mirror update is best-effort: a
    failure is reported but never undoes the snapshot. Soft-deleted notes
    keep their content.
    """
    from notezcollab.codec import crdt_state_to_markdown
    from notezcollab.db.crdt_state import save_crdt_state
    from notezcollab.db.notes import update_note_content

    note_id = parse_document_id(document_name)
    if note_id is None:
        return SaveResult(snapshot_saved=False, phase=Phase.PARSE_ID)

    try:
        await save_crdt_state(note_id, bytes(state))
    except Exception as e:
        return SaveResult(snapshot_saved=False, phase=Phase.STORE_SNAPSHOT, error=e)

    try:
        markdown = crdt_state_to_markdown(bytes(state))
    except Exception as e:
        return SaveResult(snapshot_saved=True, phase=Phase.CONVERT, error=e)

    try:
        updated = await update_note_content(note_id, markdown)
    except Exception as e:
        return SaveResult(snapshot_saved=True, phase=Phase.SYNC_MARKDOWN, error=e)
    return SaveResult(snapshot_saved=True, markdown_synced=True, notes_updated=updated)
