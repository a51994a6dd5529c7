"""Integration test configuration.

Tests here talk to a real PostgreSQL database named by
DEV__TEST_DATABASE_URL. Each test creates its own notes with fresh UUIDs,
so tests do not interfere with each other or with existing rows.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from notezcollab.config import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Generator


async def _create_schema(url: str) -> None:
    # Import registers the tables on SQLModel.metadata
    import notezcollab.db.models  # noqa: F401

    engine = create_async_engine(url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    await engine.dispose()


@pytest.fixture(scope="session")
def db_schema() -> Generator[None]:
    """Point DATABASE__URL at the test database and create the tables once.

    ``notes`` and ``note_shares`` normally come from the REST application's
    migrations; ``create_all`` only creates tables that are missing.
    """
    test_url = get_settings().dev.test_database_url
    if not test_url:
        pytest.fail("DEV__TEST_DATABASE_URL is required for integration tests.")

    os.environ["DATABASE__URL"] = test_url
    get_settings.cache_clear()
    asyncio.run(_create_schema(test_url))
    yield


@pytest_asyncio.fixture(autouse=True)
async def db_engine(db_schema: None) -> AsyncIterator[None]:  # noqa: ARG001
    """Dispose of the pooled engine after each test.

    The engine's connections are bound to the test's event loop.
    """
    from notezcollab.db.engine import close_db

    yield
    await close_db()


async def create_note(
    user_id: str,
    content: str = "",
    *,
    title: str = "",
    deleted: bool = False,
) -> str:
    """Insert a note and return its id."""
    from notezcollab.db.engine import get_session
    from notezcollab.db.models import Note

    note = Note(user_id=user_id, title=title, content=content, deleted=deleted)
    async with get_session() as session:
        session.add(note)
        await session.flush()
        return note.id


async def share_note(
    note_id: str, owner_id: str, shared_with_id: str, permission: str
) -> None:
    """Share a note with another user."""
    from notezcollab.db.engine import get_session
    from notezcollab.db.models import NoteShare

    async with get_session() as session:
        session.add(
            NoteShare(
                note_id=note_id,
                owner_id=owner_id,
                shared_with_id=shared_with_id,
                permission=permission,
            )
        )


async def read_note(note_id: str):
    """The note row as stored, deleted or not."""
    from notezcollab.db.engine import get_session
    from notezcollab.db.models import Note

    async with get_session() as session:
        return await session.get(Note, note_id)


async def hard_delete_note(note_id: str) -> None:
    from sqlalchemy import delete

    from notezcollab.db.engine import get_session
    from notezcollab.db.models import Note

    async with get_session() as session:
        await session.execute(delete(Note).where(Note.id == note_id))
