"""Note store: persistence operations on the notes table.

Driver failures and identifiers the store cannot cast surface as
``StoreError``; schema violations surface as ``ValidationError``.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bestcity_api.errors import StoreError
from bestcity_api.models.note import Note, utcnow
from bestcity_api.schemas.note import NotePatch


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(str(e)) from e


def _parse_id(note_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(note_id)
    except (ValueError, TypeError, AttributeError) as e:
        raise StoreError(
            f'Cast to UUID failed for value "{note_id}" at path "id" for model "Note"'
        ) from e


async def create_note(session: AsyncSession, title: str, content: str) -> Note:
    now = utcnow()
    note = Note(title=title, content=content, created_at=now, updated_at=now)
    session.add(note)
    with _store_errors():
        await session.flush()
    return note


async def list_notes(session: AsyncSession) -> list[Note]:
    """All notes, most recently created first."""
    with _store_errors():
        result = await session.execute(select(Note).order_by(Note.created_at.desc()))
    return list(result.scalars().all())


async def get_note(session: AsyncSession, note_id: str | uuid.UUID) -> Note | None:
    parsed = _parse_id(note_id)
    with _store_errors():
        return await session.get(Note, parsed)


async def update_note(session: AsyncSession, note: Note, patch: NotePatch) -> Note:
    for field, value in patch.changes().items():
        setattr(note, field, value)
    note.touch_updated_at()
    with _store_errors():
        await session.flush()
    return note


async def delete_note(session: AsyncSession, note: Note) -> None:
    with _store_errors():
        await session.delete(note)
        await session.flush()
