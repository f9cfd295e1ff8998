"""Notes controller: create, list, view, update, delete.

Every handler answers with the JSON envelope ``{success, message?, data?,
count?, error?}`` and never lets an exception reach the client.
"""

import logging
from typing import Any

from fastapi.responses import JSONResponse

from bestcity_api.database import Database
from bestcity_api.errors import NotFoundError, NoteError, ValidationError
from bestcity_api.schemas.note import NoteCreate, NotePatch, NoteRead
from bestcity_api.services import note_service
from bestcity_api.utils.metrics import NotesMetrics

logger = logging.getLogger(__name__)

COLLECTION_ROUTE = "/notes"
ITEM_ROUTE = "/notes/{note_id}"


def _envelope(status_code: int, **body: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": status_code < 400, **body})


class NotesController:
    def __init__(self, database: Database, metrics: NotesMetrics) -> None:
        self.database = database
        self.metrics = metrics

    async def create(self, data: NoteCreate | None) -> JSONResponse:
        data = data or NoteCreate()
        try:
            if not data.title or not data.content:
                raise ValidationError("Title and content are required")

            async with self.database.session() as session:
                with self.metrics.query_timer("create"):
                    note = await note_service.create_note(session, data.title, data.content)
            payload = NoteRead.model_validate(note)
        except Exception as e:
            return self._fail(e, "Error creating note", COLLECTION_ROUTE)

        self.metrics.notes_created.inc()
        logger.info("Created note with ID: %s", payload.id)
        return _envelope(
            201, message="Note created successfully", data=payload.to_json()
        )

    async def list_all(self) -> JSONResponse:
        try:
            async with self.database.session() as session:
                with self.metrics.query_timer("find"):
                    notes = await note_service.list_notes(session)
            payload = [NoteRead.model_validate(note).to_json() for note in notes]
        except Exception as e:
            return self._fail(e, "Error retrieving notes", COLLECTION_ROUTE)

        self.metrics.notes_retrieved.inc()
        logger.info("Retrieved %d notes", len(payload))
        return _envelope(200, count=len(payload), data=payload)

    async def get_by_id(self, note_id: str) -> JSONResponse:
        try:
            async with self.database.session() as session:
                with self.metrics.query_timer("findById"):
                    note = await note_service.get_note(session, note_id)
                if note is None:
                    raise NotFoundError()
                payload = NoteRead.model_validate(note)
        except Exception as e:
            return self._fail(e, "Error retrieving note", ITEM_ROUTE)

        self.metrics.notes_retrieved.inc()
        logger.info("Retrieved note with ID: %s", note_id)
        return _envelope(200, data=payload.to_json())

    async def update(self, note_id: str, patch: NotePatch | None) -> JSONResponse:
        patch = patch or NotePatch()
        try:
            async with self.database.session() as session:
                with self.metrics.query_timer("findById"):
                    note = await note_service.get_note(session, note_id)
                if note is None:
                    raise NotFoundError()
                with self.metrics.query_timer("update"):
                    note = await note_service.update_note(session, note, patch)
            payload = NoteRead.model_validate(note)
        except Exception as e:
            return self._fail(e, "Error updating note", ITEM_ROUTE)

        self.metrics.notes_updated.inc()
        logger.info("Updated note with ID: %s", note_id)
        return _envelope(
            200, message="Note updated successfully", data=payload.to_json()
        )

    async def delete(self, note_id: str) -> JSONResponse:
        try:
            async with self.database.session() as session:
                with self.metrics.query_timer("findById"):
                    note = await note_service.get_note(session, note_id)
                if note is None:
                    raise NotFoundError()
                snapshot = NoteRead.model_validate(note)
                with self.metrics.query_timer("delete"):
                    await note_service.delete_note(session, note)
        except Exception as e:
            return self._fail(e, "Error deleting note", ITEM_ROUTE)

        self.metrics.notes_deleted.inc()
        logger.info("Deleted note with ID: %s", note_id)
        return _envelope(
            200, message="Note deleted successfully", data=snapshot.to_json()
        )

    def _fail(self, error: Exception, message: str, route: str) -> JSONResponse:
        kind = error.kind if isinstance(error, NoteError) else "store"
        self.metrics.errors_total.labels(type=kind, route=route).inc()

        if isinstance(error, (ValidationError, NotFoundError)):
            logger.info("Note request on %s rejected: %s", route, error)
            return _envelope(error.status_code, message=str(error))

        logger.error(
            "%s: %s",
            message,
            error,
            extra={"error": str(error), "route": route},
            exc_info=error,
        )
        return _envelope(500, message=message, error=str(error))
