"""Notes route table: binds the five controller operations to /notes."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from bestcity_api.handlers.notes import NotesController
from bestcity_api.schemas.note import NoteCreate, NotePatch

router = APIRouter(tags=["notes"])


def get_controller(request: Request) -> NotesController:
    return request.app.state.notes_controller


@router.post("/notes", status_code=201)
async def create_note(
    data: NoteCreate | None = None,
    controller: NotesController = Depends(get_controller),
) -> JSONResponse:
    return await controller.create(data)


@router.get("/notes")
async def get_all_notes(
    controller: NotesController = Depends(get_controller),
) -> JSONResponse:
    return await controller.list_all()


@router.get("/notes/{note_id}")
async def get_note_by_id(
    note_id: str,
    controller: NotesController = Depends(get_controller),
) -> JSONResponse:
    return await controller.get_by_id(note_id)


@router.put("/notes/{note_id}")
async def update_note(
    note_id: str,
    data: NotePatch | None = None,
    controller: NotesController = Depends(get_controller),
) -> JSONResponse:
    return await controller.update(note_id, data)


@router.delete("/notes/{note_id}")
async def delete_note(
    note_id: str,
    controller: NotesController = Depends(get_controller),
) -> JSONResponse:
    return await controller.delete(note_id)
