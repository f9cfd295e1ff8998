"""Error taxonomy for the notes API.

Each error carries the HTTP status the controller answers with.
"""


class NoteError(Exception):
    status_code = 500
    kind = "store"


class ValidationError(NoteError):
    """A required field is missing or a field fails the note schema."""

    status_code = 400
    kind = "validation"


class NotFoundError(NoteError):
    status_code = 404
    kind = "not_found"

    def __init__(self, message: str = "Note not found"):
        super().__init__(message)


class StoreError(NoteError):
    """Persistence or driver failure, including identifiers the store cannot cast."""

    status_code = 500
    kind = "store"
