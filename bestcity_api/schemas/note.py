import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator


class NoteCreate(BaseModel):
    title: str | None = None
    content: str | None = None

    model_config = {"extra": "ignore", "str_strip_whitespace": True}


class NotePatch(BaseModel):
    """Partial update. Only fields present in the request body are applied.

    An omitted field is absent; an explicit ``null`` is present and will be
    rejected by the note's own validation.
    """

    title: str | None = None
    content: str | None = None

    model_config = {"extra": "ignore"}

    def changes(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in self.model_fields_set}


class NoteRead(BaseModel):
    """Client-visible projection of a note."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    title: str
    content: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Backends without timezone support hand back naive UTC values
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
