import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from bestcity_api.errors import ValidationError
from bestcity_api.models.base import Base

TITLE_MAX_LENGTH = 200


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    __tablename__ = "notes"
    __table_args__ = (Index("ix_notes_created_at", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @validates("title")
    def _validate_title(self, key: str, value: str | None) -> str:
        title = value.strip() if isinstance(value, str) else ""
        if not title:
            raise ValidationError("Please enter note title")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Note title cannot exceed {TITLE_MAX_LENGTH} characters"
            )
        return title

    @validates("content")
    def _validate_content(self, key: str, value: str | None) -> str:
        content = value.strip() if isinstance(value, str) else ""
        if not content:
            raise ValidationError("Please enter note content")
        return content

    def touch_updated_at(self) -> None:
        """Mark the note as modified now. Called by every update."""
        self.updated_at = utcnow()
