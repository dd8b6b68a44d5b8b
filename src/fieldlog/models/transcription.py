"""Transcription entity - a saved source text and its derived log count."""

import re
import uuid
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from fieldlog.models.base import FieldLogModel, ensure_utc, utc_now
from fieldlog.utils.time_utils import format_date


class Transcription(FieldLogModel):
    """Source text that activity logs were extracted from.

    Owns its logs by back-reference (``ActivityLog.transcription_id``);
    deleting a transcription deletes those logs first.
    """

    id: str = Field(..., min_length=1)
    text: str
    title: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    logs_generated: int = Field(default=0, ge=0)

    @field_validator("created_at")
    @classmethod
    def _validate_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def generate_id(cls) -> str:
        """Generate a transcription ID."""
        return str(uuid.uuid4())

    @property
    def display_title(self) -> str:
        """Title shown in history listings."""
        return self.title or f"Transcription from {format_date(self.created_at)}"

    @property
    def export_filename(self) -> str:
        """Safe text file name derived from the title, e.g. pad_3_4_walkdown.txt."""
        slug = re.sub(r"[^a-z0-9]+", "_", self.title.lower()).strip("_")
        return f"{slug or 'transcription'}.txt"

    def to_row(self) -> dict[str, Any]:
        """Serialize to a ``transcriptions`` row."""
        return {
            "id": self.id,
            "text": self.text,
            "title": self.title,
            "logs_generated": self.logs_generated,
            "created_at": self.created_at.isoformat(),
        }


class TranscriptionSummary(Transcription):
    """History listing row with the live count of logs still referencing it."""

    log_count: int = Field(default=0, ge=0)
