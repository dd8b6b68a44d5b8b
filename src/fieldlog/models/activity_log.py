"""Activity log entity - one recorded real-world activity."""

import json
import math
import random
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from fieldlog.models.base import FieldLogModel, ensure_utc, utc_now


Coordinates = tuple[float, float]


class ActivityStatus(str, Enum):
    """Lifecycle status of an activity."""
    COMPLETED = "completed"
    IN_PROGRESS = "in-progress"
    PLANNED = "planned"
    DELAYED = "delayed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "ActivityStatus":
        """Coerce a raw status value, falling back to COMPLETED.

        "In Progress", "in_progress" and "IN-PROGRESS" all map to
        IN_PROGRESS; anything unrecognized maps to COMPLETED.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.COMPLETED
        key = value.strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(key)
        except ValueError:
            return cls.COMPLETED


def clean_coordinates(value: Any) -> Optional[Coordinates]:
    """Validate a raw coordinate value as a (longitude, latitude) pair.

    Only a 2-element sequence of finite numbers within longitude/latitude
    range is accepted. A JSON-encoded array string is decoded first.
    Every other shape yields None, never a fabricated origin.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return None

    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None

    pair = []
    for component in value:
        # bool is an int subclass but never a coordinate
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            return None
        number = float(component)
        if not math.isfinite(number):
            return None
        pair.append(number)

    longitude, latitude = pair
    if not -180.0 <= longitude <= 180.0 or not -90.0 <= latitude <= 90.0:
        return None
    return (longitude, latitude)


class ActivityLog(FieldLogModel):
    """A normalized record of an activity at a location.

    Free-text fields default to an empty string. ``coordinates`` is a
    (longitude, latitude) pair or None.
    """

    id: str = Field(..., min_length=1)
    timestamp: datetime = Field(default_factory=utc_now)
    location: str
    activity_category: str = ""
    activity_type: str = ""
    equipment: str = ""
    personnel: str = ""
    material: str = ""
    measurement: Optional[str] = None
    status: ActivityStatus = Field(default=ActivityStatus.COMPLETED)
    notes: Optional[str] = None
    media: Optional[str] = None
    reference_id: str = Field(..., min_length=1)
    coordinates: Optional[Coordinates] = None
    transcription_id: Optional[str] = None

    # Store bookkeeping
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _validate_coordinates(cls, value: Any) -> Optional[Coordinates]:
        if value is None:
            return None
        return clean_coordinates(value)

    @field_validator("timestamp", "created_at", "updated_at")
    @classmethod
    def _validate_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @classmethod
    def generate_id(cls) -> str:
        """Generate a log ID."""
        return str(uuid.uuid4())

    @classmethod
    def generate_reference_id(cls, rng: Optional[random.Random] = None) -> str:
        """Generate a human-facing reference like REF-4821."""
        rng = rng or random.Random()
        return f"REF-{rng.randint(0, 9999)}"

    @property
    def has_coordinates(self) -> bool:
        """Whether this log can be placed on a map."""
        return self.coordinates is not None

    def to_row(self) -> dict[str, Any]:
        """Serialize to an ``activity_logs`` row.

        Coordinates are kept as a 2-element list; SQL backends that lack a
        JSON column type encode it themselves.
        """
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "location": self.location,
            "activity_category": self.activity_category,
            "activity_type": self.activity_type,
            "equipment": self.equipment,
            "personnel": self.personnel,
            "material": self.material,
            "measurement": self.measurement,
            "status": self.status,
            "notes": self.notes,
            "media": self.media,
            "reference_id": self.reference_id,
            "coordinates": list(self.coordinates) if self.coordinates else None,
            "transcription_id": self.transcription_id,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ActivityLog":
        """Deserialize an ``activity_logs`` row."""
        return cls(
            id=row["id"],
            timestamp=row["timestamp"],
            location=row.get("location") or "",
            activity_category=row.get("activity_category") or "",
            activity_type=row.get("activity_type") or "",
            equipment=row.get("equipment") or "",
            personnel=row.get("personnel") or "",
            material=row.get("material") or "",
            measurement=row.get("measurement"),
            status=ActivityStatus.parse(row.get("status")),
            notes=row.get("notes"),
            media=row.get("media"),
            reference_id=row.get("reference_id") or cls.generate_reference_id(),
            coordinates=row.get("coordinates"),
            transcription_id=row.get("transcription_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
