"""Data models for the Field Activity Log System.

Persisted entities use Pydantic for validation and serialization; derived
views are frozen dataclasses.
ID formats:
- ActivityLog: uuid4
- Transcription: uuid4
- Reference: REF-{0..9999}
"""

from fieldlog.models.base import FieldLogModel, utc_now, ensure_utc
from fieldlog.models.activity_log import (
    ActivityLog,
    ActivityStatus,
    Coordinates,
    clean_coordinates,
)
from fieldlog.models.transcription import Transcription, TranscriptionSummary
from fieldlog.models.location_group import LocationGroup, MapMarker, MapScene, MapView

__all__ = [
    # Base
    "FieldLogModel",
    "utc_now",
    "ensure_utc",
    # Activity log
    "ActivityLog",
    "ActivityStatus",
    "Coordinates",
    "clean_coordinates",
    # Transcription
    "Transcription",
    "TranscriptionSummary",
    # Location views
    "LocationGroup",
    "MapMarker",
    "MapScene",
    "MapView",
]
