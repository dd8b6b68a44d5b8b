"""Log Normalizer - coerces raw extraction candidates into ActivityLog records.

Responsible for:
- Filling in generated identifiers, timestamps and reference IDs
- Coercing status and coordinate values to safe defaults
- Accepting both camelCase (service) and snake_case (row) field names
- Rejecting candidates without a location before they reach grouping
"""

import logging
import random
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from fieldlog.models import (
    ActivityLog,
    ActivityStatus,
    clean_coordinates,
    utc_now,
)
from fieldlog.utils.time_utils import parse_timestamp

logger = logging.getLogger(__name__)


# Canonical field name -> accepted raw keys, in lookup order
FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "timestamp": ("timestamp",),
    "location": ("location",),
    "activity_category": ("activityCategory", "activity_category"),
    "activity_type": ("activityType", "activity_type"),
    "equipment": ("equipment",),
    "personnel": ("personnel",),
    "material": ("material",),
    "measurement": ("measurement",),
    "status": ("status",),
    "notes": ("notes",),
    "media": ("media",),
    "reference_id": ("referenceId", "reference_id"),
    "coordinates": ("coordinates",),
    "transcription_id": ("transcriptionId", "transcription_id"),
}

REQUIRED_TEXT_FIELDS = (
    "location",
    "activity_category",
    "activity_type",
    "equipment",
    "personnel",
    "material",
)

OPTIONAL_TEXT_FIELDS = ("measurement", "notes", "media")


def _lookup(raw: Mapping, field_name: str) -> Any:
    for key in FIELD_KEYS[field_name]:
        if key in raw:
            return raw[key]
    return None


def _clean_text(value: Any) -> Optional[str]:
    """Stripped text for strings and plain numbers, None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return None


class LogNormalizer:
    """Normalizes raw candidate records into the canonical ActivityLog shape.

    ``normalize`` never raises: every malformed field is replaced by a
    default or dropped.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the normalizer.

        Args:
            clock: Source of the submission time for missing timestamps
            rng: Random source for generated reference IDs
        """
        self.clock = clock
        self.rng = rng or random.Random()

    def normalize(
        self,
        raw: Any,
        submitted_at: Optional[datetime] = None,
    ) -> ActivityLog:
        """Normalize one raw candidate.

        Args:
            raw: Candidate record from the extraction service
            submitted_at: Timestamp used when the candidate has none

        Returns:
            ActivityLog with every field in canonical form
        """
        if not isinstance(raw, Mapping):
            logger.warning("Extraction candidate is not an object: %r", type(raw).__name__)
            raw = {}

        submitted_at = submitted_at or self.clock()

        log_id = _clean_text(_lookup(raw, "id")) or ActivityLog.generate_id()
        timestamp = parse_timestamp(_lookup(raw, "timestamp")) or submitted_at
        reference_id = (
            _clean_text(_lookup(raw, "reference_id"))
            or ActivityLog.generate_reference_id(self.rng)
        )

        raw_status = _lookup(raw, "status")
        status = ActivityStatus.parse(raw_status)
        if raw_status is not None and status.value != raw_status:
            logger.debug("Coerced status %r to %r", raw_status, status.value)

        raw_coordinates = _lookup(raw, "coordinates")
        coordinates = clean_coordinates(raw_coordinates)
        if raw_coordinates is not None and coordinates is None:
            logger.debug("Dropped invalid coordinates %r", raw_coordinates)

        fields: dict[str, Any] = {
            name: _clean_text(_lookup(raw, name)) or ""
            for name in REQUIRED_TEXT_FIELDS
        }
        for name in OPTIONAL_TEXT_FIELDS:
            fields[name] = _clean_text(_lookup(raw, name)) or None

        return ActivityLog(
            id=log_id,
            timestamp=timestamp,
            status=status,
            reference_id=reference_id,
            coordinates=coordinates,
            transcription_id=_clean_text(_lookup(raw, "transcription_id")) or None,
            **fields,
        )

    def normalize_batch(
        self,
        raws: Iterable[Any],
        submitted_at: Optional[datetime] = None,
    ) -> list[ActivityLog]:
        """Normalize a batch and drop candidates without a location.

        All candidates share one submission time.

        Args:
            raws: Candidate records from the extraction service
            submitted_at: Timestamp used for candidates without one

        Returns:
            Valid normalized logs in input order
        """
        submitted_at = submitted_at or self.clock()
        logs = []
        for index, raw in enumerate(raws):
            log = self.normalize(raw, submitted_at)
            if not log.location:
                logger.warning("Rejected extraction candidate %d: no location", index)
                continue
            logs.append(log)
        return logs
