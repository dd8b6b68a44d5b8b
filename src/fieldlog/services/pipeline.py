"""Transcription Pipeline - from free text to saved activity logs.

Responsible for:
- Validating and submitting text to the extraction service
- Normalizing returned candidates into ActivityLog records
- Persisting a transcription together with its logs
- Cascading deletion of a transcription and its logs
- Tracking pipeline state and refusing overlapping submissions

States:
    idle -> submitting -> normalized -> persisting -> done
                                                   \\-> failed
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from fieldlog.errors import (
    FieldLogError,
    NoResultsError,
    PersistenceError,
    PipelineBusyError,
    SchemaMissingError,
    StoreError,
    ValidationError,
)
from fieldlog.models import ActivityLog, Transcription
from fieldlog.services.extraction_client import ExtractionClient
from fieldlog.services.log_normalizer import LogNormalizer
from fieldlog.services.log_store import LogStore
from fieldlog.services.schema_check import SchemaCapabilityCheck

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Processing state of the pipeline."""
    IDLE = "idle"
    SUBMITTING = "submitting"
    NORMALIZED = "normalized"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


BUSY_STATES = frozenset({PipelineState.SUBMITTING, PipelineState.PERSISTING})


@dataclass
class PipelineResult:
    """Outcome of processing one transcription."""

    logs: list[ActivityLog]
    transcription_id: Optional[str] = None
    from_cache: bool = False
    persisted: bool = False
    errors: list[FieldLogError] = field(default_factory=list)


class TranscriptionPipeline:
    """Coordinates extraction, normalization and persistence of transcriptions."""

    TITLE_MAX_LENGTH = 60

    def __init__(
        self,
        extractor: ExtractionClient,
        store: LogStore,
        normalizer: Optional[LogNormalizer] = None,
        schema_check: Optional[SchemaCapabilityCheck] = None,
    ):
        """Initialize the pipeline.

        Args:
            extractor: Client for the extraction service
            store: Backing store for logs and transcriptions
            normalizer: Normalizer for raw candidates (default: LogNormalizer())
            schema_check: Cached schema probe (default: one over ``store``)
        """
        self.extractor = extractor
        self.store = store
        self.normalizer = normalizer or LogNormalizer()
        self.schema_check = schema_check or SchemaCapabilityCheck(store)

        self.state = PipelineState.IDLE
        self.logs: list[ActivityLog] = []
        self.from_cache = False
        self.last_error: Optional[FieldLogError] = None

    @property
    def busy(self) -> bool:
        """Whether a request is currently in flight."""
        return self.state in BUSY_STATES

    def _ensure_not_busy(self) -> None:
        if self.busy:
            raise PipelineBusyError(
                f"A transcription is already being processed (state: {self.state.value})."
            )

    def submit(
        self,
        text: str,
        preferred_extractor: Optional[str] = None,
    ) -> list[ActivityLog]:
        """Extract and normalize activity logs from text.

        Args:
            text: Transcription text
            preferred_extractor: Optional extractor preference for the service

        Returns:
            Normalized logs in service order

        Raises:
            ValidationError: If the text is empty after trimming
            ServiceUnavailable: If the extraction call fails
            ConfigurationError: If the service's credential is not configured
            NoResultsError: If no activities were found
            PipelineBusyError: If another request is in flight
        """
        self._ensure_not_busy()

        if not text or not text.strip():
            raise ValidationError("Please enter a transcription to process.")

        self.state = PipelineState.SUBMITTING
        try:
            result = self.extractor.extract(text, preferred_extractor)
            logs = self.normalizer.normalize_batch(result.logs)
            if not logs:
                raise NoResultsError("No activities were found in the transcription.")
        except FieldLogError as e:
            # Prior results stay untouched; nothing was persisted
            self.last_error = e
            self.state = PipelineState.IDLE
            raise
        except Exception:
            logger.exception("Unexpected failure while extracting logs")
            self.state = PipelineState.IDLE
            raise

        self.logs = logs
        self.from_cache = result.from_cache
        self.last_error = None
        self.state = PipelineState.NORMALIZED
        logger.info("Normalized %d activity log(s)", len(logs))
        return logs

    def persist(
        self,
        logs: list[ActivityLog],
        transcription_text: str,
        title: Optional[str] = None,
    ) -> str:
        """Save a transcription and its logs.

        The transcription row is written first, then every log tagged with
        its ID in a single batch insert.

        Args:
            logs: Normalized logs to save
            transcription_text: Source text the logs came from
            title: Display title (default: first line of the text)

        Returns:
            ID of the saved transcription

        Raises:
            SchemaMissingError: If the activity tables have not been provisioned
            PersistenceError: If any write fails
            PipelineBusyError: If another request is in flight
        """
        self._ensure_not_busy()

        try:
            self.schema_check.require_ready()
        except SchemaMissingError as e:
            self.last_error = e
            self.state = PipelineState.FAILED
            raise

        transcription = Transcription(
            id=Transcription.generate_id(),
            text=transcription_text,
            title=title if title is not None else self.default_title(transcription_text),
            logs_generated=len(logs),
        )
        tagged = [
            log.model_copy(update={"transcription_id": transcription.id})
            for log in logs
        ]

        self.state = PipelineState.PERSISTING
        try:
            self.store.insert_transcription(transcription)
            self.store.insert_logs(tagged)
        except StoreError as e:
            error = PersistenceError(f"Failed to save logs to the database: {e.message}")
            self.last_error = error
            self.state = PipelineState.FAILED
            raise error from e
        except Exception:
            logger.exception("Unexpected failure while saving logs")
            self.state = PipelineState.FAILED
            raise

        self.logs = tagged
        self.last_error = None
        self.state = PipelineState.DONE
        logger.info("Saved transcription %s with %d log(s)", transcription.id, len(tagged))
        return transcription.id

    def process(
        self,
        text: str,
        title: Optional[str] = None,
        preferred_extractor: Optional[str] = None,
        save: bool = True,
    ) -> PipelineResult:
        """Submit text and, optionally, persist the results.

        Extraction errors propagate. Persistence errors are collected in
        the result so the extracted logs remain available to the caller.

        Args:
            text: Transcription text
            title: Display title for the saved transcription
            preferred_extractor: Optional extractor preference for the service
            save: Whether to persist the extracted logs

        Returns:
            PipelineResult with the logs and, if saved, the transcription ID
        """
        logs = self.submit(text, preferred_extractor)
        result = PipelineResult(logs=logs, from_cache=self.from_cache)

        if not save:
            return result

        try:
            result.transcription_id = self.persist(logs, text, title)
        except (SchemaMissingError, PersistenceError) as e:
            result.errors.append(e)
            return result

        result.logs = self.logs
        result.persisted = True
        return result

    def delete_transcription(self, transcription_id: str) -> int:
        """Delete a transcription and its logs. See module-level ``delete_transcription``."""
        deleted_logs = delete_transcription(self.store, transcription_id)
        self.logs = [log for log in self.logs if log.transcription_id != transcription_id]
        return deleted_logs

    def default_title(self, text: str) -> str:
        """First non-empty line of the text, truncated."""
        for line in text.strip().splitlines():
            line = line.strip()
            if line:
                if len(line) > self.TITLE_MAX_LENGTH:
                    return line[: self.TITLE_MAX_LENGTH - 3].rstrip() + "..."
                return line
        return ""


def delete_transcription(store: LogStore, transcription_id: str) -> int:
    """Delete a transcription and every log derived from it.

    Logs are deleted first; the transcription row is only deleted if that
    succeeds. A failure is not retried or cleaned up.

    Args:
        store: Backing store
        transcription_id: ID of the transcription

    Returns:
        Number of logs deleted

    Raises:
        PersistenceError: If either delete fails
    """
    try:
        deleted_logs = store.delete_logs_for_transcription(transcription_id)
    except StoreError as e:
        raise PersistenceError(
            f"Failed to delete logs for transcription {transcription_id}: {e.message}"
        ) from e

    try:
        store.delete_transcription(transcription_id)
    except StoreError as e:
        raise PersistenceError(
            f"Deleted {deleted_logs} log(s) but failed to delete transcription "
            f"{transcription_id}: {e.message}"
        ) from e

    logger.info("Deleted transcription %s and %d log(s)", transcription_id, deleted_logs)
    return deleted_logs
