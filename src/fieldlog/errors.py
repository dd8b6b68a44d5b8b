"""Error taxonomy for the Field Activity Log System.

Every error is terminal for the operation that raised it. Nothing is
retried automatically; the user re-invokes the operation.
"""

from typing import Optional


class FieldLogError(Exception):
    """Base error with optional actionable guidance for the user."""

    default_hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint if hint is not None else self.default_hint


class ValidationError(FieldLogError):
    """Bad local input, e.g. an empty transcription."""

    pass


class ServiceUnavailable(FieldLogError):
    """The extraction service could not be reached or failed."""

    default_hint = "Check your network connection and the extraction service URL."


class ConfigurationError(FieldLogError):
    """A required credential or endpoint is not configured."""

    default_hint = (
        "Set GEMINI_API_KEY in the extraction function's environment "
        "variables and redeploy it."
    )


class NoResultsError(FieldLogError):
    """The extraction found no activities. Informational, not a failure."""

    default_hint = "Try a transcription that mentions locations, equipment or personnel."


class SchemaMissingError(FieldLogError):
    """The backing store has not been provisioned with the activity tables."""

    default_hint = (
        "Run `fieldlog setup` for a local database, or run the script from "
        "`fieldlog setup --print-sql` in the Supabase SQL editor."
    )


class PersistenceError(FieldLogError):
    """A write or delete against the backing store failed.

    Nothing is guaranteed to have been saved; results already shown are
    not rolled back.
    """

    default_hint = "Check the backing store configuration and try again."


class StoreError(FieldLogError):
    """Raised by backing store implementations."""

    pass


class PipelineBusyError(FieldLogError):
    """A submission was made while another one is still in flight."""

    default_hint = "Wait for the current transcription to finish."
