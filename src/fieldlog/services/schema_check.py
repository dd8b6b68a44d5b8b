"""Schema capability check - is the backing store provisioned?

Probed once and cached. The result is typed rather than inferred from
error messages at write time.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from fieldlog.errors import SchemaMissingError

if TYPE_CHECKING:
    from fieldlog.services.log_store import LogStore

logger = logging.getLogger(__name__)


class SchemaStatus(str, Enum):
    """Provisioning state of the backing store."""
    READY = "ready"
    NEEDS_SETUP = "needs_setup"
    UNKNOWN = "unknown"


class SchemaCapabilityCheck:
    """Caches the store's schema probe result."""

    def __init__(self, store: "LogStore"):
        self.store = store
        self._status: Optional[SchemaStatus] = None

    def status(self) -> SchemaStatus:
        """Return the cached schema status, probing on first use."""
        if self._status is None:
            self._status = self.store.probe_schema()
            logger.info("Backing store schema status: %s", self._status.value)
        return self._status

    def refresh(self) -> SchemaStatus:
        """Discard the cached result and probe again."""
        self._status = None
        return self.status()

    def require_ready(self) -> SchemaStatus:
        """Fail if the store is known to be unprovisioned.

        UNKNOWN is let through: the write itself will surface any failure.

        Raises:
            SchemaMissingError: If the activity tables do not exist
        """
        status = self.status()
        if status == SchemaStatus.NEEDS_SETUP:
            raise SchemaMissingError(
                "The 'activity_logs' table does not exist; logs were not saved."
            )
        return status
