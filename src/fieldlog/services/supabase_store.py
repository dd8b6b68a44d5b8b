"""Supabase Log Store - the hosted backing store.

Tables are provisioned by an operator running ``POSTGRES_SCHEMA_SQL`` in
the Supabase SQL editor; this client never creates them.
"""

import logging
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from fieldlog.config import Settings, get_settings
from fieldlog.errors import ConfigurationError, StoreError
from fieldlog.models import ActivityLog, Transcription, TranscriptionSummary, utc_now
from fieldlog.services.log_store import LogStore
from fieldlog.services.schema_check import SchemaStatus

logger = logging.getLogger(__name__)


# PostgreSQL undefined_table, and PostgREST's "relation not in schema cache"
MISSING_TABLE_CODES = frozenset({"42P01", "PGRST205"})

POSTGRES_SCHEMA_SQL = """
create table if not exists public.transcriptions (
    id text primary key default gen_random_uuid()::text,
    text text not null,
    title text not null default '',
    logs_generated integer not null default 0,
    created_at timestamptz not null default now()
);

create table if not exists public.activity_logs (
    id text primary key default gen_random_uuid()::text,
    timestamp timestamptz not null default now(),
    location text not null,
    activity_category text not null default '',
    activity_type text not null default '',
    equipment text not null default '',
    personnel text not null default '',
    material text not null default '',
    measurement text,
    status text not null default 'completed'
        check (status in ('completed', 'in-progress', 'planned', 'delayed', 'cancelled')),
    notes text,
    media text,
    reference_id text not null,
    coordinates jsonb,
    transcription_id text references public.transcriptions(id),
    created_at timestamptz not null default now(),
    updated_at timestamptz not null default now()
);

create index if not exists idx_activity_logs_transcription
    on public.activity_logs(transcription_id);

create or replace view public.transcription_log_counts as
select
    t.id,
    t.text,
    t.title,
    t.logs_generated,
    t.created_at,
    count(a.id) as log_count
from public.transcriptions t
left join public.activity_logs a on a.transcription_id = t.id
group by t.id;
""".strip()


class SupabaseLogStore(LogStore):
    """Backing store over the Supabase PostgREST API."""

    def __init__(self, client: Client):
        """Initialize the store.

        Args:
            client: Supabase client (``supabase.create_client``)
        """
        self.client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SupabaseLogStore":
        """Connect using SUPABASE_URL and SUPABASE_KEY.

        Raises:
            ConfigurationError: If either setting is missing
        """
        settings = settings or get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError(
                "Supabase is not configured.",
                hint="Set SUPABASE_URL and SUPABASE_KEY in the environment or .env.",
            )
        return cls(create_client(settings.supabase_url, settings.supabase_key))

    def _execute(self, query: Any, action: str) -> Any:
        """Run a PostgREST query, translating failures to StoreError."""
        try:
            return query.execute()
        except APIError as e:
            logger.error("Supabase %s failed: %s (code %s)", action, e.message, e.code)
            raise StoreError(f"Failed to {action}: {e.message}") from e
        except httpx.HTTPError as e:
            logger.error("Supabase %s failed: %s", action, e)
            raise StoreError(f"Failed to {action}: could not reach Supabase ({e})") from e

    def probe_schema(self) -> SchemaStatus:
        try:
            self.client.table("activity_logs").select("id").limit(1).execute()
        except APIError as e:
            if e.code in MISSING_TABLE_CODES:
                return SchemaStatus.NEEDS_SETUP
            logger.warning("Schema probe failed: %s (code %s)", e.message, e.code)
            return SchemaStatus.UNKNOWN
        except httpx.HTTPError as e:
            logger.warning("Schema probe failed: %s", e)
            return SchemaStatus.UNKNOWN
        return SchemaStatus.READY

    def create_schema(self) -> None:
        raise StoreError(
            "Supabase tables cannot be created through the API.",
            hint="Run the script from `fieldlog setup --print-sql` in the Supabase SQL editor.",
        )

    def fetch_logs(self) -> list[ActivityLog]:
        response = self._execute(
            self.client.table("activity_logs").select("*").order("timestamp", desc=True),
            "fetch logs",
        )
        return [ActivityLog.from_row(row) for row in response.data or []]

    def get_log(self, log_id: str) -> Optional[ActivityLog]:
        response = self._execute(
            self.client.table("activity_logs").select("*").eq("id", log_id),
            "fetch log",
        )
        rows = response.data or []
        return ActivityLog.from_row(rows[0]) if rows else None

    def fetch_logs_for_transcription(self, transcription_id: str) -> list[ActivityLog]:
        response = self._execute(
            self.client.table("activity_logs")
            .select("*")
            .eq("transcription_id", transcription_id)
            .order("timestamp", desc=True),
            "fetch transcription logs",
        )
        return [ActivityLog.from_row(row) for row in response.data or []]

    def insert_logs(self, logs: list[ActivityLog]) -> None:
        if not logs:
            return
        self._execute(
            self.client.table("activity_logs").insert([log.to_row() for log in logs]),
            "save logs",
        )
        logger.info("Inserted %d activity log(s)", len(logs))

    def update_log(self, log: ActivityLog) -> bool:
        row = log.to_row()
        del row["id"]
        row["updated_at"] = utc_now().isoformat()
        response = self._execute(
            self.client.table("activity_logs").update(row).eq("id", log.id),
            "update log",
        )
        return bool(response.data)

    def delete_log(self, log_id: str) -> bool:
        response = self._execute(
            self.client.table("activity_logs").delete().eq("id", log_id),
            "delete log",
        )
        return bool(response.data)

    def delete_logs_for_transcription(self, transcription_id: str) -> int:
        response = self._execute(
            self.client.table("activity_logs").delete().eq("transcription_id", transcription_id),
            "delete transcription logs",
        )
        return len(response.data or [])

    def insert_transcription(self, transcription: Transcription) -> None:
        self._execute(
            self.client.table("transcriptions").insert(transcription.to_row()),
            "save transcription",
        )

    def get_transcription(self, transcription_id: str) -> Optional[Transcription]:
        response = self._execute(
            self.client.table("transcriptions").select("*").eq("id", transcription_id),
            "fetch transcription",
        )
        rows = response.data or []
        return Transcription.model_validate(rows[0]) if rows else None

    def fetch_transcriptions(self) -> list[TranscriptionSummary]:
        response = self._execute(
            self.client.table("transcription_log_counts")
            .select("*")
            .order("created_at", desc=True),
            "fetch transcriptions",
        )
        return [TranscriptionSummary.model_validate(row) for row in response.data or []]

    def delete_transcription(self, transcription_id: str) -> bool:
        response = self._execute(
            self.client.table("transcriptions").delete().eq("id", transcription_id),
            "delete transcription",
        )
        return bool(response.data)
