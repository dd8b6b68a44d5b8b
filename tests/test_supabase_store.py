"""Tests for the Supabase log store using a mocked client."""

from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from fieldlog.errors import StoreError
from fieldlog.models import Transcription
from fieldlog.services.schema_check import SchemaStatus
from fieldlog.services.supabase_store import POSTGRES_SCHEMA_SQL, SupabaseLogStore


def api_error(code, message="boom"):
    """Build a PostgREST APIError."""
    return APIError({"message": message, "code": code, "hint": None, "details": None})


@pytest.fixture
def client():
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def store(client):
    """Create a store over the mock client."""
    return SupabaseLogStore(client)


def log_row(**overrides):
    row = {
        "id": "L1",
        "timestamp": "2025-03-04T08:00:00+00:00",
        "location": "Site A",
        "activity_category": "Inspection",
        "activity_type": "Walkdown",
        "equipment": "",
        "personnel": "",
        "material": "",
        "measurement": None,
        "status": "planned",
        "notes": None,
        "media": None,
        "reference_id": "REF-1",
        "coordinates": [-97.1, 25.9],
        "transcription_id": "T1",
        "created_at": "2025-03-04T08:01:00+00:00",
        "updated_at": "2025-03-04T08:01:00+00:00",
    }
    row.update(overrides)
    return row


class TestProbeSchema:
    """Test schema probing."""

    def test_ready(self, store, client):
        """A successful probe query means the tables exist."""
        assert store.probe_schema() == SchemaStatus.READY
        client.table.assert_called_with("activity_logs")

    @pytest.mark.parametrize("code", ["42P01", "PGRST205"])
    def test_missing_table(self, store, client, code):
        """Missing-relation codes mean setup is needed."""
        client.table.return_value.select.return_value.limit.return_value.execute.side_effect = (
            api_error(code)
        )
        assert store.probe_schema() == SchemaStatus.NEEDS_SETUP

    def test_other_error_unknown(self, store, client):
        """Any other failure leaves the status unknown."""
        client.table.return_value.select.return_value.limit.return_value.execute.side_effect = (
            api_error("42501", "permission denied")
        )
        assert store.probe_schema() == SchemaStatus.UNKNOWN

    def test_unreachable_unknown(self, store, client):
        """A transport failure leaves the status unknown."""
        client.table.return_value.select.return_value.limit.return_value.execute.side_effect = (
            httpx.ConnectError("down")
        )
        assert store.probe_schema() == SchemaStatus.UNKNOWN

    def test_create_schema_not_supported(self, store):
        """Tables must be created by an operator."""
        with pytest.raises(StoreError) as exc_info:
            store.create_schema()
        assert "--print-sql" in exc_info.value.hint

    def test_schema_sql_defines_tables(self):
        """The setup script provisions both tables and the count view."""
        assert "create table if not exists public.activity_logs" in POSTGRES_SCHEMA_SQL
        assert "create table if not exists public.transcriptions" in POSTGRES_SCHEMA_SQL
        assert "transcription_log_counts" in POSTGRES_SCHEMA_SQL


class TestQueries:
    """Test CRUD calls against the mock client."""

    def test_fetch_logs(self, store, client):
        """Rows are converted to ActivityLog models."""
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.return_value = MagicMock(data=[log_row()])

        logs = store.fetch_logs()
        assert len(logs) == 1
        assert logs[0].coordinates == (-97.1, 25.9)
        assert logs[0].status == "planned"
        client.table.return_value.select.return_value.order.assert_called_with(
            "timestamp", desc=True
        )

    def test_get_log_missing(self, store, client):
        """An empty result means no such log."""
        client.table.return_value.select.return_value.eq.return_value.execute.return_value = (
            MagicMock(data=[])
        )
        assert store.get_log("nope") is None

    def test_insert_logs_single_batch(self, store, client, make_log):
        """All logs go in one insert call."""
        store.insert_logs([make_log(id="a"), make_log(id="b", coordinates=[1, 2])])

        client.table.assert_called_with("activity_logs")
        rows = client.table.return_value.insert.call_args[0][0]
        assert [row["id"] for row in rows] == ["a", "b"]
        assert rows[1]["coordinates"] == [1.0, 2.0]
        client.table.return_value.insert.return_value.execute.assert_called_once()

    def test_insert_empty_batch(self, store, client):
        """An empty batch makes no request."""
        store.insert_logs([])
        client.table.assert_not_called()

    def test_insert_failure_raises_store_error(self, store, client, make_log):
        """API errors become StoreError."""
        client.table.return_value.insert.return_value.execute.side_effect = api_error("23505")
        with pytest.raises(StoreError):
            store.insert_logs([make_log()])

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("down"),
        httpx.ReadTimeout("timed out"),
    ])
    def test_transport_failure_raises_store_error(self, store, client, make_log, error):
        """Network errors from the client become StoreError."""
        client.table.return_value.insert.return_value.execute.side_effect = error
        with pytest.raises(StoreError, match="could not reach Supabase") as exc_info:
            store.insert_logs([make_log()])
        assert exc_info.value.__cause__ is error

    def test_fetch_transport_failure(self, store, client):
        """Reads fail the same way."""
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.side_effect = httpx.ConnectError("down")
        with pytest.raises(StoreError):
            store.fetch_logs()

    def test_insert_transcription(self, store, client):
        """Transcriptions are written to their own table."""
        store.insert_transcription(Transcription(id="T1", text="hello", logs_generated=2))
        client.table.assert_called_with("transcriptions")
        row = client.table.return_value.insert.call_args[0][0]
        assert row["id"] == "T1"
        assert row["logs_generated"] == 2

    def test_delete_logs_for_transcription(self, store, client):
        """Returns the number of deleted rows."""
        query = client.table.return_value.delete.return_value.eq.return_value
        query.execute.return_value = MagicMock(data=[log_row(id="L1"), log_row(id="L2")])

        assert store.delete_logs_for_transcription("T1") == 2
        client.table.return_value.delete.return_value.eq.assert_called_with("transcription_id", "T1")

    def test_delete_transcription_missing(self, store, client):
        """Deleting nothing reports False."""
        query = client.table.return_value.delete.return_value.eq.return_value
        query.execute.return_value = MagicMock(data=[])
        assert store.delete_transcription("T1") is False

    def test_fetch_transcriptions_uses_count_view(self, store, client):
        """History comes from the log count view."""
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.return_value = MagicMock(data=[{
            "id": "T1",
            "text": "hello",
            "title": "",
            "logs_generated": 2,
            "created_at": "2025-03-04T08:00:00+00:00",
            "log_count": 1,
        }])

        history = store.fetch_transcriptions()
        client.table.assert_called_with("transcription_log_counts")
        assert history[0].log_count == 1
