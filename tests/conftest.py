"""Shared fixtures for field log tests."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from fieldlog.models import ActivityLog


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of settings."""
    for name in (
        "FIELDLOG_DATA_DIR",
        "FIELDLOG_STORE",
        "FIELDLOG_DB",
        "FIELDLOG_EXTRACTION_URL",
        "FIELDLOG_EXTRACTION_TOKEN",
        "FIELDLOG_PREFERRED_EXTRACTOR",
        "FIELDLOG_EXTRACTION_TIMEOUT",
        "SUPABASE_URL",
        "SUPABASE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_log():
    """Factory for ActivityLog instances with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> ActivityLog:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "id": f"log-{n}",
            "timestamp": datetime(2025, 3, 4, 8, n % 60, tzinfo=timezone.utc),
            "location": "North Pad",
            "activity_category": "Inspection",
            "activity_type": "Walkdown",
            "reference_id": f"REF-{n:04d}",
        }
        fields.update(overrides)
        return ActivityLog(**fields)

    return _make


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
