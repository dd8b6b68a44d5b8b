"""Tests for runtime configuration."""

from pathlib import Path

from fieldlog.config import Settings, StoreBackend, get_settings, reload_settings


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self):
        """Should default to a local SQLite store."""
        settings = Settings(_env_file=None)
        assert settings.store_backend == StoreBackend.SQLITE
        assert settings.get_sqlite_path() == Path("./fieldlog-data") / "fieldlog.db"
        assert settings.get_extraction_url() is None
        assert settings.extraction_timeout_seconds == 120.0

    def test_environment_overrides(self, monkeypatch, temp_dir):
        """Should read values from environment variables."""
        monkeypatch.setenv("FIELDLOG_DATA_DIR", str(temp_dir))
        monkeypatch.setenv("FIELDLOG_STORE", "supabase")
        monkeypatch.setenv("FIELDLOG_EXTRACTION_TIMEOUT", "30")
        settings = Settings(_env_file=None)
        assert settings.store_backend == StoreBackend.SUPABASE
        assert settings.get_sqlite_path() == temp_dir / "fieldlog.db"
        assert settings.extraction_timeout_seconds == 30.0

    def test_explicit_sqlite_path(self, monkeypatch, temp_dir):
        """FIELDLOG_DB overrides the data directory."""
        monkeypatch.setenv("FIELDLOG_DB", str(temp_dir / "custom.db"))
        assert Settings(_env_file=None).get_sqlite_path() == temp_dir / "custom.db"

    def test_extraction_url_precedence(self, monkeypatch):
        """An explicit endpoint wins over the derived Supabase one."""
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        settings = Settings(_env_file=None)
        assert settings.get_extraction_url() == (
            "https://abc.supabase.co/functions/v1/process-transcription"
        )

        monkeypatch.setenv("FIELDLOG_EXTRACTION_URL", "http://localhost:9000/extract")
        assert Settings(_env_file=None).get_extraction_url() == "http://localhost:9000/extract"

    def test_extraction_token_falls_back_to_supabase_key(self, monkeypatch):
        """The Supabase key doubles as the extraction token."""
        monkeypatch.setenv("SUPABASE_KEY", "anon")
        assert Settings(_env_file=None).get_extraction_token() == "anon"
        monkeypatch.setenv("FIELDLOG_EXTRACTION_TOKEN", "service")
        assert Settings(_env_file=None).get_extraction_token() == "service"

    def test_reload_settings(self, monkeypatch):
        """reload_settings should pick up environment changes."""
        monkeypatch.setenv("FIELDLOG_STORE", "sqlite")
        first = reload_settings()
        assert get_settings() is first

        monkeypatch.setenv("FIELDLOG_STORE", "supabase")
        second = reload_settings()
        assert second.store_backend == StoreBackend.SUPABASE
        assert get_settings() is second
