"""
Unit tests for application settings.

Run: pytest tests/unit/test_settings.py -v
"""

import pytest

from config.settings import Settings

IMPORT_ENV = [
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "CATALOG_TABLE",
    "IMPORT_LOOKUP_CHUNK_SIZE",
    "IMPORT_UPSERT_CHUNK_SIZE",
    "IMPORT_CHUNK_PAUSE_MS",
    "IMPORT_MAX_ERRORS_PER_FILE",
    "IMPORT_MAX_ERRORS_PER_ROW",
    "IMPORT_PLAN_TTL_MINUTES",
    "IMPORT_MAX_UPLOAD_SIZE_MB",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in IMPORT_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:

    def test_import_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.catalog_table == "inventory_items"
        assert settings.import_lookup_chunk_size == 1000
        assert settings.import_upsert_chunk_size == 500
        assert settings.import_chunk_pause_ms == 10
        assert settings.import_max_errors_per_file == 50
        assert settings.import_max_errors_per_row == 3
        assert settings.import_plan_ttl_minutes == 30
        assert settings.max_upload_size_bytes == 20 * 1024 * 1024

    def test_url_and_key_are_enough(self, clean_env):
        clean_env.setenv("SUPABASE_URL", "https://example.supabase.co")
        clean_env.setenv("SUPABASE_KEY", "anon-key")

        settings = Settings(_env_file=None)

        assert settings.supabase_configured
        assert not hasattr(settings, "supabase_service_key")

    def test_not_configured_without_key(self, clean_env):
        clean_env.setenv("SUPABASE_URL", "https://example.supabase.co")

        assert not Settings(_env_file=None).supabase_configured
