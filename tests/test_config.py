"""
tests/test_config.py
Tests for cqrsgen.config.Settings (environment-driven configuration).
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cqrsgen.config import Settings

_ENV_VARS = (
    "DATABASE_URL",
    "CQRSGEN_POOL_SIZE",
    "CQRSGEN_LOG_LEVEL",
    "CQRSGEN_HOST",
    "CQRSGEN_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.database_url is None
        assert settings.pool_size == 5
        assert settings.log_level == "INFO"
        assert settings.host == "127.0.0.1"
        assert settings.port == 8000

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@localhost/db")
        monkeypatch.setenv("CQRSGEN_POOL_SIZE", "12")
        monkeypatch.setenv("CQRSGEN_LOG_LEVEL", "debug")
        monkeypatch.setenv("CQRSGEN_PORT", "9000")

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+psycopg://u:p@localhost/db"
        assert settings.pool_size == 12
        assert settings.log_level == "DEBUG"
        assert settings.port == 9000

    def test_reads_dotenv_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DATABASE_URL=postgresql://a:b@h/x\n", encoding="utf-8")
        settings = Settings(_env_file=env_file)
        assert settings.database_url == "postgresql+psycopg://a:b@h/x"

    def test_explicit_driver_kept(self):
        settings = Settings(_env_file=None, DATABASE_URL="postgresql+asyncpg://h/db")
        assert settings.database_url == "postgresql+asyncpg://h/db"

    def test_empty_url_is_none(self):
        assert Settings(_env_file=None, DATABASE_URL="").database_url is None

    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CQRSGEN_LOG_LEVEL="LOUD")

    def test_pool_size_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CQRSGEN_POOL_SIZE=0)
