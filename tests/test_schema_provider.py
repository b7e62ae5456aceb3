"""
tests/test_schema_provider.py
Tests for cqrsgen.schema_provider with a mocked SQLAlchemy engine.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from cqrsgen.config import Settings
from cqrsgen.models import TableDescriptor
from cqrsgen.schema_provider import (
    PostgresSchemaProvider,
    SchemaLookupError,
    StaticSchemaProvider,
    create_engine_from_config,
)


@pytest.fixture
def mock_engine():
    """Engine whose connect() context yields a mock connection."""
    engine = MagicMock()
    conn = MagicMock()
    engine.connect.return_value.__enter__.return_value = conn
    return engine, conn


def _query_results(column_rows, pk_names):
    col_result = MagicMock()
    col_result.mappings.return_value.all.return_value = column_rows
    pk_result = MagicMock()
    pk_result.scalars.return_value.all.return_value = pk_names
    return [col_result, pk_result]


class TestPostgresSchemaProvider:
    def test_get_table_schema(self, mock_engine, orders_dict):
        engine, conn = mock_engine
        conn.execute.side_effect = _query_results(orders_dict["columns"], ["id"])

        table = PostgresSchemaProvider(engine).get_table_schema("public.orders")

        assert isinstance(table, TableDescriptor)
        assert table.logical_name == "public.orders"
        assert table.column_names == ["id", "customer_id", "total"]
        assert table.primary_keys == ("id",)
        assert table.columns[0].default_expression.startswith("nextval(")
        assert table.columns[2].is_nullable is True
        assert table.columns[1].is_nullable is False

    def test_binds_schema_and_table(self, mock_engine):
        engine, conn = mock_engine
        conn.execute.side_effect = _query_results([], [])

        PostgresSchemaProvider(engine).get_table_schema("sales.orders")

        assert conn.execute.call_count == 2
        for call in conn.execute.call_args_list:
            assert call.args[1] == {"table": "orders", "schema": "sales"}

    def test_unqualified_name_uses_public(self, mock_engine):
        engine, conn = mock_engine
        conn.execute.side_effect = _query_results([], [])

        PostgresSchemaProvider(engine).get_table_schema("orders")

        assert conn.execute.call_args_list[0].args[1]["schema"] == "public"

    def test_missing_table_is_empty_not_error(self, mock_engine):
        engine, conn = mock_engine
        conn.execute.side_effect = _query_results([], [])

        table = PostgresSchemaProvider(engine).get_table_schema("nope")

        assert table.columns == ()
        assert table.primary_keys == ()

    def test_query_failure_wraps_and_releases(self, mock_engine):
        engine, conn = mock_engine
        conn.execute.side_effect = OperationalError(
            "SELECT ...", {}, Exception("connection refused")
        )

        with pytest.raises(SchemaLookupError) as exc_info:
            PostgresSchemaProvider(engine).get_table_schema("public.orders")

        assert exc_info.value.detail == "connection refused"
        assert exc_info.value.table_name == "public.orders"
        engine.connect.return_value.__exit__.assert_called_once()

    def test_connection_released_on_success(self, mock_engine):
        engine, conn = mock_engine
        conn.execute.side_effect = _query_results([], [])

        PostgresSchemaProvider(engine).get_table_schema("orders")

        engine.connect.assert_called_once()
        engine.connect.return_value.__exit__.assert_called_once()

    def test_test_connection_success(self, mock_engine):
        engine, conn = mock_engine
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        conn.execute.return_value.scalar_one.return_value = now

        result = PostgresSchemaProvider(engine).test_connection()

        assert result.success is True
        assert result.timestamp == now.isoformat()
        assert result.error is None

    def test_test_connection_failure_is_reported(self, mock_engine):
        engine, conn = mock_engine
        conn.execute.side_effect = OperationalError("SELECT NOW()", {}, Exception("timeout"))

        result = PostgresSchemaProvider(engine).test_connection()

        assert result.success is False
        assert result.error == "timeout"

    def test_close_disposes_engine(self, mock_engine):
        engine, _ = mock_engine
        PostgresSchemaProvider(engine).close()
        engine.dispose.assert_called_once()


class TestCreateEngine:
    def test_uses_psycopg_url_and_pool_size(self):
        settings = Settings(
            _env_file=None, DATABASE_URL="postgresql://u:p@db:5432/shop", CQRSGEN_POOL_SIZE=3
        )
        with patch("cqrsgen.schema_provider.create_engine") as mock_create_engine:
            engine = create_engine_from_config(settings)

        mock_create_engine.assert_called_once_with(
            "postgresql+psycopg://u:p@db:5432/shop", pool_size=3, pool_pre_ping=True
        )
        assert engine is mock_create_engine.return_value

    def test_missing_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValueError):
            create_engine_from_config(Settings(_env_file=None))


class TestStaticSchemaProvider:
    def test_exact_lookup(self, static_provider, orders_table):
        assert static_provider.get_table_schema("public.orders") == orders_table

    def test_lookup_without_schema(self, static_provider):
        table = static_provider.get_table_schema("orders")
        assert table.logical_name == "orders"
        assert table.column_names == ["id", "customer_id", "total"]

    def test_lookup_with_public_schema(self, static_provider):
        table = static_provider.get_table_schema("public.users")
        assert table.logical_name == "public.users"
        assert table.column_names == ["id", "name"]

    def test_other_schema_does_not_match(self, static_provider):
        table = static_provider.get_table_schema("crm.users")
        assert table.logical_name == "crm.users"
        assert table.columns == ()

    def test_qualified_table_not_served_for_other_schema(self, articles_table):
        provider = StaticSchemaProvider([articles_table])
        assert provider.get_table_schema("content.articles") == articles_table
        assert provider.get_table_schema("articles").columns == ()
        assert provider.get_table_schema("public.articles").columns == ()

    def test_unknown_table(self, static_provider):
        table = static_provider.get_table_schema("ghosts")
        assert table.logical_name == "ghosts"
        assert table.columns == ()

    def test_connection_always_succeeds(self, static_provider):
        assert static_provider.test_connection().success is True
