"""
tests/test_generator.py
Tests for cqrsgen.generator: the request pipeline and the table-file loader.
"""

from __future__ import annotations

import json
import pathlib
from unittest.mock import MagicMock

import pytest

from cqrsgen.generator import CodeGenerator, load_table_file, parse_raw_table
from cqrsgen.models import GenerateRequest, TableDescriptor
from cqrsgen.schema_provider import SchemaLookupError, SchemaProvider, StaticSchemaProvider
from cqrsgen.validators import InputValidationError

from conftest import EXAMPLE_TABLE_PATH, NAMESPACE


# ===========================================================================
# CodeGenerator
# ===========================================================================


class TestCodeGenerator:
    def test_orders_scenario(self, static_provider: StaticSchemaProvider) -> None:
        report = CodeGenerator(static_provider).generate(
            GenerateRequest(tableName="public.orders", namespace=NAMESPACE, ignoreLastSChar=True)
        )

        assert report.class_name == "Order"
        schema = report.response.table_schema
        assert schema.success is True
        assert schema.table_name == "public.orders"
        assert [c.name for c in schema.columns] == ["id", "customer_id", "total"]
        assert schema.primary_keys == ["id"]

        code = report.code
        assert "public decimal? Total { get; private set; }" in code.entity
        assert "RETURNING id" in code.repository
        assert "Task<int> AddAsync(Order entity);" in code.interface
        assert "CreateOrderCommand" in code.commands
        assert "GetAllOrderQuery" in code.queries
        assert "CreateOrderCommandHandler" in code.handlers
        assert report.warnings == []

    def test_missing_namespace_skips_lookup(self) -> None:
        provider = MagicMock(spec=SchemaProvider)
        with pytest.raises(InputValidationError):
            CodeGenerator(provider).generate(GenerateRequest(tableName="public.orders"))
        provider.get_table_schema.assert_not_called()

    def test_missing_table_name_skips_lookup(self) -> None:
        provider = MagicMock(spec=SchemaProvider)
        with pytest.raises(InputValidationError):
            CodeGenerator(provider).generate(GenerateRequest(namespace=NAMESPACE))
        provider.get_table_schema.assert_not_called()

    def test_lookup_error_propagates(self) -> None:
        provider = MagicMock(spec=SchemaProvider)
        provider.get_table_schema.side_effect = SchemaLookupError("orders", "permission denied")
        with pytest.raises(SchemaLookupError):
            CodeGenerator(provider).generate(
                GenerateRequest(tableName="orders", namespace=NAMESPACE)
            )

    def test_missing_table_yields_warning(self, static_provider: StaticSchemaProvider) -> None:
        report = CodeGenerator(static_provider).generate(
            GenerateRequest(tableName="ghosts", namespace=NAMESPACE)
        )
        assert report.class_name == "Ghosts"
        assert len(report.warnings) == 1
        assert "no columns" in report.warnings[0]

    def test_generate_for_table(self, users_table: TableDescriptor) -> None:
        report = CodeGenerator(StaticSchemaProvider([])).generate_for_table(
            users_table, NAMESPACE, trim_trailing_plural=True
        )
        assert report.class_name == "User"
        assert "return 1;" in report.code.repository

    def test_summary(self, static_provider: StaticSchemaProvider) -> None:
        report = CodeGenerator(static_provider).generate(
            GenerateRequest(tableName="public.orders", namespace=NAMESPACE, ignoreLastSChar=True)
        )
        text = report.summary()
        assert "public.orders" in text
        assert "Order" in text

    def test_response_serialises_by_alias(self, static_provider: StaticSchemaProvider) -> None:
        report = CodeGenerator(static_provider).generate(
            GenerateRequest(tableName="users", namespace=NAMESPACE)
        )
        body = json.loads(report.response.model_dump_json(by_alias=True))
        assert set(body) == {"schema", "generatedCode", "className"}
        assert set(body["generatedCode"]) == {
            "entity", "interface", "repository", "commands", "queries", "handlers",
        }
        assert body["schema"]["tableName"] == "users"
        assert body["schema"]["primaryKeys"] == ["id"]
        assert body["schema"]["columns"][1]["column_name"] == "name"
        assert body["schema"]["columns"][1]["is_nullable"] == "YES"


# ===========================================================================
# Table file loading
# ===========================================================================


class TestParseRawTable:
    def test_table_object(self, orders_dict) -> None:
        table = parse_raw_table(orders_dict)
        assert table.logical_name == "public.orders"
        assert table.primary_keys == ("id",)

    def test_saved_response(self, orders_dict) -> None:
        table = parse_raw_table({"schema": orders_dict, "generatedCode": {}})
        assert table.logical_name == "public.orders"

    def test_snake_case_keys(self) -> None:
        table = parse_raw_table({
            "table_name": "t",
            "primary_keys": ["a"],
            "columns": [{"column_name": "a", "data_type": "text", "is_nullable": "NO"}],
        })
        assert table.primary_keys == ("a",)
        assert table.columns[0].is_nullable is False

    def test_missing_name(self) -> None:
        with pytest.raises(ValueError, match="table name"):
            parse_raw_table({"columns": []})

    def test_invalid_column(self) -> None:
        with pytest.raises(ValueError, match="validation failed"):
            parse_raw_table({"tableName": "t", "columns": [{"column_name": "a"}]})


class TestLoadTableFile:
    def test_yaml(self, orders_yaml_path: pathlib.Path) -> None:
        table = load_table_file(orders_yaml_path)
        assert table.column_names == ["id", "customer_id", "total"]

    def test_json(self, orders_json_path: pathlib.Path) -> None:
        table = load_table_file(orders_json_path)
        assert table.logical_name == "public.orders"

    def test_unknown_extension_falls_back(self, orders_dict, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "orders.table"
        path.write_text(json.dumps(orders_dict), encoding="utf-8")
        assert load_table_file(path).logical_name == "public.orders"

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_table_file(tmp_path / "missing.yaml")

    def test_bad_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tableName: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_table_file(path)

    def test_top_level_list_rejected(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_table_file(path)

    def test_bundled_example(self) -> None:
        table = load_table_file(EXAMPLE_TABLE_PATH)
        assert table.logical_name == "public.orders"
        assert table.primary_key_column.name == "id"
        assert len(table.columns) == 5
