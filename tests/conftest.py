"""
tests/conftest.py
Shared fixtures for the cqrsgen test suite.

Table fixtures are built from raw ``information_schema``-shaped rows so the
same dictionaries can be written to YAML/JSON files for the loader and CLI
tests.  File I/O happens inside pytest's ``tmp_path`` directories.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from cqrsgen.models import ColumnDescriptor, TableDescriptor
from cqrsgen.schema_provider import StaticSchemaProvider


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
EXAMPLE_TABLE_PATH: pathlib.Path = ROOT_DIR / "orders_example.yaml"

NAMESPACE: str = "Acme.Services"


# ---------------------------------------------------------------------------
# Raw table data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def orders_dict() -> Dict[str, Any]:
    """public.orders: serial id, customer_id, nullable numeric total."""
    return {
        "tableName": "public.orders",
        "primaryKeys": ["id"],
        "columns": [
            {
                "column_name": "id",
                "data_type": "integer",
                "is_nullable": "NO",
                "column_default": "nextval('orders_id_seq'::regclass)",
                "character_maximum_length": None,
                "udt_name": "int4",
            },
            {
                "column_name": "customer_id",
                "data_type": "integer",
                "is_nullable": "NO",
                "column_default": None,
                "character_maximum_length": None,
                "udt_name": "int4",
            },
            {
                "column_name": "total",
                "data_type": "numeric",
                "is_nullable": "YES",
                "column_default": None,
                "character_maximum_length": None,
                "udt_name": "numeric",
            },
        ],
    }


@pytest.fixture()
def users_dict() -> Dict[str, Any]:
    """users: integer id without a sequence default, nullable name."""
    return {
        "tableName": "users",
        "primaryKeys": ["id"],
        "columns": [
            {"column_name": "id", "data_type": "integer", "is_nullable": "NO"},
            {
                "column_name": "name",
                "data_type": "character varying",
                "is_nullable": "YES",
                "character_maximum_length": 100,
            },
        ],
    }


# ---------------------------------------------------------------------------
# Descriptor fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def orders_table(orders_dict: Dict[str, Any]) -> TableDescriptor:
    return TableDescriptor.model_validate(orders_dict)


@pytest.fixture()
def users_table(users_dict: Dict[str, Any]) -> TableDescriptor:
    return TableDescriptor.model_validate(users_dict)


@pytest.fixture()
def wide_columns() -> List[ColumnDescriptor]:
    """A handful of columns covering value, reference, array and unknown types."""
    return [
        ColumnDescriptor(name="id", source_type="uuid", is_nullable=False,
                         default_expression="gen_random_uuid()"),
        ColumnDescriptor(name="title", source_type="text", is_nullable=False),
        ColumnDescriptor(name="is_active", source_type="boolean", is_nullable=True),
        ColumnDescriptor(name="tags", source_type="text[]", is_nullable=True),
        ColumnDescriptor(name="created_at", source_type="timestamp with time zone",
                         is_nullable=False),
        ColumnDescriptor(name="location", source_type="point", is_nullable=True),
        ColumnDescriptor(name="extra", source_type="hstore", is_nullable=True),
    ]


@pytest.fixture()
def articles_table(wide_columns: List[ColumnDescriptor]) -> TableDescriptor:
    return TableDescriptor(
        logical_name="content.articles",
        columns=tuple(wide_columns),
        primary_keys=("id",),
    )


@pytest.fixture()
def static_provider(
    orders_table: TableDescriptor, users_table: TableDescriptor
) -> StaticSchemaProvider:
    return StaticSchemaProvider([orders_table, users_table])


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def orders_yaml_path(orders_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the orders table to a temporary YAML file and return its path."""
    path = tmp_path / "orders.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(copy.deepcopy(orders_dict), fh, default_flow_style=False)
    return path


@pytest.fixture()
def orders_json_path(orders_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(orders_dict, indent=2), encoding="utf-8")
    return path
