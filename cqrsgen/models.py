# File: cqrsgen/models.py
"""
CQRSGen - Core Data Models
===========================
Pydantic V2 models describing introspected PostgreSQL table metadata, the
HTTP request/response payloads, and the generated C# artifact bundle.

These models are the single source of truth for the whole pipeline:
Schema Lookup → Name Normalisation → Template Generation → Response/Export.

Descriptors are frozen: a ``TableDescriptor`` is built once per request
from the schema provider's answer and discarded after the six generators
have run.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.models")

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)

_PAYLOAD_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=False,
    extra="ignore",
)

# Section headers used when all six artifacts are concatenated
_COMBINED_SECTIONS: Tuple[Tuple[str, str], ...] = (
    ("entity", "Entity Class"),
    ("interface", "Repository Interface"),
    ("repository", "Repository Implementation"),
    ("commands", "Commands"),
    ("queries", "Queries"),
    ("handlers", "Handlers"),
)


# ---------------------------------------------------------------------------
# Schema metadata
# ---------------------------------------------------------------------------


class ColumnDescriptor(BaseModel):
    """
    One column of the introspected table.

    Accepts both the Python field names and the raw ``information_schema``
    row keys, so a metadata row validates directly::

        ColumnDescriptor.model_validate(
            {"column_name": "id", "data_type": "integer", "is_nullable": "NO"}
        )
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(
        ...,
        validation_alias=AliasChoices("name", "column_name"),
        serialization_alias="column_name",
        description="Column name as declared in the database.",
    )
    source_type: str = Field(
        ...,
        validation_alias=AliasChoices("source_type", "data_type"),
        serialization_alias="data_type",
        description="Database-level type name, e.g. 'character varying'.",
    )
    is_nullable: bool = Field(
        default=True,
        description="True when the column accepts NULL.",
    )
    default_expression: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("default_expression", "column_default"),
        serialization_alias="column_default",
        description="Raw default expression, e.g. \"nextval('orders_id_seq'::regclass)\".",
    )
    max_length: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("max_length", "character_maximum_length"),
        serialization_alias="character_maximum_length",
        description="Character length for textual types (informational).",
    )
    udt_name: Optional[str] = Field(
        default=None,
        description="Underlying type name, e.g. 'int4' or '_text' (informational).",
    )

    @field_validator("is_nullable", mode="before")
    @classmethod
    def _coerce_yes_no(cls, v: Any) -> Any:
        # information_schema reports nullability as 'YES' / 'NO'
        if isinstance(v, str):
            return v.strip().upper() in {"YES", "Y", "TRUE", "1"}
        return v

    @field_serializer("is_nullable", when_used="json")
    def _serialize_yes_no(self, v: bool) -> str:
        return "YES" if v else "NO"

    def __repr__(self) -> str:
        null_flag: str = " NULL" if self.is_nullable else " NOT NULL"
        return f"<Column {self.name} {self.source_type}{null_flag}>"


class TableDescriptor(BaseModel):
    """
    A table as seen by the template generators.

    ``columns`` keeps declaration order; every generator walks it in the
    same order so properties, parameters and SQL column lists line up.
    ``primary_keys`` is not checked against ``columns``.
    """

    model_config = _FROZEN_CONFIG

    logical_name: str = Field(
        ...,
        validation_alias=AliasChoices("logical_name", "tableName", "table_name"),
        description="User-supplied table name, optionally 'schema.table'.",
    )
    columns: Tuple[ColumnDescriptor, ...] = Field(
        default_factory=tuple, description="Columns in ordinal order."
    )
    primary_keys: Tuple[str, ...] = Field(
        default_factory=tuple,
        validation_alias=AliasChoices("primary_keys", "primaryKeys"),
        description="Primary-key column names reported by the database.",
    )

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key_column(self) -> Optional[ColumnDescriptor]:
        """First column (in column order) that belongs to the primary key."""
        for col in self.columns:
            if col.name in self.primary_keys:
                return col
        return None

    def is_primary_key(self, column_name: str) -> bool:
        return column_name in self.primary_keys

    def __repr__(self) -> str:
        return (
            f"<Table {self.logical_name} "
            f"({len(self.columns)} cols, pk={list(self.primary_keys)})>"
        )


# ---------------------------------------------------------------------------
# Generated artifacts
# ---------------------------------------------------------------------------


class GeneratedCode(BaseModel):
    """The six generated C# source texts."""

    model_config = _PAYLOAD_CONFIG

    entity: str = Field(..., description="Entity class.")
    interface: str = Field(..., description="Repository interface.")
    repository: str = Field(..., description="Dapper repository implementation.")
    commands: str = Field(..., description="MediatR command messages.")
    queries: str = Field(..., description="MediatR query messages.")
    handlers: str = Field(..., description="MediatR request handlers.")

    def combined(self) -> str:
        """All six artifacts in one text, each preceded by a header comment."""
        parts: List[str] = [
            f"// {title}\n{getattr(self, key)}" for key, title in _COMBINED_SECTIONS
        ]
        return "\n\n".join(parts)

    def as_files(self, class_name: str) -> Dict[str, str]:
        """Map every artifact to its conventional relative ``.cs`` path."""
        return {
            f"Entities/{class_name}.cs": self.entity,
            f"Repositories/I{class_name}Repository.cs": self.interface,
            f"Repositories/{class_name}Repository.cs": self.repository,
            f"CQRS/Commands/{class_name}Commands.cs": self.commands,
            f"CQRS/Queries/{class_name}Queries.cs": self.queries,
            f"CQRS/Handlers/{class_name}Handlers.cs": self.handlers,
        }


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------


class GenerateRequest(BaseModel):
    """
    Body of ``POST /api/generate``.

    ``table_name`` and ``namespace`` are optional here on purpose: the
    request handler reports a missing value with its own message instead of
    a framework validation error.
    """

    model_config = _PAYLOAD_CONFIG

    table_name: Optional[str] = Field(default=None, alias="tableName")
    namespace: Optional[str] = Field(default=None)
    ignore_last_s_char: Optional[bool] = Field(default=False, alias="ignoreLastSChar")


class TableSchema(BaseModel):
    """Resolved schema echoed back to the caller."""

    model_config = _PAYLOAD_CONFIG

    success: bool = True
    table_name: str = Field(..., alias="tableName")
    columns: List[ColumnDescriptor] = Field(default_factory=list)
    primary_keys: List[str] = Field(default_factory=list, alias="primaryKeys")
    error: Optional[str] = None

    @classmethod
    def from_table(cls, table: TableDescriptor) -> "TableSchema":
        return cls(
            success=True,
            table_name=table.logical_name,
            columns=list(table.columns),
            primary_keys=list(table.primary_keys),
        )


class GenerateResponse(BaseModel):
    """Successful response: resolved schema plus the six artifacts."""

    model_config = _PAYLOAD_CONFIG

    table_schema: TableSchema = Field(..., alias="schema")
    generated_code: GeneratedCode = Field(..., alias="generatedCode")
    class_name: str = Field(..., alias="className")


class ErrorResponse(BaseModel):
    """Failure body: a human-readable message and optional diagnostics."""

    model_config = _PAYLOAD_CONFIG

    message: str
    error: Optional[str] = None


class ConnectionResult(BaseModel):
    """Outcome of a database connectivity probe."""

    model_config = _PAYLOAD_CONFIG

    success: bool
    timestamp: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ColumnDescriptor",
    "TableDescriptor",
    "GeneratedCode",
    "GenerateRequest",
    "TableSchema",
    "GenerateResponse",
    "ErrorResponse",
    "ConnectionResult",
]

logger.debug("cqrsgen.models loaded.")
