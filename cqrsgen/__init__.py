# File: cqrsgen/__init__.py
"""
CQRSGen — C# CQRS Boilerplate Generator
=========================================

Looks up a PostgreSQL table's columns and primary key and renders six C#
source texts for an ASP.NET-style backend: an entity, a Dapper repository
interface and implementation, and MediatR commands, queries and handlers.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │ CLI / HTTP   │────▶│ CodeGenerator │────▶│ TemplateGenerator│
    │ (cli, app)   │     │ (generator.py)│     │  (templates.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
                    ┌────────────┼──────────────┐
                    ▼            ▼              ▼
             ┌──────────┐ ┌────────────────┐ ┌───────────┐
             │validators│ │schema_provider │ │ exporters │
             │  (.py)   │ │    (.py)       │ │  (.py)    │
             └──────────┘ └────────────────┘ └───────────┘

Usage::

    # As a library
    from cqrsgen import StaticSchemaProvider, CodeGenerator, GenerateRequest
    report = CodeGenerator(provider).generate(
        GenerateRequest(tableName="orders", namespace="Acme.Services")
    )

    # From the command line
    python -m cqrsgen -t public.orders -n Acme.Services -o ./out

Public API:
    - CodeGenerator          — Request orchestrator
    - TemplateGenerator      — The six C# generators
    - PostgresSchemaProvider — information_schema lookup
    - ArtifactExporter       — File-system writer
    - map_type               — PostgreSQL → C# type mapping
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from cqrsgen.models import (
    ColumnDescriptor,
    ConnectionResult,
    GenerateRequest,
    GenerateResponse,
    GeneratedCode,
    TableDescriptor,
    TableSchema,
)
from cqrsgen.typemap import PG_TO_CSHARP_TYPE_MAP, map_type
from cqrsgen.utils import derive_class_base_name, to_camel_case, to_pascal_case
from cqrsgen.validators import InputValidationError, ValidationResult, inspect_table
from cqrsgen.templates import TemplateGenerator
from cqrsgen.schema_provider import (
    PostgresSchemaProvider,
    SchemaLookupError,
    SchemaProvider,
    StaticSchemaProvider,
)
from cqrsgen.generator import CodeGenerator, GenerationReport, load_table_file
from cqrsgen.exporters import ArtifactExporter, ExportManifest, ExportResult

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "CodeGenerator",
    "GenerationReport",
    "load_table_file",
    # Models
    "ColumnDescriptor",
    "ConnectionResult",
    "GenerateRequest",
    "GenerateResponse",
    "GeneratedCode",
    "TableDescriptor",
    "TableSchema",
    # Type mapping & naming
    "PG_TO_CSHARP_TYPE_MAP",
    "map_type",
    "derive_class_base_name",
    "to_camel_case",
    "to_pascal_case",
    # Validation
    "InputValidationError",
    "ValidationResult",
    "inspect_table",
    # Templates
    "TemplateGenerator",
    # Schema providers
    "SchemaProvider",
    "PostgresSchemaProvider",
    "StaticSchemaProvider",
    "SchemaLookupError",
    # Exporters
    "ArtifactExporter",
    "ExportManifest",
    "ExportResult",
]
