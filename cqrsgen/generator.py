# File: cqrsgen/generator.py
"""
CQRSGen - Generation Pipeline (Orchestrator)
==============================================

Connects every phase of a single request:

    Request → Validation → Schema Lookup → Name Normalisation → 6 Templates

Workflow::

    1. Check the required request fields (``validators.validate_request``).
       Nothing else runs when one is missing.
    2. Fetch the table's columns and primary key from the ``SchemaProvider``.
    3. Run advisory checks on the metadata (warnings only).
    4. Derive the class base name once and render all six artifacts.
    5. Return a ``GenerationReport`` wrapping the API response.

Error handling strategy:
    - ``InputValidationError`` and ``SchemaLookupError`` propagate to the
      caller, which maps them onto its own error surface (HTTP or exit code).
    - There are no partial results: either all six artifacts are returned
      or an exception is raised.

Table metadata can also be loaded from a JSON/YAML file for offline use
(``load_table_file``).
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from cqrsgen.models import (
    GenerateRequest,
    GenerateResponse,
    GeneratedCode,
    TableDescriptor,
    TableSchema,
)
from cqrsgen.schema_provider import SchemaProvider
from cqrsgen.templates import TemplateGenerator
from cqrsgen.validators import ValidationResult, inspect_table, validate_request

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Outcome of one generation: the response plus advisory warnings."""

    response: GenerateResponse
    warnings: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def class_name(self) -> str:
        return self.response.class_name

    @property
    def code(self) -> GeneratedCode:
        return self.response.generated_code

    def summary(self) -> str:
        """Return a human-readable summary string."""
        table: TableSchema = self.response.table_schema
        lines: List[str] = [
            f"{'='*60}",
            "  CQRSGen — Generation Report",
            f"{'='*60}",
            f"  Table:      {table.table_name}",
            f"  Class:      {self.class_name}",
            f"  Columns:    {len(table.columns)}",
            f"  Primary key: {', '.join(table.primary_keys) or '(none)'}",
            f"  Time:       {self.elapsed_seconds:.3f}s",
        ]
        if self.warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")
        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Table file loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def parse_raw_table(raw: Dict[str, Any]) -> TableDescriptor:
    """
    Parse a raw dictionary into a ``TableDescriptor``.

    Accepts either the table object itself or a saved API response, whose
    table lives under ``"schema"``.  Expected keys: ``tableName`` (or
    ``table_name``), ``columns`` as ``information_schema`` rows, and
    ``primaryKeys`` (or ``primary_keys``).

    Raises:
        ValueError: If required keys are missing or validation fails.
    """
    data: Dict[str, Any] = raw
    if isinstance(raw.get("schema"), dict):
        data = raw["schema"]

    if not any(k in data for k in ("tableName", "table_name", "logical_name")):
        raise ValueError(
            "Cannot find table name in input. "
            "Expected key: 'tableName' or 'table_name'."
        )

    try:
        return TableDescriptor.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Table definition validation failed: {exc}") from exc


def load_table_file(path: Path) -> TableDescriptor:
    """
    Load a table definition file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Table file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Table path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        raw: Dict[str, Any] = _load_yaml_file(path)
    elif suffix == ".json":
        raw = _load_json_file(path)
    else:
        logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
        try:
            raw = _load_json_file(path)
        except ValueError:
            raw = _load_yaml_file(path)

    table: TableDescriptor = parse_raw_table(raw)
    logger.info("Loaded table %s from %s.", table.logical_name, path)
    return table


# ---------------------------------------------------------------------------
# CodeGenerator — orchestrator
# ---------------------------------------------------------------------------


class CodeGenerator:
    """
    Request handler core: schema lookup followed by the six generators.

    Usage::

        generator = CodeGenerator(PostgresSchemaProvider(engine))
        report = generator.generate(
            GenerateRequest(tableName="public.orders", namespace="Acme.Services",
                            ignoreLastSChar=True)
        )
        print(report.code.entity)

    The generator holds no per-request state and can be shared.
    """

    def __init__(self, provider: SchemaProvider) -> None:
        self._provider: SchemaProvider = provider
        logger.debug("CodeGenerator initialised with %s.", type(provider).__name__)

    @property
    def provider(self) -> SchemaProvider:
        return self._provider

    def generate(self, request: GenerateRequest) -> GenerationReport:
        """
        Full pipeline for one request.

        Raises:
            InputValidationError: A required field is missing (no lookup done).
            SchemaLookupError: The schema provider failed.
        """
        table_name, namespace, trim = validate_request(request)
        logger.info(
            "Generating for table=%s namespace=%s trim=%s.", table_name, namespace, trim
        )
        table: TableDescriptor = self._provider.get_table_schema(table_name)
        return self.generate_for_table(table, namespace, trim)

    def generate_for_table(
        self,
        table: TableDescriptor,
        namespace: str,
        trim_trailing_plural: bool = False,
    ) -> GenerationReport:
        """Render the six artifacts from an already-resolved descriptor."""
        start: float = time.perf_counter()

        checks: ValidationResult = inspect_table(table, namespace)
        class_name, code = TemplateGenerator(namespace).generate_all(
            table, trim_trailing_plural
        )

        response: GenerateResponse = GenerateResponse(
            table_schema=TableSchema.from_table(table),
            generated_code=code,
            class_name=class_name,
        )
        return GenerationReport(
            response=response,
            warnings=[issue.message for issue in checks.warnings],
            elapsed_seconds=time.perf_counter() - start,
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CodeGenerator",
    "GenerationReport",
    "load_table_file",
    "parse_raw_table",
]

logger.debug("cqrsgen.generator loaded.")
