# File: cqrsgen/validators.py
"""
CQRSGen - Request & Table Validators
=====================================
Two kinds of checks live here:

* **Request validation** (``validate_request``) is blocking.  A missing
  ``tableName`` or ``namespace`` raises ``InputValidationError`` before any
  schema lookup happens.
* **Table inspection** (``inspect_table``) is advisory.  The generators
  accept anything, so odd metadata (no columns, no key, composite key,
  dangling key names) only produces warnings that the caller logs or
  prints.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from cqrsgen.models import GenerateRequest, TableDescriptor

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.validators")

_CSHARP_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^@?[A-Za-z_][A-Za-z0-9_]*$")

MISSING_TABLE_NAME_MESSAGE: str = "Table name is required"
MISSING_NAMESPACE_MESSAGE: str = "Namespace is required"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class InputValidationError(ValueError):
    """A required request field is missing or empty."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.message: str = message
        self.field: str = field


# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def is_valid(self) -> bool:
        return not any(e.is_error for e in self._items)

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Request validation (blocking)
# ---------------------------------------------------------------------------


def validate_request(request: GenerateRequest) -> Tuple[str, str, bool]:
    """
    Check the required request fields.

    Returns:
        Tuple of (table_name, namespace, trim_trailing_plural).

    Raises:
        InputValidationError: If ``tableName`` or ``namespace`` is missing.
    """
    if not request.table_name:
        raise InputValidationError(MISSING_TABLE_NAME_MESSAGE, "tableName")
    if not request.namespace:
        raise InputValidationError(MISSING_NAMESPACE_MESSAGE, "namespace")
    return request.table_name, request.namespace, bool(request.ignore_last_s_char)


# ---------------------------------------------------------------------------
# Table inspection (advisory)
# ---------------------------------------------------------------------------


def _check_columns(table: TableDescriptor, result: ValidationResult) -> None:
    if not table.columns:
        result.add_warning(
            "TABLE_NO_COLUMNS",
            f"Table '{table.logical_name}' has no columns; it may not exist. "
            "Generated artifacts will be nearly empty.",
            {"table": table.logical_name},
        )
        return

    seen: set = set()
    dupes: List[str] = []
    for name in table.column_names:
        if name in seen and name not in dupes:
            dupes.append(name)
        seen.add(name)
    if dupes:
        result.add_warning(
            "TABLE_DUPLICATE_COLUMNS",
            f"Table '{table.logical_name}' reports duplicate columns: {dupes}",
            {"columns": dupes},
        )


def _check_primary_key(table: TableDescriptor, result: ValidationResult) -> None:
    if not table.primary_keys:
        if table.columns:
            result.add_warning(
                "TABLE_NO_PRIMARY_KEY",
                f"Table '{table.logical_name}' has no primary key; "
                "key-based operations fall back to 'int id'.",
            )
        return

    column_set: set = set(table.column_names)
    dangling: List[str] = [pk for pk in table.primary_keys if pk not in column_set]
    if dangling:
        result.add_warning(
            "PK_UNKNOWN_COLUMN",
            f"Primary key column(s) {dangling} not found in table "
            f"'{table.logical_name}'.",
            {"primary_keys": dangling},
        )

    if len(table.primary_keys) > 1:
        pk_col = table.primary_key_column
        result.add_warning(
            "PK_COMPOSITE",
            f"Table '{table.logical_name}' has a composite primary key "
            f"{list(table.primary_keys)}; only "
            f"'{pk_col.name if pk_col else '?'}' is used in generated signatures.",
        )


def validate_namespace(namespace: str) -> ValidationResult:
    """Warn about namespace segments that are not valid C# identifiers."""
    result: ValidationResult = ValidationResult()
    bad: List[str] = [
        seg for seg in namespace.split(".") if not _CSHARP_IDENTIFIER_RE.match(seg)
    ]
    if bad:
        result.add_warning(
            "NAMESPACE_INVALID_SEGMENT",
            f"Namespace '{namespace}' has invalid segment(s): {bad}",
            {"segments": bad},
        )
    return result


def inspect_table(
    table: TableDescriptor,
    namespace: Optional[str] = None,
) -> ValidationResult:
    """
    Advisory checks on the metadata handed to the generators.

    Never blocks generation; every finding is a warning.
    """
    result: ValidationResult = ValidationResult()
    _check_columns(table, result)
    _check_primary_key(table, result)
    if namespace:
        result.merge(validate_namespace(namespace))

    for issue in result.warnings:
        logger.warning("  ⚠ %s", issue)
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "InputValidationError",
    "ValidationIssue",
    "ValidationResult",
    "validate_request",
    "validate_namespace",
    "inspect_table",
    "MISSING_TABLE_NAME_MESSAGE",
    "MISSING_NAMESPACE_MESSAGE",
]

logger.debug("cqrsgen.validators loaded.")
