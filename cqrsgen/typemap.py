# File: cqrsgen/typemap.py
"""
CQRSGen - PostgreSQL → C# Type Mapping
========================================
Maps ``information_schema.columns.data_type`` values onto C# type names.

Rules:
    - Lookup is case-insensitive; unknown types map to ``object``.
    - ``<base>[]`` resolves ``<base>`` and wraps the result as an array.
    - Nullable value types get the ``?`` suffix.  ``string``, ``object`` and
      arrays are reference types and are returned unchanged whatever the
      nullability.
"""

from __future__ import annotations

import functools
import logging
from typing import Dict, List

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.typemap")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PLACEHOLDER_TYPE: str = "object"
ARRAY_MARKER: str = "[]"
NULLABLE_SUFFIX: str = "?"

# .NET classes in the map; nullable columns of these types are not suffixed with ?
_REFERENCE_TYPES: frozenset = frozenset({
    "string",
    PLACEHOLDER_TYPE,
    "Array",
    "BitArray",
    "IPAddress",
    "PhysicalAddress",
    "XmlDocument",
    "NpgsqlTsQuery",
    "NpgsqlTsVector",
})

# PostgreSQL data_type → C# type
PG_TO_CSHARP_TYPE_MAP: Dict[str, str] = {
    # Numeric
    "integer": "int",
    "bigint": "long",
    "smallint": "short",
    "numeric": "decimal",
    "real": "float",
    "double precision": "double",
    "money": "decimal",
    # Boolean / bit strings
    "boolean": "bool",
    "bit": "bool",
    "bit varying": "BitArray",
    # Text
    "character varying": "string",
    "varchar": "string",
    "character": "string",
    "char": "string",
    "text": "string",
    "json": "string",
    "jsonb": "string",
    # Date / Time
    "date": "DateTime",
    "timestamp": "DateTime",
    "timestamp with time zone": "DateTimeOffset",
    "timestamp without time zone": "DateTime",
    "time": "TimeSpan",
    "time with time zone": "DateTimeOffset",
    "time without time zone": "TimeSpan",
    "interval": "TimeSpan",
    # Binary / identifiers
    "uuid": "Guid",
    "bytea": "byte[]",
    # Geometric
    "point": "NpgsqlPoint",
    "line": "NpgsqlLine",
    "lseg": "NpgsqlLSeg",
    "box": "NpgsqlBox",
    "path": "NpgsqlPath",
    "polygon": "NpgsqlPolygon",
    "circle": "NpgsqlCircle",
    # Network
    "cidr": "IPNetwork",
    "inet": "IPAddress",
    "macaddr": "PhysicalAddress",
    # Full-text search / XML
    "tsquery": "NpgsqlTsQuery",
    "tsvector": "NpgsqlTsVector",
    "xml": "XmlDocument",
    # information_schema reports array columns as 'ARRAY'
    "array": "Array",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_reference_type(csharp_type: str) -> bool:
    """True for target types that are classes in .NET (already nullable)."""
    return csharp_type in _REFERENCE_TYPES or csharp_type.endswith(ARRAY_MARKER)


@functools.lru_cache(maxsize=None)
def map_type(source_type: str, is_nullable: bool) -> str:
    """
    Resolve the C# type for a PostgreSQL column type.

    Examples:
        >>> map_type("integer", False)
        'int'
        >>> map_type("integer", True)
        'int?'
        >>> map_type("text", True)
        'string'
        >>> map_type("integer[]", True)
        'int[]'
        >>> map_type("hstore", False)
        'object'
    """
    key: str = (source_type or "").strip().lower()

    if key.endswith(ARRAY_MARKER):
        base_type: str = map_type(key[: -len(ARRAY_MARKER)], False)
        return f"{base_type}{ARRAY_MARKER}"

    csharp_type: str = PG_TO_CSHARP_TYPE_MAP.get(key, PLACEHOLDER_TYPE)
    if key not in PG_TO_CSHARP_TYPE_MAP:
        logger.debug("No C# mapping for '%s'; using '%s'.", source_type, PLACEHOLDER_TYPE)

    if is_nullable and not is_reference_type(csharp_type):
        return f"{csharp_type}{NULLABLE_SUFFIX}"
    return csharp_type


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "map_type",
    "is_reference_type",
    "PG_TO_CSHARP_TYPE_MAP",
    "PLACEHOLDER_TYPE",
]

logger.debug("cqrsgen.typemap loaded.")
