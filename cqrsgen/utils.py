# File: cqrsgen/utils.py
"""
CQRSGen - Utility Functions & Helpers
======================================
Identifier casing, table-name normalisation, file I/O, and timing helpers
used throughout the generation pipeline.

The casing functions are pure and decorated with ``@lru_cache`` so the
repeated calls made while rendering six artifacts per column stay cheap.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.utils")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_SCHEMA: str = "public"
SCHEMA_SEPARATOR: str = "."


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert a snake_case identifier to PascalCase.

    Each underscore-separated fragment gets an upper-cased first character
    and lower-cased remainder.  Empty fragments (from ``__`` or leading /
    trailing underscores) contribute nothing.

    Examples:
        >>> to_pascal_case("user_id")
        'UserId'
        >>> to_pascal_case("ORDER_ITEMS")
        'OrderItems'
        >>> to_pascal_case("a__b")
        'AB'
    """
    return "".join(word[:1].upper() + word[1:].lower() for word in name.split("_"))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert a snake_case identifier to camelCase.

    Examples:
        >>> to_camel_case("customer_id")
        'customerId'
        >>> to_camel_case("id")
        'id'
    """
    pascal: str = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


# ---------------------------------------------------------------------------
# Table name helpers
# ---------------------------------------------------------------------------


def strip_schema(logical_name: str) -> str:
    """Drop a ``schema.`` qualifier: everything after the first period."""
    if SCHEMA_SEPARATOR in logical_name:
        return logical_name.split(SCHEMA_SEPARATOR, 1)[1]
    return logical_name


def split_table_name(logical_name: str) -> Tuple[str, str]:
    """
    Split ``schema.table`` into ``(schema, table)``.

    Unqualified names resolve to the ``public`` schema.
    """
    if SCHEMA_SEPARATOR in logical_name:
        schema, table = logical_name.split(SCHEMA_SEPARATOR, 1)
        return schema, table
    return DEFAULT_SCHEMA, logical_name


def derive_class_base_name(logical_name: str, trim_trailing_plural: bool) -> str:
    """
    Derive the PascalCase class base name shared by all six artifacts.

    The trim is blunt: the last character goes whatever it is, so callers
    pass ``trim_trailing_plural`` only for names ending in a plural ``s``.

    Examples:
        >>> derive_class_base_name("public.users", True)
        'User'
        >>> derive_class_base_name("users", False)
        'Users'
        >>> derive_class_base_name("order_items", True)
        'OrderItem'
    """
    base: str = strip_schema(logical_name)
    if trim_trailing_plural:
        base = base[:-1]
    return to_pascal_case(base)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    and renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")
    byte_count: int = len(encoded)

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            shutil.move(tmp_path, str(path))
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", byte_count, path)
    return byte_count


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for pipeline steps.

    Usage:
        with Timer("schema lookup") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_SCHEMA",
    "to_pascal_case",
    "to_camel_case",
    "strip_schema",
    "split_table_name",
    "derive_class_base_name",
    "ensure_directory",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("cqrsgen.utils loaded — %d public symbols.", len(__all__))
