# File: cqrsgen/schema_provider.py
"""
CQRSGen - Schema Providers
============================
Looks up a table's columns and primary key.

``PostgresSchemaProvider`` reads ``information_schema`` through a pooled
SQLAlchemy engine injected at construction.  Each lookup borrows one
connection for both metadata queries and returns it to the pool when the
``with`` block exits, including when a query fails.

``StaticSchemaProvider`` serves pre-built descriptors (schema files, tests).

A table that does not exist is not an error: both providers return a
descriptor with no columns and no primary key.
"""

from __future__ import annotations

import abc
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cqrsgen.config import Settings
from cqrsgen.models import ColumnDescriptor, ConnectionResult, TableDescriptor
from cqrsgen.utils import Timer, split_table_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.schema_provider")

# ---------------------------------------------------------------------------
# Metadata queries
# ---------------------------------------------------------------------------

_COLUMN_QUERY = text(
    """
    SELECT
        column_name,
        data_type,
        character_maximum_length,
        is_nullable,
        column_default,
        udt_name
    FROM
        information_schema.columns
    WHERE
        table_name = :table
        AND table_schema = :schema
    ORDER BY
        ordinal_position
    """
)

_PRIMARY_KEY_QUERY = text(
    """
    SELECT
        c.column_name
    FROM
        information_schema.table_constraints tc
    JOIN
        information_schema.constraint_column_usage AS ccu
        USING (constraint_schema, constraint_name)
    JOIN
        information_schema.columns AS c
        ON c.table_schema = tc.constraint_schema
        AND tc.table_name = c.table_name
        AND ccu.column_name = c.column_name
    WHERE
        tc.constraint_type = 'PRIMARY KEY'
        AND tc.table_name = :table
        AND tc.table_schema = :schema
    """
)

_PING_QUERY = text("SELECT NOW()")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SchemaLookupError(RuntimeError):
    """The metadata lookup failed (connectivity, permissions, bad SQL)."""

    def __init__(self, table_name: str, detail: str) -> None:
        super().__init__(detail)
        self.table_name: str = table_name
        self.detail: str = detail


def _error_detail(exc: SQLAlchemyError) -> str:
    """Prefer the DBAPI message over SQLAlchemy's wrapped repr."""
    orig: Optional[BaseException] = getattr(exc, "orig", None)
    return str(orig).strip() if orig is not None else str(exc)


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


class SchemaProvider(abc.ABC):
    """Source of table metadata for the generator."""

    @abc.abstractmethod
    def get_table_schema(self, logical_name: str) -> TableDescriptor:
        """Return the table's columns (ordinal order) and primary key."""

    @abc.abstractmethod
    def test_connection(self) -> ConnectionResult:
        """Probe the backing store without raising."""

    def close(self) -> None:
        """Release pooled resources, if any."""


# ---------------------------------------------------------------------------
# PostgreSQL implementation
# ---------------------------------------------------------------------------


def create_engine_from_config(settings: Settings) -> Engine:
    """
    Build the pooled engine used by ``PostgresSchemaProvider``.

    Raises:
        ValueError: If ``DATABASE_URL`` is not configured.
    """
    if not settings.database_url:
        raise ValueError("DATABASE_URL is not configured.")
    engine: Engine = create_engine(
        settings.database_url,
        pool_size=settings.pool_size,
        pool_pre_ping=True,
    )
    logger.info(
        "Created database engine (pool_size=%d) for %s.",
        settings.pool_size,
        engine.url.render_as_string(hide_password=True),
    )
    return engine


class PostgresSchemaProvider(SchemaProvider):
    """PostgreSQL ``information_schema`` reader on an injected engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine: Engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostgresSchemaProvider":
        return cls(create_engine_from_config(settings))

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_table_schema(self, logical_name: str) -> TableDescriptor:
        """
        Run the column and primary-key queries for *logical_name*.

        ``schema.table`` names are split on the first period; unqualified
        names resolve to ``public``.

        Raises:
            SchemaLookupError: If either query fails.
        """
        schema, table = split_table_name(logical_name)
        params: Dict[str, str] = {"table": table, "schema": schema}

        with Timer("schema_lookup") as t:
            try:
                with self._engine.connect() as conn:
                    column_rows = conn.execute(_COLUMN_QUERY, params).mappings().all()
                    pk_names: List[str] = list(
                        conn.execute(_PRIMARY_KEY_QUERY, params).scalars().all()
                    )
            except SQLAlchemyError as exc:
                detail: str = _error_detail(exc)
                logger.error("Error fetching table schema for %s: %s", logical_name, detail)
                raise SchemaLookupError(logical_name, detail) from exc

        columns: List[ColumnDescriptor] = [
            ColumnDescriptor.model_validate(dict(row)) for row in column_rows
        ]
        logger.info(
            "Fetched schema for %s.%s: %d columns, pk=%s in %.3fs.",
            schema,
            table,
            len(columns),
            pk_names,
            t.elapsed,
        )
        return TableDescriptor(
            logical_name=logical_name,
            columns=tuple(columns),
            primary_keys=tuple(pk_names),
        )

    def test_connection(self) -> ConnectionResult:
        try:
            with self._engine.connect() as conn:
                now: Any = conn.execute(_PING_QUERY).scalar_one()
        except SQLAlchemyError as exc:
            detail: str = _error_detail(exc)
            logger.error("Database connection error: %s", detail)
            return ConnectionResult(success=False, error=detail)

        stamp: str = now.isoformat() if isinstance(now, datetime) else str(now)
        return ConnectionResult(success=True, timestamp=stamp)

    def close(self) -> None:
        self._engine.dispose()
        logger.debug("Disposed database engine.")


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class StaticSchemaProvider(SchemaProvider):
    """
    Serves descriptors supplied up front.

    Tables are keyed by ``(schema, table)``, so ``orders`` and
    ``public.orders`` resolve to the same entry while ``sales.orders`` does
    not.  Unknown tables yield an empty descriptor.
    """

    def __init__(self, tables: Iterable[TableDescriptor]) -> None:
        self._tables: Dict[Tuple[str, str], TableDescriptor] = {}
        for tbl in tables:
            self._tables[split_table_name(tbl.logical_name)] = tbl

    def get_table_schema(self, logical_name: str) -> TableDescriptor:
        found: Optional[TableDescriptor] = self._tables.get(split_table_name(logical_name))
        if found is None:
            logger.info("Table %s not found in static schema.", logical_name)
            return TableDescriptor(logical_name=logical_name)
        if found.logical_name != logical_name:
            return found.model_copy(update={"logical_name": logical_name})
        return found

    def test_connection(self) -> ConnectionResult:
        return ConnectionResult(
            success=True, timestamp=datetime.now(timezone.utc).isoformat()
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaProvider",
    "PostgresSchemaProvider",
    "StaticSchemaProvider",
    "SchemaLookupError",
    "create_engine_from_config",
]

logger.debug("cqrsgen.schema_provider loaded.")
