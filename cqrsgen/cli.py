# File: cqrsgen/cli.py
"""
CQRSGen - Command-Line Interface
==================================

argparse front end for the generator and the HTTP service.

Usage examples::

    # Look up a table in DATABASE_URL and print all six artifacts
    python -m cqrsgen -t public.orders -n Acme.Services

    # Keep the trailing character of the table name ("orders" -> "Orders")
    python -m cqrsgen -t orders -n Acme.Services --keep-last-char

    # Offline: table metadata from a file, artifacts exported to a directory
    python -m cqrsgen --schema-file orders.yaml -n Acme.Services -o ./out --clean

    # Probe the database / run the HTTP API
    python -m cqrsgen --check-connection
    python -m cqrsgen --serve --port 8080

Exit codes:
    0 — success
    1 — schema lookup / connection error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from pydantic import ValidationError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_LOOKUP_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _level_for_verbosity(verbosity: int) -> int:
    """0 = WARNING, 1 = INFO, 2+ = DEBUG."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity >= 1:
        return logging.INFO
    return logging.WARNING


def _setup_logging(level: int) -> None:
    """Attach a single stderr handler to the ``cqrsgen`` logger."""
    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("cqrsgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from cqrsgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="cqrsgen",
        description=(
            "CQRSGen — C# CQRS boilerplate generator.\n\n"
            "Reads a PostgreSQL table's columns and primary key and emits an "
            "entity, a Dapper repository (interface + implementation) and "
            "MediatR commands, queries and handlers."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -t public.orders -n Acme.Services\n"
            "  %(prog)s --schema-file orders.yaml -n Acme.Services -o ./out\n"
            "  %(prog)s --check-connection\n"
            "  %(prog)s --serve --port 8080\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"CQRSGen v{__version__}",
    )

    # --- Table selection ---
    table_group = parser.add_argument_group("table selection")
    table_group.add_argument(
        "-t", "--table",
        type=str,
        default=None,
        metavar="NAME",
        help="Table name, optionally schema-qualified (e.g. 'sales.orders').",
    )
    table_group.add_argument(
        "-n", "--namespace",
        type=str,
        default=None,
        metavar="NS",
        help="Root C# namespace of the generated code (e.g. 'Acme.Services').",
    )
    table_group.add_argument(
        "--keep-last-char",
        action="store_true",
        default=False,
        help="Do not drop the last character of the table name for the class name.",
    )
    table_group.add_argument(
        "--schema-file",
        type=str,
        default=None,
        metavar="PATH",
        help="Read table metadata from a JSON/YAML file instead of the database.",
    )
    table_group.add_argument(
        "--database-url",
        type=str,
        default=None,
        metavar="URL",
        help="Override DATABASE_URL.",
    )

    # --- Output ---
    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Write the six .cs files under DIR instead of printing them.",
    )
    output_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Clean the output directory before exporting.",
    )
    output_group.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the full API response (schema + generatedCode) as JSON.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--check-connection",
        action="store_true",
        default=False,
        help="Test the database connection and exit.",
    )
    mode_group.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP API (POST /api/generate) with uvicorn.",
    )
    mode_group.add_argument(
        "--host",
        type=str,
        default=None,
        help="Bind address for --serve (default: CQRSGEN_HOST or 127.0.0.1).",
    )
    mode_group.add_argument(
        "--port",
        type=int,
        default=None,
        help="Bind port for --serve (default: CQRSGEN_PORT or 8000).",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Provider construction
# ---------------------------------------------------------------------------


def _load_settings(args: argparse.Namespace):
    from cqrsgen.config import Settings, get_settings

    if args.database_url:
        return Settings(DATABASE_URL=args.database_url)
    return get_settings()


def _build_provider(args: argparse.Namespace, settings):
    """
    Static provider for ``--schema-file``, PostgreSQL otherwise.

    Returns:
        Tuple of (provider, table name found in the schema file or None).

    Raises:
        FileNotFoundError / ValueError: Bad schema file or missing DATABASE_URL.
    """
    from cqrsgen.generator import load_table_file
    from cqrsgen.schema_provider import PostgresSchemaProvider, StaticSchemaProvider

    if args.schema_file:
        table = load_table_file(Path(args.schema_file).resolve())
        return StaticSchemaProvider([table]), table.logical_name
    return PostgresSchemaProvider.from_settings(settings), None


# ---------------------------------------------------------------------------
# Connection check mode
# ---------------------------------------------------------------------------


def _run_check_connection(provider) -> int:
    try:
        result = provider.test_connection()
    finally:
        provider.close()

    if result.success:
        print(f"✅ Connected. Server time: {result.timestamp}")
        return EXIT_SUCCESS
    print(f"✗ Connection failed: {result.error}", file=sys.stderr)
    return EXIT_LOOKUP_ERROR


# ---------------------------------------------------------------------------
# Server mode
# ---------------------------------------------------------------------------


def _run_server(args: argparse.Namespace, settings, provider) -> int:
    import uvicorn

    from cqrsgen.app import create_app

    host: str = args.host or settings.host
    port: int = args.port or settings.port
    app = create_app(settings=settings, provider=provider)

    logger.info("Serving on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Generation mode
# ---------------------------------------------------------------------------


def _run_generation(
    args: argparse.Namespace, provider, file_table_name: Optional[str] = None
) -> int:
    from cqrsgen.exporters import ArtifactExporter, ExportResult
    from cqrsgen.generator import CodeGenerator, GenerationReport
    from cqrsgen.models import GenerateRequest
    from cqrsgen.schema_provider import SchemaLookupError
    from cqrsgen.validators import InputValidationError

    table_name: Optional[str] = args.table or file_table_name

    request: GenerateRequest = GenerateRequest(
        table_name=table_name,
        namespace=args.namespace,
        ignore_last_s_char=not args.keep_last_char,
    )

    try:
        report: GenerationReport = CodeGenerator(provider).generate(request)
    except InputValidationError as exc:
        logger.error("%s (use --%s).", exc.message, "table" if exc.field == "tableName" else exc.field)
        return EXIT_INPUT_ERROR
    except SchemaLookupError as exc:
        logger.error("Schema lookup failed for %s: %s", exc.table_name, exc.detail)
        return EXIT_LOOKUP_ERROR
    except Exception as exc:
        logger.error("Generation failed: %s", exc, exc_info=True)
        return EXIT_GENERATION_ERROR
    finally:
        provider.close()

    if args.output is None:
        if args.json:
            print(report.response.model_dump_json(by_alias=True, indent=2))
        else:
            print(report.code.combined())
        if not args.quiet:
            print(report.summary(), file=sys.stderr)
        return EXIT_SUCCESS

    exporter: ArtifactExporter = ArtifactExporter(
        Path(args.output), clean_before_export=args.clean
    )
    result: ExportResult = exporter.export(
        report.code,
        class_name=report.class_name,
        table_name=report.response.table_schema.table_name,
        namespace=args.namespace,
    )
    if not args.quiet:
        print(report.summary())
        for record in result.manifest.files:
            print(f"  {record.relative_path:<45} {record.line_count:>5} lines")

    if not result.success:
        for err in result.errors:
            logger.error("  ✗ %s", err)
        return EXIT_EXPORT_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        level: int = logging.ERROR
    else:
        level = _level_for_verbosity(args.verbose)

    try:
        settings = _load_settings(args)
    except ValidationError as exc:
        _setup_logging(level)
        logger.error("Invalid configuration: %s", exc)
        sys.exit(EXIT_INPUT_ERROR)

    if args.serve and not args.verbose and not args.quiet:
        level = logging.getLevelName(settings.log_level)
    _setup_logging(level)

    if args.serve and args.output:
        logger.error("--serve cannot be combined with -o/--output.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        provider, file_table_name = _build_provider(args, settings)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        sys.exit(EXIT_INPUT_ERROR)

    if args.check_connection:
        sys.exit(_run_check_connection(provider))

    if args.serve:
        sys.exit(_run_server(args, settings, provider))

    exit_code: int = _run_generation(args, provider, file_table_name)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_LOOKUP_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("cqrsgen.cli loaded.")
