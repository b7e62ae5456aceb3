# File: cqrsgen/exporters.py
"""
CQRSGen - Artifact Exporter (File-System Manager)
===================================================

Writes the six generated C# artifacts into a conventional layout::

    <output>/
        Entities/Order.cs
        Repositories/IOrderRepository.cs
        Repositories/OrderRepository.cs
        CQRS/Commands/OrderCommands.cs
        CQRS/Queries/OrderQueries.cs
        CQRS/Handlers/OrderHandlers.cs
        manifest.json

Each file is written atomically.  If a write fails mid-batch, files
already written stay in place and the failure is reported in the
``ExportResult``.  Re-running on the same directory overwrites in place.
"""

from __future__ import annotations

import json
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from cqrsgen.models import GeneratedCode
from cqrsgen.utils import Timer, count_lines, ensure_directory, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.exporters")

MANIFEST_FILENAME: str = "manifest.json"
_PRESERVED_ENTRIES: frozenset = frozenset({".git", ".gitignore", ".gitkeep"})


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Every file written by one export, with checksums."""

    table_name: str = ""
    class_name: str = ""
    namespace: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "class_name": self.class_name,
            "namespace": self.namespace,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Returned by ``ArtifactExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# ArtifactExporter class
# ---------------------------------------------------------------------------


class ArtifactExporter:
    """
    Writes a ``GeneratedCode`` bundle to disk.

    Usage::

        exporter = ArtifactExporter(Path("./out"), clean_before_export=True)
        result = exporter.export(code, class_name="Order",
                                 table_name="public.orders",
                                 namespace="Acme.Services")

    Not thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        clean_before_export: bool = False,
        atomic_writes: bool = True,
        generate_manifest: bool = True,
    ) -> None:
        self._output_dir: Path = output_dir.resolve()
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes
        self._generate_manifest: bool = generate_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "ArtifactExporter initialised: output_dir=%s, atomic=%s.",
            self._output_dir,
            self._atomic_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(
        self,
        code: GeneratedCode,
        *,
        class_name: str,
        table_name: str = "",
        namespace: str = "",
    ) -> ExportResult:
        """
        Write all six artifacts (plus the manifest) under the output root.

        Returns:
            ExportResult with success flag, manifest, and error details.
        """
        self._errors = []
        self._warnings = []
        self._file_records = []

        with Timer("export") as timer:
            try:
                self._pre_export_cleanup()
                ensure_directory(self._output_dir)
                self._write_artifacts(code.as_files(class_name))
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

            manifest: ExportManifest = self._build_manifest(
                class_name, table_name, namespace
            )
            if self._generate_manifest and not self._errors:
                self._write_manifest_file(manifest)

        success: bool = len(self._errors) == 0
        result: ExportResult = ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )
        return result

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        if not self._clean_before_export or not self._output_dir.exists():
            return

        logger.info("Cleaning output directory: %s", self._output_dir)
        for item in self._output_dir.iterdir():
            if item.name in _PRESERVED_ENTRIES:
                continue
            try:
                if item.is_dir():
                    shutil.rmtree(item)
                else:
                    item.unlink()
            except OSError as exc:
                warning_msg: str = f"Could not remove {item}: {exc}"
                self._warnings.append(warning_msg)
                logger.warning(warning_msg)

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_artifacts(self, files: Dict[str, str]) -> None:
        for rel_path, content in files.items():
            try:
                self._file_records.append(self._write_single_file(rel_path, content))
            except OSError as exc:
                error_msg: str = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg)

        logger.info(
            "Wrote %d artifact files to %s.", len(self._file_records), self._output_dir
        )

    def _write_single_file(self, rel_path: str, content: str) -> FileRecord:
        full_path: Path = self._output_dir / rel_path
        size_bytes: int = write_file(full_path, content, atomic=self._atomic_writes)
        return FileRecord(
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=size_bytes,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(
        self, class_name: str, table_name: str, namespace: str
    ) -> ExportManifest:
        import cqrsgen

        return ExportManifest(
            table_name=table_name,
            class_name=class_name,
            namespace=namespace,
            generator_version=cqrsgen.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self, manifest: ExportManifest) -> None:
        """Write manifest.json; a failure here is only a warning."""
        try:
            self._write_single_file(MANIFEST_FILENAME, manifest.to_json())
            logger.debug("Wrote manifest to %s.", self._output_dir / MANIFEST_FILENAME)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ArtifactExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
    "MANIFEST_FILENAME",
]

logger.debug("cqrsgen.exporters loaded.")
