"""
tests/test_exporters.py
Tests for cqrsgen.exporters.ArtifactExporter (real file I/O under tmp_path).
"""

from __future__ import annotations

import json
import pathlib

import pytest

from cqrsgen.exporters import MANIFEST_FILENAME, ArtifactExporter
from cqrsgen.models import GeneratedCode, TableDescriptor
from cqrsgen.templates import TemplateGenerator

EXPECTED_FILES = [
    "Entities/Order.cs",
    "Repositories/IOrderRepository.cs",
    "Repositories/OrderRepository.cs",
    "CQRS/Commands/OrderCommands.cs",
    "CQRS/Queries/OrderQueries.cs",
    "CQRS/Handlers/OrderHandlers.cs",
]


@pytest.fixture
def order_code(orders_table: TableDescriptor) -> GeneratedCode:
    _, code = TemplateGenerator("Acme.Services").generate_all(orders_table, True)
    return code


def _export(out: pathlib.Path, code: GeneratedCode, **kwargs):
    return ArtifactExporter(out, **kwargs).export(
        code, class_name="Order", table_name="public.orders", namespace="Acme.Services"
    )


class TestArtifactExporter:
    def test_writes_six_files(self, tmp_path, order_code):
        out = tmp_path / "out"
        result = _export(out, order_code)

        assert result.success
        for rel in EXPECTED_FILES:
            assert (out / rel).is_file()
        assert (out / "Entities/Order.cs").read_text(encoding="utf-8") == order_code.entity
        assert (out / "CQRS/Handlers/OrderHandlers.cs").read_text(encoding="utf-8") == order_code.handlers

    def test_manifest(self, tmp_path, order_code):
        out = tmp_path / "out"
        result = _export(out, order_code)

        data = json.loads((out / MANIFEST_FILENAME).read_text(encoding="utf-8"))
        assert data["class_name"] == "Order"
        assert data["table_name"] == "public.orders"
        assert data["namespace"] == "Acme.Services"
        assert data["total_files"] == 6
        assert [f["relative_path"] for f in data["files"]] == EXPECTED_FILES
        assert all(len(f["sha256"]) == 64 for f in data["files"])
        assert result.manifest.total_bytes == sum(f["size_bytes"] for f in data["files"])

    def test_without_manifest(self, tmp_path, order_code):
        out = tmp_path / "out"
        _export(out, order_code, generate_manifest=False)
        assert not (out / MANIFEST_FILENAME).exists()

    def test_rerun_overwrites(self, tmp_path, order_code):
        out = tmp_path / "out"
        _export(out, order_code)
        result = _export(out, order_code)
        assert result.success
        assert result.manifest.total_files == 6

    def test_clean_removes_stale_files(self, tmp_path, order_code):
        out = tmp_path / "out"
        out.mkdir()
        (out / "stale.cs").write_text("old", encoding="utf-8")
        (out / ".gitkeep").write_text("", encoding="utf-8")

        _export(out, order_code, clean_before_export=True)

        assert not (out / "stale.cs").exists()
        assert (out / ".gitkeep").exists()

    def test_without_clean_keeps_files(self, tmp_path, order_code):
        out = tmp_path / "out"
        out.mkdir()
        (out / "stale.cs").write_text("old", encoding="utf-8")
        _export(out, order_code)
        assert (out / "stale.cs").exists()

    def test_output_path_is_a_file(self, tmp_path, order_code):
        blocker = tmp_path / "out"
        blocker.write_text("not a directory", encoding="utf-8")

        result = _export(blocker, order_code)

        assert not result.success
        assert result.errors
        assert result.manifest.total_files == 0
