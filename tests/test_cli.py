"""Tests for kanbanparse.cli — page specs, config errors and output formats."""

import argparse
import csv
import io
import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from kanbanparse.cli import build_parser, main, parse_page_spec
from kanbanparse.ingest import IngestError
from kanbanparse.models import ExtractedOrder, ExtractedOrderItem, HeaderFields
from kanbanparse.pipeline import DocumentResult, PageResult

HEADER = HeaderFields(supplier_code="02806", dock_code="FL", order_series="20251117")


def _document(pdf="a.pdf", page=0):
    item = ExtractedOrderItem(part_number="68101-0E120-00", planned_qty=2)
    order = ExtractedOrder(order_number="001", header=HEADER, items=(item,), page=page)
    return DocumentResult(
        pdf_path=Path(pdf), pages=[PageResult(page=page, orders=[order])]
    )


class TestParsePageSpec:
    def test_single_and_range(self):
        assert parse_page_spec("1,3-5") == [0, 2, 3, 4]

    def test_sorted_unique(self):
        assert parse_page_spec("4, 2, 2-3") == [1, 2, 3]

    @pytest.mark.parametrize("spec", ["0", "3-1", ",", "0-2"])
    def test_rejects_bad_specs(self, spec):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_page_spec(spec)

    def test_non_numeric_rejected_by_parser(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["a.pdf", "--pages", "x"])
        assert "Bad page spec" in capsys.readouterr().err


class TestMain:
    def test_json_to_stdout(self, capsys):
        with patch("kanbanparse.cli.run_document", return_value=_document()) as run:
            code = main(["a.pdf", "--pages", "2"])
        assert code == 0
        run.assert_called_once()
        assert run.call_args.kwargs["pages"] == [1]
        doc = json.loads(capsys.readouterr().out)
        assert doc["orders"][0]["real_order_number"] == "20251117001"
        assert doc["summary"]["documents"][0]["orders"] == 1

    def test_csv_to_file(self, tmp_path):
        out = tmp_path / "out" / "orders.csv"
        with patch("kanbanparse.cli.run_document", return_value=_document()):
            code = main(["a.pdf", "--format", "csv", "--output", str(out)])
        assert code == 0
        rows = list(csv.DictReader(io.StringIO(out.read_text(encoding="utf-8"))))
        assert rows[0]["part_number"] == "68101-0E120-00"
        assert rows[0]["planned_qty"] == "2"

    def test_dedupe_across_documents(self, capsys):
        docs = [_document("a.pdf"), _document("b.pdf")]
        with patch("kanbanparse.cli.run_document", side_effect=docs):
            main(["a.pdf", "b.pdf", "--dedupe"])
        assert len(json.loads(capsys.readouterr().out)["orders"]) == 1

    def test_without_dedupe_keeps_duplicates(self, capsys):
        docs = [_document("a.pdf"), _document("b.pdf")]
        with patch("kanbanparse.cli.run_document", side_effect=docs):
            main(["a.pdf", "b.pdf"])
        assert len(json.loads(capsys.readouterr().out)["orders"]) == 2

    def test_ingest_error_continues(self, capsys):
        docs = [IngestError("File not found: a.pdf"), _document("b.pdf")]
        with patch("kanbanparse.cli.run_document", side_effect=docs):
            code = main(["a.pdf", "b.pdf"])
        captured = capsys.readouterr()
        assert code == 1
        assert "File not found" in captured.err
        assert len(json.loads(captured.out)["orders"]) == 1

    def test_config_error(self, tmp_path, capsys):
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text("column_tolerance: -1\n", encoding="utf-8")
        with patch("kanbanparse.cli.run_document") as run:
            code = main(["a.pdf", "--config", str(cfg)])
        assert code == 2
        run.assert_not_called()
        assert "config error" in capsys.readouterr().err

    def test_config_passed_through(self, tmp_path):
        cfg = tmp_path / "cfg.toml"
        cfg.write_text("[kanbanparse]\ncolumn_tolerance = 12.5\n", encoding="utf-8")
        with patch("kanbanparse.cli.run_document", return_value=_document()) as run:
            main(["a.pdf", "--config", str(cfg)])
        assert run.call_args.kwargs["cfg"].column_tolerance == 12.5

    def test_overlay_dir(self, tmp_path):
        from PIL import Image

        bg = Image.new("RGB", (850, 1100), (255, 255, 255))
        with patch("kanbanparse.cli.run_document", return_value=_document()), patch(
            "kanbanparse.cli.render_page_image", return_value=bg
        ):
            main(["a.pdf", "--overlay-dir", str(tmp_path), "-o", str(tmp_path / "o.json")])
        assert (tmp_path / "a_page_1_overlay.png").exists()

    def test_overlay_render_failure_skipped(self, tmp_path, caplog):
        out = tmp_path / "o.json"
        with patch("kanbanparse.cli.run_document", return_value=_document()), patch(
            "kanbanparse.cli.render_page_image", side_effect=RuntimeError("bad image")
        ):
            with caplog.at_level(logging.ERROR, logger="kanbanparse.cli"):
                code = main(["a.pdf", "--overlay-dir", str(tmp_path), "-o", str(out)])
        assert code == 0
        assert len(json.loads(out.read_text(encoding="utf-8"))["orders"]) == 1
        assert not (tmp_path / "a_page_1_overlay.png").exists()
        assert "cannot render overlay" in caplog.text
