"""Tests for kanbanparse.columns — order-number discovery and column location."""

import itertools
import logging

import pytest
from conftest import COL_001, COL_002, make_row, make_word

from kanbanparse.config import ParserConfig
from kanbanparse.columns import (
    discover_order_numbers,
    find_header_row,
    locate_order_columns,
)


class TestDiscoverOrderNumbers:
    def test_label_run(self):
        assert discover_order_numbers("Order Number 001 002 003") == ["001", "002", "003"]

    def test_label_run_with_colon(self):
        assert discover_order_numbers("Order Number: 004 005") == ["004", "005"]

    def test_label_run_stays_on_its_line(self):
        text = "Order Number 001 002\n68101-0E120-00 GLASS 00012 TF63 2 1"
        assert discover_order_numbers(text) == ["001", "002"]

    def test_label_run_continues_on_next_row(self):
        text = "Order Number\n001 002\n68101-0E120-00 GLASS 00012 TF63 2 1"
        assert discover_order_numbers(text) == ["001", "002"]

    def test_label_line_scan(self):
        text = "Order Number (sequence) 001 002\nfoo"
        assert discover_order_numbers(text) == ["001", "002"]

    def test_label_line_ignores_zero(self):
        text = "Order Number (seq) 000 007"
        assert discover_order_numbers(text) == ["007"]

    def test_before_part_after_lots(self):
        text = "20251117Lots Ord'dLots Ord'd00168101-0E120-00 GLASS"
        assert discover_order_numbers(text) == ["001"]

    def test_lots_with_typographic_apostrophe(self):
        text = "Lots Ord’d00268101-0E120-00"
        assert discover_order_numbers(text) == ["002"]

    def test_between_series_and_part(self):
        text = "FL11/17 14:51 20251117 Kanban 003\n68101-0E120-00 GLASS"
        assert discover_order_numbers(text) == ["003"]

    def test_immediately_before_part(self):
        text = "Kanban00568101-0E120-00"
        assert discover_order_numbers(text) == ["005"]

    def test_default_when_nothing_found(self, caplog):
        with caplog.at_level(logging.WARNING, logger="kanbanparse.columns"):
            assert discover_order_numbers("no numbers here") == ["001"]
        assert "defaulting" in caplog.text

    def test_default_from_config(self):
        cfg = ParserConfig(default_order_number="009")
        assert discover_order_numbers("", cfg) == ["009"]

    @pytest.mark.parametrize("perm", list(itertools.permutations(["002", "001", "003"])))
    def test_output_sorted_regardless_of_scan_order(self, perm):
        text = "Order Number " + " ".join(perm)
        assert discover_order_numbers(text) == ["001", "002", "003"]

    def test_duplicates_removed(self):
        assert discover_order_numbers("Order Number 002 001 002") == ["001", "002"]


def _header_words(bottom=120.0):
    return make_row(
        [("Order", 20, 50), ("Number", 54, 90), ("001", 300, 318), ("002", 400, 418)],
        bottom,
    )


class TestFindHeaderRow:
    def test_row_ordered_left_to_right(self, default_cfg):
        words = list(reversed(_header_words()))
        row = find_header_row(words, default_cfg)
        assert [w.text for w in row] == ["Order", "Number", "001", "002"]

    def test_excludes_other_rows(self, default_cfg):
        words = _header_words() + [make_word("2", 306, 312, bottom=150)]
        row = find_header_row(words, default_cfg)
        assert "2" not in [w.text for w in row]

    def test_no_anchor_words(self, default_cfg):
        assert find_header_row([make_word("x", 0)], default_cfg) == []


class TestLocateOrderColumns:
    def test_centres(self):
        cm = locate_order_columns(_header_words(), ["001", "002"])
        assert dict(cm) == {"001": COL_001, "002": COL_002}

    def test_exact_text_match_only(self):
        words = _header_words() + [make_word("0031", 500, 524, bottom=120)]
        cm = locate_order_columns(words, ["001", "002", "003"])
        assert "003" not in cm
        assert len(cm) == 2

    def test_unmatched_number_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="kanbanparse.columns"):
            locate_order_columns(_header_words(), ["001", "004"])
        assert "004" in caplog.text

    def test_no_words(self):
        assert dict(locate_order_columns([], ["001"])) == {}

    def test_no_header_row(self):
        words = [make_word("001", 300, 318, bottom=120)]
        assert dict(locate_order_columns(words, ["001"])) == {}

    def test_header_tolerance(self):
        words = _header_words() + [make_word("003", 500, 518, bottom=131)]
        assert "003" not in locate_order_columns(words, ["003"])
        cfg = ParserConfig(header_row_tolerance=12)
        assert "003" in locate_order_columns(words, ["003"], cfg)

    def test_result_is_read_only(self):
        cm = locate_order_columns(_header_words(), ["001"])
        with pytest.raises(TypeError):
            cm["002"] = 1.0
