"""Tests for kanbanparse.header — header field cascades."""

from datetime import datetime

import pytest

from kanbanparse.config import ParserConfig
from kanbanparse.header import (
    extract_dock_code,
    extract_header,
    extract_order_series,
    extract_supplier_code,
    extract_supplier_name,
    extract_transmit_date,
    resolve_year,
)

LABELLED = (
    "Supplier Name: AGC Automotive Supplier Code: 02806\n"
    "NAMC Dock Code: FL Order Series: 20251117\n"
    "Transmit Date: 2025/11/12\n"
    "Arrive Date 11/14 Arrive Time 13:01 Depart Date 11/13 Depart Time 22:15\n"
    "Unload Date 11/14 Unload Time 14:30\n"
)

CONCATENATED = "AGC Automotive02806FL11/17 14:51 20251117Lots Ord'd00168101-0E120-00"


class TestSupplierName:
    def test_known_name(self):
        assert extract_supplier_name(LABELLED) == "AGC Automotive"

    def test_known_name_case_insensitive_returns_canonical(self):
        assert extract_supplier_name("agc automotive 02806") == "AGC Automotive"

    def test_label_fallback(self):
        text = "Supplier Name: Acme Glass Co Supplier Code: 12345"
        assert extract_supplier_name(text) == "Acme Glass Co"

    def test_label_stops_at_code_digits(self):
        assert extract_supplier_name("Supplier Name: Acme 12345FL") == "Acme"

    def test_custom_allow_list(self):
        cfg = ParserConfig(known_suppliers=("Globex",))
        assert extract_supplier_name("GLOBEX 55555", cfg) == "Globex"

    def test_missing(self):
        assert extract_supplier_name("nothing useful here") is None


class TestSupplierCode:
    def test_label(self):
        assert extract_supplier_code(LABELLED) == "02806"

    def test_code_dock_run(self):
        assert extract_supplier_code(CONCATENATED) == "02806"

    def test_after_known_name(self):
        assert extract_supplier_code("Denso 54321 something") == "54321"

    def test_code_dock_run_not_inside_longer_number(self):
        # "1234567AB" has no standalone 5-digit run before the letters
        assert extract_supplier_code("1234567AB") is None


class TestDockCode:
    def test_label(self):
        assert extract_dock_code(LABELLED) == "FL"

    def test_label_without_namc_prefix(self):
        assert extract_dock_code("Dock Code: B3") == "B3"

    def test_label_value_must_start_with_letter(self):
        assert extract_dock_code("Dock Code: 3B") is None

    def test_label_lowercase_value_uppercased(self):
        assert extract_dock_code("Dock Code: fl") == "FL"

    def test_code_dock_run(self):
        assert extract_dock_code(CONCATENATED) == "FL"

    def test_header_token(self):
        assert extract_dock_code("Report for dock\nN1 shipment") == "N1"

    def test_header_token_window(self):
        cfg = ParserConfig(header_scan_chars=10)
        text = "x" * 20 + " N1 "
        assert extract_dock_code(text, cfg) is None


class TestOrderSeries:
    def test_label(self):
        assert extract_order_series(LABELLED) == "20251117"

    def test_line_token(self):
        assert extract_order_series("Build Out\n20251117\n") == "20251117"

    def test_line_token_after_last_slash(self):
        assert extract_order_series("11/17 14:51 20251117") == "20251117"

    def test_line_token_before_slash_skipped(self):
        # 20251117 sits before the slash on its line; the 202 run step finds it
        assert extract_order_series("20251117 x/y") == "20251117"

    def test_run_inside_text(self):
        assert extract_order_series("FL11/17 14:51 20251117Lots") == "20251117"

    def test_after_dock_code(self):
        assert extract_order_series("FL12345678") == "12345678"

    def test_missing(self):
        assert extract_order_series("no series") is None


class TestTransmitDate:
    def test_label(self):
        assert extract_transmit_date(LABELLED) == datetime(2025, 11, 12)

    def test_label_with_dashes(self):
        assert extract_transmit_date("Transmit Date 2025-01-05") == datetime(2025, 1, 5)

    def test_bare_date_near_top(self):
        assert extract_transmit_date("Report 2025/11/12 page 1") == datetime(2025, 11, 12)

    def test_bare_date_outside_header_window_ignored(self):
        cfg = ParserConfig(header_scan_chars=20)
        text = "x" * 40 + " 2025/11/12"
        assert extract_transmit_date(text, cfg) is None

    def test_invalid_calendar_date(self):
        assert extract_transmit_date("Transmit Date: 2025/13/45") is None


class TestResolveYear:
    def test_current(self):
        cfg = ParserConfig()
        assert resolve_year(cfg, "20241231", datetime(2025, 1, 2)) == 2025

    def test_order_series(self):
        cfg = ParserConfig(missing_year="order_series")
        assert resolve_year(cfg, "20241231", datetime(2025, 1, 2)) == 2024

    def test_order_series_missing_falls_back(self):
        cfg = ParserConfig(missing_year="order_series")
        assert resolve_year(cfg, None, datetime(2025, 1, 2)) == 2025


class TestExtractHeader:
    def test_all_fields(self, today):
        h = extract_header(LABELLED, today=today)
        assert h.supplier_name == "AGC Automotive"
        assert h.supplier_code == "02806"
        assert h.dock_code == "FL"
        assert h.order_series == "20251117"
        assert h.transmit_date == datetime(2025, 11, 12)
        assert h.arrive_datetime == datetime(2025, 11, 14, 13, 1)
        assert h.depart_datetime == datetime(2025, 11, 13, 22, 15)
        assert h.unload_datetime == datetime(2025, 11, 14, 14, 30)

    def test_date_without_time_is_absent(self, today):
        h = extract_header("Arrive Date 11/14", today=today)
        assert h.arrive_datetime is None

    def test_invalid_timestamp_is_absent(self, today):
        h = extract_header("Arrive Date 02/30 Arrive Time 10:00", today=today)
        assert h.arrive_datetime is None

    def test_missing_fields_never_raise(self):
        h = extract_header("")
        assert h.to_dict() == {
            "supplier_name": None,
            "supplier_code": None,
            "dock_code": None,
            "order_series": None,
            "transmit_date": None,
            "arrive_datetime": None,
            "depart_datetime": None,
            "unload_datetime": None,
        }

    @pytest.mark.parametrize("policy,year", [("current", 2026), ("order_series", 2025)])
    def test_year_policy(self, policy, year):
        text = "Order Series: 20251230\nArrive Date 01/02 Arrive Time 08:00"
        cfg = ParserConfig(missing_year=policy)
        h = extract_header(text, cfg, today=datetime(2026, 1, 1))
        assert h.arrive_datetime == datetime(year, 1, 2, 8, 0)
