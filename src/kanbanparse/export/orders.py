"""Order export: JSON documents and flat item-level CSV.

Usage::

    from kanbanparse.export import export_orders_csv, export_orders_json
    export_orders_json(result.orders, Path("orders.json"))
    export_orders_csv(result.orders, Path("orders.csv"))
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO

from ..models import ExtractedOrder

ORDER_COLUMNS = [
    "page",
    "order_number",
    "real_order_number",
    "owk_number",
    "supplier_name",
    "supplier_code",
    "dock_code",
    "order_series",
    "transmit_date",
    "arrive_datetime",
    "depart_datetime",
    "unload_datetime",
]
ITEM_COLUMNS = [
    "part_number",
    "description",
    "lot_qty",
    "kanban_code",
    "planned_qty",
    "raw_kanban_value",
    "manifest_no",
]
CSV_COLUMNS = ORDER_COLUMNS + ITEM_COLUMNS


def _safe_str(val: Any) -> str:
    if val is None:
        return ""
    return str(val)


def orders_to_rows(orders: Iterable[ExtractedOrder]) -> List[Dict[str, str]]:
    """One flat row per order item, order columns repeated on each."""
    rows = []
    for order in orders:
        od = order.to_dict()
        base = {col: _safe_str(od.get(col)) for col in ORDER_COLUMNS}
        for item in od["items"]:
            row = dict(base)
            row.update({col: _safe_str(item.get(col)) for col in ITEM_COLUMNS})
            rows.append(row)
    return rows


def write_orders_csv(orders: Iterable[ExtractedOrder], fh: TextIO) -> int:
    """Write item rows to an open text stream; returns the row count."""
    rows = orders_to_rows(orders)
    writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return len(rows)


def export_orders_csv(orders: Iterable[ExtractedOrder], out_path: Path) -> Path:
    """Write *orders* to *out_path* as CSV (one row per item)."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        write_orders_csv(orders, f)
    return out_path


def orders_to_json(
    orders: Iterable[ExtractedOrder],
    summary: Optional[Dict[str, Any]] = None,
    indent: int = 2,
) -> str:
    """Serialise orders (ISO-8601 timestamps) to a JSON string."""
    doc: Dict[str, Any] = {}
    if summary is not None:
        doc["summary"] = summary
    doc["orders"] = [o.to_dict() for o in orders]
    return json.dumps(doc, indent=indent)


def export_orders_json(
    orders: Iterable[ExtractedOrder],
    out_path: Path,
    summary: Optional[Dict[str, Any]] = None,
) -> Path:
    """Write *orders* to *out_path* as a JSON document."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(orders_to_json(orders, summary), encoding="utf-8")
    return out_path


def orders_to_csv_text(orders: Iterable[ExtractedOrder]) -> str:
    buf = io.StringIO()
    write_orders_csv(orders, buf)
    return buf.getvalue()
