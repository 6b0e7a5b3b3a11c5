from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Order-number string -> horizontal pixel centre of its header word.
ColumnMap = Mapping[str, float]


def freeze_column_map(positions: Dict[str, float]) -> ColumnMap:
    """Return a read-only view over *positions*."""
    return MappingProxyType(dict(positions))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Word:
    """Smallest unit: one positioned token from the page layer.

    Coordinates follow pdfplumber: ``top`` < ``bottom`` and y grows
    downward.
    """

    text: str
    left: float
    right: float
    top: float
    bottom: float

    @property
    def width(self) -> float:
        """Horizontal extent."""
        return self.right - self.left

    @property
    def height(self) -> float:
        """Vertical extent."""
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        """Horizontal centre, ``left + width / 2``."""
        return self.left + self.width / 2.0

    def bbox(self) -> Tuple[float, float, float, float]:
        """Bounding box as ``(left, top, right, bottom)``."""
        return (self.left, self.top, self.right, self.bottom)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "text": self.text,
            "left": round(self.left, 3),
            "right": round(self.right, 3),
            "top": round(self.top, 3),
            "bottom": round(self.bottom, 3),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Word":
        """Deserialize from a dict produced by :meth:`to_dict`."""
        return cls(
            text=d.get("text", ""),
            left=float(d["left"]),
            right=float(d["right"]),
            top=float(d["top"]),
            bottom=float(d["bottom"]),
        )

    @classmethod
    def from_pdfplumber(cls, w: dict) -> "Word":
        """Convert a ``pdfplumber.Page.extract_words`` dict."""
        return cls(
            text=w.get("text", ""),
            left=float(w.get("x0", 0.0)),
            right=float(w.get("x1", 0.0)),
            top=float(w.get("top", 0.0)),
            bottom=float(w.get("bottom", 0.0)),
        )


@dataclass(frozen=True)
class ReconstructedLine:
    """Words sharing one vertical bucket, ordered left-to-right."""

    y: float  # bucket key (rounded bottom)
    words: Tuple[Word, ...] = ()

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)


@dataclass(frozen=True)
class ReconstructedPage:
    """Rows of a page ordered top-to-bottom plus the joined text."""

    lines: Tuple[ReconstructedLine, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)

    def line_texts(self) -> List[str]:
        return [line.text for line in self.lines]


@dataclass(frozen=True)
class PageInput:
    """One page as supplied by the page layer: flattened text + words."""

    page: int
    text: str = ""
    words: Tuple[Word, ...] = ()
    error: Optional[str] = None  # set when the page layer failed


@dataclass(frozen=True)
class HeaderFields:
    """Page-level scalar attributes shared by every order on the page."""

    supplier_name: Optional[str] = None
    supplier_code: Optional[str] = None
    dock_code: Optional[str] = None
    order_series: Optional[str] = None
    transmit_date: Optional[datetime] = None
    arrive_datetime: Optional[datetime] = None
    depart_datetime: Optional[datetime] = None
    unload_datetime: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "supplier_name": self.supplier_name,
            "supplier_code": self.supplier_code,
            "dock_code": self.dock_code,
            "order_series": self.order_series,
            "transmit_date": _iso(self.transmit_date),
            "arrive_datetime": _iso(self.arrive_datetime),
            "depart_datetime": _iso(self.depart_datetime),
            "unload_datetime": _iso(self.unload_datetime),
        }


@dataclass(frozen=True)
class LineItemRecord:
    """One part row with a quantity per discovered order number.

    ``quantities`` is index-aligned with the page's sorted order numbers.
    """

    part_number: str
    description: Optional[str] = None
    lot_qty: Optional[int] = None
    kanban_code: Optional[str] = None
    quantities: Tuple[int, ...] = ()
    source: str = "row"  # "row" | "concatenated" | "piecewise"

    def to_dict(self) -> dict:
        return {
            "part_number": self.part_number,
            "description": self.description,
            "lot_qty": self.lot_qty,
            "kanban_code": self.kanban_code,
            "quantities": list(self.quantities),
            "source": self.source,
        }


@dataclass(frozen=True)
class ExtractedOrderItem:
    """A line item bound to one specific order number."""

    part_number: str
    planned_qty: int
    description: Optional[str] = None
    lot_qty: Optional[int] = None
    kanban_code: Optional[str] = None
    raw_kanban_value: Optional[str] = None
    manifest_no: int = 0  # report PDFs carry no manifest numbers

    def to_dict(self) -> dict:
        return {
            "part_number": self.part_number,
            "description": self.description,
            "lot_qty": self.lot_qty,
            "kanban_code": self.kanban_code,
            "planned_qty": self.planned_qty,
            "raw_kanban_value": self.raw_kanban_value,
            "manifest_no": self.manifest_no,
        }


@dataclass(frozen=True)
class ExtractedOrder:
    """One logical order: page header fields + items for one order number."""

    order_number: str
    header: HeaderFields = field(default_factory=HeaderFields)
    items: Tuple[ExtractedOrderItem, ...] = ()
    page: int = 0

    # Header shortcuts ----------------------------------------------------

    @property
    def supplier_name(self) -> Optional[str]:
        return self.header.supplier_name

    @property
    def supplier_code(self) -> Optional[str]:
        return self.header.supplier_code

    @property
    def dock_code(self) -> Optional[str]:
        return self.header.dock_code

    @property
    def order_series(self) -> Optional[str]:
        return self.header.order_series

    # Derived identifiers -------------------------------------------------

    @property
    def real_order_number(self) -> str:
        """Order series + order number, e.g. ``"20251117" + "001"``."""
        return f"{self.header.order_series or ''}{self.order_number}"

    @property
    def owk_number(self) -> str:
        """Display id ``supplier-dock-series-number``."""
        h = self.header
        return "-".join(
            [
                h.supplier_code or "",
                h.dock_code or "",
                h.order_series or "",
                self.order_number,
            ]
        )

    @property
    def order_key(self) -> Tuple[str, Optional[str]]:
        """Identity used to de-duplicate orders across uploads."""
        return (self.real_order_number, self.header.dock_code)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: Dict[str, Any] = {
            "page": self.page,
            "order_number": self.order_number,
            "real_order_number": self.real_order_number,
            "owk_number": self.owk_number,
        }
        d.update(self.header.to_dict())
        d["item_count"] = self.item_count
        d["items"] = [it.to_dict() for it in self.items]
        return d
