"""Line-item extraction — part rows to :class:`LineItemRecord`.

Two paths:

``rows`` (primary)
    Each reconstructed line that starts with a part number is split into
    description, 5-digit lot quantity, kanban code and a quantity run,
    trying three patterns of decreasing specificity.  Quantities come from
    word coordinates when a column map is available, else from the text.

``concatenated`` (fallback)
    Used only when no line matched.  Every part number in the page text is
    examined with a fixed-size look-ahead window, first with one combined
    no-separator pattern, then piece by piece.  Pieces that cannot be
    isolated stay ``None``; quantities default to zeros.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .columns import PART_NUMBER
from .config import ParserConfig
from .models import ColumnMap, LineItemRecord, ReconstructedPage, Word
from .quantities import (
    fit_quantities,
    parse_concatenated_quantities,
    parse_spaced_quantities,
    resolve_quantities,
)
from .rows import words_near_y

log = logging.getLogger(__name__)

_RE_PART_LINE = re.compile(rf"^({PART_NUMBER})\s+(.+)$")
_RE_PART = re.compile(rf"({PART_NUMBER})")

# Description + lot qty + kanban (+ quantities), most specific first.
_DESC = r"[A-Z][A-Z\s\-/,]"
_ROW_PATTERNS: List[Tuple[str, re.Pattern[str]]] = [
    (
        "with quantities",
        re.compile(
            rf"^({_DESC}+?)\s+(\d{{5}})\s+([A-Z0-9]{{2,6}})\s+([\d\s]+)\s*$",
            re.IGNORECASE,
        ),
    ),
    (
        "blank quantities",
        re.compile(
            rf"^({_DESC}+?)\s+(\d{{5}})\s+([A-Z0-9]{{2,6}})\s*$",
            re.IGNORECASE,
        ),
    ),
    (
        "greedy description",
        re.compile(
            rf"^({_DESC}+)\s+(\d{{5}})\s+([A-Z0-9]{{2,6}})\s+([\d\s]+)\s*$",
            re.IGNORECASE,
        ),
    ),
]

_RE_CONCATENATED = re.compile(
    rf"^({PART_NUMBER})\s+({_DESC}*?)(\d{{5}})([A-Z0-9]{{2,6}})(\d+)",
    re.IGNORECASE,
)
_RE_LOT_BEFORE_KANBAN = re.compile(r"(\d{5})(?=[A-Z])")
_RE_KANBAN = re.compile(r"[A-Z0-9]{2,6}")
_RE_DIGITS = re.compile(r"\d+")


@dataclass
class LineItemScan:
    """Outcome of one extraction pass over a page."""

    items: List[LineItemRecord] = field(default_factory=list)
    rows_seen: int = 0  # lines starting with a part number
    rows_unmatched: int = 0
    coordinate_rows: int = 0  # rows whose quantities came from geometry

    def counts(self) -> dict:
        return {
            "items": len(self.items),
            "rows_seen": self.rows_seen,
            "rows_unmatched": self.rows_unmatched,
            "coordinate_rows": self.coordinate_rows,
        }


def _text_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def match_row_rest(rest: str) -> Optional[Tuple[str, re.Match[str]]]:
    """Try the row patterns against the text after the part number."""
    rest = rest.strip()
    for label, rx in _ROW_PATTERNS:
        m = rx.match(rest)
        if m:
            return label, m
    return None


def _page_lines(
    page: ReconstructedPage | str,
) -> List[Tuple[str, Tuple[Word, ...]]]:
    """``(text, words)`` per line; raw text lines carry no words."""
    if isinstance(page, str):
        return [(line, ()) for line in page.split("\n")]
    return [(line.text, line.words) for line in page.lines]


def _find_part_word(
    part_number: str,
    line_words: Sequence[Word],
    words: Sequence[Word],
) -> Optional[Word]:
    for w in line_words:
        if w.text.strip() == part_number:
            return w
    return next((w for w in words if w.text.strip() == part_number), None)


# ---------------------------------------------------------------------------
# Primary path
# ---------------------------------------------------------------------------


def extract_row_items(
    page: ReconstructedPage | str,
    order_numbers: Sequence[str],
    words: Sequence[Word] = (),
    column_map: ColumnMap | None = None,
    cfg: ParserConfig | None = None,
) -> LineItemScan:
    """Extract items from clean one-row-per-part lines.

    *page* is a reconstructed page, or raw newline-separated text when the
    page layer supplied no words.
    """
    if cfg is None:
        cfg = ParserConfig()

    expected = len(order_numbers)
    use_coords = bool(column_map) and cfg.use_coordinate_quantities
    scan = LineItemScan()

    for line_no, (line_text, line_words) in enumerate(_page_lines(page), start=1):
        text = line_text.strip()
        if not text:
            continue
        pm = _RE_PART_LINE.match(text)
        if not pm:
            continue
        scan.rows_seen += 1
        part_number, rest = pm.group(1), pm.group(2)

        hit = match_row_rest(rest)
        if hit is None:
            scan.rows_unmatched += 1
            log.warning(
                "Line %d: part %s matched no row pattern: %.100s",
                line_no,
                part_number,
                rest,
            )
            continue
        label, m = hit
        description, lot_str, kanban = m.group(1), m.group(2), m.group(3)
        qty_text = m.group(4) if m.lastindex and m.lastindex >= 4 else ""
        log.debug("Line %d: part %s matched %r", line_no, part_number, label)

        quantities: Optional[Tuple[int, ...]] = None
        if use_coords:
            part_word = _find_part_word(part_number, line_words, words)
            if part_word is not None:
                row_words = words_near_y(words, part_word.bottom, cfg.part_row_tolerance)
                quantities = resolve_quantities(
                    row_words, column_map, order_numbers, cfg
                )
                scan.coordinate_rows += 1
            else:
                log.warning(
                    "Part word %s not found, parsing quantities from text",
                    part_number,
                )
        if quantities is None:
            quantities = parse_spaced_quantities(qty_text, expected)

        record = LineItemRecord(
            part_number=part_number,
            description=_text_or_none(description),
            lot_qty=int(lot_str),
            kanban_code=kanban,
            quantities=fit_quantities(quantities, expected),
            source="row",
        )
        scan.items.append(record)
        log.debug(
            "Line item: %s %s lot=%s kanban=%s qty=%s",
            record.part_number,
            record.description,
            record.lot_qty,
            record.kanban_code,
            list(record.quantities),
        )

    log.info(
        "Row extraction: %d items from %d part rows (%d unmatched)",
        len(scan.items),
        scan.rows_seen,
        scan.rows_unmatched,
    )
    return scan


# ---------------------------------------------------------------------------
# Fallback path
# ---------------------------------------------------------------------------


def _piecewise_item(
    part_number: str, context: str, expected: int
) -> LineItemRecord:
    """Decompose a concatenated context one field at a time."""
    desc_rx = re.compile(
        rf"^{re.escape(part_number)}\s+({_DESC}*?)(?=\d{{5}})", re.IGNORECASE
    )
    dm = desc_rx.match(context)
    description = _text_or_none(dm.group(1)) if dm else None

    lot_qty: Optional[int] = None
    kanban: Optional[str] = None
    quantities: Tuple[int, ...] = ()

    lm = _RE_LOT_BEFORE_KANBAN.search(context)
    if lm:
        lot_qty = int(lm.group(1))
        km = _RE_KANBAN.match(context, lm.end())
        if km:
            kanban = km.group(0)
            qm = _RE_DIGITS.match(context, km.end())
            if qm:
                quantities = parse_concatenated_quantities(qm.group(0), expected)

    if not quantities:
        log.debug("Part %s: no quantities isolated, defaulting to zeros", part_number)
        quantities = fit_quantities([], expected)

    return LineItemRecord(
        part_number=part_number,
        description=description,
        lot_qty=lot_qty,
        kanban_code=kanban,
        quantities=quantities,
        source="piecewise",
    )


def extract_concatenated_items(
    text: str,
    order_numbers: Sequence[str],
    cfg: ParserConfig | None = None,
) -> LineItemScan:
    """Extract items from text whose fields run together without spaces."""
    if cfg is None:
        cfg = ParserConfig()

    expected = len(order_numbers)
    scan = LineItemScan()

    for pm in _RE_PART.finditer(text):
        scan.rows_seen += 1
        part_number = pm.group(1)
        context = text[pm.start() : pm.start() + cfg.fallback_context_chars]

        m = _RE_CONCATENATED.match(context)
        if m:
            record = LineItemRecord(
                part_number=part_number,
                description=_text_or_none(m.group(2)),
                lot_qty=int(m.group(3)),
                kanban_code=m.group(4),
                quantities=parse_concatenated_quantities(m.group(5), expected),
                source="concatenated",
            )
        else:
            log.warning(
                "Part %s: concatenated pattern failed, decomposing piecewise",
                part_number,
            )
            scan.rows_unmatched += 1
            record = _piecewise_item(part_number, context, expected)
        scan.items.append(record)
        log.debug(
            "Line item (%s): %s %s lot=%s kanban=%s qty=%s",
            record.source,
            record.part_number,
            record.description,
            record.lot_qty,
            record.kanban_code,
            list(record.quantities),
        )

    log.info(
        "Concatenated extraction: %d items from %d part numbers",
        len(scan.items),
        scan.rows_seen,
    )
    return scan


def extract_line_items(
    page: ReconstructedPage | str,
    text: str,
    order_numbers: Sequence[str],
    words: Sequence[Word] = (),
    column_map: ColumnMap | None = None,
    cfg: ParserConfig | None = None,
) -> LineItemScan:
    """Run the row path, then the concatenated path if it found nothing."""
    if cfg is None:
        cfg = ParserConfig()
    scan = extract_row_items(page, order_numbers, words, column_map, cfg)
    if scan.items or not cfg.enable_concatenated_fallback:
        return scan
    log.warning("No items in row layout, trying concatenated layout")
    return extract_concatenated_items(text, order_numbers, cfg)
