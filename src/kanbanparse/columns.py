"""Order-number discovery and order-column location.

The report lists one quantity column per order number under a header row
such as ``Order Number 001 002 003``.  :func:`discover_order_numbers`
finds those numbers from text alone; :func:`locate_order_columns` then
records the horizontal centre of each number's header word so quantity
tokens can be matched to columns geometrically.
"""

from __future__ import annotations

import logging
import re
from statistics import mean
from typing import Dict, List, Optional, Sequence

from .cascade import Cascade
from .config import ParserConfig
from .models import ColumnMap, Word, freeze_column_map
from .rows import words_near_y

log = logging.getLogger(__name__)

PART_NUMBER = r"\d{5}-[A-Z0-9]{5}-\d{2}"

_RE_PART = re.compile(PART_NUMBER)
_RE_ORDER_NUMBER_RUN = re.compile(
    r"Order\s+Number\s*:?\s*((?:\b\d{3}\b\s*)+)", re.IGNORECASE
)
_RE_THREE_DIGITS = re.compile(r"\d{3}")
_RE_THREE_DIGIT_TOKEN = re.compile(r"\b(\d{3})\b")
_RE_LOTS_ORDERED = re.compile(
    rf"Lots\s+Ord['’]d.*?(\d{{3}})(?={PART_NUMBER})", re.IGNORECASE
)
_RE_SERIES = re.compile(r"202\d{5}")
_RE_SECTION_TAIL = re.compile(r"(\d{3})(?=\d{5}-|\s*$)")


def _in_range(num: str) -> bool:
    return num.isdigit() and 1 <= int(num) <= 999


# ---------------------------------------------------------------------------
# Discovery steps
# ---------------------------------------------------------------------------


def _labelled_run(text: str) -> Optional[List[str]]:
    """``Order Number 001 002 003``; the run may wrap onto the next row.

    The word boundaries stop the run at a part number such as ``68101-...``.
    """
    m = _RE_ORDER_NUMBER_RUN.search(text)
    if not m:
        return None
    return _RE_THREE_DIGITS.findall(m.group(1)) or None


def _labelled_line(text: str) -> Optional[List[str]]:
    """Every 3-digit token on the first line mentioning ``Order Number``."""
    for line in text.split("\n"):
        if "order number" in line.lower():
            nums = [n for n in _RE_THREE_DIGIT_TOKEN.findall(line) if _in_range(n)]
            return nums or None
    return None


def _before_part_after_lots(text: str) -> Optional[List[str]]:
    """``Lots Ord'd…001 68101-0E120-00``: digits abutting the first part."""
    m = _RE_LOTS_ORDERED.search(text)
    if m and _in_range(m.group(1)):
        return [m.group(1)]
    return None


def _between_series_and_part(text: str) -> Optional[List[str]]:
    """Trailing 3-digit run between the order series and the first part number."""
    series = _RE_SERIES.search(text)
    if not series:
        return None
    start = series.end()
    part = _RE_PART.search(text, start)
    if not part:
        return None
    section = text[start : part.start()]
    m = _RE_SECTION_TAIL.search(section)
    if m and _in_range(m.group(1)):
        return [m.group(1)]
    return None


def _immediately_before_part(text: str) -> Optional[List[str]]:
    """The three characters right before the first part number."""
    part = _RE_PART.search(text)
    if not part or part.start() < 3:
        return None
    chunk = text[part.start() - 3 : part.start()]
    return [chunk] if _in_range(chunk) else None


_DISCOVERY = Cascade(
    "order numbers",
    [
        ("label run", _labelled_run),
        ("label line", _labelled_line),
        ("lots ordered", _before_part_after_lots),
        ("series..part", _between_series_and_part),
        ("before first part", _immediately_before_part),
    ],
)


def discover_order_numbers(text: str, cfg: ParserConfig | None = None) -> List[str]:
    """Return the page's order numbers, de-duplicated and sorted ascending.

    The list index of each number is the index into every
    ``LineItemRecord.quantities`` vector on the page.
    """
    if cfg is None:
        cfg = ParserConfig()

    found = _DISCOVERY(text)
    if not found:
        log.warning(
            "No order numbers found, defaulting to %r", cfg.default_order_number
        )
        found = [cfg.default_order_number]

    result = sorted(set(found))
    log.info("Extracted %d order numbers: %s", len(result), ", ".join(result))
    return result


# ---------------------------------------------------------------------------
# Column location
# ---------------------------------------------------------------------------


def find_header_row(words: Sequence[Word], cfg: ParserConfig) -> List[Word]:
    """Words on the ``Order Number`` header row, ordered left-to-right."""
    anchors = [
        w
        for w in words
        if "order" in w.text.lower() or "number" in w.text.lower()
    ]
    if not anchors:
        return []
    header_y = mean(w.bottom for w in anchors)
    log.debug("Order Number header row y=%.1f", header_y)
    row = words_near_y(words, header_y, cfg.header_row_tolerance)
    return sorted(row, key=lambda w: w.left)


def locate_order_columns(
    words: Sequence[Word],
    order_numbers: Sequence[str],
    cfg: ParserConfig | None = None,
) -> ColumnMap:
    """Map each order number to the centre x of its header-row word.

    Numbers without an exactly matching header word get no entry; the
    quantity resolver zero-fills them.
    """
    if cfg is None:
        cfg = ParserConfig()

    if not words or not order_numbers:
        log.warning("Cannot locate order columns: no words or no order numbers")
        return freeze_column_map({})

    header_row = find_header_row(words, cfg)
    if not header_row:
        log.warning("Could not find 'Order Number' header words")
        return freeze_column_map({})

    positions: Dict[str, float] = {}
    for num in order_numbers:
        match = next((w for w in header_row if w.text.strip() == num), None)
        if match is None:
            log.warning("No header word for order number %s", num)
            continue
        positions[num] = match.center_x
        log.debug(
            "Order %s column x=%.1f (left=%.1f right=%.1f)",
            num,
            match.center_x,
            match.left,
            match.right,
        )

    log.info("Located %d of %d order columns", len(positions), len(order_numbers))
    return freeze_column_map(positions)
