"""Quantity vectors: coordinate resolution and text-only parsing.

Coordinate mode treats "no numeric token near this column" as a blank
cell (quantity 0).  A blank cell shifts every later token one position
left, so a purely positional split of the row text would assign the
quantities to the wrong orders.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Sequence, Tuple

from .config import ParserConfig
from .models import ColumnMap, Word

log = logging.getLogger(__name__)

_RE_NUMERIC = re.compile(r"[0-9]+")
_RE_NON_DIGIT = re.compile(r"[^0-9]")


def fit_quantities(values: Iterable[int], expected: int) -> Tuple[int, ...]:
    """Zero-pad or truncate *values* to exactly *expected* entries."""
    out = list(values)[:expected]
    out.extend([0] * (expected - len(out)))
    return tuple(out)


def resolve_quantities(
    row_words: Sequence[Word],
    column_map: ColumnMap,
    order_numbers: Sequence[str],
    cfg: ParserConfig | None = None,
) -> Tuple[int, ...]:
    """Assign one quantity per order number from the words of a part row.

    For each order (in *order_numbers* order) the numeric token whose
    centre lies closest to the column centre, within
    ``cfg.column_tolerance``, wins.  Columns with no such token, and order
    numbers missing from *column_map*, get 0.
    """
    if cfg is None:
        cfg = ParserConfig()

    numeric = [w for w in row_words if _RE_NUMERIC.fullmatch(w.text.strip())]

    quantities: List[int] = []
    for num in order_numbers:
        column_x = column_map.get(num)
        if column_x is None:
            log.warning("Order %s: no column position, quantity set to 0", num)
            quantities.append(0)
            continue
        candidates = [
            w for w in numeric if abs(w.center_x - column_x) <= cfg.column_tolerance
        ]
        if not candidates:
            log.debug("Order %s (x=%.1f): blank cell", num, column_x)
            quantities.append(0)
            continue
        best = min(candidates, key=lambda w: abs(w.center_x - column_x))
        log.debug(
            "Order %s (x=%.1f): quantity %s at x=%.1f",
            num,
            column_x,
            best.text,
            best.center_x,
        )
        quantities.append(int(best.text.strip()))
    return tuple(quantities)


def parse_spaced_quantities(text: str, expected: int) -> Tuple[int, ...]:
    """Parse ``"2 1"`` style whitespace-separated quantities."""
    values = [int(tok) for tok in text.split() if _RE_NUMERIC.fullmatch(tok)]
    return fit_quantities(values, expected)


def parse_concatenated_quantities(digits: str, expected: int) -> Tuple[int, ...]:
    """Parse a digit run from the legacy no-separator layout.

    * ``len(digits) == expected``: one digit per order (``"436"`` → 4, 3, 6)
    * ``expected == 1``: the whole run is one quantity (``"436"`` → 436)
    * otherwise: leading digits, one per order, zero-padded
    """
    digits = _RE_NON_DIGIT.sub("", digits)
    if not digits:
        return fit_quantities([], expected)
    if len(digits) == expected:
        return tuple(int(ch) for ch in digits)
    if expected == 1:
        return (int(digits),)
    return fit_quantities((int(ch) for ch in digits[:expected]), expected)
