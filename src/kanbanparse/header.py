"""Header field extraction — supplier, dock, order series and timestamps.

Every field is resolved by an ordered :class:`~kanbanparse.cascade.Cascade`
over the reconstructed page text.  A field that no step matches comes back
as ``None``; extraction never raises for missing data.

Report layouts seen in practice::

    Supplier Name: AGC Automotive   Supplier Code: 02806
    NAMC Dock Code: FL   Order Series: 20251117
    Transmit Date: 2025/11/12
    Arrive Date 11/14  Arrive Time 13:01 ...

and the concatenated variant, where the same values run together without
labels (``AGC Automotive02806FL11/17 14:5120251117``).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from .cascade import Cascade, Matcher, regex_step
from .config import ParserConfig
from .models import HeaderFields

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_RE_SUPPLIER_NAME_LABEL = re.compile(
    r"Supplier\s+Name\s*:?\s*([A-Za-z0-9\s&\-\.]+?)(?=Supplier\s+Code|\d{5})",
    re.IGNORECASE,
)
_RE_SUPPLIER_CODE_LABEL = re.compile(r"Supplier\s+Code\s*:?\s*(\d{5})", re.IGNORECASE)
# Supplier code immediately followed by a dock code: "02806FL"
_RE_CODE_DOCK_RUN = re.compile(r"(?<!\d)(\d{5})([A-Z][A-Z0-9])")

_RE_DOCK_LABEL = re.compile(
    r"(?:NAMC\s+)?Dock\s+Code\s*:?\s*([A-Z][A-Z0-9])\b", re.IGNORECASE
)
_RE_DOCK_TOKEN = re.compile(r"\b([A-Z][A-Z0-9])\b", re.IGNORECASE)

_RE_SERIES_LABEL = re.compile(r"Order\s+Series\s*:?\s*(\d{8})", re.IGNORECASE)
_RE_SERIES_TOKEN = re.compile(r"\b(202\d{5})\b")
_RE_SERIES_RUN = re.compile(r"(?<![\d/\-])(202\d{5})(?![/\-])")
_RE_SERIES_AFTER_DOCK = re.compile(r"([A-Z][A-Z0-9])(\d{8})")

_RE_TRANSMIT_LABEL = re.compile(
    r"Transmit\s+Date\s*:?\s*(\d{4})[/\-](\d{2})[/\-](\d{2})", re.IGNORECASE
)
_RE_BARE_DATE = re.compile(r"\b(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})\b")


# ---------------------------------------------------------------------------
# Step builders
# ---------------------------------------------------------------------------


def _known_name_step(names: tuple[str, ...]) -> Matcher:
    """Return the canonical spelling of the first allow-listed name present."""

    def _step(text: str) -> Optional[str]:
        lowered = text.lower()
        for name in names:
            if name.lower() in lowered:
                return name
        return None

    return _step


def _names_alternation(names: tuple[str, ...]) -> str:
    return "|".join(re.escape(n) for n in names)


def _header_window(text: str, cfg: ParserConfig) -> str:
    return text[: cfg.header_scan_chars]


def _series_line_step(text: str) -> Optional[str]:
    """8-digit ``202…`` token on a line without a slash, or after its last slash."""
    for line in text.split("\n"):
        m = _RE_SERIES_TOKEN.search(line)
        if not m:
            continue
        if "/" not in line or m.start() > line.rfind("/"):
            return m.group(1)
    return None


def _date_step(rx: re.Pattern[str], window: int | None = None) -> Matcher:
    """Build a ``YYYY/MM/DD`` matcher; invalid calendar values are skipped."""

    def _step(text: str) -> Optional[datetime]:
        scan = text if window is None else text[:window]
        m = rx.search(scan)
        if not m:
            return None
        year, month, day = (int(g) for g in m.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            log.warning("Invalid date extracted: %d/%d/%d", year, month, day)
            return None

    return _step


def _timestamp_step(label: str, year: int) -> Matcher:
    """Combine ``<label> Date M/D`` and ``<label> Time H:MM`` into one datetime."""
    date_rx = re.compile(rf"{label}\s+Date\s*:?\s*(\d{{1,2}})/(\d{{1,2}})", re.IGNORECASE)
    time_rx = re.compile(rf"{label}\s+Time\s*:?\s*(\d{{1,2}}):(\d{{2}})", re.IGNORECASE)

    def _step(text: str) -> Optional[datetime]:
        dm = date_rx.search(text)
        if not dm:
            return None
        tm = time_rx.search(text)
        if not tm:
            log.info("Found %s date but no %s time", label.lower(), label.lower())
            return None
        month, day = int(dm.group(1)), int(dm.group(2))
        hour, minute = int(tm.group(1)), int(tm.group(2))
        try:
            return datetime(year, month, day, hour, minute)
        except ValueError:
            log.warning(
                "Invalid %s date/time: %d/%d %d:%02d",
                label.lower(),
                month,
                day,
                hour,
                minute,
            )
            return None

    return _step


# ---------------------------------------------------------------------------
# Cascades
# ---------------------------------------------------------------------------


def supplier_name_cascade(cfg: ParserConfig) -> Cascade[str]:
    return Cascade(
        "supplier name",
        [
            ("known name", _known_name_step(cfg.known_suppliers)),
            ("label", regex_step(_RE_SUPPLIER_NAME_LABEL)),
        ],
    )


def supplier_code_cascade(cfg: ParserConfig) -> Cascade[str]:
    after_name = re.compile(
        rf"({_names_alternation(cfg.known_suppliers)})\s*(\d{{5}})", re.IGNORECASE
    )
    return Cascade(
        "supplier code",
        [
            ("label", regex_step(_RE_SUPPLIER_CODE_LABEL)),
            ("code+dock run", regex_step(_RE_CODE_DOCK_RUN, 1)),
            ("after known name", regex_step(after_name, 2)),
        ],
    )


def dock_code_cascade(cfg: ParserConfig) -> Cascade[str]:
    return Cascade(
        "dock code",
        [
            ("label", regex_step(_RE_DOCK_LABEL, 1, str.upper)),
            ("code+dock run", regex_step(_RE_CODE_DOCK_RUN, 2, str.upper)),
            (
                "header token",
                lambda text: regex_step(_RE_DOCK_TOKEN, 1, str.upper)(
                    _header_window(text, cfg)
                ),
            ),
        ],
    )


def order_series_cascade(cfg: ParserConfig) -> Cascade[str]:
    return Cascade(
        "order series",
        [
            ("label", regex_step(_RE_SERIES_LABEL)),
            ("line token", _series_line_step),
            ("202 run", regex_step(_RE_SERIES_RUN)),
            ("after dock code", regex_step(_RE_SERIES_AFTER_DOCK, 2)),
        ],
    )


def transmit_date_cascade(cfg: ParserConfig) -> Cascade[datetime]:
    return Cascade(
        "transmit date",
        [
            ("label", _date_step(_RE_TRANSMIT_LABEL)),
            ("bare date", _date_step(_RE_BARE_DATE, window=cfg.header_scan_chars)),
        ],
    )


def timestamp_cascade(label: str, year: int) -> Cascade[datetime]:
    return Cascade(f"{label.lower()} date/time", [("label", _timestamp_step(label, year))])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_supplier_name(text: str, cfg: ParserConfig | None = None) -> Optional[str]:
    return supplier_name_cascade(cfg or ParserConfig())(text)


def extract_supplier_code(text: str, cfg: ParserConfig | None = None) -> Optional[str]:
    return supplier_code_cascade(cfg or ParserConfig())(text)


def extract_dock_code(text: str, cfg: ParserConfig | None = None) -> Optional[str]:
    return dock_code_cascade(cfg or ParserConfig())(text)


def extract_order_series(text: str, cfg: ParserConfig | None = None) -> Optional[str]:
    return order_series_cascade(cfg or ParserConfig())(text)


def extract_transmit_date(
    text: str, cfg: ParserConfig | None = None
) -> Optional[datetime]:
    return transmit_date_cascade(cfg or ParserConfig())(text)


def resolve_year(
    cfg: ParserConfig,
    order_series: Optional[str],
    today: datetime | None = None,
) -> int:
    """Year applied to month/day-only timestamps.

    ``missing_year="current"`` uses the wall-clock year.
    ``missing_year="order_series"`` takes the leading ``YYYY`` of the order
    series when one was found, else falls back to the wall-clock year.
    """
    now = today or datetime.now()
    if cfg.missing_year == "order_series" and order_series and order_series[:4].isdigit():
        return int(order_series[:4])
    return now.year


def extract_header(
    text: str,
    cfg: ParserConfig | None = None,
    *,
    today: datetime | None = None,
) -> HeaderFields:
    """Run every header cascade over *text*.

    Parameters
    ----------
    text : str
        Reconstructed page text.
    cfg : ParserConfig, optional
    today : datetime, optional
        Clock used for the missing-year default; ``None`` = now.

    Returns
    -------
    HeaderFields
    """
    if cfg is None:
        cfg = ParserConfig()

    series = order_series_cascade(cfg)(text)
    year = resolve_year(cfg, series, today)

    return HeaderFields(
        supplier_name=supplier_name_cascade(cfg)(text),
        supplier_code=supplier_code_cascade(cfg)(text),
        dock_code=dock_code_cascade(cfg)(text),
        order_series=series,
        transmit_date=transmit_date_cascade(cfg)(text),
        arrive_datetime=timestamp_cascade("Arrive", year)(text),
        depart_datetime=timestamp_cascade("Depart", year)(text),
        unload_datetime=timestamp_cascade("Unload", year)(text),
    )
