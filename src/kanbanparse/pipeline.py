"""Pipeline stage infrastructure: gating, timing and page orchestration.

Per-page stage flow::

    reconstruct → header → orders → columns → line_items → fallback → assemble

Every stage produces a :class:`StageResult` recorded on the
:class:`PageResult`.  Gating lives in :func:`gate` so the library, CLI and
tests all skip the same stages for the same reasons.

:func:`parse_page` and :func:`parse_pages` do no I/O: they take page text
and positioned words from any page layer.  :func:`run_document` is the
PDF entry point; it ingests the file, extracts each page with pdfplumber
and delegates to :func:`parse_pages`.

Failure policy: a stage exception fails its page only.  The page is
recorded with zero orders and the document carries on.  Only a PDF that
cannot be opened (:class:`~kanbanparse.ingest.IngestError`) stops a run.
"""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence, Tuple

from .assemble import assemble_orders
from .columns import discover_order_numbers, locate_order_columns
from .config import ParserConfig
from .header import extract_header
from .line_items import extract_concatenated_items, extract_row_items
from .models import (
    ColumnMap,
    ExtractedOrder,
    HeaderFields,
    LineItemRecord,
    PageInput,
    Word,
    freeze_column_map,
)
from .rows import reconstruct_rows

logger = logging.getLogger("kanbanparse.pipeline")

# ── Skip reasons ───────────────────────────────────────────────────────


class SkipReason(str, Enum):
    """Why a pipeline stage was skipped."""

    disabled_by_config = "disabled_by_config"
    no_words = "no_words"
    not_needed = "not_needed"
    not_applicable = "not_applicable"


# ── Stage result ───────────────────────────────────────────────────────


@dataclass
class StageResult:
    """Outcome record for a single pipeline stage."""

    stage: str
    ran: bool = False
    status: str = "skipped"  # "success" | "skipped" | "failed"
    skip_reason: Optional[str] = None
    duration_ms: int = 0
    counts: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "stage": self.stage,
            "ran": self.ran,
            "status": self.status,
        }
        if self.skip_reason is not None:
            d["skip_reason"] = self.skip_reason
        d["duration_ms"] = self.duration_ms
        if self.counts:
            d["counts"] = self.counts
        if self.error is not None:
            d["error"] = self.error
        return d


# ── Gating ─────────────────────────────────────────────────────────────

STAGE_ORDER: List[str] = [
    "reconstruct",
    "header",
    "orders",
    "columns",
    "line_items",
    "fallback",
    "assemble",
]


def gate(
    stage: str,
    cfg: ParserConfig,
    inputs: Dict[str, Any] | None = None,
) -> tuple[bool, Optional[str]]:
    """Decide whether *stage* should run.

    Parameters
    ----------
    stage : str
        One of :data:`STAGE_ORDER`.
    cfg : ParserConfig
    inputs : dict, optional
        Lightweight facts about upstream outputs, e.g.
        ``{"words": 812, "row_items": 0}``.

    Returns
    -------
    (should_run, skip_reason)
    """
    if inputs is None:
        inputs = {}

    if stage in ("reconstruct", "header", "orders", "line_items", "assemble"):
        return True, None

    if stage == "columns":
        if not cfg.use_coordinate_quantities:
            return False, SkipReason.disabled_by_config.value
        if not inputs.get("words"):
            return False, SkipReason.no_words.value
        return True, None

    if stage == "fallback":
        if not cfg.enable_concatenated_fallback:
            return False, SkipReason.disabled_by_config.value
        if inputs.get("row_items", 0) > 0:
            return False, SkipReason.not_needed.value
        return True, None

    return False, SkipReason.not_applicable.value


@contextmanager
def run_stage(
    stage: str,
    cfg: ParserConfig,
    inputs: Dict[str, Any] | None = None,
) -> Generator[StageResult, None, None]:
    """Wrap a stage with gating and timing.

    Usage::

        with run_stage("columns", cfg, {"words": len(words)}) as sr:
            if sr.ran:
                ...
                sr.counts["located"] = 3

    Exceptions are recorded on the yielded :class:`StageResult` and
    re-raised so the page boundary can decide what to do.
    """
    should_run, skip_reason = gate(stage, cfg, inputs)
    sr = StageResult(stage=stage)

    if not should_run:
        sr.skip_reason = skip_reason
        yield sr
        return

    sr.ran = True
    t0 = time.perf_counter()
    try:
        yield sr
        if sr.status not in ("success", "failed"):
            sr.status = "success"
    except Exception as exc:
        sr.status = "failed"
        sr.error = {
            "type": type(exc).__name__,
            "message": str(exc),
            "stack": traceback.format_exc(),
        }
        raise
    finally:
        sr.duration_ms = int((time.perf_counter() - t0) * 1000)


# ── Results ────────────────────────────────────────────────────────────


@dataclass
class PageResult:
    """Everything :func:`parse_page` learned about one page."""

    page: int = 0
    stages: Dict[str, StageResult] = field(default_factory=dict)

    words: Tuple[Word, ...] = ()
    header: HeaderFields = field(default_factory=HeaderFields)
    order_numbers: List[str] = field(default_factory=list)
    column_map: ColumnMap = field(default_factory=lambda: freeze_column_map({}))
    line_items: List[LineItemRecord] = field(default_factory=list)
    orders: List[ExtractedOrder] = field(default_factory=list)

    diagnostics: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, str]] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_summary_dict(self) -> Dict[str, Any]:
        """Lightweight JSON-compatible summary (no item detail)."""
        d: Dict[str, Any] = {
            "page": self.page,
            "failed": self.failed,
            "stages": {n: sr.to_dict() for n, sr in self.stages.items()},
            "header": self.header.to_dict(),
            "order_numbers": list(self.order_numbers),
            "column_map": {k: round(v, 3) for k, v in self.column_map.items()},
            "counts": {
                "line_items": len(self.line_items),
                "orders": len(self.orders),
                "order_items": sum(o.item_count for o in self.orders),
            },
            "diagnostics": self.diagnostics,
        }
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass
class DocumentResult:
    """Per-page results for a whole document."""

    pdf_path: Optional[Path] = None
    pages: List[PageResult] = field(default_factory=list)
    config: Optional[ParserConfig] = None

    @property
    def orders(self) -> List[ExtractedOrder]:
        """All orders, flattened in page order."""
        return [order for pr in self.pages for order in pr.orders]

    @property
    def failed_pages(self) -> List[int]:
        return [pr.page for pr in self.pages if pr.failed]

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "pdf": str(self.pdf_path) if self.pdf_path else None,
            "pages_processed": len(self.pages),
            "failed_pages": self.failed_pages,
            "orders": len(self.orders),
            "pages": [pr.to_summary_dict() for pr in self.pages],
        }


# ── Page parsing ───────────────────────────────────────────────────────


def parse_page(
    text: str,
    words: Sequence[Word],
    page: int = 0,
    cfg: ParserConfig | None = None,
    *,
    today: datetime | None = None,
) -> PageResult:
    """Extract orders from one page.

    Parameters
    ----------
    text : str
        Flattened page text from the page layer.  Used for parsing only
        when *words* is empty; otherwise the row-reconstructed text is
        parsed.
    words : sequence of Word
        Positioned words for the page.
    page : int
        Zero-based page index, stamped on every order.
    cfg : ParserConfig, optional
    today : datetime, optional
        Clock for month/day-only timestamps; ``None`` = now.

    Returns
    -------
    PageResult

    Raises
    ------
    Exception
        Anything a stage raises; :func:`parse_pages` turns it into a
        failed page.
    """
    if cfg is None:
        cfg = ParserConfig()

    words = tuple(words)
    pr = PageResult(page=page, words=words)

    # Stage 1: reconstruct
    with run_stage("reconstruct", cfg) as sr:
        reconstructed = reconstruct_rows(words, cfg, page_num=page)
        parse_text = reconstructed.text if reconstructed.lines else text
        pr.diagnostics["text_source"] = "words" if reconstructed.lines else "raw"
        sr.counts = {"words": len(words), "rows": len(reconstructed.lines)}
    pr.stages["reconstruct"] = sr

    if cfg.log_page_text:
        logger.debug("Page %d raw text:\n%s", page, text)
        logger.debug("Page %d reconstructed text:\n%s", page, reconstructed.text)

    # Stage 2: header
    with run_stage("header", cfg) as sr:
        pr.header = extract_header(parse_text, cfg, today=today)
        sr.counts = {
            "fields_found": sum(v is not None for v in pr.header.to_dict().values())
        }
    pr.stages["header"] = sr

    # Stage 3: orders
    with run_stage("orders", cfg) as sr:
        pr.order_numbers = discover_order_numbers(parse_text, cfg)
        sr.counts = {"order_numbers": len(pr.order_numbers)}
    pr.stages["orders"] = sr

    # Stage 4: columns
    with run_stage("columns", cfg, {"words": len(words)}) as sr:
        if sr.ran:
            pr.column_map = locate_order_columns(words, pr.order_numbers, cfg)
            sr.counts = {"located": len(pr.column_map)}
    pr.stages["columns"] = sr
    if pr.column_map:
        unmapped = [n for n in pr.order_numbers if n not in pr.column_map]
        if unmapped:
            logger.warning(
                "Page %d: order numbers %s have no column, quantities zero-filled",
                page,
                ", ".join(unmapped),
            )
        pr.diagnostics["unmapped_order_numbers"] = unmapped

    # Stage 5: line_items
    with run_stage("line_items", cfg) as sr:
        scan = extract_row_items(
            reconstructed if reconstructed.lines else text,
            pr.order_numbers,
            words,
            pr.column_map,
            cfg,
        )
        pr.line_items = list(scan.items)
        sr.counts = scan.counts()
    pr.stages["line_items"] = sr
    pr.diagnostics["rows_unmatched"] = scan.rows_unmatched
    pr.diagnostics["item_source"] = "rows" if scan.items else None

    # Stage 6: fallback
    with run_stage("fallback", cfg, {"row_items": len(pr.line_items)}) as sr:
        if sr.ran:
            logger.warning(
                "Page %d: no items in row layout, trying concatenated layout", page
            )
            fb = extract_concatenated_items(parse_text, pr.order_numbers, cfg)
            pr.line_items = list(fb.items)
            sr.counts = fb.counts()
            pr.diagnostics["fallback_piecewise"] = fb.rows_unmatched
            if fb.items:
                pr.diagnostics["item_source"] = "concatenated"
    pr.stages["fallback"] = sr

    # Stage 7: assemble
    with run_stage("assemble", cfg) as sr:
        pr.orders = assemble_orders(pr.header, pr.order_numbers, pr.line_items, page)
        sr.counts = {"orders": len(pr.orders)}
    pr.stages["assemble"] = sr

    logger.info(
        "Page %d: %d orders, %d line items",
        page,
        len(pr.orders),
        len(pr.line_items),
    )
    return pr


def _failed_page(page: int, stage: str, exc_type: str, message: str) -> PageResult:
    failed = PageResult(page=page)
    failed.error = {"stage": stage, "type": exc_type, "message": message}
    failed.stages[stage] = StageResult(
        stage=stage,
        status="failed",
        error={"type": exc_type, "message": message},
    )
    return failed


def parse_pages(
    pages: Iterable[PageInput],
    cfg: ParserConfig | None = None,
    *,
    today: datetime | None = None,
) -> DocumentResult:
    """Parse a sequence of pages; failures are isolated per page."""
    if cfg is None:
        cfg = ParserConfig()

    dr = DocumentResult(config=cfg)
    for pi in pages:
        if pi.error is not None:
            logger.error("Page %d skipped: page layer failed: %s", pi.page, pi.error)
            dr.pages.append(_failed_page(pi.page, "tocr", "PageLayerError", pi.error))
            continue
        try:
            pr = parse_page(pi.text, pi.words, pi.page, cfg, today=today)
        except Exception as exc:
            logger.error("Error parsing page %d: %s", pi.page, exc, exc_info=True)
            dr.pages.append(
                _failed_page(pi.page, "pipeline", type(exc).__name__, str(exc))
            )
            continue
        dr.pages.append(pr)

    logger.info(
        "Parsed %d pages: %d orders, %d failed pages",
        len(dr.pages),
        len(dr.orders),
        len(dr.failed_pages),
    )
    return dr


def run_document(
    pdf_path: Path | str,
    pages: List[int] | None = None,
    cfg: ParserConfig | None = None,
    *,
    today: datetime | None = None,
) -> DocumentResult:
    """Extract orders from every (or the selected) page of a PDF.

    Parameters
    ----------
    pdf_path : Path or str
    pages : list[int], optional
        Zero-based page indices.  ``None`` = all pages.
    cfg : ParserConfig, optional
    today : datetime, optional

    Returns
    -------
    DocumentResult

    Raises
    ------
    IngestError
        The PDF is missing, invalid, encrypted or the page selection is
        out of range.
    """
    from .ingest import ingest_pdf, select_pages
    from .tocr import extract_document_pages

    if cfg is None:
        cfg = ParserConfig()

    meta = ingest_pdf(pdf_path)
    indices = select_pages(meta, pages)

    dr = parse_pages(extract_document_pages(meta.path, indices, cfg), cfg, today=today)
    dr.pdf_path = Path(pdf_path)
    logger.info(
        "run_document %s: %d pages, %d orders",
        Path(pdf_path).name,
        len(dr.pages),
        len(dr.orders),
    )
    return dr
