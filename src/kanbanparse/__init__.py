"""Order extraction for Kanban order summary report PDFs.

Frequently-used symbols are re-exported here.  For the individual
extraction steps import from the relevant submodule, e.g.::

    from kanbanparse.header import extract_header
    from kanbanparse.quantities import resolve_quantities
"""

# ── Core models & config ──────────────────────────────────────────────

from .assemble import assemble_orders, dedupe_orders
from .config import ConfigLoadError, ConfigValidationError, ParserConfig
from .export import draw_page_overlay, export_orders_csv, export_orders_json
from .ingest import IngestError, PdfMeta, ingest_pdf, render_page_image
from .models import (
    ExtractedOrder,
    ExtractedOrderItem,
    HeaderFields,
    LineItemRecord,
    PageInput,
    Word,
)
from .pipeline import (
    DocumentResult,
    PageResult,
    StageResult,
    parse_page,
    parse_pages,
    run_document,
)
from .tocr import extract_document_pages, extract_page_words

__all__ = [
    # Models & config
    "ParserConfig",
    "ConfigLoadError",
    "ConfigValidationError",
    "Word",
    "PageInput",
    "HeaderFields",
    "LineItemRecord",
    "ExtractedOrder",
    "ExtractedOrderItem",
    # Pipeline
    "parse_page",
    "parse_pages",
    "run_document",
    "PageResult",
    "DocumentResult",
    "StageResult",
    "assemble_orders",
    "dedupe_orders",
    # Ingest / page layer
    "IngestError",
    "PdfMeta",
    "ingest_pdf",
    "render_page_image",
    "extract_page_words",
    "extract_document_pages",
    # Export
    "export_orders_json",
    "export_orders_csv",
    "draw_page_overlay",
]
