"""Ingest — open and validate an order-summary PDF.

Public API
----------
- :func:`ingest_pdf` — validate a PDF and return :class:`PdfMeta`
- :func:`select_pages` — resolve a requested page list against a PDF
- :func:`render_page_image` — rasterise one page for debug overlays
- :class:`IngestError` — the document-open failure
"""

from .ingest import (
    IngestError,
    PageInfo,
    PdfMeta,
    ingest_pdf,
    render_page_image,
    select_pages,
)

__all__ = [
    "IngestError",
    "PageInfo",
    "PdfMeta",
    "ingest_pdf",
    "render_page_image",
    "select_pages",
]
