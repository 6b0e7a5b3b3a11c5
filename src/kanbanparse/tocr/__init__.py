"""Text-layer OCR (TOCR) — pdfplumber word and text extraction.

Public API
----------
- :func:`extract_page_words` — words + text from an open pdfplumber Page
- :func:`extract_document_pages` — one ``PageInput`` per page of a PDF
- :class:`TocrPageResult` — extraction result container
"""

from .extract import TocrPageResult, extract_document_pages, extract_page_words

__all__ = [
    "TocrPageResult",
    "extract_document_pages",
    "extract_page_words",
]
