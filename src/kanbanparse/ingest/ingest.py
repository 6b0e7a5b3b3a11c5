"""Document-open boundary: validation, page dimensions, page rendering.

Any failure here is fatal for the whole document and surfaces as
:class:`IngestError`; nothing downstream runs on a PDF that did not
ingest cleanly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

import pdfplumber
from PIL import Image

log = logging.getLogger(__name__)


class IngestError(Exception):
    """Raised when a PDF cannot be opened or read."""


@dataclass
class PageInfo:
    """Size of one page in PDF points."""

    index: int  # zero-based
    width: float
    height: float

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "width": round(self.width, 3),
            "height": round(self.height, 3),
        }


@dataclass
class PdfMeta:
    """What :func:`ingest_pdf` learned about a report file.

    The pdfplumber handle is closed again before this is returned.
    """

    path: Path
    num_pages: int
    pages: List[PageInfo] = field(default_factory=list)
    file_size_bytes: int = 0
    pdf_metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        d: dict = {
            "path": str(self.path),
            "num_pages": self.num_pages,
            "file_size_bytes": self.file_size_bytes,
        }
        if self.pdf_metadata:
            d["pdf_metadata"] = self.pdf_metadata
        d["pages"] = [p.to_dict() for p in self.pages]
        return d


def _validate_pdf_path(pdf_path: Path) -> None:
    if not pdf_path.exists():
        raise IngestError(f"File not found: {pdf_path}")
    if not pdf_path.is_file():
        raise IngestError(f"Not a file: {pdf_path}")
    if pdf_path.stat().st_size == 0:
        raise IngestError(f"Empty file: {pdf_path}")
    if pdf_path.suffix.lower() != ".pdf":
        raise IngestError(f"Not a PDF (suffix={pdf_path.suffix!r}): {pdf_path}")


def _text_metadata(raw: Optional[dict]) -> dict:
    """PDF info dict with every value coerced to ``str``."""
    out = {}
    for k, v in (raw or {}).items():
        if isinstance(v, bytes):
            v = v.decode("utf-8", errors="replace")
        out[str(k)] = "" if v is None else str(v)
    return out


def ingest_pdf(pdf_path: Path | str) -> PdfMeta:
    """Validate *pdf_path* and read its page dimensions.

    Raises
    ------
    IngestError
        Missing, empty or non-``.pdf`` file; encrypted document; or any
        error raised while pdfplumber opens it.
    """
    pdf_path = Path(pdf_path)
    _validate_pdf_path(pdf_path)

    try:
        with pdfplumber.open(pdf_path) as pdf:
            # pdfminer marks password-protected documents as not extractable
            doc = getattr(pdf, "doc", None)
            if doc is not None and getattr(doc, "is_extractable", True) is False:
                raise IngestError(f"PDF is encrypted, text extraction not permitted: {pdf_path}")
            pages = [
                PageInfo(index=i, width=float(pg.width), height=float(pg.height))
                for i, pg in enumerate(pdf.pages)
            ]
            metadata = _text_metadata(pdf.metadata)
    except IngestError:
        raise
    except Exception as exc:
        raise IngestError(f"Cannot open PDF {pdf_path}: {exc}") from exc

    meta = PdfMeta(
        path=pdf_path.resolve(),
        num_pages=len(pages),
        pages=pages,
        file_size_bytes=pdf_path.stat().st_size,
        pdf_metadata=metadata,
    )
    log.info(
        "Ingested %s: %d pages, %.1f KB",
        pdf_path.name,
        meta.num_pages,
        meta.file_size_bytes / 1024,
    )
    return meta


def select_pages(meta: PdfMeta, pages: Optional[Iterable[int]] = None) -> List[int]:
    """Zero-based page indices to process; ``None`` means every page.

    Out-of-range indices raise :class:`IngestError`.
    """
    if pages is None:
        return list(range(meta.num_pages))
    selected = sorted(set(pages))
    bad = [p for p in selected if p < 0 or p >= meta.num_pages]
    if bad:
        raise IngestError(
            f"Page(s) {bad} out of range for {meta.path.name} "
            f"({meta.num_pages} pages)"
        )
    return selected


def render_page_image(
    pdf_path: Path | str,
    page_num: int,
    resolution: int = 100,
) -> Image.Image:
    """Render page *page_num* to an RGB Pillow image at *resolution* DPI."""
    with pdfplumber.open(pdf_path) as pdf:
        img = pdf.pages[page_num].to_image(resolution=resolution).original.copy()
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img
