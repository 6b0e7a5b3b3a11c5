"""Text-layer extraction — pdfplumber words to :class:`~kanbanparse.models.Word`.

Produces the two inputs the parser needs per page: the positioned word
list and the flattened page text.  Word boxes are clipped to the page,
zero-area boxes are skipped and control characters stripped; every drop
is counted in the diagnostics dict.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import pdfplumber

from ..config import ParserConfig
from ..ingest import IngestError
from ..models import PageInput, Word

log = logging.getLogger(__name__)

# U+0000–U+001F except \t \n \r, plus BOM
_RE_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufeff]")


@dataclass
class TocrPageResult:
    """Words and text extracted from one page."""

    words: list[Word]
    text: str
    page_width: float
    page_height: float
    diagnostics: dict[str, Any] = field(default_factory=dict)

    def to_page_input(self, page_num: int) -> PageInput:
        return PageInput(page=page_num, text=self.text, words=tuple(self.words))


def _empty_diagnostics(cfg: ParserConfig) -> dict[str, Any]:
    return {
        "extraction_params": {
            "x_tolerance": cfg.tocr_x_tolerance,
            "y_tolerance": cfg.tocr_y_tolerance,
            "keep_blank_chars": cfg.tocr_keep_blank_chars,
            "use_text_flow": cfg.tocr_use_text_flow,
            "clip_to_page": cfg.tocr_clip_to_page,
            "filter_control_chars": cfg.tocr_filter_control_chars,
        },
        "words_raw": 0,
        "words_total": 0,
        "words_degenerate_skipped": 0,
        "words_control_char_cleaned": 0,
        "words_empty_after_clean": 0,
        "text_chars": 0,
    }


def _build_extract_words_kwargs(cfg: ParserConfig) -> dict[str, Any]:
    """Keyword arguments for ``pdfplumber.Page.extract_words``."""
    kw: dict[str, Any] = {
        "x_tolerance": cfg.tocr_x_tolerance,
        "y_tolerance": cfg.tocr_y_tolerance,
    }
    if cfg.tocr_use_text_flow:
        kw["use_text_flow"] = True
    if cfg.tocr_keep_blank_chars:
        kw["keep_blank_chars"] = True
    return kw


def _clean_text(text: str, cfg: ParserConfig, diag: dict[str, Any]) -> str:
    if cfg.tocr_filter_control_chars and _RE_CONTROL.search(text):
        diag["words_control_char_cleaned"] += 1
        return _RE_CONTROL.sub("", text)
    return text


def _to_word(
    w: dict,
    page_w: float,
    page_h: float,
    cfg: ParserConfig,
    diag: dict[str, Any],
) -> Optional[Word]:
    """Convert one pdfplumber word dict; ``None`` when it is dropped."""
    word = Word.from_pdfplumber(w)
    left, right, top, bottom = word.left, word.right, word.top, word.bottom
    if cfg.tocr_clip_to_page:
        left = max(0.0, min(page_w, left))
        right = max(0.0, min(page_w, right))
        top = max(0.0, min(page_h, top))
        bottom = max(0.0, min(page_h, bottom))

    if right <= left or bottom <= top:
        diag["words_degenerate_skipped"] += 1
        return None

    text = _clean_text(word.text, cfg, diag)
    if not text.strip():
        diag["words_empty_after_clean"] += 1
        return None

    return Word(text=text, left=left, right=right, top=top, bottom=bottom)


def extract_page_words(
    page: "pdfplumber.page.Page",
    page_num: int,
    cfg: ParserConfig | None = None,
) -> TocrPageResult:
    """Extract words and flattened text from an open pdfplumber page.

    Parameters
    ----------
    page : pdfplumber.page.Page
    page_num : int
        Zero-based page index, used for logging.
    cfg : ParserConfig, optional

    Returns
    -------
    TocrPageResult
    """
    if cfg is None:
        cfg = ParserConfig()

    page_w = float(page.width)
    page_h = float(page.height)
    diag = _empty_diagnostics(cfg)

    raw_words = page.extract_words(**_build_extract_words_kwargs(cfg))
    diag["words_raw"] = len(raw_words)

    words: list[Word] = []
    for w in raw_words:
        word = _to_word(w, page_w, page_h, cfg, diag)
        if word is not None:
            words.append(word)
    diag["words_total"] = len(words)

    text = page.extract_text() or ""
    if cfg.tocr_filter_control_chars:
        text = _RE_CONTROL.sub("", text)
    diag["text_chars"] = len(text)

    if not words:
        log.warning(
            "Page %d: zero words extracted (blank or image-only page)", page_num
        )
    else:
        log.debug(
            "Page %d: %d words (%d raw, %d degenerate, %d cleaned)",
            page_num,
            len(words),
            diag["words_raw"],
            diag["words_degenerate_skipped"],
            diag["words_control_char_cleaned"],
        )

    return TocrPageResult(
        words=words,
        text=text,
        page_width=page_w,
        page_height=page_h,
        diagnostics=diag,
    )


def extract_document_pages(
    pdf_path: Path | str,
    pages: Optional[Iterable[int]] = None,
    cfg: ParserConfig | None = None,
) -> Iterator[PageInput]:
    """Yield one :class:`PageInput` per requested page, in page order.

    A page whose extraction raises yields an empty input with ``error``
    set, so one bad page never stops the rest of the document.  Failing to
    open the file at all raises :class:`~kanbanparse.ingest.IngestError`.
    """
    if cfg is None:
        cfg = ParserConfig()

    try:
        pdf = pdfplumber.open(pdf_path)
    except Exception as exc:
        raise IngestError(f"Cannot open PDF {pdf_path}: {exc}") from exc

    with pdf:
        indices = range(len(pdf.pages)) if pages is None else pages
        for page_num in indices:
            try:
                result = extract_page_words(pdf.pages[page_num], page_num, cfg)
            except Exception as exc:
                log.error("Page %d: text extraction failed: %s", page_num, exc)
                yield PageInput(page=page_num, error=f"{type(exc).__name__}: {exc}")
                continue
            yield result.to_page_input(page_num)
