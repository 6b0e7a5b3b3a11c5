"""Shared test fixtures for the Kanban order parser."""

from datetime import datetime

import pytest

from kanbanparse.config import ParserConfig
from kanbanparse.models import Word

# ── Helpers ────────────────────────────────────────────────────────────

CHAR_W = 6.0
ROW_H = 10.0


def make_word(
    text: str,
    left: float,
    right: float | None = None,
    bottom: float = 100.0,
    height: float = ROW_H,
) -> Word:
    """Create a Word; *right* defaults to a width proportional to the text."""
    if right is None:
        right = left + max(1, len(text)) * CHAR_W
    return Word(text=text, left=left, right=right, top=bottom - height, bottom=bottom)


def make_row(
    tokens: list[tuple[str, float, float] | str],
    bottom: float,
    start: float = 20.0,
) -> list[Word]:
    """Build the words of one visual row.

    Each token is either ``(text, left, right)`` or a bare string, which is
    laid out after the previous token with a one-character gap.
    """
    words: list[Word] = []
    x = start
    for tok in tokens:
        if isinstance(tok, tuple):
            text, left, right = tok
            words.append(make_word(text, left, right, bottom=bottom))
            x = right + CHAR_W
        else:
            w = make_word(tok, x, bottom=bottom)
            words.append(w)
            x = w.right + CHAR_W
    return words


def make_line(text: str, bottom: float, start: float = 20.0) -> list[Word]:
    """Split *text* on whitespace and lay the pieces out left-to-right."""
    return make_row(text.split(), bottom, start=start)


# Column centres of the two order columns on the sample page.
COL_001 = 309.0
COL_002 = 409.0


def sample_page_words() -> list[Word]:
    """Words of a clean two-order report page (y grows downward)."""
    words: list[Word] = []
    words += make_line("Supplier Name: AGC Automotive Supplier Code: 02806", 40)
    words += make_line("NAMC Dock Code: FL Series: 20251117", 55)
    words += make_line("Transmit Date: 2025/11/12", 70)
    words += make_line(
        "Arrive Date 11/14 Arrive Time 13:01 Depart Date 11/13 Depart Time 22:15 "
        "Unload Date 11/14 Unload Time 14:30",
        85,
    )
    words += make_row(
        [("Order", 20, 50), ("Number", 54, 90), ("001", 300, 318), ("002", 400, 418)],
        120,
    )
    words += make_row(
        [
            ("68101-0E120-00", 20, 100),
            ("GLASS", 110, 140),
            ("SUB-ASSY", 144, 190),
            ("BA", 194, 206),
            ("00012", 215, 245),
            ("TF63", 250, 274),
            ("2", 306, 312),
            ("1", 406, 412),
        ],
        150,
    )
    words += make_row(
        [
            ("68105-0E131-00", 20, 100),
            ("GLASS", 110, 140),
            ("SUB-ASSY", 144, 190),
            ("FR", 194, 206),
            ("00013", 215, 245),
            ("TF64", 250, 274),
            ("0", 306, 312),
            ("3", 406, 412),
        ],
        165,
    )
    return words


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def default_cfg() -> ParserConfig:
    """Return a default ParserConfig."""
    return ParserConfig()


@pytest.fixture
def today() -> datetime:
    """Fixed clock for month/day-only timestamps."""
    return datetime(2025, 11, 20, 9, 0)


@pytest.fixture
def sample_words() -> list[Word]:
    return sample_page_words()
