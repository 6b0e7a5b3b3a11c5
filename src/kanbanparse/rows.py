"""Row reconstruction — rebuild whitespace-delimited text rows from word geometry.

Raw text-layer extraction often collapses inter-column whitespace.  Words
are bucketed by ``round(bottom / bucket) * bucket`` (absorbs rendering
jitter), buckets are ordered top-to-bottom and each bucket is serialised
left-to-right with single spaces.  The result is independent of the order
in which the page layer emitted its tokens.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from .config import ParserConfig
from .models import ReconstructedLine, ReconstructedPage, Word

log = logging.getLogger(__name__)


def bucket_key(bottom: float, bucket: float) -> float:
    """Vertical bucket for a word whose lower edge sits at *bottom*."""
    return round(bottom / bucket) * bucket


def reconstruct_rows(
    words: Sequence[Word],
    cfg: ParserConfig | None = None,
    *,
    page_num: int = 0,
) -> ReconstructedPage:
    """Cluster *words* into rows and return them top-to-bottom."""
    if cfg is None:
        cfg = ParserConfig()

    if not words:
        log.warning("No words found on page %d", page_num)
        return ReconstructedPage()

    buckets: Dict[float, List[Word]] = defaultdict(list)
    for w in words:
        buckets[bucket_key(w.bottom, cfg.row_bucket_size)].append(w)

    lines = tuple(
        ReconstructedLine(y=y, words=tuple(sorted(buckets[y], key=lambda w: w.left)))
        for y in sorted(buckets)
    )
    for line in lines:
        log.debug("Row at y=%.1f: %.100s", line.y, line.text)

    page = ReconstructedPage(lines=lines)
    log.info(
        "Page %d: reconstructed %d rows from %d words",
        page_num,
        len(lines),
        len(words),
    )
    return page


def words_near_y(words: Iterable[Word], y: float, tolerance: float) -> List[Word]:
    """Words whose ``bottom`` lies strictly within *tolerance* of *y*."""
    return [w for w in words if abs(w.bottom - y) < tolerance]
