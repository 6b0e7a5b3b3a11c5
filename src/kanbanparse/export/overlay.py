"""Debug overlay: draw what the parser saw on top of a page image.

Marks every word box, the ``Order Number`` header row, each located
order column with its ±tolerance band, and the row band around each
extracted part number.  Useful for tuning the geometric tolerances
against a new report layout.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from ..columns import find_header_row
from ..config import ParserConfig
from ..models import ColumnMap, LineItemRecord, Word

COLORS: Dict[str, Tuple[int, int, int, int]] = {
    "words": (160, 160, 160, 160),
    "header_row": (0, 0, 255, 60),
    "column_center": (255, 0, 0, 220),
    "column_band": (255, 0, 0, 40),
    "part_row": (0, 180, 0, 50),
}


def _color(overrides: Optional[Dict[str, tuple]], key: str) -> tuple:
    if overrides and key in overrides:
        return overrides[key]
    return COLORS[key]


def _band(
    draw: ImageDraw.ImageDraw,
    y: float,
    half: float,
    width: float,
    scale: float,
    fill: tuple,
) -> None:
    draw.rectangle([0, (y - half) * scale, width * scale, (y + half) * scale], fill=fill)


def draw_page_overlay(
    page_width: float,
    page_height: float,
    words: Sequence[Word],
    column_map: ColumnMap | None = None,
    line_items: Sequence[LineItemRecord] = (),
    out_path: Path | None = None,
    scale: float = 1.0,
    background: Image.Image | None = None,
    color_overrides: Optional[Dict[str, tuple]] = None,
    cfg: ParserConfig | None = None,
) -> Image.Image:
    """Render the parser's view of one page and optionally save it as PNG.

    *background* should already be rendered at ``page size * scale``; it is
    resized otherwise.  Returns the RGBA overlay image.
    """
    if cfg is None:
        cfg = ParserConfig()

    words = list(words)
    img_w = int(page_width * scale)
    img_h = int(page_height * scale)
    if background is not None:
        img = background.convert("RGBA")
        if img.size != (img_w, img_h):
            img = img.resize((img_w, img_h))
    else:
        img = Image.new("RGBA", (img_w, img_h), (255, 255, 255, 255))

    overlay = Image.new("RGBA", img.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay, "RGBA")

    header_row = find_header_row(words, cfg) if words else []
    if header_row:
        header_y = sum(w.bottom for w in header_row) / len(header_row)
        _band(
            draw,
            header_y,
            cfg.header_row_tolerance,
            page_width,
            scale,
            _color(color_overrides, "header_row"),
        )

    parts = {rec.part_number for rec in line_items}
    for w in words:
        if w.text.strip() in parts:
            _band(
                draw,
                w.bottom,
                cfg.part_row_tolerance,
                page_width,
                scale,
                _color(color_overrides, "part_row"),
            )

    for num, x in (column_map or {}).items():
        tol = cfg.column_tolerance
        draw.rectangle(
            [(x - tol) * scale, 0, (x + tol) * scale, img_h],
            fill=_color(color_overrides, "column_band"),
        )
        draw.line(
            [x * scale, 0, x * scale, img_h],
            fill=_color(color_overrides, "column_center"),
            width=1,
        )
        draw.text((x * scale + 2, 2), num, fill=_color(color_overrides, "column_center"))

    word_color = _color(color_overrides, "words")
    for w in words:
        x0, y0, x1, y1 = w.bbox()
        draw.rectangle([x0 * scale, y0 * scale, x1 * scale, y1 * scale], outline=word_color)

    img = Image.alpha_composite(img, overlay)

    if out_path is not None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        img.save(out_path)
    return img
