"""Command-line entry point.

Usage::

    kanbanparse report.pdf [more.pdf ...] [--pages 1,3-5] [--config cfg.yaml]
                [--format json|csv] [--output out.json] [--overlay-dir dir]
                [--dedupe] [-v]

Page numbers on the command line are 1-indexed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .assemble import dedupe_orders
from .config import ConfigLoadError, ConfigValidationError, ParserConfig
from .export import draw_page_overlay, orders_to_csv_text, orders_to_json
from .ingest import IngestError, render_page_image
from .models import ExtractedOrder
from .pipeline import DocumentResult, run_document

log = logging.getLogger(__name__)


def parse_page_spec(spec: str) -> List[int]:
    """``"1,3-5"`` → ``[0, 2, 3, 4]`` (zero-based, sorted, unique)."""
    pages = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_s, end_s = part.split("-", 1)
            start, end = int(start_s), int(end_s)
            if start < 1 or end < start:
                raise argparse.ArgumentTypeError(f"Bad page range: {part!r}")
            pages.update(range(start - 1, end))
        else:
            num = int(part)
            if num < 1:
                raise argparse.ArgumentTypeError(f"Bad page number: {part!r}")
            pages.add(num - 1)
    if not pages:
        raise argparse.ArgumentTypeError(f"No pages in {spec!r}")
    return sorted(pages)


def _page_spec_type(spec: str) -> List[int]:
    try:
        return parse_page_spec(spec)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Bad page spec {spec!r}: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kanbanparse",
        description="Extract orders and line items from Kanban order summary PDFs",
    )
    parser.add_argument("pdfs", nargs="+", type=Path, help="PDF file(s) to process")
    parser.add_argument(
        "--pages",
        type=_page_spec_type,
        default=None,
        help="Pages to parse, 1-indexed (e.g. 1,3-5). Default: all",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="YAML or TOML parser config"
    )
    parser.add_argument(
        "--format", choices=["json", "csv"], default="json", help="Output format"
    )
    parser.add_argument(
        "--output", "-o", type=Path, default=None, help="Output file (default: stdout)"
    )
    parser.add_argument(
        "--overlay-dir",
        type=Path,
        default=None,
        help="Write a debug overlay PNG per parsed page into this directory",
    )
    parser.add_argument(
        "--resolution", type=int, default=100, help="Overlay render DPI"
    )
    parser.add_argument(
        "--dedupe",
        action="store_true",
        help="Keep only the first order per (real order number, dock code)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="-v info, -vv debug"
    )
    return parser


def _write_overlays(
    dr: DocumentResult,
    pdf_path: Path,
    out_dir: Path,
    resolution: int,
    cfg: ParserConfig,
) -> None:
    scale = resolution / 72.0
    for pr in dr.pages:
        if pr.failed:
            continue
        try:
            bg = render_page_image(pdf_path, pr.page, resolution=resolution)
        except Exception as exc:
            log.error("Page %d: cannot render overlay: %s", pr.page + 1, exc)
            continue
        out_path = out_dir / f"{pdf_path.stem}_page_{pr.page + 1}_overlay.png"
        draw_page_overlay(
            bg.width / scale,
            bg.height / scale,
            pr.words,
            pr.column_map,
            pr.line_items,
            out_path=out_path,
            scale=scale,
            background=bg,
            cfg=cfg,
        )
        log.info("Wrote overlay %s", out_path)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        cfg = ParserConfig.from_file(args.config) if args.config else ParserConfig()
    except (ConfigLoadError, ConfigValidationError) as exc:
        print(f"kanbanparse: config error: {exc}", file=sys.stderr)
        return 2

    orders: List[ExtractedOrder] = []
    summaries = []
    exit_code = 0
    for pdf_path in args.pdfs:
        try:
            dr = run_document(pdf_path, pages=args.pages, cfg=cfg)
        except IngestError as exc:
            print(f"kanbanparse: {exc}", file=sys.stderr)
            exit_code = 1
            continue
        orders.extend(dr.orders)
        summaries.append(
            {
                "pdf": str(pdf_path),
                "pages_processed": len(dr.pages),
                "failed_pages": dr.failed_pages,
                "orders": len(dr.orders),
            }
        )
        if args.overlay_dir is not None:
            _write_overlays(dr, pdf_path, args.overlay_dir, args.resolution, cfg)

    if args.dedupe:
        orders = dedupe_orders(orders)

    if args.format == "csv":
        text = orders_to_csv_text(orders)
    else:
        text = orders_to_json(orders, summary={"documents": summaries}) + "\n"

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        newline = "" if args.format == "csv" else None
        with open(args.output, "w", encoding="utf-8", newline=newline) as fh:
            fh.write(text)
        log.info("Wrote %d orders to %s", len(orders), args.output)
    else:
        sys.stdout.write(text)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
