"""Order assembly — one :class:`ExtractedOrder` per discovered order number."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Set, Tuple

from .models import (
    ExtractedOrder,
    ExtractedOrderItem,
    HeaderFields,
    LineItemRecord,
)

log = logging.getLogger(__name__)


def assemble_orders(
    header: HeaderFields,
    order_numbers: Sequence[str],
    line_items: Sequence[LineItemRecord],
    page: int = 0,
) -> List[ExtractedOrder]:
    """Cross *order_numbers* with *line_items*.

    Item *i* joins order *k* when ``quantities[k] > 0``.  Orders that end up
    with no items are dropped.
    """
    orders: List[ExtractedOrder] = []
    for idx, num in enumerate(order_numbers):
        items: List[ExtractedOrderItem] = []
        for rec in line_items:
            qty = rec.quantities[idx] if idx < len(rec.quantities) else 0
            if qty <= 0:
                continue
            items.append(
                ExtractedOrderItem(
                    part_number=rec.part_number,
                    planned_qty=qty,
                    description=rec.description,
                    lot_qty=rec.lot_qty,
                    kanban_code=rec.kanban_code,
                    raw_kanban_value=rec.kanban_code,
                )
            )
        if not items:
            log.debug("Order %s on page %d has no items, skipped", num, page)
            continue
        order = ExtractedOrder(
            order_number=num, header=header, items=tuple(items), page=page
        )
        orders.append(order)
        log.info(
            "Created order %s (series %s, number %s) with %d items",
            order.real_order_number,
            header.order_series,
            num,
            order.item_count,
        )
    return orders


def dedupe_orders(orders: Iterable[ExtractedOrder]) -> List[ExtractedOrder]:
    """Keep the first order per ``(real_order_number, dock_code)``."""
    seen: Set[Tuple[str, object]] = set()
    kept: List[ExtractedOrder] = []
    for order in orders:
        if order.order_key in seen:
            log.info(
                "Skipping duplicate order %s (dock %s, page %d)",
                order.real_order_number,
                order.dock_code,
                order.page,
            )
            continue
        seen.add(order.order_key)
        kept.append(order)
    return kept
