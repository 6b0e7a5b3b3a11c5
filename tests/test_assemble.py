"""Tests for kanbanparse.assemble — order cross-product and de-duplication."""

from kanbanparse.assemble import assemble_orders, dedupe_orders
from kanbanparse.models import ExtractedOrder, HeaderFields, LineItemRecord

HEADER = HeaderFields(supplier_code="02806", dock_code="FL", order_series="20251117")


def _rec(part, quantities, kanban="TF63"):
    return LineItemRecord(
        part_number=part,
        description="GLASS",
        lot_qty=12,
        kanban_code=kanban,
        quantities=tuple(quantities),
    )


class TestAssembleOrders:
    def test_cross_product(self):
        items = [_rec("A", [2, 1]), _rec("B", [0, 3], kanban="TF64")]
        orders = assemble_orders(HEADER, ["001", "002"], items, page=4)
        assert [o.order_number for o in orders] == ["001", "002"]
        assert [(i.part_number, i.planned_qty) for i in orders[0].items] == [("A", 2)]
        assert [(i.part_number, i.planned_qty) for i in orders[1].items] == [
            ("A", 1),
            ("B", 3),
        ]
        assert all(o.page == 4 for o in orders)
        assert orders[1].header is HEADER

    def test_item_fields_carried(self):
        orders = assemble_orders(HEADER, ["001"], [_rec("A", [5])])
        item = orders[0].items[0]
        assert item.description == "GLASS"
        assert item.lot_qty == 12
        assert item.kanban_code == "TF63"
        assert item.raw_kanban_value == "TF63"
        assert item.manifest_no == 0

    def test_zero_item_orders_dropped(self):
        orders = assemble_orders(HEADER, ["001", "002"], [_rec("A", [0, 4])])
        assert [o.order_number for o in orders] == ["002"]

    def test_no_items(self):
        assert assemble_orders(HEADER, ["001"], []) == []

    def test_short_quantity_vector_treated_as_zero(self):
        orders = assemble_orders(HEADER, ["001", "002"], [_rec("A", [3])])
        assert [o.order_number for o in orders] == ["001"]


class TestDedupeOrders:
    def test_keeps_first_per_key(self):
        a = ExtractedOrder(order_number="001", header=HEADER, page=0)
        b = ExtractedOrder(order_number="001", header=HEADER, page=1)
        c = ExtractedOrder(order_number="002", header=HEADER, page=1)
        assert dedupe_orders([a, b, c]) == [a, c]

    def test_dock_code_is_part_of_key(self):
        other_dock = HeaderFields(dock_code="N1", order_series="20251117")
        a = ExtractedOrder(order_number="001", header=HEADER)
        b = ExtractedOrder(order_number="001", header=other_dock)
        assert dedupe_orders([a, b]) == [a, b]
