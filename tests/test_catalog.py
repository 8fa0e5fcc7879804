"""Tests for catalog lookup helpers and label matching."""

from billstock.catalog import (
    display_name,
    rate_of,
    row_from_item,
    search_bills,
    search_entities,
    subtitle_field,
    suggest_items,
)
from billstock.models import BillRow, Entity, Field, QueueBill, find_field


class TestFindField:
    """Tests for the label matching rule."""

    def test_case_insensitive_substring(self):
        fields = (Field("f1", "Phone", "1"), Field("f2", "ITEM NAME", "Rice"))
        assert find_field(fields, "name").value == "Rice"

    def test_first_match_in_field_order(self):
        fields = (Field("f1", "Price", "50"), Field("f2", "Net Rate", "45"))
        assert find_field(fields, "net rate", "rate", "price").id == "f1"

    def test_no_match(self):
        assert find_field((Field("f1", "Unit", "kg"),), "name") is None
        assert find_field((), "name") is None


class TestEntityAccessors:
    def test_item_accessors(self, items):
        rice = items[0]
        assert rice.name_field.value == "Basmati Rice"
        assert rice.rate_field.value == "65"
        assert rate_of(items[2]) == "45"

    def test_customer_phone(self, customers):
        assert customers[0].phone_field.value == "9876543210"
        assert customers[1].phone_field is None

    def test_display_name_falls_back_to_first_field(self):
        entity = Entity(id="e", fields=(Field("f1", "Shop", "Sharma Traders"),))
        assert display_name(entity) == "Sharma Traders"
        assert display_name(Entity(id="e")) == ""

    def test_subtitle_skips_name_field(self, customers, items):
        assert subtitle_field(customers[0]).label == "Phone"
        assert subtitle_field(items[0]).label == "Net Rate"
        assert subtitle_field(customers[1]) is None


class TestSearch:
    def test_search_entities_by_label_or_value(self, customers):
        assert [c.id for c in search_entities(customers, "priya")] == ["c2"]
        assert [c.id for c in search_entities(customers, "gst")] == ["c2"]
        assert len(search_entities(customers, "  ")) == 2

    def test_suggest_items_by_name(self, items):
        assert [i.id for i in suggest_items(items, "ri")] == ["i1"]
        assert suggest_items(items, "") == []

    def test_suggest_items_limit(self):
        many = [Entity(id=str(i), fields=(Field("f", "Name", f"Item {i}"),)) for i in range(10)]
        assert len(suggest_items(many, "item")) == 6
        assert len(suggest_items(many, "item", limit=3)) == 3

    def test_row_from_item(self, items):
        row = row_from_item(items[1], row_id="r9")
        assert row == BillRow(id="r9", name="Refined Oil", price="130", qty="1")

    def test_search_bills(self):
        bills = [
            QueueBill(id="a", num=12, customer="Rahul", rows=(BillRow("r", name="Sugar"),)),
            QueueBill(id="b", num=3, customer=None, rows=(BillRow("r", name="Rice"),)),
        ]
        assert [b.id for b in search_bills(bills, "rahul")] == ["a"]
        assert [b.id for b in search_bills(bills, "3")] == ["b"]
        assert [b.id for b in search_bills(bills, "rice")] == ["b"]
        assert len(search_bills(bills, "")) == 2
