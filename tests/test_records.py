"""Tests for remote record codecs."""

from datetime import UTC, datetime

from billstock.ledger import balance_due, total_paid
from billstock.models import BillRow, PaymentEntry, PaymentMode, QueueBill
from billstock.sync.records import (
    bill_to_record,
    entity_to_record,
    record_to_bill,
    record_to_entity,
)


class TestEntityRecords:
    def test_entity_record_shape(self, customers):
        record = entity_to_record("owner-1", customers[0])

        assert record["id"] == "c1"
        assert record["user_id"] == "owner-1"
        assert record["fields"][0] == {"id": "c1-f0", "label": "Name", "value": "Rahul Sharma"}

    def test_decode_entity(self, customers):
        assert record_to_entity(entity_to_record("owner-1", customers[1])) == customers[1]

    def test_decode_tolerates_bad_fields(self):
        entity = record_to_entity({"id": "x", "fields": ["junk", {"label": "Name", "value": None}]})

        assert len(entity.fields) == 1
        assert entity.fields[0].label == "Name"
        assert entity.fields[0].value == ""
        assert entity.fields[0].id


class TestBillRecords:
    def test_decode_bill(self, mock_bill_record):
        bill = record_to_bill(mock_bill_record)

        assert bill.num == 7
        assert bill.customer == "Priya Patel"
        assert bill.rows == (BillRow(id="r1", name="Sugar", price="45", qty="2"),)
        assert bill.total_amount == 90.0
        assert [p.mode for p in bill.payments] == [PaymentMode.UPI, PaymentMode.CASH]
        assert bill.payments[1].note == "rest"
        assert bill.saved_at == datetime.fromtimestamp(1700000000, tz=UTC)
        assert balance_due(bill) == 0.0

    def test_encode_bill(self):
        paid_at = datetime(2024, 1, 15, tzinfo=UTC)
        bill = QueueBill(
            id="b1",
            num=4,
            rows=(BillRow(id="r1", name="Rice", price="10", qty="2"),),
            customer="Rahul",
            saved_at=paid_at,
            total_amount=20.0,
            payments=(PaymentEntry(id="p1", amount=25.0, mode=PaymentMode.CARD, paid_at=paid_at),),
        )
        record = bill_to_record("owner-1", bill)

        assert record["user_id"] == "owner-1"
        assert record["num"] == 4
        assert record["rows"] == [{"id": "r1", "name": "Rice", "price": "10", "qty": "2"}]
        assert record["saved_at"] == 1705276800000
        assert record["total_amount"] == 20.0
        assert record["payments"] == [
            {"id": "p1", "amount": 25.0, "mode": "card", "paid_at": 1705276800000}
        ]
        assert record_to_bill(record) == bill

    def test_legacy_record_without_history(self):
        """Records from before payment history carry a single paid amount."""
        bill = record_to_bill(
            {"id": "old", "num": "3", "rows": [], "total_amount": "100", "paid_amount": "60"}
        )

        assert bill.num == 3
        assert bill.payments == ()
        assert total_paid(bill) == 60.0
        assert balance_due(bill) == 40.0

    def test_minimal_record(self):
        bill = record_to_bill({"id": "m"})

        assert bill.num == 0
        assert bill.rows == ()
        assert bill.customer is None
        assert bill.saved_at is None
        assert bill.total_amount is None
        assert bill.legacy_paid_amount is None

    def test_out_of_range_timestamps(self):
        bill = record_to_bill(
            {
                "id": "b",
                "num": 3,
                "saved_at": 1e20,
                "payments": [{"id": "p1", "amount": 10, "mode": "cash", "paid_at": 1e20}],
            }
        )

        assert bill.saved_at is None
        assert bill.payments[0].amount == 10.0
        assert bill.payments[0].paid_at.tzinfo is not None
