"""Tests for bill totals, payments and balance due."""

import pytest

from billstock.ledger import (
    PAYMENT_EPSILON,
    balance_due,
    bill_total,
    gst_breakdown,
    is_settled,
    payment_outcome,
    quick_amounts,
    requires_payment,
    row_amount,
    rows_total,
    total_paid,
)
from billstock.models import BillRow, PaymentEntry, QueueBill


def _bill(rows=(), total=None, payments=(), legacy=None) -> QueueBill:
    return QueueBill(
        id="b1",
        num=1,
        rows=tuple(rows),
        total_amount=total,
        payments=tuple(payments),
        legacy_paid_amount=legacy,
    )


def _pay(amount: float, payment_id: str = "p1") -> PaymentEntry:
    return PaymentEntry(id=payment_id, amount=amount)


class TestRowArithmetic:
    """Tests for row amounts and totals."""

    def test_row_amount_multiplies_price_and_qty(self, rice_row):
        assert row_amount(rice_row) == 20.0

    @pytest.mark.parametrize(
        ("price", "qty"),
        [("", "2"), ("abc", "2"), ("10", ""), ("10", "x"), (".", "1"), ("nan", "1")],
    )
    def test_unparseable_text_counts_as_zero(self, price, qty):
        assert row_amount(BillRow(id="r", price=price, qty=qty)) == 0.0

    def test_decimal_text(self):
        row = BillRow(id="r", price="12.5", qty="1.5")
        assert row_amount(row) == pytest.approx(18.75)

    def test_rows_total(self, rice_row):
        rows = [rice_row, BillRow(id="r2", price="5", qty="3"), BillRow(id="r3")]
        assert rows_total(rows) == 35.0

    def test_rows_total_empty(self):
        assert rows_total([]) == 0.0


class TestBillTotals:
    """Tests for total, paid and due."""

    def test_total_falls_back_to_rows(self, rice_row):
        assert bill_total(_bill(rows=[rice_row])) == 20.0

    def test_saved_total_wins_over_rows(self, rice_row):
        """The saved total stays frozen even after rows change."""
        bill = _bill(rows=[rice_row, BillRow(id="r2", price="100", qty="1")], total=20.0)
        assert bill_total(bill) == 20.0

    def test_zero_saved_total_is_still_used(self, rice_row):
        assert bill_total(_bill(rows=[rice_row], total=0.0)) == 0.0

    def test_total_paid_sums_payments(self):
        bill = _bill(payments=[_pay(25, "p1"), _pay(10, "p2")])
        assert total_paid(bill) == 35.0

    def test_total_paid_without_payments(self):
        assert total_paid(_bill()) == 0.0

    def test_legacy_amount_used_only_without_payments(self):
        assert total_paid(_bill(legacy=15.0)) == 15.0
        assert total_paid(_bill(legacy=15.0, payments=[_pay(4)])) == 4.0

    def test_overpayment_gives_negative_balance(self, rice_row):
        bill = _bill(rows=[rice_row], total=20.0, payments=[_pay(25)])
        assert total_paid(bill) == 25.0
        assert balance_due(bill) == -5.0

    def test_balance_is_total_minus_paid(self, rice_row):
        bill = _bill(rows=[rice_row], total=30.0, payments=[_pay(25, "p1"), _pay(10, "p2")])
        assert balance_due(bill) == bill_total(bill) - total_paid(bill) == -5.0


class TestPaymentPolicy:
    """Tests for settlement and the ask-for-payment rule."""

    def test_unpaid_bill_requires_payment(self, rice_row):
        assert requires_payment(_bill(rows=[rice_row]))

    def test_zero_total_first_save_still_requires_payment(self):
        assert requires_payment(_bill(total=0.0))

    def test_settled_bill_does_not_require_payment(self):
        bill = _bill(total=20.0, payments=[_pay(20)])
        assert is_settled(bill)
        assert not requires_payment(bill)

    def test_balance_within_epsilon_is_settled(self):
        bill = _bill(total=20.0 + PAYMENT_EPSILON / 2, payments=[_pay(20)])
        assert is_settled(bill)

    def test_outstanding_balance_requires_payment(self):
        bill = _bill(total=30.0, payments=[_pay(25)])
        assert not is_settled(bill)
        assert requires_payment(bill)


class TestPaymentOutcome:
    """Tests for the payment preview."""

    def test_first_payment_measured_against_total(self):
        outcome = payment_outcome(_bill(total=20.0), 25.0)

        assert outcome.reference == 20.0
        assert outcome.change == 5.0
        assert outcome.remaining_due == -5.0
        assert outcome.is_overpaid
        assert not outcome.is_exact

    def test_added_payment_measured_against_balance(self):
        bill = _bill(total=100.0, payments=[_pay(60)])
        outcome = payment_outcome(bill, 40.0, adding=True)

        assert outcome.reference == 40.0
        assert outcome.is_exact
        assert outcome.remaining_due == 0.0

    def test_partial_payment_leaves_due(self):
        outcome = payment_outcome(_bill(total=100.0), 30.0)

        assert outcome.change == -70.0
        assert outcome.remaining_due == 70.0
        assert not outcome.is_overpaid


class TestQuickAmounts:
    def test_round_ups(self):
        assert quick_amounts(123.0) == [123.0, 130.0, 150.0]

    def test_duplicates_and_exact_values_dropped(self):
        assert quick_amounts(100.0) == [100.0]
        assert quick_amounts(45.0) == [45.0, 50.0, 100.0]


class TestGstBreakdown:
    def test_breakdown(self, rice_row):
        gst = gst_breakdown([rice_row], 18)

        assert gst.subtotal == 20.0
        assert gst.gst_amount == pytest.approx(3.6)
        assert gst.total == pytest.approx(23.6)

    def test_zero_rate(self, rice_row):
        assert gst_breakdown([rice_row], 0).total == 20.0

    def test_rate_defaults_to_setting(self, rice_row, monkeypatch):
        from billstock.config import get_settings

        monkeypatch.setenv("GST_RATE", "5")
        get_settings.cache_clear()
        try:
            gst = gst_breakdown([rice_row])
        finally:
            get_settings.cache_clear()

        assert gst.rate == 5.0
        assert gst.total == pytest.approx(21.0)
