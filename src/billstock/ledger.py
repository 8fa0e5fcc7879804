"""Bill totals, payments and balance due.

Every screen and policy that needs a bill's total, amount paid or amount
still due goes through these functions, so the arithmetic is defined in
exactly one place.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from billstock.config import get_settings
from billstock.models import BillRow, QueueBill
from billstock.values import parse_number

# Balances within one paisa count as settled
PAYMENT_EPSILON = 0.01


def row_amount(row: BillRow) -> float:
    """Price times quantity; unparseable text counts as zero."""
    return parse_number(row.price) * parse_number(row.qty)


def rows_total(rows: Iterable[BillRow]) -> float:
    return sum((row_amount(row) for row in rows), 0.0)


def total_paid(bill: QueueBill) -> float:
    """Sum of recorded payments.

    Older records carry a single paid amount instead of a payment history.
    It is used only while the history is empty.
    """
    if bill.payments:
        return sum((p.amount for p in bill.payments), 0.0)
    if bill.legacy_paid_amount is not None:
        return parse_number(bill.legacy_paid_amount)
    return 0.0


def bill_total(bill: QueueBill) -> float:
    """The saved total if the bill has one, otherwise the rows total."""
    if bill.total_amount is not None:
        return bill.total_amount
    return rows_total(bill.rows)


def balance_due(bill: QueueBill) -> float:
    """Amount still owed. Negative means change is owed to the customer."""
    return bill_total(bill) - total_paid(bill)


def is_settled(bill: QueueBill) -> bool:
    return balance_due(bill) <= PAYMENT_EPSILON


def requires_payment(bill: QueueBill) -> bool:
    """Whether saving this bill should ask for a payment.

    A first save always takes one. A bill that already has payments only
    needs another while a balance remains.
    """
    if not bill.payments:
        return True
    return not is_settled(bill)


@dataclass(frozen=True)
class PaymentOutcome:
    """Preview of a payment before it is recorded."""

    amount: float
    reference: float
    change: float
    remaining_due: float

    @property
    def is_exact(self) -> bool:
        return abs(self.change) < PAYMENT_EPSILON

    @property
    def is_overpaid(self) -> bool:
        return self.change >= PAYMENT_EPSILON


def payment_outcome(bill: QueueBill, amount: float, adding: bool = False) -> PaymentOutcome:
    """Work out change and remaining due for a prospective payment.

    On a first save the payment is measured against the bill total. When
    adding to a saved bill it is measured against the current balance due.
    """
    paid_so_far = total_paid(bill) if adding else 0.0
    reference = balance_due(bill) if adding else bill_total(bill)
    return PaymentOutcome(
        amount=amount,
        reference=reference,
        change=amount - reference,
        remaining_due=bill_total(bill) - (paid_so_far + amount),
    )


def quick_amounts(due: float) -> list[float]:
    """Suggested tender amounts: the exact due plus up to two round-ups."""
    suggestions: list[float] = []
    for step in (10, 50, 100):
        rounded = float(math.ceil(due / step) * step)
        if rounded != due and rounded not in suggestions:
            suggestions.append(rounded)
    return [due] + suggestions[:2]


@dataclass(frozen=True)
class GstBreakdown:
    subtotal: float
    rate: float
    gst_amount: float
    total: float


def gst_breakdown(rows: Iterable[BillRow], rate: float | None = None) -> GstBreakdown:
    """Subtotal, tax and grand total for a set of rows at a GST rate (percent).

    The rate defaults to the GST_RATE setting.
    """
    if rate is None:
        rate = get_settings().gst_rate
    subtotal = rows_total(rows)
    gst_amount = subtotal * rate / 100
    return GstBreakdown(
        subtotal=subtotal,
        rate=rate,
        gst_amount=gst_amount,
        total=subtotal + gst_amount,
    )
