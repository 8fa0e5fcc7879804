"""Data model for catalogs, bills, payments and application state.

All values are frozen dataclasses holding tuples, so a state is never
mutated in place. A new state shares every collection it did not change
with the state it was derived from.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from billstock.values import gen_id, now, parse_number


class PaymentMode(str, Enum):
    """How a payment was tendered."""

    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    CREDIT = "credit"

    @classmethod
    def coerce(cls, value: Any) -> "PaymentMode":
        """Return the matching mode, defaulting to cash for unknown input."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.CASH


class BillStatus(str, Enum):
    """Lifecycle stage of a bill."""

    QUEUED = "queued"
    ARCHIVED = "archived"


class SyncStatus(str, Enum):
    """State of the mirror to the remote store."""

    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


@dataclass(frozen=True)
class Field:
    """One free-form label/value attribute of a catalog entity."""

    id: str
    label: str
    value: str


@dataclass(frozen=True)
class Entity:
    """A customer or stock item described only by its fields."""

    id: str
    fields: tuple[Field, ...] = ()

    @property
    def name_field(self) -> Field | None:
        return find_field(self.fields, "item name", "name")

    @property
    def rate_field(self) -> Field | None:
        return find_field(self.fields, "net rate", "rate", "price")

    @property
    def phone_field(self) -> Field | None:
        return find_field(self.fields, "phone", "mobile")


def find_field(fields: tuple[Field, ...], *keywords: str) -> Field | None:
    """Return the first field whose label contains any of the keywords.

    Matching is a case-insensitive substring test, so "Item Name", "name"
    and "Customer Name" all match the keyword "name".
    """
    needles = [k.lower() for k in keywords if k]
    for f in fields:
        label = f.label.lower()
        if any(needle in label for needle in needles):
            return f
    return None


@dataclass(frozen=True)
class BillRow:
    """A line item. Price and quantity are kept as the text the user typed."""

    id: str
    name: str = ""
    price: str = ""
    qty: str = "1"

    @classmethod
    def blank(cls) -> "BillRow":
        return cls(id=gen_id())


@dataclass(frozen=True)
class PaymentEntry:
    """A recorded payment. Entries are never edited once appended."""

    id: str
    amount: float
    mode: PaymentMode = PaymentMode.CASH
    paid_at: datetime = field(default_factory=now)
    note: str | None = None


def new_payment(
    amount: Any,
    mode: PaymentMode | str = PaymentMode.CASH,
    note: str | None = None,
) -> PaymentEntry:
    """Build a payment entry from raw user input.

    The amount is parsed leniently and clamped at zero.
    """
    cleaned_note = note.strip() if note else ""
    return PaymentEntry(
        id=gen_id(),
        amount=max(0.0, parse_number(amount)),
        mode=PaymentMode.coerce(mode),
        paid_at=now(),
        note=cleaned_note or None,
    )


@dataclass(frozen=True)
class QueueBill:
    """A bill, either in progress (queued) or saved (archived)."""

    id: str
    num: int
    rows: tuple[BillRow, ...] = ()
    customer: str | None = None
    saved_at: datetime | None = None
    total_amount: float | None = None
    payments: tuple[PaymentEntry, ...] = ()
    # Single paid amount stored by records written before payment history
    legacy_paid_amount: float | None = None


@dataclass(frozen=True)
class AppState:
    """The whole application state.

    ``queue`` holds in-progress bills and ``bills`` the archive; a bill
    lives in exactly one of them. ``bill_counter`` is the last bill number
    issued and only ever grows.
    """

    customers: tuple[Entity, ...] = ()
    items: tuple[Entity, ...] = ()
    bills: tuple[QueueBill, ...] = ()
    queue: tuple[QueueBill, ...] = ()
    active_bill_id: str | None = None
    sync_status: SyncStatus = SyncStatus.IDLE
    bill_counter: int = 0

    @property
    def active_bill(self) -> QueueBill | None:
        return find_bill(self.queue, self.active_bill_id)


def find_bill(bills: tuple[QueueBill, ...], bill_id: str | None) -> QueueBill | None:
    if bill_id is None:
        return None
    for bill in bills:
        if bill.id == bill_id:
            return bill
    return None


def bill_status(state: AppState, bill_id: str) -> BillStatus | None:
    """Lifecycle stage of a bill, derived from which list holds it."""
    if find_bill(state.queue, bill_id) is not None:
        return BillStatus.QUEUED
    if find_bill(state.bills, bill_id) is not None:
        return BillStatus.ARCHIVED
    return None
