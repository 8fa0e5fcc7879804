"""Conversion between model objects and remote store rows.

Rows use snake_case keys, an owner column ``user_id`` and epoch
milliseconds for timestamps. Decoding is lenient: a malformed row yields
defaults rather than an exception, since remote data may predate the
current schema.
"""

from typing import Any

from billstock.models import BillRow, Entity, Field, PaymentEntry, PaymentMode, QueueBill
from billstock.values import from_millis, gen_id, now, parse_number, to_millis

CUSTOMERS = "customers"
ITEMS = "items"
BILLS = "bills"

COLLECTIONS = (CUSTOMERS, ITEMS, BILLS)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


# === Catalog entities ===


def entity_to_record(owner_id: str, entity: Entity) -> dict[str, Any]:
    return {
        "id": entity.id,
        "user_id": owner_id,
        "fields": [{"id": f.id, "label": f.label, "value": f.value} for f in entity.fields],
    }


def record_to_entity(record: dict[str, Any]) -> Entity:
    fields = tuple(
        Field(
            id=_as_str(raw.get("id")) or gen_id(),
            label=_as_str(raw.get("label")),
            value=_as_str(raw.get("value")),
        )
        for raw in _as_list(record.get("fields"))
        if isinstance(raw, dict)
    )
    return Entity(id=_as_str(record.get("id")), fields=fields)


# === Bills ===


def payment_to_record(payment: PaymentEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": payment.id,
        "amount": payment.amount,
        "mode": payment.mode.value,
        "paid_at": to_millis(payment.paid_at),
    }
    if payment.note:
        data["note"] = payment.note
    return data


def record_to_payment(record: dict[str, Any]) -> PaymentEntry:
    return PaymentEntry(
        id=_as_str(record.get("id")) or gen_id(),
        amount=max(0.0, parse_number(record.get("amount"))),
        mode=PaymentMode.coerce(record.get("mode")),
        paid_at=from_millis(record.get("paid_at")) or now(),
        note=_as_str(record.get("note")) or None,
    )


def bill_to_record(owner_id: str, bill: QueueBill) -> dict[str, Any]:
    saved_at = bill.saved_at or now()
    return {
        "id": bill.id,
        "user_id": owner_id,
        "num": bill.num,
        "rows": [
            {"id": r.id, "name": r.name, "price": r.price, "qty": r.qty} for r in bill.rows
        ],
        "customer": bill.customer,
        "saved_at": to_millis(saved_at),
        "total_amount": bill.total_amount,
        "payments": [payment_to_record(p) for p in bill.payments],
        "paid_amount": bill.legacy_paid_amount,
    }


def record_to_bill(record: dict[str, Any]) -> QueueBill:
    rows = tuple(
        BillRow(
            id=_as_str(raw.get("id")) or gen_id(),
            name=_as_str(raw.get("name")),
            price=_as_str(raw.get("price")),
            qty=_as_str(raw.get("qty"), "1"),
        )
        for raw in _as_list(record.get("rows"))
        if isinstance(raw, dict)
    )
    payments = tuple(
        record_to_payment(raw)
        for raw in _as_list(record.get("payments"))
        if isinstance(raw, dict)
    )
    total = record.get("total_amount")
    legacy = record.get("paid_amount")
    customer = record.get("customer")
    return QueueBill(
        id=_as_str(record.get("id")),
        num=int(parse_number(record.get("num"))),
        rows=rows,
        customer=_as_str(customer) if customer else None,
        saved_at=from_millis(record.get("saved_at")),
        total_amount=parse_number(total) if total is not None else None,
        payments=payments,
        legacy_paid_amount=parse_number(legacy) if legacy is not None else None,
    )
