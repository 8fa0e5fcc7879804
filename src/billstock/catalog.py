"""Lookup helpers over the schema-less customer and item catalogs."""

from collections.abc import Iterable

from billstock.models import BillRow, Entity, Field, QueueBill, find_field
from billstock.values import gen_id


def display_name(entity: Entity) -> str:
    """Best-effort name: the name field, else the first field, else empty."""
    name = entity.name_field
    if name is None and entity.fields:
        name = entity.fields[0]
    return name.value if name else ""


def rate_of(entity: Entity) -> str:
    rate = entity.rate_field
    return rate.value if rate else ""


def subtitle_field(entity: Entity) -> Field | None:
    """A secondary field worth showing under the name (phone, rate or price)."""
    name = entity.name_field or (entity.fields[0] if entity.fields else None)
    others = tuple(f for f in entity.fields if f is not name)
    return find_field(others, "phone", "rate", "price")


def search_entities(entities: Iterable[Entity], query: str) -> list[Entity]:
    q = query.strip().lower()
    if not q:
        return list(entities)
    return [
        e
        for e in entities
        if any(q in f.label.lower() or q in f.value.lower() for f in e.fields)
    ]


def suggest_items(items: Iterable[Entity], text: str, limit: int = 6) -> list[Entity]:
    """Items whose name contains the typed text, for row autocomplete."""
    q = text.strip().lower()
    if not q:
        return []
    matches = [
        item
        for item in items
        if item.name_field is not None and q in item.name_field.value.lower()
    ]
    return matches[:limit]


def row_from_item(item: Entity, qty: str = "1", row_id: str | None = None) -> BillRow:
    """A bill row pre-filled with an item's name and rate."""
    name = item.name_field
    return BillRow(
        id=row_id or gen_id(),
        name=name.value if name else "",
        price=rate_of(item),
        qty=qty,
    )


def search_bills(bills: Iterable[QueueBill], query: str) -> list[QueueBill]:
    """Bills matching a customer name, bill number or row name."""
    q = query.strip().lower()
    if not q:
        return list(bills)
    return [
        b
        for b in bills
        if q in (b.customer or "").lower()
        or q in str(b.num)
        or any(q in (r.name or "").lower() for r in b.rows)
    ]
