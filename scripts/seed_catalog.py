#!/usr/bin/env python3
"""Seed the remote store with a demo catalog.

This script creates, for one owner:
1. Sample customers (name, phone and a shop or GST field)
2. Sample stock items (name, net rate, unit and optional offer)

Records are written through the same codecs the reconciler uses, so the
app loads them exactly as if they had been entered locally.

Usage:
    STORE_API_URL=... STORE_API_KEY=... python scripts/seed_catalog.py [owner_id]
"""

import asyncio
import sys
from pathlib import Path

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from billstock.config import configure_logging, get_settings
from billstock.models import Entity, Field
from billstock.sync.records import CUSTOMERS, ITEMS, entity_to_record
from billstock.sync.remote import RemoteStoreClient, RemoteStoreError
from billstock.values import gen_id

# ============================================================================
# DEMO CATALOG
# ============================================================================

DEMO_CUSTOMERS: list[list[tuple[str, str]]] = [
    [("Name", "Rahul Sharma"), ("Phone", "9876543210"), ("Shop Name", "Sharma Traders")],
    [("Name", "Priya Patel"), ("Phone", "9988776655"), ("GST", "29ABCDE1234F1Z5")],
]

DEMO_ITEMS: list[list[tuple[str, str]]] = [
    [("Item Name", "Basmati Rice"), ("Net Rate", "65"), ("Unit", "kg")],
    [("Item Name", "Refined Oil"), ("Net Rate", "130"), ("Offer", "5% off"), ("Unit", "litre")],
    [("Item Name", "Wheat Flour"), ("Net Rate", "42"), ("Unit", "kg")],
    [("Item Name", "Sugar"), ("Net Rate", "45"), ("Unit", "kg")],
]


def build_entity(pairs: list[tuple[str, str]]) -> Entity:
    return Entity(
        id=gen_id(),
        fields=tuple(Field(id=gen_id(), label=label, value=value) for label, value in pairs),
    )


async def seed_collection(
    client: RemoteStoreClient,
    collection: str,
    owner_id: str,
    rows: list[list[tuple[str, str]]],
) -> int:
    created = 0
    for pairs in rows:
        entity = build_entity(pairs)
        try:
            await client.upsert(collection, entity_to_record(owner_id, entity))
        except RemoteStoreError as e:
            print(f"  ✗ {collection}: {pairs[0][1]} ({e.status_code}: {e})")
            continue
        print(f"  ✓ {collection}: {pairs[0][1]}")
        created += 1
    return created


async def main() -> None:
    """Main entry point."""
    configure_logging()
    settings = get_settings()
    owner_id = sys.argv[1] if len(sys.argv) > 1 else settings.store_owner_id

    if not settings.store_enabled:
        print("✗ STORE_API_URL is not set; nothing to seed")
        return

    print("=" * 60)
    print("BillStock - Catalog Seeding")
    print("=" * 60)
    print(f"\nStore URL: {settings.store_api_url}")
    print(f"Owner: {owner_id}\n")

    async with RemoteStoreClient() as client:
        customers = await seed_collection(client, CUSTOMERS, owner_id, DEMO_CUSTOMERS)
        items = await seed_collection(client, ITEMS, owner_id, DEMO_ITEMS)

    print(f"\n✓ Seeded {customers} customer(s) and {items} item(s)")


if __name__ == "__main__":
    asyncio.run(main())
