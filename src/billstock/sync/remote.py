"""Remote store clients.

The remote store mirrors the customers, items and bills collections. It
offers independent, idempotent per-record calls and no transactions.
"""

import asyncio
from typing import Any, Protocol, cast

import httpx
import structlog

from billstock.actions import LoadData
from billstock.config import get_settings
from billstock.sync.records import (
    BILLS,
    CUSTOMERS,
    ITEMS,
    record_to_bill,
    record_to_entity,
)

logger = structlog.get_logger(__name__)


class RemoteStoreError(Exception):
    """Base exception for remote store errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class RemoteStore(Protocol):
    async def upsert(self, collection: str, record: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def fetch_all(self, collection: str, owner_id: str) -> list[dict[str, Any]]: ...


# Column each collection is ordered by when fetched
_ORDER_COLUMNS = {
    CUSTOMERS: "created_at",
    ITEMS: "created_at",
    BILLS: "saved_at",
}


class RemoteStoreClient:
    """Async client for a PostgREST-style table API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        url = base_url or settings.store_api_url
        if not url:
            raise RemoteStoreError("No remote store URL configured")
        self.base_url = url.rstrip("/")
        if api_key is None and settings.store_api_key is not None:
            api_key = settings.store_api_key.get_secret_value()
        self._api_key = api_key
        self._timeout = timeout if timeout is not None else settings.store_timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RemoteStoreClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Make a single request. Failures raise; nothing is retried here."""
        client = await self._get_client()
        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                headers=self._get_headers(prefer),
            )
        except httpx.RequestError as e:
            raise RemoteStoreError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {"raw": response.text[:500] if response.text else "empty response"}
            raise RemoteStoreError(
                f"Store error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        return response.json() if response.content else None

    async def upsert(self, collection: str, record: dict[str, Any]) -> None:
        await self._request(
            "POST",
            f"/{collection}",
            json=record,
            prefer="resolution=merge-duplicates,return=minimal",
        )
        logger.debug("record_upserted", collection=collection, record_id=record.get("id"))

    async def delete(self, collection: str, record_id: str) -> None:
        await self._request("DELETE", f"/{collection}", params={"id": f"eq.{record_id}"})
        logger.debug("record_deleted", collection=collection, record_id=record_id)

    async def fetch_all(self, collection: str, owner_id: str) -> list[dict[str, Any]]:
        result = await self._request(
            "GET",
            f"/{collection}",
            params={
                "select": "*",
                "user_id": f"eq.{owner_id}",
                "order": f"{_ORDER_COLUMNS.get(collection, 'id')}.asc",
            },
        )
        if not isinstance(result, list):
            return []
        return [cast(dict[str, Any], r) for r in result if isinstance(r, dict)]


class InMemoryStore:
    """Dictionary-backed store, used when no remote store is configured."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def records(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    async def upsert(self, collection: str, record: dict[str, Any]) -> None:
        self.records(collection)[str(record["id"])] = dict(record)

    async def delete(self, collection: str, record_id: str) -> None:
        self.records(collection).pop(record_id, None)

    async def fetch_all(self, collection: str, owner_id: str) -> list[dict[str, Any]]:
        return [
            dict(r) for r in self.records(collection).values() if r.get("user_id") == owner_id
        ]


async def _fetch_collection(
    store: RemoteStore, collection: str, owner_id: str
) -> list[dict[str, Any]]:
    try:
        return await store.fetch_all(collection, owner_id)
    except RemoteStoreError as e:
        logger.error(
            "fetch_failed",
            collection=collection,
            status_code=e.status_code,
            error=str(e),
        )
        return []


async def load_snapshot(store: RemoteStore, owner_id: str) -> LoadData:
    """Fetch all collections for an owner and build a LoadData action."""
    customers, items, bills = await asyncio.gather(
        _fetch_collection(store, CUSTOMERS, owner_id),
        _fetch_collection(store, ITEMS, owner_id),
        _fetch_collection(store, BILLS, owner_id),
    )
    logger.info(
        "snapshot_loaded",
        owner_id=owner_id,
        customers=len(customers),
        items=len(items),
        bills=len(bills),
    )
    return LoadData(
        customers=tuple(record_to_entity(r) for r in customers),
        items=tuple(record_to_entity(r) for r in items),
        bills=tuple(record_to_bill(r) for r in bills),
    )
