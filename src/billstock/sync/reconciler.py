"""Mirror local state changes to the remote store.

The reconciler keeps the last state it observed and, for each new state,
derives the upserts and deletes that bring the remote collections in line.
There is no change log: the diff between two snapshots is the change.

Remote calls are fire-and-forget asyncio tasks. They never block a local
state transition, failures are logged and reported as a sync status, and
nothing is rolled back or retried. Each operation targets its own record,
so completion order does not matter, with one exception: an upsert and a
later delete of the same record may still arrive out of order if the
transport reorders them.
"""

import asyncio
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from billstock.models import AppState, Entity, QueueBill, SyncStatus
from billstock.sync.records import (
    BILLS,
    CUSTOMERS,
    ITEMS,
    bill_to_record,
    entity_to_record,
)
from billstock.sync.remote import RemoteStore

logger = structlog.get_logger(__name__)


class OperationKind(str, Enum):
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass(frozen=True)
class SyncOperation:
    """One remote write derived from a state change."""

    kind: OperationKind
    collection: str
    record_id: str
    value: Entity | QueueBill | None = None

    def to_record(self, owner_id: str) -> dict[str, Any]:
        if isinstance(self.value, QueueBill):
            return bill_to_record(owner_id, self.value)
        if isinstance(self.value, Entity):
            return entity_to_record(owner_id, self.value)
        return {"id": self.record_id}


def _upsert(collection: str, value: Entity | QueueBill) -> SyncOperation:
    return SyncOperation(OperationKind.UPSERT, collection, value.id, value)


def _delete(collection: str, record_id: str) -> SyncOperation:
    return SyncOperation(OperationKind.DELETE, collection, record_id)


def diff_entities(
    collection: str,
    previous: Sequence[Entity],
    current: Sequence[Entity],
) -> list[SyncOperation]:
    """Upserts for new or changed entities, then deletes for removed ones."""
    if previous is current:
        return []
    previous_by_id = {e.id: e for e in previous}
    current_ids = {e.id for e in current}

    ops = [
        _upsert(collection, e)
        for e in current
        if previous_by_id.get(e.id) != e
    ]
    ops.extend(_delete(collection, e.id) for e in previous if e.id not in current_ids)
    return ops


def diff_bills(previous: Sequence[QueueBill], current: Sequence[QueueBill]) -> list[SyncOperation]:
    """Upserts for newly archived bills, deletes for bills that left the archive.

    A bill present in both snapshots is not compared. Payments added to an
    archived bill are pushed explicitly by the caller.
    """
    if previous is current:
        return []
    previous_ids = {b.id for b in previous}
    current_ids = {b.id for b in current}

    ops = [_upsert(BILLS, b) for b in current if b.id not in previous_ids]
    ops.extend(_delete(BILLS, b.id) for b in previous if b.id not in current_ids)
    return ops


def reconcile(previous: AppState, current: AppState) -> list[SyncOperation]:
    """All remote operations implied by moving from one state to the next."""
    if previous is current:
        return []
    return (
        diff_entities(CUSTOMERS, previous.customers, current.customers)
        + diff_entities(ITEMS, previous.items, current.items)
        + diff_bills(previous.bills, current.bills)
    )


class SyncReconciler:
    """Observes successive states and mirrors their differences remotely.

    Usage:
        reconciler = SyncReconciler(store, owner_id="user-1")
        reconciler.prime(loaded_state)
        reconciler.observe(next_state)   # schedules remote writes
        await reconciler.flush()         # wait for them, e.g. on shutdown
    """

    def __init__(
        self,
        store: RemoteStore,
        owner_id: str,
        on_status: Callable[[SyncStatus], None] | None = None,
    ):
        self._store = store
        self._owner_id = owner_id
        self._on_status = on_status

        self._previous: AppState | None = None
        self._backlog: deque[SyncOperation] = deque()
        self._tasks: set[asyncio.Task[None]] = set()
        self._batch_failed = False

        self._logger = logger.bind(component="sync_reconciler", owner_id=owner_id)

    @property
    def store(self) -> RemoteStore:
        return self._store

    @property
    def pending(self) -> int:
        """Operations scheduled or waiting for an event loop."""
        return len(self._backlog) + len(self._tasks)

    def prime(self, state: AppState) -> None:
        """Record a baseline state without emitting any operations."""
        self._previous = state

    def observe(self, state: AppState) -> list[SyncOperation]:
        """Diff against the previous observation and schedule the result.

        The first observation only establishes the baseline.
        """
        previous, self._previous = self._previous, state
        if previous is None:
            return []
        ops = reconcile(previous, state)
        if ops:
            self._logger.debug("changes_detected", operations=len(ops))
            self.submit(ops)
        return ops

    def push_bill(self, bill: QueueBill) -> None:
        """Upsert a bill whose content changed in place (a payment was added)."""
        self.submit([_upsert(BILLS, bill)])

    def submit(self, ops: Sequence[SyncOperation]) -> None:
        self._backlog.extend(ops)
        self._drain()

    def _drain(self) -> None:
        if not self._backlog:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("sync_deferred", pending=len(self._backlog))
            return

        starting = not self._tasks
        while self._backlog:
            op = self._backlog.popleft()
            task = loop.create_task(self._run(op))
            self._tasks.add(task)
            task.add_done_callback(self._task_done)
        if starting:
            self._report(SyncStatus.SYNCING)

    async def _run(self, op: SyncOperation) -> None:
        try:
            if op.kind is OperationKind.UPSERT:
                await self._store.upsert(op.collection, op.to_record(self._owner_id))
            else:
                await self._store.delete(op.collection, op.record_id)
        except Exception as e:
            self._batch_failed = True
            self._logger.error(
                "sync_operation_failed",
                kind=op.kind.value,
                collection=op.collection,
                record_id=op.record_id,
                error=str(e),
            )

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if self._tasks or self._backlog:
            return
        failed, self._batch_failed = self._batch_failed, False
        self._report(SyncStatus.ERROR if failed else SyncStatus.SYNCED)

    def _report(self, status: SyncStatus) -> None:
        if self._on_status is not None:
            self._on_status(status)

    async def flush(self) -> None:
        """Schedule anything deferred and wait for all outstanding writes."""
        self._drain()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        # Let done callbacks run so the final status is reported
        await asyncio.sleep(0)
