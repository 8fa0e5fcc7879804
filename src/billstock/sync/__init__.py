"""Sync module: wire records, remote stores and the state reconciler."""

from billstock.sync.reconciler import (
    OperationKind,
    SyncOperation,
    SyncReconciler,
    diff_bills,
    diff_entities,
    reconcile,
)
from billstock.sync.remote import (
    InMemoryStore,
    RemoteStore,
    RemoteStoreClient,
    RemoteStoreError,
    load_snapshot,
)

__all__ = [
    # Reconciler
    "OperationKind",
    "SyncOperation",
    "SyncReconciler",
    "diff_bills",
    "diff_entities",
    "reconcile",
    # Remote store
    "InMemoryStore",
    "RemoteStore",
    "RemoteStoreClient",
    "RemoteStoreError",
    "load_snapshot",
]
