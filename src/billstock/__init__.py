"""BillStock - point-of-sale billing core with payment ledger and remote sync."""

__version__ = "0.1.0"

from billstock.config import configure_logging, get_settings
from billstock.ledger import balance_due, bill_total, is_settled, requires_payment, total_paid
from billstock.machine import apply
from billstock.models import (
    AppState,
    BillRow,
    BillStatus,
    Entity,
    Field,
    PaymentEntry,
    PaymentMode,
    QueueBill,
    SyncStatus,
    new_payment,
)
from billstock.session import (
    BillingError,
    BillingSession,
    BillNotFoundError,
    EmptyBillError,
    PaymentRequiredError,
    create_session,
)
from billstock.sync import InMemoryStore, RemoteStoreClient, RemoteStoreError, SyncReconciler

__all__ = [
    # Version
    "__version__",
    # Model
    "AppState",
    "BillRow",
    "BillStatus",
    "Entity",
    "Field",
    "PaymentEntry",
    "PaymentMode",
    "QueueBill",
    "SyncStatus",
    "new_payment",
    # State machine & ledger
    "apply",
    "balance_due",
    "bill_total",
    "is_settled",
    "requires_payment",
    "total_paid",
    # Session
    "BillingSession",
    "BillingError",
    "BillNotFoundError",
    "EmptyBillError",
    "PaymentRequiredError",
    "create_session",
    # Sync
    "InMemoryStore",
    "RemoteStoreClient",
    "RemoteStoreError",
    "SyncReconciler",
    # Config
    "get_settings",
    "configure_logging",
]
