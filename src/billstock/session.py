"""Billing session: owns the current state and routes actions through it.

The session is the calling layer around the pure state machine. It
applies the checks the machine leaves to its caller (no saving an empty
bill, asking for a payment when one is needed), notifies subscribers of
each new state and hands every state to the sync reconciler.
"""

from collections.abc import Callable
from dataclasses import replace

import structlog

from billstock.actions import (
    Action,
    AddPayment,
    EditBill,
    LoadData,
    NewBill,
    ResetState,
    SaveBill,
    SetSyncStatus,
)
from billstock.config import bind_owner, get_settings
from billstock.ledger import requires_payment
from billstock.machine import apply
from billstock.models import AppState, PaymentEntry, QueueBill, SyncStatus, find_bill
from billstock.sync.reconciler import SyncReconciler
from billstock.sync.remote import InMemoryStore, RemoteStore, RemoteStoreClient, load_snapshot

logger = structlog.get_logger(__name__)


class BillingError(Exception):
    """Base exception for rejected billing operations."""

    def __init__(self, message: str, bill_id: str | None = None):
        super().__init__(message)
        self.bill_id = bill_id


class BillNotFoundError(BillingError):
    """The bill is not where the operation expects it."""

    pass


class EmptyBillError(BillingError):
    """The bill has no rows worth saving."""

    pass


class PaymentRequiredError(BillingError):
    """Saving the bill needs a payment that was not supplied."""

    pass


StateListener = Callable[[AppState], None]


class BillingSession:
    """Holds the application state and applies actions to it.

    Every transition runs to completion synchronously; remote writes are
    scheduled by the reconciler and never awaited here.
    """

    def __init__(
        self,
        state: AppState | None = None,
        reconciler: SyncReconciler | None = None,
    ):
        self._state = state or AppState()
        self._reconciler: SyncReconciler | None = None
        self._listeners: list[StateListener] = []
        self._logger = logger.bind(component="billing_session")

        if reconciler is not None:
            self.attach_reconciler(reconciler)

    def attach_reconciler(self, reconciler: SyncReconciler) -> None:
        """Mirror state changes made from now on."""
        self._reconciler = reconciler
        reconciler.prime(self._state)

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def reconciler(self) -> SyncReconciler | None:
        return self._reconciler

    @property
    def active_bill(self) -> QueueBill | None:
        return self._state.active_bill

    def subscribe(self, listener: StateListener) -> None:
        """Call ``listener`` with every new state, synchronously."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, action: Action) -> AppState:
        """Apply an action and propagate the resulting state."""
        previous = self._state
        state = apply(previous, action)
        if state is previous:
            return state

        self._state = state
        for listener in list(self._listeners):
            listener(state)
        if self._reconciler is not None:
            # Whole-state replacements are local only and never mirrored
            if isinstance(action, (LoadData, ResetState)):
                self._reconciler.prime(state)
            else:
                self._reconciler.observe(state)
        # A status callback may have dispatched again meanwhile
        return self._state

    def report_sync_status(self, status: SyncStatus) -> None:
        self.dispatch(SetSyncStatus(status=status))

    # === Bill operations ===

    def new_bill(self) -> QueueBill:
        action = NewBill()
        self.dispatch(action)
        bill = find_bill(self._state.queue, action.bill_id)
        assert bill is not None
        return bill

    def save_bill(
        self,
        bill_id: str,
        total_amount: float,
        payment: PaymentEntry | None = None,
    ) -> QueueBill:
        """Archive a queued bill, enforcing the save policy.

        Raises:
            BillNotFoundError: The bill is not in the queue.
            EmptyBillError: No row has a name or a price.
            PaymentRequiredError: The bill needs a payment and none was given.
        """
        bill = find_bill(self._state.queue, bill_id)
        if bill is None:
            raise BillNotFoundError("Bill is not in the queue", bill_id=bill_id)
        if not any(row.name.strip() or row.price.strip() for row in bill.rows):
            raise EmptyBillError("Bill has no items", bill_id=bill_id)
        # Judge the re-save against the new total, not the one frozen earlier
        if payment is None and requires_payment(_with_total(bill, total_amount)):
            raise PaymentRequiredError("Payment required to save bill", bill_id=bill_id)

        self.dispatch(
            SaveBill(bill_id=bill_id, total_amount=total_amount, payment=payment)
        )
        saved = find_bill(self._state.bills, bill_id)
        assert saved is not None
        self._logger.info(
            "bill_saved",
            bill_id=bill_id,
            num=saved.num,
            total=total_amount,
            payments=len(saved.payments),
        )
        return saved

    def edit_bill(self, bill_id: str) -> QueueBill:
        """Reopen an archived bill in the queue."""
        if find_bill(self._state.bills, bill_id) is None:
            raise BillNotFoundError("Bill is not archived", bill_id=bill_id)
        self.dispatch(EditBill(bill_id=bill_id))
        bill = find_bill(self._state.queue, bill_id)
        assert bill is not None
        return bill

    def add_payment(self, bill_id: str, payment: PaymentEntry) -> QueueBill:
        """Record a further payment against an archived bill and push it."""
        if find_bill(self._state.bills, bill_id) is None:
            raise BillNotFoundError("Bill is not archived", bill_id=bill_id)
        self.dispatch(AddPayment(bill_id=bill_id, payment=payment))
        bill = find_bill(self._state.bills, bill_id)
        assert bill is not None
        if self._reconciler is not None:
            self._reconciler.push_bill(bill)
        self._logger.info(
            "payment_added",
            bill_id=bill_id,
            amount=payment.amount,
            mode=payment.mode.value,
        )
        return bill

    def reset(self) -> AppState:
        """Clear local data, e.g. on logout, leaving the remote store intact."""
        state = self.dispatch(ResetState())
        self._logger.info("session_reset")
        return state

    # === Loading ===

    async def load(self, store: RemoteStore, owner_id: str) -> AppState:
        """Replace catalogs and archive with the owner's remote data.

        Loaded data is already remote, so it becomes the sync baseline
        instead of being written back.
        """
        action: LoadData = await load_snapshot(store, owner_id)
        state = apply(self._state, action)
        self._state = state
        if self._reconciler is not None:
            self._reconciler.prime(state)
        for listener in list(self._listeners):
            listener(state)
        return state


def _with_total(bill: QueueBill, total_amount: float) -> QueueBill:
    return replace(bill, total_amount=total_amount)


def create_session(owner_id: str | None = None) -> BillingSession:
    """Build a session wired to the configured store."""
    settings = get_settings()
    owner = owner_id or settings.store_owner_id
    bind_owner(owner)
    store: RemoteStore
    if settings.store_enabled:
        store = RemoteStoreClient()
    else:
        logger.info("remote_store_disabled", owner_id=owner)
        store = InMemoryStore()

    session = BillingSession()
    reconciler = SyncReconciler(store, owner_id=owner, on_status=session.report_sync_status)
    session.attach_reconciler(reconciler)
    return session
