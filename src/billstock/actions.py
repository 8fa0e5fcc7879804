"""Action definitions consumed by the state machine.

Each action is a frozen dataclass tagged with an ActionType. Identifiers
and timestamps are generated when the action is built, never inside the
reducer, so applying the same action twice yields the same state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar

from billstock.models import BillRow, Entity, Field, PaymentEntry, QueueBill, SyncStatus
from billstock.values import gen_id, now


class ActionType(str, Enum):
    """Types of actions accepted by the state machine."""

    # Catalogs
    ADD_CUSTOMER = "customer.add"
    UPDATE_CUSTOMER = "customer.update"
    DEL_CUSTOMER = "customer.delete"
    ADD_ITEM = "item.add"
    UPDATE_ITEM = "item.update"
    DEL_ITEM = "item.delete"

    # Queue
    NEW_BILL = "bill.new"
    SET_ACTIVE_BILL = "bill.set_active"
    UPDATE_BILL_ROWS = "bill.update_rows"
    UPDATE_BILL_CUSTOMER = "bill.update_customer"
    DEL_FROM_QUEUE = "bill.delete_from_queue"

    # Lifecycle and payments
    SAVE_BILL = "bill.save"
    EDIT_BILL = "bill.edit"
    ADD_PAYMENT = "bill.add_payment"
    DEL_BILL = "bill.delete"

    # Whole state
    LOAD_DATA = "state.load"
    RESET = "state.reset"
    SET_SYNC_STATUS = "state.sync_status"


@dataclass(frozen=True)
class Action:
    """Base class for all actions."""

    action_type: ClassVar[ActionType]


@dataclass(frozen=True)
class AddCustomer(Action):
    action_type: ClassVar[ActionType] = ActionType.ADD_CUSTOMER

    fields: tuple[Field, ...]
    entity_id: str = field(default_factory=gen_id)


@dataclass(frozen=True)
class UpdateCustomer(Action):
    action_type: ClassVar[ActionType] = ActionType.UPDATE_CUSTOMER

    entity_id: str
    fields: tuple[Field, ...]


@dataclass(frozen=True)
class DeleteCustomer(Action):
    action_type: ClassVar[ActionType] = ActionType.DEL_CUSTOMER

    entity_id: str


@dataclass(frozen=True)
class AddItem(Action):
    action_type: ClassVar[ActionType] = ActionType.ADD_ITEM

    fields: tuple[Field, ...]
    entity_id: str = field(default_factory=gen_id)


@dataclass(frozen=True)
class UpdateItem(Action):
    action_type: ClassVar[ActionType] = ActionType.UPDATE_ITEM

    entity_id: str
    fields: tuple[Field, ...]


@dataclass(frozen=True)
class DeleteItem(Action):
    action_type: ClassVar[ActionType] = ActionType.DEL_ITEM

    entity_id: str


@dataclass(frozen=True)
class NewBill(Action):
    """Open a new bill with one blank row and make it active."""

    action_type: ClassVar[ActionType] = ActionType.NEW_BILL

    bill_id: str = field(default_factory=gen_id)
    first_row: BillRow = field(default_factory=BillRow.blank)


@dataclass(frozen=True)
class SetActiveBill(Action):
    action_type: ClassVar[ActionType] = ActionType.SET_ACTIVE_BILL

    bill_id: str


@dataclass(frozen=True)
class UpdateBillRows(Action):
    action_type: ClassVar[ActionType] = ActionType.UPDATE_BILL_ROWS

    bill_id: str
    rows: tuple[BillRow, ...]


@dataclass(frozen=True)
class UpdateBillCustomer(Action):
    action_type: ClassVar[ActionType] = ActionType.UPDATE_BILL_CUSTOMER

    bill_id: str
    customer: str | None


@dataclass(frozen=True)
class SaveBill(Action):
    """Archive a queued bill with a frozen total.

    ``total_amount`` is authoritative (it may include tax or adjustments the
    rows do not show). A payment is required when the bill has none yet.
    """

    action_type: ClassVar[ActionType] = ActionType.SAVE_BILL

    bill_id: str
    total_amount: float
    payment: PaymentEntry | None = None
    saved_at: datetime = field(default_factory=now)


@dataclass(frozen=True)
class EditBill(Action):
    """Move an archived bill back into the queue for editing."""

    action_type: ClassVar[ActionType] = ActionType.EDIT_BILL

    bill_id: str


@dataclass(frozen=True)
class AddPayment(Action):
    action_type: ClassVar[ActionType] = ActionType.ADD_PAYMENT

    bill_id: str
    payment: PaymentEntry


@dataclass(frozen=True)
class DeleteFromQueue(Action):
    action_type: ClassVar[ActionType] = ActionType.DEL_FROM_QUEUE

    bill_id: str


@dataclass(frozen=True)
class DeleteBill(Action):
    action_type: ClassVar[ActionType] = ActionType.DEL_BILL

    bill_id: str


@dataclass(frozen=True)
class LoadData(Action):
    """Replace catalogs and archive with data loaded from the remote store."""

    action_type: ClassVar[ActionType] = ActionType.LOAD_DATA

    customers: tuple[Entity, ...] = ()
    items: tuple[Entity, ...] = ()
    bills: tuple[QueueBill, ...] = ()


@dataclass(frozen=True)
class ResetState(Action):
    action_type: ClassVar[ActionType] = ActionType.RESET


@dataclass(frozen=True)
class SetSyncStatus(Action):
    action_type: ClassVar[ActionType] = ActionType.SET_SYNC_STATUS

    status: SyncStatus
