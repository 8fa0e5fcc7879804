"""Bill and payment state machine.

``apply(state, action)`` is a pure reduction: it never performs I/O and
never raises. An action that targets a missing bill or entity, or that is
not allowed from the bill's current lifecycle stage, returns the input
state object unchanged.

Bill lifecycle::

    absent --NEW_BILL--> queued --SAVE_BILL--> archived
                         queued <--EDIT_BILL-- archived
    queued --DEL_FROM_QUEUE--> absent          archived --DEL_BILL--> absent
                                               archived --ADD_PAYMENT--> archived
"""

from collections.abc import Callable
from dataclasses import replace

import structlog

from billstock.actions import (
    Action,
    ActionType,
    AddCustomer,
    AddItem,
    AddPayment,
    DeleteBill,
    DeleteCustomer,
    DeleteFromQueue,
    DeleteItem,
    EditBill,
    LoadData,
    NewBill,
    ResetState,
    SaveBill,
    SetActiveBill,
    SetSyncStatus,
    UpdateBillCustomer,
    UpdateBillRows,
    UpdateCustomer,
    UpdateItem,
)
from billstock.models import AppState, BillStatus, Entity, QueueBill, bill_status, find_bill

logger = structlog.get_logger(__name__)

# Permitted lifecycle moves; a target of None means the bill is removed
TRANSITIONS: dict[tuple[BillStatus | None, ActionType], BillStatus | None] = {
    (None, ActionType.NEW_BILL): BillStatus.QUEUED,
    (BillStatus.QUEUED, ActionType.SET_ACTIVE_BILL): BillStatus.QUEUED,
    (BillStatus.QUEUED, ActionType.UPDATE_BILL_ROWS): BillStatus.QUEUED,
    (BillStatus.QUEUED, ActionType.UPDATE_BILL_CUSTOMER): BillStatus.QUEUED,
    (BillStatus.QUEUED, ActionType.SAVE_BILL): BillStatus.ARCHIVED,
    (BillStatus.QUEUED, ActionType.DEL_FROM_QUEUE): None,
    (BillStatus.ARCHIVED, ActionType.EDIT_BILL): BillStatus.QUEUED,
    (BillStatus.ARCHIVED, ActionType.ADD_PAYMENT): BillStatus.ARCHIVED,
    (BillStatus.ARCHIVED, ActionType.DEL_BILL): None,
}


def can_transition(status: BillStatus | None, action_type: ActionType) -> bool:
    return (status, action_type) in TRANSITIONS


def next_status(status: BillStatus | None, action_type: ActionType) -> BillStatus | None:
    """Target stage for a move, or None if the bill ends up removed or the move is not allowed."""
    return TRANSITIONS.get((status, action_type))


def _ignored(state: AppState, action: Action, reason: str) -> AppState:
    logger.debug(
        "action_ignored",
        action=action.action_type.value,
        bill_id=getattr(action, "bill_id", None),
        reason=reason,
    )
    return state


def _guard(state: AppState, action: Action, bill_id: str) -> bool:
    return can_transition(bill_status(state, bill_id), action.action_type)


def _without(bills: tuple[QueueBill, ...], bill_id: str) -> tuple[QueueBill, ...]:
    return tuple(b for b in bills if b.id != bill_id)


def _replace_bill(bills: tuple[QueueBill, ...], updated: QueueBill) -> tuple[QueueBill, ...]:
    return tuple(updated if b.id == updated.id else b for b in bills)


def _reassign_active(state: AppState, removed_id: str, queue: tuple[QueueBill, ...]) -> str | None:
    if state.active_bill_id != removed_id:
        return state.active_bill_id
    return queue[0].id if queue else None


# === Catalogs ===


def _add_entity(entities: tuple[Entity, ...], entity_id: str, fields) -> tuple[Entity, ...] | None:
    if any(e.id == entity_id for e in entities):
        return None
    return entities + (Entity(id=entity_id, fields=tuple(fields)),)


def _update_entity(entities: tuple[Entity, ...], entity_id: str, fields) -> tuple[Entity, ...] | None:
    if not any(e.id == entity_id for e in entities):
        return None
    return tuple(
        replace(e, fields=tuple(fields)) if e.id == entity_id else e for e in entities
    )


def _delete_entity(entities: tuple[Entity, ...], entity_id: str) -> tuple[Entity, ...] | None:
    if not any(e.id == entity_id for e in entities):
        return None
    return tuple(e for e in entities if e.id != entity_id)


def _add_customer(state: AppState, action: AddCustomer) -> AppState:
    customers = _add_entity(state.customers, action.entity_id, action.fields)
    if customers is None:
        return _ignored(state, action, "duplicate_id")
    return replace(state, customers=customers)


def _update_customer(state: AppState, action: UpdateCustomer) -> AppState:
    customers = _update_entity(state.customers, action.entity_id, action.fields)
    if customers is None:
        return _ignored(state, action, "not_found")
    return replace(state, customers=customers)


def _delete_customer(state: AppState, action: DeleteCustomer) -> AppState:
    customers = _delete_entity(state.customers, action.entity_id)
    if customers is None:
        return _ignored(state, action, "not_found")
    return replace(state, customers=customers)


def _add_item(state: AppState, action: AddItem) -> AppState:
    items = _add_entity(state.items, action.entity_id, action.fields)
    if items is None:
        return _ignored(state, action, "duplicate_id")
    return replace(state, items=items)


def _update_item(state: AppState, action: UpdateItem) -> AppState:
    items = _update_entity(state.items, action.entity_id, action.fields)
    if items is None:
        return _ignored(state, action, "not_found")
    return replace(state, items=items)


def _delete_item(state: AppState, action: DeleteItem) -> AppState:
    items = _delete_entity(state.items, action.entity_id)
    if items is None:
        return _ignored(state, action, "not_found")
    return replace(state, items=items)


# === Queue ===


def _new_bill(state: AppState, action: NewBill) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "duplicate_id")
    num = state.bill_counter + 1
    bill = QueueBill(id=action.bill_id, num=num, rows=(action.first_row,))
    return replace(
        state,
        queue=state.queue + (bill,),
        active_bill_id=bill.id,
        bill_counter=num,
    )


def _set_active_bill(state: AppState, action: SetActiveBill) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_queued")
    return replace(state, active_bill_id=action.bill_id)


def _update_bill_rows(state: AppState, action: UpdateBillRows) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_queued")
    bill = find_bill(state.queue, action.bill_id)
    updated = replace(bill, rows=tuple(action.rows))
    return replace(state, queue=_replace_bill(state.queue, updated))


def _update_bill_customer(state: AppState, action: UpdateBillCustomer) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_queued")
    bill = find_bill(state.queue, action.bill_id)
    updated = replace(bill, customer=action.customer)
    return replace(state, queue=_replace_bill(state.queue, updated))


def _delete_from_queue(state: AppState, action: DeleteFromQueue) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_queued")
    queue = _without(state.queue, action.bill_id)
    return replace(
        state,
        queue=queue,
        active_bill_id=_reassign_active(state, action.bill_id, queue),
    )


# === Lifecycle and payments ===


def _save_bill(state: AppState, action: SaveBill) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_queued")
    bill = find_bill(state.queue, action.bill_id)
    if action.payment is None and not bill.payments:
        return _ignored(state, action, "payment_required")

    payments = bill.payments
    if action.payment is not None:
        payments = payments + (action.payment,)
    saved = replace(
        bill,
        payments=payments,
        total_amount=action.total_amount,
        saved_at=action.saved_at,
    )
    queue = _without(state.queue, action.bill_id)
    return replace(
        state,
        bills=state.bills + (saved,),
        queue=queue,
        active_bill_id=_reassign_active(state, action.bill_id, queue),
    )


def _edit_bill(state: AppState, action: EditBill) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_archived")
    bill = find_bill(state.bills, action.bill_id)
    # Payments and the saved total stay with the bill while it is edited
    reopened = replace(bill, saved_at=None)
    return replace(
        state,
        bills=_without(state.bills, action.bill_id),
        queue=state.queue + (reopened,),
        active_bill_id=reopened.id,
    )


def _add_payment(state: AppState, action: AddPayment) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_archived")
    bill = find_bill(state.bills, action.bill_id)
    updated = replace(bill, payments=bill.payments + (action.payment,))
    return replace(state, bills=_replace_bill(state.bills, updated))


def _delete_bill(state: AppState, action: DeleteBill) -> AppState:
    if not _guard(state, action, action.bill_id):
        return _ignored(state, action, "not_archived")
    return replace(state, bills=_without(state.bills, action.bill_id))


# === Whole state ===


def _load_data(state: AppState, action: LoadData) -> AppState:
    loaded_max = max((b.num for b in action.bills), default=0)
    queued_ids = {b.id for b in state.queue}
    return replace(
        state,
        customers=tuple(action.customers),
        items=tuple(action.items),
        bills=tuple(b for b in action.bills if b.id not in queued_ids),
        bill_counter=max(state.bill_counter, loaded_max),
    )


def _reset(state: AppState, action: ResetState) -> AppState:
    return AppState(sync_status=state.sync_status, bill_counter=state.bill_counter)


def _set_sync_status(state: AppState, action: SetSyncStatus) -> AppState:
    if state.sync_status == action.status:
        return state
    return replace(state, sync_status=action.status)


_HANDLERS: dict[ActionType, Callable[[AppState, Action], AppState]] = {
    ActionType.ADD_CUSTOMER: _add_customer,
    ActionType.UPDATE_CUSTOMER: _update_customer,
    ActionType.DEL_CUSTOMER: _delete_customer,
    ActionType.ADD_ITEM: _add_item,
    ActionType.UPDATE_ITEM: _update_item,
    ActionType.DEL_ITEM: _delete_item,
    ActionType.NEW_BILL: _new_bill,
    ActionType.SET_ACTIVE_BILL: _set_active_bill,
    ActionType.UPDATE_BILL_ROWS: _update_bill_rows,
    ActionType.UPDATE_BILL_CUSTOMER: _update_bill_customer,
    ActionType.DEL_FROM_QUEUE: _delete_from_queue,
    ActionType.SAVE_BILL: _save_bill,
    ActionType.EDIT_BILL: _edit_bill,
    ActionType.ADD_PAYMENT: _add_payment,
    ActionType.DEL_BILL: _delete_bill,
    ActionType.LOAD_DATA: _load_data,
    ActionType.RESET: _reset,
    ActionType.SET_SYNC_STATUS: _set_sync_status,
}


def apply(state: AppState, action: Action) -> AppState:
    """Return the state that results from applying ``action`` to ``state``."""
    handler = _HANDLERS.get(getattr(action, "action_type", None))
    if handler is None:
        logger.debug("unknown_action", action=type(action).__name__)
        return state
    return handler(state, action)
