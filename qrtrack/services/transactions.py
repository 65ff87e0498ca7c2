"""Transaction engine for item lifecycle changes.

WHAT: Registers items and moves them through borrow, return, consumption and
repair, writing exactly one history entry per change.
WHEN: Called by the API routers after the request body has been validated.
WHY: Every state change must land together with its audit record, and two
people scanning the same tool at once must never both walk away with it.
HOW: Unique items follow the ``TRANSITIONS`` table. Each write is a
conditional ``UPDATE`` keyed on the status (or stock) we just read. Zero
affected rows means somebody else won, which is reported as a conflict
rather than retried. The update and the history insert share one ``atomic``
block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from ..core.clock import utcnow_iso
from ..core.codes import normalize_code
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.lifecycle import (
    ACTION_BORROW,
    ACTION_CONSUMPTION,
    ACTION_REGISTER,
    ACTION_REPAIR,
    ACTION_RETURN,
    ITEM_STATUS_AVAILABLE,
    ITEM_STATUS_BORROWED,
    ITEM_STATUS_NEW,
    ITEM_STATUS_REPAIR,
)
from ..crud.history import append_history
from ..crud.items import add_item, decrement_stock, find_item, get_item_by_code, guarded_update
from ..crud.sequence import allocate, reserve
from ..db.session import atomic
from ..models.item import Item

logger = logging.getLogger(__name__)

OP_BORROW = "borrow"
OP_RETURN = "return"
OP_REPAIR = "repair"
OP_COMPLETE_REPAIR = "complete_repair"


@dataclass(frozen=True)
class Transition:
    action: str
    allowed_from: frozenset[str]
    target: str
    conflict_message: str
    assigns_holder: bool = False
    default_note: str = ""
    event: str = ""


# Status moves for unique (non-consumable) items.
TRANSITIONS: dict[str, Transition] = {
    OP_BORROW: Transition(
        action=ACTION_BORROW,
        allowed_from=frozenset({ITEM_STATUS_NEW, ITEM_STATUS_AVAILABLE}),
        target=ITEM_STATUS_BORROWED,
        conflict_message="Item is not available to borrow",
        assigns_holder=True,
        event="item.borrowed",
    ),
    OP_RETURN: Transition(
        action=ACTION_RETURN,
        allowed_from=frozenset({ITEM_STATUS_BORROWED}),
        target=ITEM_STATUS_AVAILABLE,
        conflict_message="Item is not borrowed",
        event="item.returned",
    ),
    OP_REPAIR: Transition(
        action=ACTION_REPAIR,
        allowed_from=frozenset({ITEM_STATUS_NEW, ITEM_STATUS_AVAILABLE}),
        target=ITEM_STATUS_REPAIR,
        conflict_message="Only items on the shelf can be sent to repair",
        event="item.repair",
    ),
    OP_COMPLETE_REPAIR: Transition(
        action=ACTION_RETURN,
        allowed_from=frozenset({ITEM_STATUS_REPAIR}),
        target=ITEM_STATUS_AVAILABLE,
        conflict_message="Item is not in repair",
        default_note="Repair completed",
        event="item.repair_completed",
    ),
}


def _require(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required", details={"field": field})
    return cleaned


def _resolve(db: Session, code: str | None, allow_name_fallback: bool) -> Item:
    _require(code, "qrCode")
    item = find_item(db, code, allow_name_fallback=allow_name_fallback)
    if item is None:
        raise NotFoundError("Item not found", details={"qrCode": normalize_code(code)})
    return item


def _log_conflict(item: Item, operation: str, reason: str) -> None:
    logger.warning(
        "item.conflict",
        extra={"extra_data": {"qr_code": item.qr_code, "operation": operation, "reason": reason}},
    )


def register_item(
    db: Session,
    *,
    name: str,
    category: str,
    description: str,
    registered_by: str,
    is_consumable: bool = False,
    stock: int | None = None,
    qr_code: str | None = None,
    validated_by: str | None = None,
    notes: str | None = None,
) -> Item:
    """Create an item with status ``available`` plus its ``register`` entry.

    Without ``qr_code`` the next ``G###`` code is allocated. A supplied code
    must not already exist. Unique items always hold a stock of one.
    """

    name = _require(name, "name")
    category = _require(category, "category")
    description = _require(description, "description")
    registered_by = _require(registered_by, "registeredBy")
    if stock is not None and stock < 0:
        raise ValidationError("stock cannot be negative", details={"field": "stock"})
    supplied = None
    if qr_code is not None:
        supplied = normalize_code(qr_code)
        if not supplied:
            raise ValidationError("qrCode cannot be blank", details={"field": "qrCode"})
    initial_stock = (stock or 0) if is_consumable else 1

    with atomic(db, integrity_message="QR code is already registered"):
        if supplied:
            if get_item_by_code(db, supplied) is not None:
                raise ConflictError("QR code is already registered", details={"qrCode": supplied})
            reserve(db, supplied)
            code = supplied
        else:
            code = allocate(db)
        item = add_item(
            db,
            qr_code=code,
            name=name,
            category=category,
            description=description,
            status=ITEM_STATUS_AVAILABLE,
            registered_by=registered_by,
            is_consumable=bool(is_consumable),
            stock=initial_stock,
            created_at=utcnow_iso(),
        )
        append_history(
            db,
            item_id=item.id,
            action=ACTION_REGISTER,
            person=registered_by,
            validated_by=validated_by,
            quantity=max(initial_stock, 1),
            notes=notes or f"Initial registration by {registered_by}",
        )
    db.refresh(item)
    logger.info(
        "item.registered",
        extra={"extra_data": {"qr_code": item.qr_code, "consumable": item.is_consumable, "stock": item.stock}},
    )
    return item


def _apply_transition(
    db: Session,
    item: Item,
    operation: str,
    *,
    actor: str,
    validator: str | None,
    notes: str | None,
) -> None:
    transition = TRANSITIONS[operation]
    if item.is_consumable:
        _log_conflict(item, operation, "consumable")
        raise ConflictError(
            "Consumable items cannot be returned or repaired",
            details={"qrCode": item.qr_code},
        )
    observed = item.status
    if observed not in transition.allowed_from:
        _log_conflict(item, operation, observed)
        raise ConflictError(transition.conflict_message, details={"qrCode": item.qr_code, "status": observed})

    values: dict[str, object] = {"status": transition.target, "current_holder": None, "loan_date": None}
    if transition.assigns_holder:
        values.update(current_holder=actor, loan_date=utcnow_iso())
    if not guarded_update(db, item.id, {"status": observed}, values):
        _log_conflict(item, operation, "stale")
        raise ConflictError(
            "Item changed while processing, scan it again",
            details={"qrCode": item.qr_code, "status": observed},
        )
    append_history(
        db,
        item_id=item.id,
        action=transition.action,
        person=actor,
        validated_by=validator,
        quantity=1,
        notes=notes or transition.default_note,
    )


def _consume(db: Session, item: Item, *, actor: str, validator: str | None, quantity: int, notes: str | None) -> None:
    if item.stock < quantity:
        _log_conflict(item, "consume", "insufficient_stock")
        raise ConflictError(
            "Insufficient stock",
            details={"qrCode": item.qr_code, "stock": item.stock, "requested": quantity},
        )
    if not decrement_stock(db, item.id, quantity):
        _log_conflict(item, "consume", "stale")
        raise ConflictError(
            "Insufficient stock",
            details={"qrCode": item.qr_code, "requested": quantity},
        )
    append_history(
        db,
        item_id=item.id,
        action=ACTION_CONSUMPTION,
        person=actor,
        validated_by=validator,
        quantity=quantity,
        notes=notes,
    )


def borrow_or_consume(
    db: Session,
    code: str,
    actor: str,
    validator: str | None = None,
    quantity: int = 1,
    *,
    notes: str | None = None,
    allow_name_fallback: bool = False,
) -> Item:
    """Lend out a unique item, or take ``quantity`` units of a consumable."""

    actor = _require(actor, "person")
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", details={"field": "quantity"})
    item = _resolve(db, code, allow_name_fallback)
    with atomic(db):
        if item.is_consumable:
            _consume(db, item, actor=actor, validator=validator, quantity=quantity, notes=notes)
        else:
            _apply_transition(db, item, OP_BORROW, actor=actor, validator=validator, notes=notes)
    db.refresh(item)
    event = "item.consumed" if item.is_consumable else "item.borrowed"
    logger.info(
        event,
        extra={"extra_data": {"qr_code": item.qr_code, "person": actor, "quantity": quantity, "stock": item.stock}},
    )
    return item


def _run_transition(
    db: Session,
    operation: str,
    code: str,
    actor: str,
    validator: str | None,
    notes: str | None,
    allow_name_fallback: bool,
) -> Item:
    actor = _require(actor, "person")
    item = _resolve(db, code, allow_name_fallback)
    with atomic(db):
        _apply_transition(db, item, operation, actor=actor, validator=validator, notes=notes)
    db.refresh(item)
    logger.info(
        TRANSITIONS[operation].event,
        extra={"extra_data": {"qr_code": item.qr_code, "person": actor, "status": item.status}},
    )
    return item


def return_item(
    db: Session,
    code: str,
    actor: str,
    validator: str | None = None,
    *,
    notes: str | None = None,
    allow_name_fallback: bool = False,
) -> Item:
    """Bring a borrowed unique item back to ``available``. Consumables never come back."""

    return _run_transition(db, OP_RETURN, code, actor, validator, notes, allow_name_fallback)


def send_to_repair(
    db: Session,
    code: str,
    actor: str,
    validator: str | None = None,
    *,
    notes: str | None = None,
    allow_name_fallback: bool = False,
) -> Item:
    return _run_transition(db, OP_REPAIR, code, actor, validator, notes, allow_name_fallback)


def complete_repair(
    db: Session,
    code: str,
    actor: str,
    validator: str | None = None,
    *,
    notes: str | None = None,
    allow_name_fallback: bool = False,
) -> Item:
    return _run_transition(db, OP_COMPLETE_REPAIR, code, actor, validator, notes, allow_name_fallback)


_OPERATIONS: dict[str, Callable[..., Item]] = {
    OP_BORROW: borrow_or_consume,
    OP_RETURN: return_item,
    OP_REPAIR: send_to_repair,
    OP_COMPLETE_REPAIR: complete_repair,
}


def transact(
    db: Session,
    operation: str,
    code: str,
    actor: str,
    validator: str | None = None,
    quantity: int = 1,
    *,
    notes: str | None = None,
    allow_name_fallback: bool = False,
) -> Item:
    """Single entry point used by the API: dispatch ``operation`` to its handler."""

    handler = _OPERATIONS.get(operation)
    if handler is None:
        raise ValidationError(f"Unknown operation: {operation}", details={"field": "operation"})
    kwargs: dict[str, object] = {"notes": notes, "allow_name_fallback": allow_name_fallback}
    if operation == OP_BORROW:
        kwargs["quantity"] = quantity
    return handler(db, code, actor, validator, **kwargs)
