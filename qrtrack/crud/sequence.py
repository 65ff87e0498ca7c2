"""Sequential item code allocator.

Codes come from a single counter row that is advanced in place with
``UPDATE ... SET value = value + 1``. The update locks the row (or, on
SQLite, the database) until the caller's transaction ends, so the value read
back right after it belongs to this caller alone. Concurrent registrations
queue on that lock instead of racing, and none of them ever has to retry.
The increment is part of the caller's transaction, so a registration that
rolls back also gives its number back.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..core.codes import ITEM_CODE_PREFIX, format_item_code, item_code_number
from ..models.item import Item
from ..models.sequence import SequenceCounter

logger = logging.getLogger(__name__)

ITEM_SEQUENCE = "item"


def highest_item_code_number(db: Session) -> int:
    """Largest numeric suffix among existing ``G<digits>`` item codes (0 if none)."""

    codes = db.execute(select(Item.qr_code).where(Item.qr_code.like(f"{ITEM_CODE_PREFIX}%"))).scalars()
    numbers = [number for number in (item_code_number(code) for code in codes) if number is not None]
    return max(numbers, default=0)


def ensure_sequence(db: Session, name: str = ITEM_SEQUENCE) -> SequenceCounter:
    """Create the counter row, seeded from existing codes, if it is missing.

    Run once at startup so request handlers never race to insert it.
    """

    counter = db.get(SequenceCounter, name)
    if counter is None:
        counter = SequenceCounter(name=name, value=highest_item_code_number(db))
        db.add(counter)
        db.flush()
        logger.info("sequence.seeded", extra={"extra_data": {"sequence": name, "value": counter.value}})
    return counter


def _read_counter(db: Session, name: str) -> int | None:
    # Column select, not the ORM entity: always a fresh value, never the identity map.
    stmt = select(SequenceCounter.value).where(SequenceCounter.name == name)
    return db.execute(stmt).scalar_one_or_none()


def _increment(db: Session, name: str) -> bool:
    result = db.execute(
        update(SequenceCounter)
        .where(SequenceCounter.name == name)
        .values(value=SequenceCounter.value + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def allocate(db: Session, name: str = ITEM_SEQUENCE) -> str:
    """Claim the next item code inside the current transaction."""

    if not _increment(db, name):
        ensure_sequence(db, name)
        _increment(db, name)
    # Our own uncommitted increment; nobody else can move the row until we finish.
    value = _read_counter(db, name)
    return format_item_code(value)


def reserve(db: Session, code: str, name: str = ITEM_SEQUENCE) -> None:
    """Advance the counter past a caller-supplied ``G<digits>`` code.

    Other codes are ignored. The conditional ``value < n`` keeps the counter
    from ever moving backwards.
    """

    number = item_code_number(code)
    if number is None:
        return
    if _read_counter(db, name) is None:
        ensure_sequence(db, name)
    db.execute(
        update(SequenceCounter)
        .where(SequenceCounter.name == name, SequenceCounter.value < number)
        .values(value=number)
        .execution_options(synchronize_session=False)
    )
