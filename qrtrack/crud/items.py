"""Item registry: lookups, listing and the guarded writes the engine relies on."""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..core.codes import normalize_code
from ..models.item import Item


def get_item_by_code(db: Session, code: str | None) -> Item | None:
    """Exact QR code match after trimming whitespace."""

    cleaned = normalize_code(code)
    if not cleaned:
        return None
    stmt = select(Item).where(Item.qr_code == cleaned)
    return db.execute(stmt).scalars().first()


def get_item_by_name(db: Session, name: str | None) -> Item | None:
    """Case-insensitive name match; only an unambiguous single hit counts."""

    cleaned = (name or "").strip()
    if not cleaned:
        return None
    stmt = select(Item).where(func.lower(Item.name) == cleaned.lower()).limit(2)
    rows = db.execute(stmt).scalars().all()
    return rows[0] if len(rows) == 1 else None


def find_item(db: Session, code: str | None, *, allow_name_fallback: bool = False) -> Item | None:
    """Resolve a scanned value to an item.

    The QR code is always tried first. The name match is a fallback for
    hand-typed entries and only runs when explicitly enabled.
    """

    item = get_item_by_code(db, code)
    if item is None and allow_name_fallback:
        item = get_item_by_name(db, code)
    return item


def list_items(db: Session) -> list[Item]:
    stmt = select(Item).order_by(Item.name, Item.id)
    return db.execute(stmt).scalars().all()


def add_item(db: Session, **fields: object) -> Item:
    """Stage a new item in the current unit of work (no commit)."""

    item = Item(**fields)
    db.add(item)
    db.flush()
    return item


def guarded_update(db: Session, item_id: int, expected: dict[str, object], values: dict[str, object]) -> bool:
    """Apply ``values`` only if every column in ``expected`` still holds its value.

    Returns ``False`` when another writer got there first.
    """

    conditions = [getattr(Item, column) == value for column, value in expected.items()]
    result = db.execute(
        update(Item)
        .where(Item.id == item_id, *conditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def decrement_stock(db: Session, item_id: int, quantity: int) -> bool:
    """Take ``quantity`` units off a consumable if at least that many remain."""

    result = db.execute(
        update(Item)
        .where(Item.id == item_id, Item.is_consumable.is_(True), Item.stock >= quantity)
        .values(stock=Item.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
