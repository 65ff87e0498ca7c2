"""Audit log helpers. Entries are only ever appended and read back."""

from __future__ import annotations

from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.clock import utcnow_iso
from ..core.lifecycle import DEFAULT_VALIDATOR
from ..models.history import HistoryEntry


class ItemHistory:
    """Chronological history of one item.

    Iterating runs a fresh query and streams rows in batches, so the same
    object can be walked more than once and always reflects committed state.
    """

    batch_size = 200

    def __init__(self, db: Session, item_id: int) -> None:
        self._db = db
        self.item_id = item_id

    def __iter__(self) -> Iterator[HistoryEntry]:
        stmt = (
            select(HistoryEntry)
            .where(HistoryEntry.item_id == self.item_id)
            .order_by(HistoryEntry.created_at, HistoryEntry.id)
            .execution_options(yield_per=self.batch_size)
        )
        return iter(self._db.execute(stmt).scalars())


def append_history(
    db: Session,
    *,
    item_id: int,
    action: str,
    person: str,
    validated_by: str | None = None,
    quantity: int = 1,
    notes: str | None = None,
) -> HistoryEntry:
    """Stage an audit entry in the caller's unit of work; the caller commits."""

    entry = HistoryEntry(
        item_id=item_id,
        action=action,
        person=person,
        validated_by=(validated_by or "").strip() or DEFAULT_VALIDATOR,
        quantity=quantity,
        notes=notes or "",
        created_at=utcnow_iso(),
    )
    db.add(entry)
    return entry


def list_for_item(db: Session, item_id: int) -> ItemHistory:
    return ItemHistory(db, item_id)
