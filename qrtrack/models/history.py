from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..core.lifecycle import DEFAULT_VALIDATOR
from ..db.session import Base


class HistoryEntry(Base):
    """One immutable audit record for a change made to an item."""

    __tablename__ = "history"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    action = Column(Text, nullable=False)
    person = Column(Text, nullable=False)
    validated_by = Column(Text, nullable=False, default=DEFAULT_VALIDATOR)
    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(Text, nullable=False, index=True)

    item = relationship("Item", lazy="joined")

    @property
    def item_code(self) -> str | None:
        return self.item.qr_code if self.item else None

    @property
    def item_name(self) -> str | None:
        return self.item.name if self.item else None


__all__ = ["HistoryEntry"]
