"""SQLAlchemy model for tools and consumable supplies tracked by QR code."""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Text

from ..core.lifecycle import ITEM_STATUS_NEW
from ..db.session import Base


class Item(Base):
    """A physical asset.

    Unique items move through ``status`` and carry a holder while borrowed.
    Consumables keep their status untouched and only ever lose ``stock``.
    """

    __tablename__ = "items"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    qr_code = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False, index=True)
    category = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=ITEM_STATUS_NEW)
    current_holder = Column(Text, nullable=True)
    loan_date = Column(Text, nullable=True)
    registered_by = Column(Text, nullable=False)
    is_consumable = Column(Boolean, nullable=False, default=False)
    stock = Column(Integer, nullable=False, default=1)
    created_at = Column(Text, nullable=False)


__all__ = ["Item"]
