from __future__ import annotations

from sqlalchemy import Column, Integer, Text

from ..db.session import Base


class SequenceCounter(Base):
    """Named monotonically increasing counter; ``value`` is the last number issued."""

    __tablename__ = "sequence_counters"

    name = Column(Text, primary_key=True)
    value = Column(Integer, nullable=False, default=0)


__all__ = ["SequenceCounter"]
