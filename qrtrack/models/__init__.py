# Importing every model registers its table on ``Base.metadata``.
from .history import HistoryEntry
from .item import Item
from .sequence import SequenceCounter
from .worker import AttendanceEntry, Worker

__all__ = ["AttendanceEntry", "HistoryEntry", "Item", "SequenceCounter", "Worker"]
