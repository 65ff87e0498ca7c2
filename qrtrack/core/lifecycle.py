"""Shared status, action and role constants for items and workers."""

ITEM_STATUS_NEW = "new"
ITEM_STATUS_AVAILABLE = "available"
ITEM_STATUS_BORROWED = "borrowed"
ITEM_STATUS_REPAIR = "repair"

ITEM_STATUS_CHOICES = (
    ITEM_STATUS_NEW,
    ITEM_STATUS_AVAILABLE,
    ITEM_STATUS_BORROWED,
    ITEM_STATUS_REPAIR,
)

ACTION_REGISTER = "register"
ACTION_BORROW = "borrow"
ACTION_RETURN = "return"
ACTION_REPAIR = "repair"
ACTION_CONSUMPTION = "consumption"

HISTORY_ACTION_CHOICES = (
    ACTION_REGISTER,
    ACTION_BORROW,
    ACTION_RETURN,
    ACTION_REPAIR,
    ACTION_CONSUMPTION,
)

ATTENDANCE_IN = "IN"
ATTENDANCE_OUT = "OUT"

ROLE_SUPERADMIN = "SuperAdmin"
ROLE_WAREHOUSE_KEEPER = "Warehouse-keeper"
ROLE_WORKER = "Worker"

ROLE_CHOICES = (ROLE_SUPERADMIN, ROLE_WAREHOUSE_KEEPER, ROLE_WORKER)

DEFAULT_VALIDATOR = "system"


def flip_attendance(last_action: str | None) -> str:
    """Return the action that follows ``last_action``; no history counts as OUT."""

    if (last_action or ATTENDANCE_OUT) == ATTENDANCE_IN:
        return ATTENDANCE_OUT
    return ATTENDANCE_IN


__all__ = [
    "ACTION_BORROW",
    "ACTION_CONSUMPTION",
    "ACTION_REGISTER",
    "ACTION_REPAIR",
    "ACTION_RETURN",
    "ATTENDANCE_IN",
    "ATTENDANCE_OUT",
    "DEFAULT_VALIDATOR",
    "HISTORY_ACTION_CHOICES",
    "ITEM_STATUS_AVAILABLE",
    "ITEM_STATUS_BORROWED",
    "ITEM_STATUS_CHOICES",
    "ITEM_STATUS_NEW",
    "ITEM_STATUS_REPAIR",
    "ROLE_CHOICES",
    "ROLE_SUPERADMIN",
    "ROLE_WAREHOUSE_KEEPER",
    "ROLE_WORKER",
    "flip_attendance",
]
