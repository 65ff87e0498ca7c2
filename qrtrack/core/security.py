"""PIN hashing for enrolled workers.

Only the hash is persisted. Checking a PIN at login belongs to the
surrounding auth layer, which is out of scope for this service.
"""

from __future__ import annotations

import bcrypt


def hash_pin(pin: str) -> str:
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
