"""QR code helpers explained for newcomers.

Scanners hand us whatever is printed on the label, sometimes with stray
whitespace or a trailing newline from the keyboard wedge. These functions show
*what* we clean up, *when* it happens (before every lookup and registration),
*why* it matters (a code with a trailing space would never match), and *how*
the allocator's ``G001`` style codes are built and parsed.
"""

from __future__ import annotations

import re

__all__ = ["ITEM_CODE_PREFIX", "format_item_code", "item_code_number", "normalize_code"]

ITEM_CODE_PREFIX = "G"
ITEM_CODE_WIDTH = 3

_ITEM_CODE_RE = re.compile(rf"^{ITEM_CODE_PREFIX}(\d+)$")


def normalize_code(raw: str | None) -> str | None:
    """Trim surrounding whitespace; QR codes are otherwise opaque.

    Case is preserved because labels printed by other systems may rely on it.
    Returns ``None`` for empty input so callers can reject it uniformly.
    """

    if raw is None:
        return None
    cleaned = raw.strip()
    return cleaned or None


def format_item_code(number: int) -> str:
    """Render ``number`` as an allocator code, e.g. ``42`` -> ``G042``."""

    if number < 1:
        raise ValueError("item code numbers start at 1")
    return f"{ITEM_CODE_PREFIX}{number:0{ITEM_CODE_WIDTH}d}"


def item_code_number(code: str | None) -> int | None:
    """Return the numeric suffix of an allocator-style code, else ``None``."""

    if not code:
        return None
    match = _ITEM_CODE_RE.match(code)
    if not match:
        return None
    return int(match.group(1))
