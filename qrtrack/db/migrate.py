"""Tiny additive schema upgrades for SQLite databases.

``Base.metadata.create_all`` builds fresh databases but never alters tables
that already exist. Databases created before consumables, validators and
attendance tracking lack some columns, and this module adds them in place.
Nothing is ever dropped.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# table -> {column: SQL type/default clause}
ADDITIVE_COLUMNS: dict[str, dict[str, str]] = {
    "items": {
        "current_holder": "TEXT",
        "loan_date": "TEXT",
        "is_consumable": "BOOLEAN DEFAULT 0 NOT NULL",
        "stock": "INTEGER DEFAULT 1 NOT NULL",
    },
    "history": {
        "validated_by": "TEXT DEFAULT 'system' NOT NULL",
        "quantity": "INTEGER DEFAULT 1 NOT NULL",
    },
    "workers": {
        "last_action": "TEXT DEFAULT 'OUT' NOT NULL",
    },
}


def _column_names(engine: Engine, table: str) -> set[str]:
    """Return the column names SQLite reports for ``table`` (empty if absent)."""

    with engine.connect() as conn:
        rows = conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()
    return {row["name"] for row in rows}


def _add_column(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def _backfill_last_action(engine: Engine) -> None:
    """Seed ``workers.last_action`` from each worker's newest attendance entry."""

    if not _column_names(engine, "attendance"):
        return
    with engine.begin() as conn:
        conn.execute(
            text(
                "UPDATE workers SET last_action = COALESCE("
                "(SELECT a.action FROM attendance a WHERE a.worker_id = workers.id "
                "ORDER BY a.timestamp DESC, a.id DESC LIMIT 1), 'OUT')"
            )
        )


def run_migrations(engine: Engine) -> list[str]:
    """Bring an existing SQLite schema up to date; returns the columns added."""

    if engine.dialect.name != "sqlite":
        return []

    added: list[str] = []
    for table, needed in ADDITIVE_COLUMNS.items():
        existing = _column_names(engine, table)
        if not existing:
            # Table absent: create_all builds it with the full schema.
            continue
        for name, dtype in needed.items():
            if name not in existing:
                _add_column(engine, table, f"{name} {dtype}")
                added.append(f"{table}.{name}")

    if "workers.last_action" in added:
        # The new column defaults to OUT; carry over what the attendance log recorded.
        _backfill_last_action(engine)
    if _column_names(engine, "items"):
        _create_index_if_not_exists(engine, "items", "ix_items_qr_code_unique", ["qr_code"], unique=True)
    if added:
        logger.info("db.migrated", extra={"extra_data": {"added_columns": added}})
    return added
