"""Tests for scan resolution and the audit history view."""

import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qrtrack import models  # noqa: F401
from qrtrack.core.errors import ValidationError
from qrtrack.crud.history import list_for_item
from qrtrack.db.session import Base
from qrtrack.services.attendance import enroll_worker
from qrtrack.services.scan import resolve
from qrtrack.services.transactions import borrow_or_consume, register_item, send_to_repair


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _register(db, code, *, consumable=False, name="Torque wrench"):
    return register_item(
        db,
        name=name,
        category="Hand tools",
        description="Calibrated wrench",
        registered_by="Luis",
        is_consumable=consumable,
        stock=10 if consumable else None,
        qr_code=code,
    )


def test_scan_resolves_item_with_next_action(db_session):
    _register(db_session, "T001")

    result = resolve(db_session, "T001")
    assert result.kind == "item"
    assert result.data.qr_code == "T001"
    assert result.next_action == "borrow"

    borrow_or_consume(db_session, "T001", "Ana", "Luis")
    assert resolve(db_session, "T001").next_action == "return"


def test_scan_next_action_for_consumables_and_repairs(db_session):
    _register(db_session, "C001", consumable=True, name="Rags")
    _register(db_session, "T002")
    send_to_repair(db_session, "T002", "Luis")

    assert resolve(db_session, "C001").next_action == "consume"
    assert resolve(db_session, "T002").next_action == "complete_repair"


def test_scan_resolves_worker(db_session):
    enroll_worker(db_session, qr_code="W1", name="Ana", pin="1234")

    result = resolve(db_session, " W1 ")
    assert result.kind == "worker"
    assert result.code == "W1"
    assert result.data.name == "Ana"
    assert result.next_action == "attendance"


def test_scan_unknown_code_suggests_registration(db_session):
    result = resolve(db_session, "X999")
    assert result.kind == "none"
    assert result.data is None
    assert result.next_action == "register"


def test_item_wins_when_codes_collide(db_session):
    enroll_worker(db_session, qr_code="DUP1", name="Ana", pin="1234")
    _register(db_session, "DUP1")

    assert resolve(db_session, "DUP1").kind == "item"


def test_scan_requires_a_code(db_session):
    with pytest.raises(ValidationError):
        resolve(db_session, "   ")


def test_history_is_chronological_and_restartable(db_session):
    item = _register(db_session, "C001", consumable=True, name="Rags")
    for person in ("Ana", "Pedro", "Marta"):
        borrow_or_consume(db_session, "C001", person, "Luis")

    history = list_for_item(db_session, item.id)
    first_pass = [(e.action, e.person) for e in history]
    second_pass = [(e.action, e.person) for e in history]

    assert first_pass == [
        ("register", "Luis"),
        ("consumption", "Ana"),
        ("consumption", "Pedro"),
        ("consumption", "Marta"),
    ]
    assert second_pass == first_pass

    borrow_or_consume(db_session, "C001", "Rosa", "Luis")
    assert [e.person for e in history][-1] == "Rosa"
    assert all(e.item_code == "C001" for e in history)
