"""Tests for worker enrollment and the attendance toggle."""

import sys
from pathlib import Path

import bcrypt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qrtrack import models  # noqa: F401
from qrtrack.core.errors import ConflictError, NotFoundError, ValidationError
from qrtrack.core.lifecycle import flip_attendance
from qrtrack.crud.workers import get_worker_by_code, list_attendance
from qrtrack.db.session import Base, build_engine, build_session_factory
from qrtrack.services.attendance import enroll_worker, toggle_attendance


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


def _enroll(db, code="W1", name="Ana"):
    return enroll_worker(db, qr_code=code, name=name, pin="4321", position="Welder")


def test_flip_attendance_treats_missing_as_out():
    assert flip_attendance(None) == "IN"
    assert flip_attendance("OUT") == "IN"
    assert flip_attendance("IN") == "OUT"


def test_enroll_hashes_pin_and_starts_out(db_session):
    worker = _enroll(db_session)

    assert worker.role == "Worker"
    assert worker.last_action == "OUT"
    assert worker.pin != "4321"
    assert bcrypt.checkpw(b"4321", worker.pin.encode("utf-8"))
    assert not bcrypt.checkpw(b"0000", worker.pin.encode("utf-8"))
    assert list_attendance(db_session, worker.id) == []


def test_enroll_rejects_duplicates_and_bad_roles(db_session):
    _enroll(db_session)
    with pytest.raises(ConflictError):
        _enroll(db_session, name="Someone else")
    with pytest.raises(ValidationError):
        enroll_worker(db_session, qr_code="W2", name="Luis", pin="1111", role="Boss")
    with pytest.raises(ValidationError):
        enroll_worker(db_session, qr_code="W2", name="Luis", pin=" ")


def test_toggle_scenario_alternates(db_session):
    worker = _enroll(db_session)

    actions = [toggle_attendance(db_session, "W1")[1] for _ in range(3)]

    assert actions == ["IN", "OUT", "IN"]
    log = [entry.action for entry in list_attendance(db_session, worker.id)]
    assert log == ["IN", "OUT", "IN"]
    assert get_worker_by_code(db_session, "W1").last_action == "IN"


def test_toggle_keeps_notes(db_session):
    worker = _enroll(db_session)
    toggle_attendance(db_session, " W1 ", notes="Night shift")
    assert list_attendance(db_session, worker.id)[0].notes == "Night shift"


def test_toggle_unknown_worker(db_session):
    with pytest.raises(NotFoundError):
        toggle_attendance(db_session, "W404")
    with pytest.raises(ValidationError):
        toggle_attendance(db_session, "  ")


def test_simultaneous_scans_never_duplicate_an_action(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'attendance.db'}")
    Base.metadata.create_all(bind=engine)
    factory = build_session_factory(engine)
    setup = factory()
    worker = _enroll(setup)
    worker_id = worker.id
    setup.close()

    first, second = factory(), factory()
    try:
        assert get_worker_by_code(first, "W1").last_action == "OUT"
        assert get_worker_by_code(second, "W1").last_action == "OUT"

        _, action = toggle_attendance(first, "W1")
        assert action == "IN"
        with pytest.raises(ConflictError):
            toggle_attendance(second, "W1")

        # A fresh scan after the conflict sees the new state and clocks out.
        _, action = toggle_attendance(second, "W1")
        assert action == "OUT"
    finally:
        first.close()
        second.close()

    check = factory()
    assert [e.action for e in list_attendance(check, worker_id)] == ["IN", "OUT"]
    check.close()
    engine.dispose()
