import json

import pytest
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash

from records_app import db
from records_app.models import ImportLog, Student, User
from records_app.students.services import import_students

ROWS = [
    {"USN": "1RV25CS010", "Student_Name": "Meera", "Surname": "Iyer", "Mobile": "98450 12345", "Current_Semester": "1"},
    {"USN": "1RV25CS011", "Student_Name": ""},
    {"USN": "1RV25CS010", "Student_Name": "Meera again"},
    {"USN": "1RV25CS001", "Student_Name": "Asha"},
    {"USN": "1RV25CS012", "Student_Name": "Kiran", "Current_Semester": "first"},
    {"enrollment_no": "1RV25CS013", "name": "Nikhil", "academic_year": "2025-26"},
]


def test_import_creates_accounts_and_reports_failures(school):
    report = import_students(ROWS)

    assert report["created"] == ["1RV25CS010", "1RV25CS013"]
    assert [f["row"] for f in report["failed"]] == [2, 3, 4, 5]
    assert report["skipped"] == 4

    meera = db.session.get(Student, "1RV25CS010")
    assert meera.full_name == "Meera Iyer"
    assert meera.user.role == "student"
    assert meera.user.must_change_password
    assert check_password_hash(meera.user.password_hash, "9845012345")

    nikhil = db.session.get(Student, "1RV25CS013")
    assert nikhil.current_semester == 1
    assert nikhil.academic_year == "2025-26"
    assert check_password_hash(nikhil.user.password_hash, "1RV25CS013")

    log = db.session.query(ImportLog).one()
    assert (log.kind, log.created_count, log.errors_count) == ("students", 2, 4)
    assert len(json.loads(log.extra_json)["failed"]) == 4


def test_dry_run_writes_only_the_log(school):
    report = import_students(ROWS[:1], dry_run=True)
    assert report["created"] == ["1RV25CS010"]
    assert db.session.get(Student, "1RV25CS010") is None
    assert db.session.query(User).filter_by(username="1RV25CS010").count() == 0
    log = db.session.query(ImportLog).one()
    assert log.dry_run and log.created_count == 0


def _fail_on_call(monkeypatch, name, call_no):
    original = getattr(db.session, name)
    calls = []

    def failing():
        calls.append(name)
        if len(calls) == call_no:
            raise SQLAlchemyError(f"{name} failed")
        return original()

    monkeypatch.setattr(db.session, name, failing)


def _assert_nothing_written():
    assert db.session.query(User).count() == 0
    assert db.session.get(Student, "1RV25CS010") is None
    assert db.session.get(Student, "1RV25CS013") is None
    assert db.session.query(ImportLog).count() == 0


def test_error_midway_rolls_back_the_batch(school, monkeypatch):
    # The first student's account is flushed before the second one fails
    _fail_on_call(monkeypatch, "flush", 2)
    with pytest.raises(SQLAlchemyError):
        import_students([ROWS[0], ROWS[5]])
    monkeypatch.undo()
    _assert_nothing_written()


def test_error_at_commit_rolls_back_the_batch(school, monkeypatch):
    _fail_on_call(monkeypatch, "commit", 1)
    with pytest.raises(SQLAlchemyError):
        import_students([ROWS[0], ROWS[5]])
    monkeypatch.undo()
    _assert_nothing_written()
