from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from records_app import db
from records_app.attendance import services
from records_app.eligibility.services import evaluate_exam_admission
from records_app.errors import AttendanceSummaryNotFound, InvalidStateTransition, SemesterNotFound
from records_app.models import Attendance, AttendanceStatusType, AttendanceSummaryRecord


def mark(student_id, course_id, day, code):
    status_id = db.session.execute(select(AttendanceStatusType.status_id).filter_by(code=code)).scalar_one()
    db.session.add(Attendance(student_id_fk=student_id, course_id_fk=course_id, status_id_fk=status_id, date_marked=day))


@pytest.fixture()
def marked(school):
    for day, code in [(1, "P"), (2, "P"), (3, "A"), (4, "L")]:
        mark(school.asha, school.maths, date(2025, 8, day), code)
    # Outside the first semester
    mark(school.asha, school.maths, date(2026, 1, 10), "P")
    for day in range(1, 11):
        mark(school.ravi, school.maths, date(2025, 9, day), "P" if day <= 6 else "A")
    db.session.commit()
    return school


def test_recompute_creates_and_refreshes_summary(marked):
    s = services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    assert (s.total_classes, s.attended) == (4, 3)
    assert s.percentage == 75
    assert s.is_eligible
    assert s.required_percentage == 75

    again = services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    assert (again.total_classes, again.attended) == (4, 3)

    mark(marked.asha, marked.maths, date(2025, 8, 5), "A")
    db.session.commit()
    s = services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    assert (s.total_classes, s.attended) == (5, 3)
    assert not s.is_eligible
    assert s.required_sessions == 3


def test_recompute_unknown_semester(school):
    with pytest.raises(SemesterNotFound):
        services.recompute_attendance(school.asha, school.maths, 999)


def test_condonation_lifecycle(marked):
    services.recompute_attendance(marked.ravi, marked.maths, marked.sem1)

    s = services.apply_for_condonation(marked.ravi, marked.maths, marked.sem1, "Hospitalised", 10)
    assert s.condonation_status == "pending"
    with pytest.raises(InvalidStateTransition):
        services.apply_for_condonation(marked.ravi, marked.maths, marked.sem1, "Again", 10)

    s = services.process_condonation(marked.ravi, marked.maths, marked.sem1, "approved")
    assert s.effective_percentage == 70
    assert not s.is_eligible

    shortages = services.shortage_list(marked.sem1)
    assert [x.student_id for x in shortages] == [marked.ravi]
    assert not evaluate_exam_admission(marked.ravi, marked.maths, marked.sem1).eligible


def test_condonation_needs_a_summary(school):
    with pytest.raises(AttendanceSummaryNotFound):
        services.apply_for_condonation(school.asha, school.maths, school.sem1, "reason", 5)


def test_semester_summaries_and_admission(marked):
    services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    services.recompute_attendance(marked.asha, marked.physics, marked.sem1)
    summaries = services.semester_summaries(marked.asha, marked.sem1)
    assert [s.course_id for s in summaries] == sorted([marked.maths, marked.physics])

    assert evaluate_exam_admission(marked.asha, marked.maths, marked.sem1).eligible
    # No classes held yet
    assert not evaluate_exam_admission(marked.asha, marked.physics, marked.sem1).eligible
    assert services.shortage_list(marked.sem1) == []


def test_shortage_list_with_stricter_threshold(marked):
    services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    assert [s.student_id for s in services.shortage_list(marked.sem1, required_percentage=80)] == [marked.asha]


def test_status_types_are_seeded_once(school):
    assert services.seed_attendance_status_types() == 0


def test_course_summaries(marked):
    services.recompute_attendance(marked.ravi, marked.maths, marked.sem1)
    services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    services.recompute_attendance(marked.asha, marked.physics, marked.sem1)

    summaries = services.course_summaries(marked.maths, marked.sem1)
    assert [s.student_id for s in summaries] == [marked.asha, marked.ravi]
    assert [s.percentage for s in summaries] == [75, 60]
    assert services.course_summaries(marked.maths, marked.sem2) == []


def _lookup_then(monkeypatch, action):
    """The first summary lookup runs ``action`` in another session right after reading."""
    original = services.get_summary_row
    pending = [action]

    def get_summary_row(student_id, course_id, semester_id):
        row = original(student_id, course_id, semester_id)
        if pending:
            pending.pop()(student_id, course_id, semester_id)
        return row

    monkeypatch.setattr(services, "get_summary_row", get_summary_row)


def test_concurrent_first_recompute_reuses_the_other_summary(marked, monkeypatch):
    def create_summary(student_id, course_id, semester_id):
        with Session(db.engine) as other:
            other.add(AttendanceSummaryRecord(
                student_id_fk=student_id, course_id_fk=course_id, semester_id_fk=semester_id,
                total_classes=0, attended=0, condonation_status="not_applicable", required_percentage=75,
            ))
            other.commit()

    _lookup_then(monkeypatch, create_summary)
    s = services.recompute_attendance(marked.asha, marked.maths, marked.sem1)
    assert (s.total_classes, s.attended) == (4, 3)

    rows = db.session.execute(select(AttendanceSummaryRecord)).scalars().all()
    assert len(rows) == 1
    assert (rows[0].total_classes, rows[0].attended) == (4, 3)


def test_concurrent_condonation_survives_recompute(marked, monkeypatch):
    services.recompute_attendance(marked.ravi, marked.maths, marked.sem1)
    services.apply_for_condonation(marked.ravi, marked.maths, marked.sem1, "Hospitalised", 15)

    def approve(student_id, course_id, semester_id):
        with Session(db.engine) as other:
            row = other.execute(select(AttendanceSummaryRecord).filter_by(
                student_id_fk=student_id, course_id_fk=course_id, semester_id_fk=semester_id,
            )).scalar_one()
            row.condonation_status = "approved"
            other.commit()

    _lookup_then(monkeypatch, approve)
    s = services.recompute_attendance(marked.ravi, marked.maths, marked.sem1)
    assert s.condonation_status == "approved"
    assert s.effective_percentage == 75
    assert s.is_eligible
