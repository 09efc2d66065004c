import logging
from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from .. import db
from ..errors import AttendanceSummaryNotFound, ConcurrentModification
from ..models import AttendanceStatusType, AttendanceSummaryRecord
from ..repository import (
    apply_summary,
    find_attendance_events,
    find_present_status_ids,
    find_semester,
    find_semester_summaries,
    flush_or_conflict,
    get_summary_row,
    summary_from_row,
)
from . import aggregator

logger = logging.getLogger(__name__)

# (code, name, counts as present)
DEFAULT_STATUS_TYPES = (
    ("P", "Present", True),
    ("A", "Absent", False),
    ("L", "Late", True),
    ("E", "Excused", True),
    ("M", "Medical", True),
)


def _default_required_percentage():
    return current_app.config.get("REQUIRED_ATTENDANCE_PERCENTAGE", 75.0)


def _key_label(student_id, course_id, semester_id):
    return f"{student_id}/{course_id}/{semester_id}"


def _recount(summary, required_percentage=None):
    window = find_semester(summary.semester_id)
    events = find_attendance_events(summary.student_id, summary.course_id, window.start_date, window.end_date)
    present = find_present_status_ids()
    return aggregator.recompute(summary, events, present, window, required_percentage)


def _save(row, summary):
    apply_summary(row, summary)
    flush_or_conflict("AttendanceSummary", _key_label(*summary.key))
    db.session.commit()
    return summary


def _recompute_once(student_id, course_id, semester_id, required_percentage):
    row = get_summary_row(student_id, course_id, semester_id)
    if row:
        summary = _recount(summary_from_row(row), required_percentage)
    else:
        # Fails with SemesterNotFound before anything is written
        find_semester(semester_id)
        summary = aggregator.new_summary(
            student_id, course_id, semester_id,
            required_percentage if required_percentage is not None else _default_required_percentage(),
        )
        summary = _recount(summary, required_percentage)
        # Added only after counting so the insert happens at the save below
        row = AttendanceSummaryRecord(student_id_fk=student_id, course_id_fk=course_id, semester_id_fk=semester_id)
        db.session.add(row)
    return _save(row, summary)


def recompute_attendance(student_id, course_id, semester_id, required_percentage=None):
    """
    Recalculates the summary for one (student, course, semester) from raw
    attendance, creating it on first request.

    Safe to run concurrently for the same key: when another writer created or
    saved the summary first, the stored row is re-read and counted once more,
    keeping whatever condonation state that writer left.
    """
    key = _key_label(student_id, course_id, semester_id)
    try:
        summary = _recompute_once(student_id, course_id, semester_id, required_percentage)
    except (IntegrityError, ConcurrentModification):
        db.session.rollback()
        logger.info("Attendance summary %s written concurrently; recounting", key)
        summary = _recompute_once(student_id, course_id, semester_id, required_percentage)

    logger.info("Attendance recomputed for %s: %s/%s classes", key, summary.attended, summary.total_classes)
    return summary


def _require_row(student_id, course_id, semester_id):
    row = get_summary_row(student_id, course_id, semester_id)
    if not row:
        raise AttendanceSummaryNotFound(
            "Attendance has not been computed for this course yet.",
            entity="AttendanceSummary",
            entity_id=_key_label(student_id, course_id, semester_id),
        )
    return row


def apply_for_condonation(student_id, course_id, semester_id, reason, percentage=0):
    row = _require_row(student_id, course_id, semester_id)
    summary = aggregator.apply_for_condonation(summary_from_row(row), reason, percentage)
    _save(row, summary)
    logger.info("Condonation of %s%% requested for %s", percentage, _key_label(student_id, course_id, semester_id))
    return summary


def process_condonation(student_id, course_id, semester_id, status):
    """
    Approves or rejects a pending condonation, then recounts attendance so the
    stored totals and eligibility reflect the decision together.
    """
    row = _require_row(student_id, course_id, semester_id)
    summary = aggregator.process_condonation(summary_from_row(row), status)
    summary = _recount(summary)
    _save(row, summary)
    logger.info(
        "Condonation %s for %s; eligible=%s",
        status, _key_label(student_id, course_id, semester_id), summary.is_eligible,
    )
    return summary


def semester_summaries(student_id, semester_id):
    return find_semester_summaries(semester_id, student_id=student_id)


def course_summaries(course_id, semester_id):
    """Every student's summary for one course, ordered by USN."""
    return find_semester_summaries(semester_id, course_id=course_id)


def shortage_list(semester_id, required_percentage=None):
    """
    Summaries below the attendance requirement, lowest effective percentage
    first. Courses with no classes yet are left out.
    """
    shortages = []
    for s in find_semester_summaries(semester_id):
        if s.total_classes == 0:
            continue
        threshold = required_percentage if required_percentage is not None else s.required_percentage
        if s.effective_percentage < threshold:
            shortages.append(s)
    return sorted(shortages, key=lambda s: (s.effective_percentage, s.student_id, s.course_id))


def seed_attendance_status_types(status_types=DEFAULT_STATUS_TYPES):
    """Inserts missing status types by code; existing ones are left alone."""
    created = 0
    for code, name, counted in status_types:
        exists = db.session.execute(select(AttendanceStatusType.status_id).filter_by(code=code)).first()
        if exists:
            continue
        db.session.add(AttendanceStatusType(code=code, name=name, is_counted_present=counted, is_active=True))
        created += 1
    db.session.commit()
    logger.info("Attendance status types seeded: %s created", created)
    return created
