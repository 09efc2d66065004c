"""
SQLAlchemy-backed collaborators.

Lookups return immutable records from ``records.py``; saves copy a record back
onto its row and flush, translating a stale version into
ConcurrentModification.
"""
import logging
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError
from . import db
from .errors import (
    ConcurrentModification,
    ExamNotFound,
    ExamResultNotFound,
    SemesterNotFound,
    StudentNotFound,
)
from .models import (
    Attendance,
    AttendanceStatusType,
    AttendanceSummaryRecord,
    Course,
    Exam,
    ExamResultRecord,
    ExamType,
    GradeScale,
    Semester,
    Student,
)
from .records import (
    AttendanceEvent,
    AttendanceSummary,
    ExamInfo,
    ExamResult,
    GradeBand,
    ScoredEntry,
    SemesterWindow,
)

logger = logging.getLogger(__name__)


# ==========================================
# REFERENCE LOOKUPS
# ==========================================

def find_exam(exam_id):
    exam = db.session.get(Exam, exam_id)
    if not exam:
        raise ExamNotFound(f"Exam {exam_id} not found.", entity="Exam", entity_id=exam_id)
    return ExamInfo(
        exam_id=exam.exam_id,
        total_marks=exam.total_marks,
        passing_marks=exam.passing_marks,
        course_id=exam.course_id_fk,
        exam_type_id=exam.exam_type_id_fk,
        semester_id=exam.semester_id_fk,
    )


def band_from_row(row):
    return GradeBand(
        code=row.code,
        name=row.grade_name,
        lower_limit=row.lower_limit,
        upper_limit=row.upper_limit,
        grade_points=row.grade_points,
        description=row.description,
        is_active=bool(row.is_active),
    )


def find_grade_bands(active_only=True):
    q = select(GradeScale).order_by(GradeScale.grade_points.desc(), GradeScale.upper_limit.desc())
    if active_only:
        q = q.filter(GradeScale.is_active == True)  # noqa: E712
    rows = db.session.execute(q).scalars().all()
    return [band_from_row(r) for r in rows]


def find_present_status_ids():
    rows = db.session.execute(
        select(AttendanceStatusType.status_id).filter_by(is_counted_present=True, is_active=True)
    ).scalars().all()
    return frozenset(rows)


def find_semester(semester_id):
    sem = db.session.get(Semester, semester_id)
    if not sem:
        raise SemesterNotFound(f"Semester {semester_id} not found.", entity="Semester", entity_id=semester_id)
    return SemesterWindow(
        semester_id=sem.semester_id,
        number=sem.number,
        start_date=sem.start_date,
        end_date=sem.end_date,
        academic_year=sem.academic_year,
    )


def find_attendance_events(student_id, course_id, start_date, end_date):
    rows = db.session.execute(
        select(Attendance).filter(
            Attendance.student_id_fk == student_id,
            Attendance.course_id_fk == course_id,
            Attendance.date_marked >= start_date,
            Attendance.date_marked <= end_date,
        )
    ).scalars().all()
    return [
        AttendanceEvent(
            student_id=r.student_id_fk,
            course_id=r.course_id_fk,
            date=r.date_marked,
            status_id=r.status_id_fk,
        )
        for r in rows
    ]


def get_student(student_id):
    student = db.session.get(Student, student_id)
    if not student:
        raise StudentNotFound(f"Student {student_id} not found.", entity="Student", entity_id=student_id)
    return student


# ==========================================
# EXAM RESULTS
# ==========================================

def exam_result_from_row(row):
    return ExamResult(
        result_id=row.result_id,
        student_id=row.student_id_fk,
        exam_id=row.exam_id_fk,
        marks_obtained=row.marks_obtained,
        out_of_marks=row.out_of_marks,
        percentage=row.percentage,
        grade_code=row.grade_code,
        grade_points=row.grade_points,
        result_status=row.result_status,
        processed_at=row.processed_at,
        is_verified=bool(row.is_verified),
        verified_by=row.verified_by_user_id,
        verified_at=row.verified_at,
        is_published=bool(row.is_published),
        published_by=row.published_by_user_id,
        published_at=row.published_at,
        revaluation_requested=bool(row.revaluation_requested),
        revaluation_status=row.revaluation_status or "not_applicable",
        revaluation_reason=row.revaluation_reason,
        revaluation_remarks=row.revaluation_remarks,
        revaluation_reviewed_by=row.revaluation_reviewed_by_user_id,
        revaluated_by=row.revaluated_by_user_id,
        previous_marks=row.previous_marks,
    )


def get_exam_result_row(result_id):
    row = db.session.get(ExamResultRecord, result_id)
    if not row:
        raise ExamResultNotFound(
            f"Exam result {result_id} not found.", entity="ExamResult", entity_id=result_id
        )
    return row


def find_exam_result(student_id, exam_id):
    row = db.session.execute(
        select(ExamResultRecord).filter_by(student_id_fk=student_id, exam_id_fk=exam_id)
    ).scalars().first()
    return exam_result_from_row(row) if row else None


def apply_exam_result(row, result):
    """Copies a record onto its row. Unpublishing raises CannotUnpublish."""
    row.marks_obtained = result.marks_obtained
    row.out_of_marks = result.out_of_marks
    row.percentage = result.percentage
    row.grade_code = result.grade_code
    row.grade_points = result.grade_points
    row.result_status = result.result_status
    row.processed_at = result.processed_at
    row.is_verified = result.is_verified
    row.verified_by_user_id = result.verified_by
    row.verified_at = result.verified_at
    row.is_published = result.is_published
    row.published_by_user_id = result.published_by
    row.published_at = result.published_at
    row.revaluation_requested = result.revaluation_requested
    row.revaluation_status = result.revaluation_status
    row.revaluation_reason = result.revaluation_reason
    row.revaluation_remarks = result.revaluation_remarks
    row.revaluation_reviewed_by_user_id = result.revaluation_reviewed_by
    row.revaluated_by_user_id = result.revaluated_by
    row.previous_marks = result.previous_marks
    return row


def create_exam_result(student_id, exam_id, marks_obtained=None, result_status=None):
    """Stores a raw result entry."""
    row = ExamResultRecord(
        student_id_fk=student_id,
        exam_id_fk=exam_id,
        marks_obtained=marks_obtained,
        result_status=result_status,
        is_verified=False,
        is_published=False,
        revaluation_requested=False,
        revaluation_status="not_applicable",
    )
    db.session.add(row)
    db.session.flush()
    return exam_result_from_row(row)


def find_published_results(student_id, semester_id=None):
    q = (
        select(ExamResultRecord)
        .join(Exam, Exam.exam_id == ExamResultRecord.exam_id_fk)
        .filter(ExamResultRecord.student_id_fk == student_id, ExamResultRecord.is_published == True)  # noqa: E712
    )
    if semester_id is not None:
        q = q.filter(Exam.semester_id_fk == semester_id)
    rows = db.session.execute(q.order_by(ExamResultRecord.result_id)).scalars().all()
    return [exam_result_from_row(r) for r in rows]


def find_scored_entries(student_id, semester_id=None):
    """
    Published results joined with course credits and exam-type weightage.
    """
    q = (
        select(ExamResultRecord, Exam, Course, ExamType)
        .join(Exam, Exam.exam_id == ExamResultRecord.exam_id_fk)
        .join(Course, Course.course_id == Exam.course_id_fk)
        .join(ExamType, ExamType.exam_type_id == Exam.exam_type_id_fk)
        .filter(ExamResultRecord.student_id_fk == student_id, ExamResultRecord.is_published == True)  # noqa: E712
    )
    if semester_id is not None:
        q = q.filter(Exam.semester_id_fk == semester_id)
    rows = db.session.execute(q.order_by(Exam.semester_id_fk, Course.course_id, ExamResultRecord.result_id)).all()
    return [
        ScoredEntry(
            semester_id=exam.semester_id_fk,
            course_id=course.course_id,
            credits=course.credits or 0,
            weightage=exam_type.weightage or 0,
            percentage=result.percentage,
            course_code=course.course_code,
            result_status=result.result_status,
            exam_type_id=exam.exam_type_id_fk,
        )
        for result, exam, course, exam_type in rows
    ]


# ==========================================
# ATTENDANCE SUMMARIES
# ==========================================

def summary_from_row(row):
    return AttendanceSummary(
        student_id=row.student_id_fk,
        course_id=row.course_id_fk,
        semester_id=row.semester_id_fk,
        total_classes=row.total_classes or 0,
        attended=row.attended or 0,
        condonation_applied=bool(row.condonation_applied),
        condonation_status=row.condonation_status or "not_applicable",
        condonation_percentage=row.condonation_percentage or 0.0,
        condonation_reason=row.condonation_reason,
        required_percentage=row.required_percentage,
        last_calculated=row.last_calculated,
    )


def get_summary_row(student_id, course_id, semester_id):
    return db.session.execute(
        select(AttendanceSummaryRecord).filter_by(
            student_id_fk=student_id,
            course_id_fk=course_id,
            semester_id_fk=semester_id,
        )
    ).scalars().first()


def apply_summary(row, summary):
    row.total_classes = summary.total_classes
    row.attended = summary.attended
    row.condonation_applied = summary.condonation_applied
    row.condonation_status = summary.condonation_status
    row.condonation_percentage = summary.condonation_percentage
    row.condonation_reason = summary.condonation_reason
    row.required_percentage = summary.required_percentage
    row.last_calculated = summary.last_calculated
    return row


def find_semester_summaries(semester_id, student_id=None, course_id=None):
    q = select(AttendanceSummaryRecord).filter_by(semester_id_fk=semester_id)
    if student_id is not None:
        q = q.filter_by(student_id_fk=student_id)
    if course_id is not None:
        q = q.filter_by(course_id_fk=course_id)
    rows = db.session.execute(
        q.order_by(AttendanceSummaryRecord.student_id_fk, AttendanceSummaryRecord.course_id_fk)
    ).scalars().all()
    return [summary_from_row(r) for r in rows]


# ==========================================
# WRITES
# ==========================================

def flush_or_conflict(entity, entity_id):
    """
    Flushes pending changes; a version mismatch means another writer saved the
    same record first.
    """
    try:
        db.session.flush()
    except StaleDataError:
        db.session.rollback()
        logger.warning("Concurrent modification of %s %s", entity, entity_id)
        raise ConcurrentModification(
            f"{entity} {entity_id} was modified concurrently; reload and retry.",
            entity=entity,
            entity_id=entity_id,
        )
