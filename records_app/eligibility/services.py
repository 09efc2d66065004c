import logging
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from .. import db
from ..models import Student
from ..repository import find_scored_entries, get_student, get_summary_row, summary_from_row
from . import evaluator

logger = logging.getLogger(__name__)


def _threshold(backlog_threshold):
    if backlog_threshold is None:
        return current_app.config.get("PROMOTION_BACKLOG_THRESHOLD", 0)
    return backlog_threshold


def _max_semester():
    return current_app.config.get("MAX_SEMESTER", 8)


def count_backlogs(student_id):
    return len(evaluator.open_backlogs(find_scored_entries(student_id)))


def evaluate_promotion(student_id, from_semester, to_semester, backlog_threshold=None):
    student = get_student(student_id)
    backlogs = count_backlogs(student_id)
    decision = evaluator.evaluate_promotion(
        from_semester, to_semester, backlogs, _threshold(backlog_threshold),
        current_semester=student.current_semester,
        max_semester=_max_semester(),
    )
    if not decision.eligible:
        logger.info("Promotion of %s refused: %s", student_id, decision.reason)
    return decision


def evaluate_exam_admission(student_id, course_id, semester_id):
    row = get_summary_row(student_id, course_id, semester_id)
    return evaluator.evaluate_exam_admission(summary_from_row(row) if row else None)


def promote_students(student_ids, from_semester, to_semester, backlog_threshold=None, academic_year=None):
    """
    Promotes many students in one transaction.

    Students that fail a check are reported and skipped; the rest are promoted
    together. A database error rolls back the whole batch and is re-raised.
    Returns: {"promoted": [...], "failed": [...], "total": int}
    """
    threshold = _threshold(backlog_threshold)
    results = {"promoted": [], "failed": [], "total": len(student_ids)}

    try:
        for student_id in student_ids:
            student = db.session.get(Student, student_id)
            if not student:
                results["failed"].append({"student_id": student_id, "error": "Student not found"})
                continue

            backlogs = count_backlogs(student_id)
            decision = evaluator.evaluate_promotion(
                from_semester, to_semester, backlogs, threshold,
                current_semester=student.current_semester,
                max_semester=_max_semester(),
            )
            if not decision.eligible:
                results["failed"].append({
                    "student_id": student_id,
                    "error": decision.reason,
                    "backlog_count": backlogs,
                })
                continue

            student.current_semester = to_semester
            if academic_year:
                student.academic_year = academic_year
            results["promoted"].append({
                "student_id": student_id,
                "name": student.full_name,
                "from_semester": from_semester,
                "to_semester": to_semester,
            })

        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Bulk promotion %s -> %s rolled back", from_semester, to_semester)
        raise

    logger.info(
        "Bulk promotion %s -> %s: %s promoted, %s failed",
        from_semester, to_semester, len(results["promoted"]), len(results["failed"]),
    )
    return results
