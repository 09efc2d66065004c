import logging
from sqlalchemy import select
from .. import db
from ..errors import ConcurrentModification, InvalidStateTransition, RecordsError, ValidationError
from ..grades.services import active_grade_bands
from ..models import ExamResultRecord
from ..records import RESULT_STATUSES
from ..repository import (
    apply_exam_result,
    create_exam_result,
    exam_result_from_row,
    find_exam,
    find_exam_result,
    find_published_results,
    flush_or_conflict,
    get_exam_result_row,
)
from . import lifecycle

logger = logging.getLogger(__name__)


def _save(row, before, after, exam=None):
    lifecycle.check_save(before, after, exam)
    apply_exam_result(row, after)
    flush_or_conflict("ExamResult", row.result_id)
    db.session.commit()
    return exam_result_from_row(row)


def _attempt(result_id, step, needs_exam):
    row = get_exam_result_row(result_id)
    before = exam_result_from_row(row)
    exam = find_exam(before.exam_id) if needs_exam else None
    after = step(before, exam)
    return _save(row, before, after, exam)


def _run(result_id, action, step, needs_exam=False):
    """
    Loads a result, applies one lifecycle step and saves it. Rejected
    transitions are logged and re-raised unchanged.

    When another writer saved the result first the step is run once more
    against the stored state, so a racing publish reports AlreadyPublished.
    """
    try:
        try:
            saved = _attempt(result_id, step, needs_exam)
        except ConcurrentModification:
            db.session.expire_all()
            logger.info("ExamResult %s: %s retried after concurrent write", result_id, action)
            saved = _attempt(result_id, step, needs_exam)
    except RecordsError as e:
        db.session.rollback()
        logger.warning("ExamResult %s: %s rejected (%s)", result_id, action, e.code)
        raise
    logger.info("ExamResult %s: %s -> %s", result_id, action, saved.stage)
    return saved


def record_exam_result(student_id, exam_id, marks_obtained=None, result_status=None):
    """
    Stores a raw result entry for (student, exam). Marks are checked against
    the exam total at entry.
    """
    if result_status is not None and result_status not in RESULT_STATUSES:
        raise ValidationError(
            f"Unknown result status {result_status!r}.", entity="ExamResult", field="result_status",
        )
    exam = find_exam(exam_id)
    if find_exam_result(student_id, exam_id):
        raise ValidationError(
            f"A result for student {student_id} in exam {exam_id} already exists.",
            entity="ExamResult", student_id=student_id, exam_id=exam_id,
        )
    lifecycle.validate_marks(marks_obtained, exam.total_marks, result_status)
    result = create_exam_result(student_id, exam_id, marks_obtained, result_status)
    db.session.commit()
    logger.info("ExamResult %s recorded for student %s, exam %s", result.result_id, student_id, exam_id)
    return result


def process_exam_result(result_id):
    bands = active_grade_bands()

    def step(result, exam):
        if not lifecycle.can(result, "process"):
            raise InvalidStateTransition(
                "Verified results cannot be re-processed.",
                entity="ExamResult", entity_id=result.result_id,
                transition="process", current_state=result.stage,
            )
        return lifecycle.process_result(result, exam, bands)

    return _run(result_id, "process", step, needs_exam=True)


def verify_exam_result(result_id, evaluator_id):
    return _run(result_id, "verify", lambda r, _: lifecycle.verify_result(r, evaluator_id))


def publish_exam_result(result_id, publisher_id):
    return _run(result_id, "publish", lambda r, _: lifecycle.publish_result(r, publisher_id))


def request_revaluation(result_id, reason):
    return _run(result_id, "revaluation:request", lambda r, _: lifecycle.request_revaluation(r, reason))


def review_revaluation(result_id, decision, reviewer_id):
    return _run(
        result_id, f"revaluation:{decision}",
        lambda r, _: lifecycle.review_revaluation(r, decision, reviewer_id),
    )


def complete_revaluation(result_id, new_marks, remarks, evaluator_id):
    bands = active_grade_bands()
    return _run(
        result_id, "revaluation:complete",
        lambda r, exam: lifecycle.complete_revaluation(r, new_marks, remarks, evaluator_id, exam, bands),
        needs_exam=True,
    )


def process_exam(exam_id):
    """
    Processes every raw or processed result of an exam.
    Each result is saved on its own; failures are collected and the rest
    continue.
    Returns: {"processed": [result_id, ...], "failed": [{"result_id", "error", "message"}], "total": int}
    """
    find_exam(exam_id)
    result_ids = db.session.execute(
        select(ExamResultRecord.result_id)
        .filter(ExamResultRecord.exam_id_fk == exam_id, ExamResultRecord.is_verified == False)  # noqa: E712
        .order_by(ExamResultRecord.result_id)
    ).scalars().all()

    summary = {"processed": [], "failed": [], "total": len(result_ids)}
    for result_id in result_ids:
        try:
            process_exam_result(result_id)
            summary["processed"].append(result_id)
        except RecordsError as e:
            summary["failed"].append({"result_id": result_id, "error": e.code, "message": e.message})

    logger.info(
        "Exam %s processed: %s ok, %s failed", exam_id, len(summary["processed"]), len(summary["failed"])
    )
    return summary


def published_results(student_id, semester_id=None):
    """Published results of a student, optionally for one semester."""
    return find_published_results(student_id, semester_id)
