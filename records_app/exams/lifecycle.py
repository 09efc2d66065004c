"""
Exam result state machine.

Main line: raw -> processed -> verified -> published.
Revaluation runs beside it: not_applicable -> pending -> approved | rejected,
and approved -> completed, which re-processes the result with the new marks.

Every function is pure: it takes an ExamResult and returns a new one or
raises a typed error from ``records_app.errors``.
"""
from dataclasses import replace
from datetime import datetime, timezone

from ..errors import (
    AlreadyPublished,
    AlreadyRequested,
    AlreadyVerified,
    CannotUnpublish,
    ExamNotFound,
    IneligibleStatus,
    MarksExceedTotal,
    MarksOutOfRange,
    NotProcessed,
    NotVerified,
    RevaluationNotApproved,
    RevaluationNotPending,
    ValidationError,
)
from ..grades.resolver import band_by_code, resolve
from ..records import (
    ABSENT,
    ADMINISTRATIVE_STATUSES,
    APPROVED,
    COMPLETED,
    FAIL,
    INCOMPLETE,
    MALPRACTICE,
    NOT_APPLICABLE,
    PASS,
    PENDING,
    REJECTED,
)

# Stage transitions: action -> stages it may start from
RESULT_TRANSITIONS = {
    "process": ("raw", "processed"),
    "verify": ("processed",),
    "publish": ("verified",),
}

# Revaluation sub-state: action -> {from_state: to_state}
REVALUATION_TRANSITIONS = {
    "request": {NOT_APPLICABLE: PENDING},
    "approve": {PENDING: APPROVED},
    "reject": {PENDING: REJECTED},
    "complete": {APPROVED: COMPLETED},
}

NON_REVALUABLE_STATUSES = frozenset({ABSENT, MALPRACTICE})

# Grade codes attached when there is no percentage to grade
STATUS_GRADE_CODES = {ABSENT: "AB", INCOMPLETE: "I"}


def _now(now):
    return now or datetime.now(timezone.utc)


def _context(result, transition):
    return {
        "entity": "ExamResult",
        "entity_id": result.result_id,
        "transition": transition,
        "current_state": result.stage,
    }


def can(result, action):
    return result.stage in RESULT_TRANSITIONS[action]


def validate_marks(marks, total_marks, status=None, result_id=None):
    """
    Marks must lie in [0, total]; absent results are not checked.
    """
    if status == ABSENT or marks is None:
        return
    if marks < 0:
        raise MarksOutOfRange(
            f"Marks obtained ({marks}) cannot be negative.",
            entity="ExamResult", entity_id=result_id, marks_obtained=marks,
        )
    if total_marks is not None and marks > total_marks:
        raise MarksExceedTotal(
            f"Marks obtained ({marks}) exceed the exam total ({total_marks}).",
            entity="ExamResult", entity_id=result_id,
            marks_obtained=marks, total_marks=total_marks,
        )


def process_result(result, exam, bands, now=None):
    """
    Attaches out-of marks, percentage, pass/fail status and grade.

    Administrative statuses (absent, malpractice, withheld, incomplete) are
    kept as entered; every other result is pass iff marks reach the exam's
    passing marks.
    """
    if exam is None:
        raise ExamNotFound(
            f"Exam {result.exam_id} not found.", entity="Exam", entity_id=result.exam_id,
        )
    status = result.result_status if result.result_status in ADMINISTRATIVE_STATUSES else None
    marks = result.marks_obtained

    if marks is None and status is None:
        raise ValidationError(
            "Marks obtained are required unless the result is absent, malpractice, withheld or incomplete.",
            entity="ExamResult", entity_id=result.result_id,
        )
    validate_marks(marks, exam.total_marks, status, result.result_id)

    if status == ABSENT or marks is None:
        percentage = None
    else:
        # Two decimals, matching the precision of band limits
        percentage = round(marks / exam.total_marks * 100, 2)

    if status is None:
        status = PASS if marks >= exam.passing_marks else FAIL

    if percentage is not None:
        band = resolve(percentage, bands)
    else:
        band = band_by_code(STATUS_GRADE_CODES.get(status), bands)

    return replace(
        result,
        out_of_marks=exam.total_marks,
        percentage=percentage,
        result_status=status,
        grade_code=band.code if band else None,
        grade_points=band.grade_points if band else 0.0,
        processed_at=_now(now),
    )


def verify_result(result, evaluator_id, now=None):
    if result.is_verified:
        raise AlreadyVerified("Result is already verified.", **_context(result, "verify"))
    if not can(result, "verify"):
        raise NotProcessed("Result must be processed before verification.", **_context(result, "verify"))
    return replace(result, is_verified=True, verified_by=evaluator_id, verified_at=_now(now))


def publish_result(result, publisher_id, now=None):
    if result.is_published:
        raise AlreadyPublished("Result is already published.", **_context(result, "publish"))
    if not can(result, "publish"):
        raise NotVerified("Result must be verified before publication.", **_context(result, "publish"))
    return replace(result, is_published=True, published_by=publisher_id, published_at=_now(now))


def _revaluation_step(result, action, error_cls, message):
    allowed = REVALUATION_TRANSITIONS[action]
    if result.revaluation_status not in allowed:
        ctx = _context(result, f"revaluation:{action}")
        ctx["current_state"] = result.revaluation_status
        raise error_cls(message, **ctx)
    return allowed[result.revaluation_status]


def request_revaluation(result, reason):
    if result.revaluation_requested:
        ctx = _context(result, "revaluation:request")
        ctx["current_state"] = result.revaluation_status
        raise AlreadyRequested("Revaluation has already been requested for this result.", **ctx)
    if result.result_status is None:
        raise NotProcessed("Result must be processed before requesting revaluation.", **_context(result, "revaluation:request"))
    if result.result_status in NON_REVALUABLE_STATUSES:
        ctx = _context(result, "revaluation:request")
        ctx["current_state"] = result.result_status
        raise IneligibleStatus(
            f"Revaluation is not available for {result.result_status} results.", **ctx
        )
    status = _revaluation_step(result, "request", AlreadyRequested, "Revaluation has already been requested for this result.")
    return replace(
        result,
        revaluation_requested=True,
        revaluation_status=status,
        revaluation_reason=(reason or "").strip() or None,
        previous_marks=result.marks_obtained,
    )


def review_revaluation(result, decision, reviewer_id):
    actions = {APPROVED: "approve", REJECTED: "reject"}
    if decision not in actions:
        raise ValidationError(
            f"Revaluation can only be approved or rejected, not {decision!r}.",
            entity="ExamResult", entity_id=result.result_id,
        )
    status = _revaluation_step(
        result, actions[decision], RevaluationNotPending, "No pending revaluation request to review."
    )
    return replace(result, revaluation_status=status, revaluation_reviewed_by=reviewer_id)


def complete_revaluation(result, new_marks, remarks, evaluator_id, exam, bands, now=None):
    """
    Records revaluated marks and re-processes the result. ``previous_marks``
    keeps the marks that were replaced.
    """
    status = _revaluation_step(
        result, "complete", RevaluationNotApproved, "Revaluation must be approved before it can be completed."
    )
    revised = replace(
        result,
        marks_obtained=new_marks,
        previous_marks=result.marks_obtained,
        # Withheld/incomplete entries are graded afresh from the new marks
        result_status=None,
    )
    revised = process_result(revised, exam, bands, now)
    return replace(
        revised,
        revaluation_status=status,
        revaluation_remarks=remarks,
        revaluated_by=evaluator_id,
    )


def check_save(before, after, exam=None):
    """
    Invariants enforced on every save: publication never reverts and marks
    stay within the exam total (absent results excepted).
    """
    if before is not None and before.is_published and not after.is_published:
        raise CannotUnpublish("Published results cannot be unpublished.", **_context(before, "unpublish"))
    if exam is not None:
        validate_marks(after.marks_obtained, exam.total_marks, after.result_status, after.result_id)
    return after
