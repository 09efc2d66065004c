from dataclasses import replace
from datetime import datetime, timezone

from ..errors import InvalidStateTransition, ValidationError
from ..records import (
    APPROVED,
    AttendanceSummary,
    DEFAULT_REQUIRED_PERCENTAGE,
    NOT_APPLICABLE,
    PENDING,
    REJECTED,
)

MAX_REASON_LENGTH = 500

# Condonation sub-state: action -> {from_state: to_state}
CONDONATION_TRANSITIONS = {
    "apply": {NOT_APPLICABLE: PENDING, REJECTED: PENDING},
    "approve": {PENDING: APPROVED},
    "reject": {PENDING: REJECTED},
}


def _check_percentage(value, field):
    if value is None or not (0 <= value <= 100):
        raise ValidationError(f"{field} must be between 0 and 100.", field=field, value=value)


def new_summary(student_id, course_id, semester_id, required_percentage=DEFAULT_REQUIRED_PERCENTAGE):
    _check_percentage(required_percentage, "required_percentage")
    return AttendanceSummary(
        student_id=student_id,
        course_id=course_id,
        semester_id=semester_id,
        required_percentage=required_percentage,
    )


def recompute(summary, events, present_status_ids, window, required_percentage=None, now=None):
    """
    Rebuilds totals from the full event set of the semester window.

    Totals are replaced, never accumulated, so repeated calls over the same
    events give the same summary. Condonation fields carry over unchanged.
    """
    if required_percentage is None:
        required_percentage = summary.required_percentage
    _check_percentage(required_percentage, "required_percentage")

    in_window = [
        e for e in events
        if e.student_id == summary.student_id
        and e.course_id == summary.course_id
        and window.contains(e.date)
    ]
    total = len(in_window)
    attended = sum(1 for e in in_window if e.status_id in present_status_ids)

    return replace(
        summary,
        total_classes=total,
        attended=attended,
        required_percentage=required_percentage,
        last_calculated=now or datetime.now(timezone.utc),
    )


def _transition(summary, action):
    allowed = CONDONATION_TRANSITIONS[action]
    if summary.condonation_status not in allowed:
        raise InvalidStateTransition(
            f"Cannot {action} condonation while it is {summary.condonation_status}.",
            entity="AttendanceSummary",
            entity_id="/".join(str(k) for k in summary.key),
            transition=action,
            current_state=summary.condonation_status,
        )
    return allowed[summary.condonation_status]


def apply_for_condonation(summary, reason, percentage=0):
    _check_percentage(percentage, "condonation_percentage")
    reason = (reason or "").strip()
    if len(reason) > MAX_REASON_LENGTH:
        raise ValidationError(
            f"Condonation reason cannot exceed {MAX_REASON_LENGTH} characters.",
            field="condonation_reason",
        )
    status = _transition(summary, "apply")
    return replace(
        summary,
        condonation_applied=True,
        condonation_status=status,
        condonation_reason=reason or None,
        condonation_percentage=float(percentage),
    )


def process_condonation(summary, status):
    """
    Resolves a pending request. Eligibility follows at once because it is
    derived from the stored fields.
    """
    actions = {APPROVED: "approve", REJECTED: "reject"}
    if status not in actions:
        raise ValidationError(
            f"Condonation can only be approved or rejected, not {status!r}.",
            field="condonation_status",
            value=status,
        )
    new_status = _transition(summary, actions[status])
    return replace(summary, condonation_status=new_status)
