from ..records import BACKLOG_STATUSES, PASS, EligibilityDecision


def open_backlogs(entries):
    """
    (course_id, exam_type_id) pairs with a published fail/incomplete result and
    no published pass for the same course and exam type. A later pass (for
    example a supplementary exam) clears the backlog.
    """
    failed = set()
    cleared = set()
    for e in entries:
        key = (e.course_id, e.exam_type_id)
        if e.result_status == PASS:
            cleared.add(key)
        elif e.result_status in BACKLOG_STATUSES:
            failed.add(key)
    return sorted(failed - cleared, key=lambda k: (k[0], k[1] if k[1] is not None else -1))


def evaluate_promotion(from_semester, to_semester, backlog_count, backlog_threshold,
                       current_semester=None, max_semester=8):
    """
    Checks run in order and the first failure is returned; skipping a
    semester is refused regardless of backlogs.
    """
    if to_semester != from_semester + 1:
        return EligibilityDecision.refuse(
            f"Cannot skip semesters: promotion must be from semester {from_semester} "
            f"to {from_semester + 1}, not {to_semester}.",
            backlog_count,
        )
    if from_semester < 1 or to_semester > max_semester:
        return EligibilityDecision.refuse(
            f"Semesters must lie between 1 and {max_semester}.", backlog_count,
        )
    if current_semester is not None and current_semester != from_semester:
        return EligibilityDecision.refuse(
            f"Student is in semester {current_semester}, not {from_semester}.", backlog_count,
        )
    if backlog_count > backlog_threshold:
        return EligibilityDecision.refuse(
            f"Student has {backlog_count} backlogs; at most {backlog_threshold} allowed.", backlog_count,
        )
    return EligibilityDecision.ok(backlog_count)


def evaluate_exam_admission(summary):
    """Reads the attendance summary's eligibility as-is."""
    if summary is None:
        return EligibilityDecision.refuse("Attendance has not been computed for this course.")
    if summary.is_eligible:
        return EligibilityDecision.ok()
    if summary.total_classes == 0:
        return EligibilityDecision.refuse("No classes recorded for this course.")
    return EligibilityDecision.refuse(
        f"Attendance {summary.effective_percentage:.2f}% is below the required "
        f"{summary.required_percentage:g}%."
    )
