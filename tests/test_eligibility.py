import pytest

from records_app.eligibility import evaluator
from records_app.records import AttendanceSummary, ScoredEntry

CIE, SEE = 1, 2


def scored(course, exam_type, status):
    return ScoredEntry(
        semester_id=1, course_id=course, credits=4, weightage=60, percentage=None,
        result_status=status, exam_type_id=exam_type,
    )


@pytest.mark.parametrize("backlogs", [0, 12])
def test_skipping_a_semester_is_refused_regardless_of_backlogs(backlogs):
    decision = evaluator.evaluate_promotion(3, 5, backlogs, backlog_threshold=20)
    assert not decision.eligible
    assert "skip" in decision.reason


def test_backlog_threshold():
    assert evaluator.evaluate_promotion(3, 4, 1, backlog_threshold=1).eligible
    decision = evaluator.evaluate_promotion(3, 4, 2, backlog_threshold=1)
    assert not decision.eligible
    assert decision.backlog_count == 2
    assert "2 backlogs" in decision.reason


@pytest.mark.parametrize("from_sem,to_sem", [(0, 1), (8, 9)])
def test_semester_range(from_sem, to_sem):
    decision = evaluator.evaluate_promotion(from_sem, to_sem, 0, 0, max_semester=8)
    assert not decision.eligible
    assert "between 1 and 8" in decision.reason


def test_student_must_be_in_from_semester():
    decision = evaluator.evaluate_promotion(3, 4, 0, 0, current_semester=2)
    assert not decision.eligible
    assert evaluator.evaluate_promotion(3, 4, 0, 0, current_semester=3).eligible


def test_open_backlogs_are_cleared_by_a_later_pass():
    entries = [
        scored(101, SEE, "fail"),
        scored(101, SEE, "pass"),
        scored(102, SEE, "fail"),
        scored(102, SEE, "fail"),
        scored(103, CIE, "incomplete"),
        scored(103, SEE, "pass"),
        scored(104, SEE, "absent"),
        scored(105, SEE, "withheld"),
    ]
    assert evaluator.open_backlogs(entries) == [(102, SEE), (103, CIE)]


def test_exam_admission_reads_attendance_eligibility():
    base = dict(student_id="S1", course_id=1, semester_id=1)
    assert evaluator.evaluate_exam_admission(AttendanceSummary(total_classes=40, attended=32, **base)).eligible

    short = evaluator.evaluate_exam_admission(AttendanceSummary(total_classes=40, attended=20, **base))
    assert not short.eligible
    assert "50.00%" in short.reason

    assert not evaluator.evaluate_exam_admission(AttendanceSummary(**base)).eligible
    assert not evaluator.evaluate_exam_admission(None).eligible
