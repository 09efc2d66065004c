import pytest

from records_app.errors import NoMatchingGradeBand
from records_app.grades.resolver import DEFAULT_GRADE_SCALE
from records_app.performance import aggregator
from records_app.records import GradeBand, ScoredEntry

CIE, SEE = 1, 2


def entry(semester, course, credits, exam_type, pct, weight=None, status="pass"):
    weights = {CIE: 40, SEE: 60}
    return ScoredEntry(
        semester_id=semester,
        course_id=course,
        credits=credits,
        weightage=weights[exam_type] if weight is None else weight,
        percentage=pct,
        course_code=f"C{course}",
        result_status=status,
        exam_type_id=exam_type,
    )


SEMESTER_ONE = [
    entry(1, 101, 4, CIE, 80),
    entry(1, 101, 4, SEE, 70),
    entry(1, 102, 3, CIE, 95),
    entry(1, 102, 3, SEE, 90),
]


def test_course_percentage_is_weightage_weighted():
    assert aggregator.course_percentage(SEMESTER_ONE[:2]) == pytest.approx(74)


def test_course_percentage_falls_back_to_mean_without_weightage():
    items = [entry(1, 101, 4, CIE, 60, weight=0), entry(1, 101, 4, SEE, 80, weight=0)]
    assert aggregator.course_percentage(items) == 70


def test_absent_component_counts_as_zero():
    items = [entry(1, 101, 4, CIE, 80), entry(1, 101, 4, SEE, None, status="absent")]
    assert aggregator.course_percentage(items) == 32


def test_sgpa():
    perf = aggregator.compute_sgpa(SEMESTER_ONE, DEFAULT_GRADE_SCALE)
    grades = {g.course_id: (g.grade_code, g.grade_points) for g in perf.course_grades}
    assert grades == {101: ("A", 8), 102: ("O", 10)}
    assert perf.total_credits == 7
    assert perf.sgpa == 8.86
    assert perf.passed_all


def test_failed_course_clears_passed_all():
    entries = SEMESTER_ONE + [entry(1, 103, 2, SEE, 30, status="fail")]
    perf = aggregator.compute_sgpa(entries, DEFAULT_GRADE_SCALE)
    assert not perf.passed_all
    assert perf.sgpa == round((32 + 30 + 0) / 9, 2)


def test_no_results():
    perf = aggregator.compute_sgpa([], DEFAULT_GRADE_SCALE)
    assert perf.sgpa == 0
    assert perf.course_grades == ()
    assert not perf.passed_all


def test_cgpa_is_credit_weighted_not_mean_of_sgpas():
    semester_two = [entry(2, 201, 2, SEE, 45)]
    cgpa = aggregator.compute_cgpa(SEMESTER_ONE + semester_two, DEFAULT_GRADE_SCALE)
    assert cgpa.cgpa == 8.0
    assert cgpa.total_credits == 9
    assert cgpa.semesters == frozenset({1, 2})

    sgpas = [
        aggregator.compute_sgpa(SEMESTER_ONE, DEFAULT_GRADE_SCALE).sgpa,
        aggregator.compute_sgpa(semester_two, DEFAULT_GRADE_SCALE).sgpa,
    ]
    assert sum(sgpas) / 2 != cgpa.cgpa


def test_missing_band_surfaces_as_configuration_error():
    bands = [GradeBand("P", "Pass", 40, 100, 4)]
    with pytest.raises(NoMatchingGradeBand):
        aggregator.compute_sgpa([entry(1, 101, 4, SEE, 20)], bands)
