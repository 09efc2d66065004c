from collections import OrderedDict

from ..grades.resolver import resolve
from ..records import CourseGrade, CumulativePerformance, SemesterPerformance


def course_percentage(entries):
    """
    Weightage-weighted mean of exam percentages for one course. Results
    without a percentage (absent, withheld) count as 0. With no weightage
    configured the plain mean is used.
    """
    total_weight = sum(e.weightage for e in entries)
    if total_weight > 0:
        return sum((e.percentage or 0.0) * e.weightage for e in entries) / total_weight
    return sum(e.percentage or 0.0 for e in entries) / len(entries)


def grade_courses(entries, bands):
    """Groups entries by (semester, course) and grades each group."""
    groups = OrderedDict()
    for e in entries:
        groups.setdefault((e.semester_id, e.course_id), []).append(e)

    grades = []
    for (semester_id, course_id), items in groups.items():
        pct = round(course_percentage(items), 2)
        band = resolve(min(pct, 100.0), bands)
        grades.append(CourseGrade(
            semester_id=semester_id,
            course_id=course_id,
            course_code=items[0].course_code,
            credits=items[0].credits,
            course_percentage=pct,
            grade_code=band.code,
            grade_points=band.grade_points,
        ))
    return grades


def _gpa(course_grades):
    total_credits = sum(g.credits for g in course_grades)
    if total_credits <= 0:
        return 0.0, 0.0
    weighted = sum(g.weighted_grade_points for g in course_grades)
    return round(weighted / total_credits, 2), total_credits


def compute_sgpa(entries, bands):
    """
    SGPA = sum(grade points * credits) / sum(credits), rounded to 2 places.
    ``entries`` must already be restricted to published results of one
    semester.
    """
    course_grades = grade_courses(entries, bands)
    sgpa, total_credits = _gpa(course_grades)
    return SemesterPerformance(
        sgpa=sgpa,
        course_grades=tuple(course_grades),
        total_credits=total_credits,
        passed_all=bool(course_grades) and all(g.grade_points > 0 for g in course_grades),
    )


def compute_cgpa(entries, bands):
    """
    Credit-weighted over every graded course of every semester; not an
    average of SGPAs.
    """
    course_grades = grade_courses(entries, bands)
    cgpa, total_credits = _gpa(course_grades)
    return CumulativePerformance(
        cgpa=cgpa,
        total_credits=total_credits,
        semesters=frozenset(g.semester_id for g in course_grades),
    )
