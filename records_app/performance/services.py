import logging
from ..grades.services import active_grade_bands
from ..repository import find_scored_entries, find_semester, get_student
from . import aggregator

logger = logging.getLogger(__name__)


def compute_sgpa(student_id, semester_id):
    """
    Computes SGPA from the student's published results in one semester.
    """
    get_student(student_id)
    find_semester(semester_id)
    entries = find_scored_entries(student_id, semester_id)
    performance = aggregator.compute_sgpa(entries, active_grade_bands())
    logger.info(
        "SGPA for %s in semester %s: %s over %s credits",
        student_id, semester_id, performance.sgpa, performance.total_credits,
    )
    return performance


def compute_cgpa(student_id):
    get_student(student_id)
    entries = find_scored_entries(student_id)
    performance = aggregator.compute_cgpa(entries, active_grade_bands())
    logger.info("CGPA for %s: %s over %s credits", student_id, performance.cgpa, performance.total_credits)
    return performance
