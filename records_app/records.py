"""
Immutable snapshots the engine computes over.

Transition functions take one of these records and return a new one via
``dataclasses.replace``; the ORM models in ``models.py`` are only read into and
written back from these records by ``repository.py``.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple, FrozenSet

# Result status values
PASS = "pass"
FAIL = "fail"
ABSENT = "absent"
MALPRACTICE = "malpractice"
WITHHELD = "withheld"
INCOMPLETE = "incomplete"

RESULT_STATUSES = frozenset({PASS, FAIL, ABSENT, MALPRACTICE, WITHHELD, INCOMPLETE})
# Entered by the examination office and kept as-is when a result is processed
ADMINISTRATIVE_STATUSES = frozenset({ABSENT, MALPRACTICE, WITHHELD, INCOMPLETE})
BACKLOG_STATUSES = frozenset({FAIL, INCOMPLETE})

# Revaluation / condonation sub-states
NOT_APPLICABLE = "not_applicable"
PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
COMPLETED = "completed"

DEFAULT_REQUIRED_PERCENTAGE = 75.0


@dataclass(frozen=True)
class GradeBand:
    code: str
    name: str
    lower_limit: float
    upper_limit: float
    grade_points: float
    description: Optional[str] = None
    is_active: bool = True

    @property
    def display_grade(self):
        return f"{self.code} ({self.grade_points:g})"

    @property
    def is_passing(self):
        return self.grade_points > 0

    def covers(self, percentage):
        return self.lower_limit <= percentage <= self.upper_limit


@dataclass(frozen=True)
class ExamInfo:
    exam_id: int
    total_marks: float
    passing_marks: float
    course_id: int
    exam_type_id: int
    semester_id: Optional[int] = None

    @property
    def passing_percentage(self):
        return self.passing_marks / self.total_marks * 100


@dataclass(frozen=True)
class SemesterWindow:
    semester_id: int
    number: int
    start_date: date
    end_date: date
    academic_year: Optional[str] = None

    def contains(self, day):
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class AttendanceEvent:
    student_id: str
    course_id: int
    date: date
    status_id: int


@dataclass(frozen=True)
class AttendanceSummary:
    student_id: str
    course_id: int
    semester_id: int
    total_classes: int = 0
    attended: int = 0
    condonation_applied: bool = False
    condonation_status: str = NOT_APPLICABLE
    condonation_percentage: float = 0.0
    condonation_reason: Optional[str] = None
    required_percentage: float = DEFAULT_REQUIRED_PERCENTAGE
    last_calculated: Optional[datetime] = None

    @property
    def key(self):
        return (self.student_id, self.course_id, self.semester_id)

    @property
    def percentage(self):
        if self.total_classes == 0:
            return None
        return self.attended * 100 / self.total_classes

    @property
    def effective_percentage(self):
        base = self.percentage
        if base is None:
            return None
        if self.condonation_applied and self.condonation_status == APPROVED:
            return min(base + self.condonation_percentage, 100.0)
        return base

    @property
    def is_eligible(self):
        effective = self.effective_percentage
        if effective is None:
            return False
        return effective >= self.required_percentage

    @property
    def shortage_percentage(self):
        effective = self.effective_percentage
        if effective is None:
            return None
        return max(self.required_percentage - effective, 0.0)

    @property
    def required_sessions(self):
        """
        Consecutive sessions still to attend to reach the required percentage.

        Best case only: assumes every future session is attended. None when the
        course has no sessions yet or the requirement can never be met.
        """
        effective = self.effective_percentage
        if effective is None:
            return None
        if effective >= self.required_percentage:
            return 0
        if self.required_percentage >= 100:
            return None
        needed = math.ceil(
            (self.required_percentage * self.total_classes - 100 * self.attended)
            / (100 - self.required_percentage)
        )
        return max(0, needed)


@dataclass(frozen=True)
class ExamResult:
    student_id: str
    exam_id: int
    marks_obtained: Optional[float] = None
    result_id: Optional[int] = None
    out_of_marks: Optional[float] = None
    percentage: Optional[float] = None
    grade_code: Optional[str] = None
    grade_points: Optional[float] = None
    result_status: Optional[str] = None
    processed_at: Optional[datetime] = None
    is_verified: bool = False
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    is_published: bool = False
    published_by: Optional[int] = None
    published_at: Optional[datetime] = None
    revaluation_requested: bool = False
    revaluation_status: str = NOT_APPLICABLE
    revaluation_reason: Optional[str] = None
    revaluation_remarks: Optional[str] = None
    revaluation_reviewed_by: Optional[int] = None
    revaluated_by: Optional[int] = None
    previous_marks: Optional[float] = None

    @property
    def stage(self):
        if self.is_published:
            return "published"
        if self.is_verified:
            return "verified"
        if self.processed_at is not None:
            return "processed"
        return "raw"

    @property
    def is_backlog(self):
        return self.is_published and self.result_status in BACKLOG_STATUSES


@dataclass(frozen=True)
class ScoredEntry:
    """One published exam result with the reference data SGPA needs."""
    semester_id: int
    course_id: int
    credits: float
    weightage: float
    percentage: Optional[float]
    course_code: Optional[str] = None
    result_status: Optional[str] = None
    exam_type_id: Optional[int] = None


@dataclass(frozen=True)
class CourseGrade:
    semester_id: int
    course_id: int
    course_code: Optional[str]
    credits: float
    course_percentage: float
    grade_code: str
    grade_points: float

    @property
    def weighted_grade_points(self):
        return self.grade_points * self.credits


@dataclass(frozen=True)
class SemesterPerformance:
    sgpa: float
    course_grades: Tuple[CourseGrade, ...] = ()
    total_credits: float = 0.0
    passed_all: bool = True


@dataclass(frozen=True)
class CumulativePerformance:
    cgpa: float
    total_credits: float = 0.0
    semesters: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class EligibilityDecision:
    eligible: bool
    reason: Optional[str] = None
    backlog_count: int = 0

    @classmethod
    def ok(cls, backlog_count=0):
        return cls(True, None, backlog_count)

    @classmethod
    def refuse(cls, reason, backlog_count=0):
        return cls(False, reason, backlog_count)
