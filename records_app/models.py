from datetime import datetime, timezone
from sqlalchemy.orm import validates
from . import db
from .errors import CannotUnpublish

def utc_now():
    return datetime.now(timezone.utc)

# ==========================================
# PEOPLE
# ==========================================

class User(db.Model):
    __tablename__ = "users"
    user_id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(128), unique=True, nullable=False)
    email = db.Column(db.String(128))
    mobile = db.Column(db.String(20))
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(32), default="student")  # admin, faculty, student, clerk
    is_active = db.Column(db.Boolean, default=True)

    # Force password change on first login
    must_change_password = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utc_now)


class Student(db.Model):
    __tablename__ = "students"
    # USN
    enrollment_no = db.Column(db.String(32), primary_key=True, nullable=False)
    user_id_fk = db.Column(db.Integer, db.ForeignKey("users.user_id"))

    student_name = db.Column("student_name", db.String(64))
    surname = db.Column("surname", db.String(64))
    email = db.Column(db.String(128))
    mobile = db.Column(db.String(20))
    current_semester = db.Column(db.Integer, default=1)
    academic_year = db.Column(db.String(16))

    is_active = db.Column(db.Boolean, default=True)

    user = db.relationship("User", backref=db.backref("student", uselist=False))

    @property
    def full_name(self):
        return f"{self.student_name or ''} {self.surname or ''}".strip()


# ==========================================
# REFERENCE DATA
# ==========================================

class Semester(db.Model):
    __tablename__ = "semesters"
    semester_id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    academic_year = db.Column(db.String(16))
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)


class Course(db.Model):
    __tablename__ = "courses"
    course_id = db.Column(db.Integer, primary_key=True)
    course_code = db.Column(db.String(64))
    course_name = db.Column(db.String(128), nullable=False)
    credits = db.Column(db.Float, default=0)
    is_active = db.Column(db.Boolean, default=True)


class ExamType(db.Model):
    __tablename__ = "exam_types"
    exam_type_id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(10), unique=True, nullable=False)  # CIE, SEE, ...
    name = db.Column(db.String(100), nullable=False)
    weightage = db.Column(db.Float, default=0)
    is_active = db.Column(db.Boolean, default=True)


class Exam(db.Model):
    __tablename__ = "exams"
    exam_id = db.Column(db.Integer, primary_key=True)
    course_id_fk = db.Column(db.Integer, db.ForeignKey("courses.course_id"), nullable=False)
    semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id"), nullable=False)
    exam_type_id_fk = db.Column(db.Integer, db.ForeignKey("exam_types.exam_type_id"), nullable=False)
    exam_name = db.Column(db.String(100))
    total_marks = db.Column(db.Float, nullable=False)
    passing_marks = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now)

    course = db.relationship("Course")
    exam_type = db.relationship("ExamType")


class GradeScale(db.Model):
    __tablename__ = "grade_scales"
    grade_id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(5), unique=True, nullable=False)
    grade_name = db.Column(db.String(30), nullable=False)
    lower_limit = db.Column(db.Float, nullable=False)
    upper_limit = db.Column(db.Float, nullable=False)
    grade_points = db.Column(db.Float, nullable=False)
    description = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, onupdate=utc_now)


class AttendanceStatusType(db.Model):
    __tablename__ = "attendance_status_types"
    status_id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(10), unique=True, nullable=False)  # P, A, L...
    name = db.Column(db.String(50), nullable=False)
    is_counted_present = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True)


# ==========================================
# ATTENDANCE
# ==========================================

class Attendance(db.Model):
    __tablename__ = "attendance"
    attendance_id = db.Column(db.Integer, primary_key=True)
    student_id_fk = db.Column(db.String(32), db.ForeignKey("students.enrollment_no"), nullable=False)
    course_id_fk = db.Column(db.Integer, db.ForeignKey("courses.course_id"), nullable=False)
    status_id_fk = db.Column(db.Integer, db.ForeignKey("attendance_status_types.status_id"), nullable=False)
    date_marked = db.Column(db.Date, nullable=False)
    period_no = db.Column(db.Integer)

    __table_args__ = (
        db.Index("ix_attendance_student_course", "student_id_fk", "course_id_fk", "date_marked"),
    )


class AttendanceSummaryRecord(db.Model):
    __tablename__ = "attendance_summaries"
    summary_id = db.Column(db.Integer, primary_key=True)
    student_id_fk = db.Column(db.String(32), db.ForeignKey("students.enrollment_no"), nullable=False)
    course_id_fk = db.Column(db.Integer, db.ForeignKey("courses.course_id"), nullable=False)
    semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id"), nullable=False)
    total_classes = db.Column(db.Integer, default=0, nullable=False)
    attended = db.Column(db.Integer, default=0, nullable=False)
    condonation_applied = db.Column(db.Boolean, default=False)
    condonation_status = db.Column(db.String(16), default="not_applicable")
    condonation_percentage = db.Column(db.Float, default=0)
    condonation_reason = db.Column(db.String(500))
    required_percentage = db.Column(db.Float, default=75)
    last_calculated = db.Column(db.DateTime)
    version_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, onupdate=utc_now)

    __table_args__ = (
        db.UniqueConstraint("student_id_fk", "course_id_fk", "semester_id_fk", name="uq_attendance_summary_key"),
        db.CheckConstraint("attended <= total_classes", name="ck_attendance_summary_attended"),
    )
    __mapper_args__ = {"version_id_col": version_id}


# ==========================================
# EXAM RESULTS
# ==========================================

class ExamResultRecord(db.Model):
    __tablename__ = "exam_results"
    result_id = db.Column(db.Integer, primary_key=True)
    student_id_fk = db.Column(db.String(32), db.ForeignKey("students.enrollment_no"), nullable=False)
    exam_id_fk = db.Column(db.Integer, db.ForeignKey("exams.exam_id"), nullable=False)
    marks_obtained = db.Column(db.Float)
    out_of_marks = db.Column(db.Float)
    percentage = db.Column(db.Float)
    grade_code = db.Column(db.String(5))
    grade_points = db.Column(db.Float)
    result_status = db.Column(db.String(16))
    processed_at = db.Column(db.DateTime)

    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    verified_by_user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"))
    verified_at = db.Column(db.DateTime)
    is_published = db.Column(db.Boolean, default=False, nullable=False)
    published_by_user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"))
    published_at = db.Column(db.DateTime)

    revaluation_requested = db.Column(db.Boolean, default=False, nullable=False)
    revaluation_status = db.Column(db.String(16), default="not_applicable")
    revaluation_reason = db.Column(db.Text)
    revaluation_remarks = db.Column(db.Text)
    revaluation_reviewed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"))
    revaluated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"))
    previous_marks = db.Column(db.Float)

    version_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, onupdate=utc_now)

    exam = db.relationship("Exam")

    __table_args__ = (
        db.UniqueConstraint("student_id_fk", "exam_id_fk", name="uq_exam_result_student_exam"),
    )
    __mapper_args__ = {"version_id_col": version_id}

    @validates("is_published")
    def _publication_is_monotonic(self, key, value):
        if self.is_published and not value:
            raise CannotUnpublish(
                "Published results cannot be unpublished.",
                entity="ExamResult",
                entity_id=self.result_id,
                transition="unpublish",
                current_state="published",
            )
        return value


# ==========================================
# AUDIT
# ==========================================

class ImportLog(db.Model):
    __tablename__ = "import_logs"
    log_id = db.Column(db.Integer, primary_key=True)
    user_id_fk = db.Column(db.Integer, db.ForeignKey("users.user_id"))
    kind = db.Column(db.String(16), nullable=False)  # students
    dry_run = db.Column(db.Boolean, default=False)
    created_count = db.Column(db.Integer, default=0)
    updated_count = db.Column(db.Integer, default=0)
    skipped_count = db.Column(db.Integer, default=0)
    errors_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=utc_now)
    extra_json = db.Column(db.Text)
