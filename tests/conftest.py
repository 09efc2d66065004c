from datetime import date
from types import SimpleNamespace

import pytest

from records_app import create_app, db


@pytest.fixture(scope="session")
def database_url(tmp_path_factory):
    path = tmp_path_factory.mktemp("records") / "records.db"
    return f"sqlite:///{path.as_posix()}"


@pytest.fixture(scope="session")
def app(database_url):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": database_url,
        "CACHE_TYPE": "SimpleCache",
    })


@pytest.fixture(autouse=True)
def clean_db(app):
    from records_app.grades.services import invalidate_grade_bands
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.create_all()
        invalidate_grade_bands()
    yield


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture()
def school(ctx):
    """Reference data for one department: two semesters, two courses, CIE/SEE exams, two students."""
    from records_app.models import Course, Exam, ExamType, Semester, Student
    from records_app.grades.services import seed_grade_scales
    from records_app.attendance.services import seed_attendance_status_types

    seed_grade_scales()
    seed_attendance_status_types()

    sem1 = Semester(number=1, academic_year="2025-26", start_date=date(2025, 7, 1), end_date=date(2025, 11, 30))
    sem2 = Semester(number=2, academic_year="2025-26", start_date=date(2025, 12, 15), end_date=date(2026, 4, 30))
    maths = Course(course_code="MA101", course_name="Engineering Mathematics I", credits=4)
    physics = Course(course_code="PH101", course_name="Engineering Physics", credits=3)
    cie = ExamType(code="CIE", name="Continuous Internal Evaluation", weightage=40)
    see = ExamType(code="SEE", name="Semester End Examination", weightage=60)
    db.session.add_all([sem1, sem2, maths, physics, cie, see])
    db.session.flush()

    def exam(course, exam_type, total, passing):
        e = Exam(
            course_id_fk=course.course_id,
            semester_id_fk=sem1.semester_id,
            exam_type_id_fk=exam_type.exam_type_id,
            exam_name=f"{course.course_code} {exam_type.code}",
            total_marks=total,
            passing_marks=passing,
        )
        db.session.add(e)
        return e

    maths_cie = exam(maths, cie, 50, 20)
    maths_see = exam(maths, see, 100, 40)
    physics_cie = exam(physics, cie, 50, 20)
    physics_see = exam(physics, see, 100, 40)

    db.session.add_all([
        Student(enrollment_no="1RV25CS001", student_name="Asha", surname="Rao", current_semester=1),
        Student(enrollment_no="1RV25CS002", student_name="Ravi", surname="Kumar", current_semester=1),
    ])
    db.session.commit()

    return SimpleNamespace(
        sem1=sem1.semester_id,
        sem2=sem2.semester_id,
        maths=maths.course_id,
        physics=physics.course_id,
        maths_cie=maths_cie.exam_id,
        maths_see=maths_see.exam_id,
        physics_cie=physics_cie.exam_id,
        physics_see=physics_see.exam_id,
        asha="1RV25CS001",
        ravi="1RV25CS002",
    )


@pytest.fixture()
def publish(school):
    """Records, processes, verifies and publishes one result."""
    from records_app.exams import services

    def _publish(student_id, exam_id, marks, status=None):
        r = services.record_exam_result(student_id, exam_id, marks, status)
        services.process_exam_result(r.result_id)
        services.verify_exam_result(r.result_id, evaluator_id=None)
        return services.publish_exam_result(r.result_id, publisher_id=None)

    return _publish
