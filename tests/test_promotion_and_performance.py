import pytest
from sqlalchemy.exc import SQLAlchemyError

from records_app import db
from records_app.eligibility import services as eligibility
from records_app.errors import StudentNotFound
from records_app.exams import services as exams
from records_app.models import Exam, Student
from records_app.performance import services as performance


@pytest.fixture()
def results(school, publish):
    # Asha: Maths 80% CIE / 70% SEE, Physics 95% / 90%
    publish(school.asha, school.maths_cie, 40)
    publish(school.asha, school.maths_see, 70)
    publish(school.asha, school.physics_cie, 47.5)
    publish(school.asha, school.physics_see, 90)
    # Ravi fails Maths SEE
    publish(school.ravi, school.maths_see, 20)
    return school


def test_sgpa_and_cgpa(results):
    perf = performance.compute_sgpa(results.asha, results.sem1)
    assert perf.sgpa == 8.86
    assert perf.total_credits == 7
    assert perf.passed_all

    assert performance.compute_cgpa(results.asha).cgpa == 8.86


def test_unpublished_results_do_not_count(school):
    r = exams.record_exam_result(school.ravi, school.physics_see, 90)
    exams.process_exam_result(r.result_id)
    perf = performance.compute_sgpa(school.ravi, school.sem1)
    assert perf.sgpa == 0
    assert not perf.passed_all


def test_unknown_student(school):
    with pytest.raises(StudentNotFound):
        performance.compute_sgpa("NOPE", school.sem1)


def test_backlogs_and_promotion_decision(results):
    assert eligibility.count_backlogs(results.asha) == 0
    assert eligibility.count_backlogs(results.ravi) == 1

    decision = eligibility.evaluate_promotion(results.ravi, 1, 2)
    assert not decision.eligible
    assert decision.backlog_count == 1
    assert eligibility.evaluate_promotion(results.ravi, 1, 2, backlog_threshold=1).eligible
    assert not eligibility.evaluate_promotion(results.asha, 1, 3).eligible


def test_threshold_comes_from_config(app, results, monkeypatch):
    monkeypatch.setitem(app.config, "PROMOTION_BACKLOG_THRESHOLD", 1)
    assert eligibility.evaluate_promotion(results.ravi, 1, 2).eligible


def test_supplementary_pass_clears_backlog(results, publish):
    see = db.session.get(Exam, results.maths_see)
    supplementary = Exam(
        course_id_fk=see.course_id_fk,
        semester_id_fk=see.semester_id_fk,
        exam_type_id_fk=see.exam_type_id_fk,
        exam_name="MA101 SEE (supplementary)",
        total_marks=100,
        passing_marks=40,
    )
    db.session.add(supplementary)
    db.session.commit()

    publish(results.ravi, supplementary.exam_id, 55)
    assert eligibility.count_backlogs(results.ravi) == 0


def test_bulk_promotion(results):
    report = eligibility.promote_students(
        [results.asha, results.ravi, "NOPE"], 1, 2, academic_year="2026-27"
    )
    assert report["total"] == 3
    assert [p["student_id"] for p in report["promoted"]] == [results.asha]
    assert report["promoted"][0]["name"] == "Asha Rao"
    assert {f["student_id"] for f in report["failed"]} == {results.ravi, "NOPE"}

    asha = db.session.get(Student, results.asha)
    assert (asha.current_semester, asha.academic_year) == (2, "2026-27")
    assert db.session.get(Student, results.ravi).current_semester == 1


def test_bulk_promotion_rolls_back_on_database_error(results, monkeypatch):
    def boom():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db.session, "commit", boom)
    with pytest.raises(SQLAlchemyError):
        eligibility.promote_students([results.asha], 1, 2)
    assert db.session.get(Student, results.asha).current_semester == 1
