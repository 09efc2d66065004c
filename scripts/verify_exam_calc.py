import sys
import os

# Add the parent directory to the path so we can import the app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from records_app import create_app, db
from records_app.models import Exam, ExamResultRecord, Student
from records_app.exams.services import process_exam
from records_app.performance.services import compute_sgpa

app = create_app()


def verify_calculation():
    with app.app_context():
        print("--- Verifying Exam Calculation ---")

        # 1. Find an exam that has results
        exam = db.session.execute(select(Exam).join(ExamResultRecord, ExamResultRecord.exam_id_fk == Exam.exam_id)).scalars().first()

        if not exam:
            print("No exams with results found. Cannot verify calculation without data.")
            return

        print(f"Found exam with results: ID={exam.exam_id}, Name='{exam.exam_name}'")

        # 2. Run processing
        print("\nRunning process_exam()...")
        report = process_exam(exam.exam_id)
        print(f"Processed: {len(report['processed'])}, Failed: {len(report['failed'])}, Total: {report['total']}")
        for item in report["failed"]:
            print(f"  Result {item['result_id']}: {item['error']} - {item['message']}")

        # 3. Inspect a few results
        rows = db.session.execute(
            select(ExamResultRecord).filter_by(exam_id_fk=exam.exam_id).limit(5)
        ).scalars().all()
        print("\nSample Results:")
        print(f"{'Student ID':<12} | {'Marks':<6} | {'Pct':<7} | {'Grade':<5} | {'Status':<10} | {'SGPA':<5}")
        print("-" * 60)
        for res in rows:
            student = db.session.get(Student, res.student_id_fk)
            sgpa = compute_sgpa(student.enrollment_no, exam.semester_id_fk).sgpa if student else "-"
            print(
                f"{res.student_id_fk:<12} | {res.marks_obtained if res.marks_obtained is not None else '-':<6} | "
                f"{res.percentage if res.percentage is not None else '-':<7} | {res.grade_code or '-':<5} | "
                f"{res.result_status or '-':<10} | {sgpa:<5}"
            )


if __name__ == "__main__":
    verify_calculation()
