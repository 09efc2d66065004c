import argparse
import os
import sys
from sqlalchemy import select

# Add project root to path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from records_app import create_app, db
from records_app.models import Student
from records_app.eligibility.services import promote_students


def main():
    parser = argparse.ArgumentParser(description="Promote every active student of one semester to the next.")
    parser.add_argument("from_semester", type=int)
    parser.add_argument("--threshold", type=int, default=None, help="Maximum open backlogs allowed")
    parser.add_argument("--academic-year", default=None)
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        print(f"Starting promotion of Semester {args.from_semester} students...")

        student_ids = db.session.execute(
            select(Student.enrollment_no).filter_by(current_semester=args.from_semester, is_active=True)
        ).scalars().all()

        if not student_ids:
            print(f"No students found in Semester {args.from_semester}.")
            return

        print(f"Found {len(student_ids)} students. Processing...")
        report = promote_students(
            student_ids,
            args.from_semester,
            args.from_semester + 1,
            backlog_threshold=args.threshold,
            academic_year=args.academic_year,
        )

        for item in report["failed"]:
            print(f"Not promoted: {item['student_id']} - {item['error']}")

        print("\nPromotion Summary:")
        print("-" * 30)
        print(f"Total Students: {report['total']}")
        print(f"Promoted: {len(report['promoted'])}")
        print(f"Not Promoted: {len(report['failed'])}")
        print("-" * 30)
        print("Done.")


if __name__ == "__main__":
    main()
