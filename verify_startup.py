import sys
import os

# Add project root to sys.path
sys.path.append(os.getcwd())

from records_app import create_app, db
from records_app.models import GradeScale, AttendanceStatusType, Student, ExamResultRecord, AttendanceSummaryRecord
from records_app.grades.services import active_grade_bands
from records_app.grades.resolver import overlapping_bands

app = create_app()

with app.app_context():
    try:
        print("Verifying database models...")
        db.create_all()
        print("Database models verified.")

        print("Checking grade scale...")
        bands = active_grade_bands()
        print(f"Active grade bands: {len(bands)}")
        if not bands:
            print("WARNING: no grade bands; run scripts/seed_reference_data.py")
        overlaps = overlapping_bands(bands)
        if overlaps:
            print(f"Overlapping bands (highest upper limit wins): {overlaps}")

        print("Checking attendance status types...")
        present = AttendanceStatusType.query.filter_by(is_counted_present=True).count()
        print(f"Status types: {AttendanceStatusType.query.count()} ({present} counted present)")

        print("Checking records...")
        print(f"Students: {Student.query.count()}")
        print(f"Exam results: {ExamResultRecord.query.count()}")
        print(f"Attendance summaries: {AttendanceSummaryRecord.query.count()}")
        print(f"Grade scale rows: {GradeScale.query.count()}")

        print("Startup verification successful.")
    except Exception as e:
        print(f"Startup verification failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
