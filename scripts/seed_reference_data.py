import os
import sys

# Add project root to path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from records_app import create_app
from records_app.grades.services import seed_grade_scales
from records_app.attendance.services import seed_attendance_status_types


def main():
    app = create_app()
    with app.app_context():
        print("Seeding grade scales...")
        created, updated = seed_grade_scales()
        print(f"Grade bands: {created} created, {updated} updated")

        print("Seeding attendance status types...")
        count = seed_attendance_status_types()
        print(f"Status types created: {count}")
        print("Done.")


if __name__ == "__main__":
    main()
