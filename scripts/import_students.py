import argparse
import csv
import os
import sys

# Add project root to path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from records_app import create_app
from records_app.students.services import import_students


def main():
    parser = argparse.ArgumentParser(description="Import students from a CSV file (USN, Student_Name, Surname, Email, Mobile, Current_Semester, Academic_Year).")
    parser.add_argument("path")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    if not os.path.exists(args.path):
        print("CSV file not found.")
        return

    with open(args.path, encoding="utf-8-sig", newline="") as fh:
        rows = list(csv.DictReader(fh))

    app = create_app()
    with app.app_context():
        print(f"--- Importing {len(rows)} rows{' (dry run)' if args.dry_run else ''} ---")
        report = import_students(rows, dry_run=args.dry_run)
        for item in report["failed"]:
            print(f"Row {item['row']} ({item['usn'] or 'no USN'}): {item['error']}")
        print(f"Created: {len(report['created'])}, Skipped: {report['skipped']}")


if __name__ == "__main__":
    main()
