import json
import logging
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash
from .. import db
from ..models import ImportLog, Student, User

logger = logging.getLogger(__name__)


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _normalize(row):
    # Header names are matched case-insensitively
    return {str(k).lower().strip(): v for k, v in row.items() if k}


def _initial_password(usn, mobile):
    # Mobile digits when usable, else the USN; changed on first login
    digits = "".join(ch for ch in (mobile or "") if ch.isdigit())
    return digits if len(digits) >= 10 else usn


def _parse_semester(raw):
    if raw in (None, ""):
        return 1
    sem = int(str(raw).strip())
    if sem < 1:
        raise ValueError(f"invalid semester {raw!r}")
    return sem


def import_students(rows, dry_run=False, imported_by=None):
    """
    Creates a user account and a student record for each row.

    Rows need a USN (``usn`` or ``enrollment_no``) and a ``student_name``;
    ``surname``, ``email``, ``mobile``, ``current_semester`` and
    ``academic_year`` are optional. Bad rows are reported and skipped. A
    database error rolls back the whole batch and is re-raised.
    Returns: {"created": [...], "failed": [{"row", "usn", "error"}], "skipped", "total", "dry_run"}
    """
    report = {"created": [], "failed": [], "skipped": 0, "total": len(rows), "dry_run": dry_run}
    seen = set()

    try:
        for idx, raw in enumerate(rows, start=1):
            row = _normalize(raw)
            usn = _clean(row.get("usn") or row.get("enrollment_no"))
            name = _clean(row.get("student_name") or row.get("name"))

            if not usn or not name:
                report["failed"].append({"row": idx, "usn": usn, "error": "USN and student name are required"})
                continue
            if usn in seen:
                report["failed"].append({"row": idx, "usn": usn, "error": "Duplicate USN in batch"})
                continue
            seen.add(usn)

            if db.session.get(Student, usn):
                report["failed"].append({"row": idx, "usn": usn, "error": "Student already exists"})
                continue
            if db.session.execute(select(User.user_id).filter_by(username=usn)).first():
                report["failed"].append({"row": idx, "usn": usn, "error": "Username already taken"})
                continue

            try:
                semester = _parse_semester(row.get("current_semester") or row.get("semester"))
            except ValueError as e:
                report["failed"].append({"row": idx, "usn": usn, "error": str(e)})
                continue

            if dry_run:
                report["created"].append(usn)
                continue

            mobile = _clean(row.get("mobile"))
            user = User(
                username=usn,
                email=_clean(row.get("email")),
                mobile=mobile,
                role="student",
                password_hash=generate_password_hash(_initial_password(usn, mobile)),
                must_change_password=True,
            )
            db.session.add(user)
            db.session.flush()

            db.session.add(Student(
                enrollment_no=usn,
                user_id_fk=user.user_id,
                student_name=name,
                surname=_clean(row.get("surname")),
                email=user.email,
                mobile=mobile,
                current_semester=semester,
                academic_year=_clean(row.get("academic_year")),
            ))
            report["created"].append(usn)

        report["skipped"] = len(report["failed"])
        db.session.add(ImportLog(
            user_id_fk=imported_by,
            kind="students",
            dry_run=dry_run,
            created_count=0 if dry_run else len(report["created"]),
            skipped_count=report["skipped"],
            errors_count=len(report["failed"]),
            extra_json=json.dumps({"failed": report["failed"]}),
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Student import rolled back after %s rows", len(report["created"]))
        raise

    logger.info(
        "Student import%s: %s created, %s failed",
        " (dry run)" if dry_run else "", len(report["created"]), len(report["failed"]),
    )
    return report
