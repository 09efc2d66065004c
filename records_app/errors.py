"""
Error kinds raised by the records engine.

Every error carries the entity it concerns and, for transitions, the attempted
transition and the state the entity was in, so callers can log and respond
without re-reading the record.
"""


class RecordsError(Exception):
    code = "records_error"

    def __init__(self, message, entity=None, entity_id=None, transition=None, current_state=None, **extra):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id
        self.transition = transition
        self.current_state = current_state
        self.extra = extra

    def to_dict(self):
        data = {"code": self.code, "message": self.message}
        for key in ("entity", "entity_id", "transition", "current_state"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data.update(self.extra)
        return data


# ==========================================
# VALIDATION
# ==========================================

class ValidationError(RecordsError):
    code = "validation_error"


class MarksOutOfRange(ValidationError):
    code = "marks_out_of_range"


class MarksExceedTotal(MarksOutOfRange):
    code = "marks_exceed_total"


class PercentageOutOfRange(ValidationError):
    code = "percentage_out_of_range"


# ==========================================
# MISSING REFERENCES
# ==========================================

class ReferenceNotFound(RecordsError):
    code = "reference_not_found"


class ExamNotFound(ReferenceNotFound):
    code = "exam_not_found"


class ExamResultNotFound(ReferenceNotFound):
    code = "exam_result_not_found"


class SemesterNotFound(ReferenceNotFound):
    code = "semester_not_found"


class StudentNotFound(ReferenceNotFound):
    code = "student_not_found"


class AttendanceSummaryNotFound(ReferenceNotFound):
    code = "attendance_summary_not_found"


# ==========================================
# STATE TRANSITIONS
# ==========================================

class InvalidStateTransition(RecordsError):
    code = "invalid_state_transition"


class NotProcessed(InvalidStateTransition):
    code = "not_processed"


class AlreadyVerified(InvalidStateTransition):
    code = "already_verified"


class NotVerified(InvalidStateTransition):
    code = "not_verified"


class AlreadyPublished(InvalidStateTransition):
    code = "already_published"


class CannotUnpublish(InvalidStateTransition):
    code = "cannot_unpublish"


class AlreadyRequested(InvalidStateTransition):
    code = "revaluation_already_requested"


class IneligibleStatus(InvalidStateTransition):
    code = "ineligible_status"


class RevaluationNotPending(InvalidStateTransition):
    code = "revaluation_not_pending"


class RevaluationNotApproved(InvalidStateTransition):
    code = "revaluation_not_approved"


class ConcurrentModification(InvalidStateTransition):
    code = "concurrent_modification"


# ==========================================
# CONFIGURATION
# ==========================================

class ConfigurationError(RecordsError):
    code = "configuration_error"


class InvalidGradeBand(ConfigurationError):
    code = "invalid_grade_band"


class NoMatchingGradeBand(ConfigurationError):
    code = "no_matching_grade_band"
