from flask import jsonify

from .errors import (
    RecordsError,
    ValidationError,
    ReferenceNotFound,
    InvalidStateTransition,
    ConfigurationError,
)

_STATUS_BY_KIND = (
    (ValidationError, 400),
    (ReferenceNotFound, 404),
    (InvalidStateTransition, 409),
    (ConfigurationError, 500),
)


def api_error(code="error", message="", status=400, details=None):
    body = {"success": False, "error": {"code": code, "message": message}}
    if details:
        body["error"]["details"] = details
    return jsonify(body), status


def status_for(exc):
    for kind, status in _STATUS_BY_KIND:
        if isinstance(exc, kind):
            return status
    return 500


def api_error_from(exc: RecordsError):
    details = exc.to_dict()
    details.pop("code", None)
    details.pop("message", None)
    return api_error(exc.code, exc.message, status_for(exc), details or None)
