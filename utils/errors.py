import logging

from flask import jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from models import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map straight onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message, "success": False}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class InvalidStateError(ApiError):
    status_code = 400
    default_message = "Operation not allowed in the current state"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


def _error_response(message: str, status: int, details=None):
    body = {"message": message, "success": False}
    if details:
        body["details"] = details
    return jsonify(body), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("API error: %s", err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(IntegrityError)
    def _integrity_error(err: IntegrityError):
        db.session.rollback()
        logger.warning("Integrity error: %s", err.orig)
        return _error_response("Resource already exists", 409)

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        return _error_response(err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(err: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        return _error_response("Internal server error", 500)
