"""Domain errors and the JSON failure shape shared by every endpoint."""

from flask import current_app, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from app.extensions import db


class DomainError(Exception):
    """Raised when a request breaks a shop rule."""

    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Missing or malformed input, caught before any write."""


class InsufficientPointsError(ValidationError):
    pass


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """The current state of a record forbids the operation."""

    status_code = 409


def error_response(message, status_code):
    return jsonify({"success": False, "error": message}), status_code


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(e):
        db.session.rollback()
        current_app.logger.info(f"{type(e).__name__}: {e.message}")
        return error_response(e.message, e.status_code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        db.session.rollback()
        current_app.logger.warning(f"Integrity error: {e.orig}")
        return error_response(f"Database integrity error: {e.orig}", 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return error_response(e.description, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        current_app.logger.exception(f"Unhandled error: {e}")
        return error_response("Internal server error", 500)
