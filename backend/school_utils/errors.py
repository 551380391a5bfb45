from flask import jsonify, current_app
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Error carrying the HTTP status that the API should answer with."""

    def __init__(self, message, status_code=400, errors=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors

    @classmethod
    def bad_request(cls, message, errors=None):
        return cls(message, 400, errors)

    @classmethod
    def unauthorized(cls, message="Not authorized"):
        return cls(message, 401)

    @classmethod
    def forbidden(cls, message="Access forbidden"):
        return cls(message, 403)

    @classmethod
    def not_found(cls, message="Resource not found"):
        return cls(message, 404)

    @classmethod
    def internal(cls, message="Internal server error"):
        return cls(message, 500)


class ModelValidationError(ValueError):
    """Raised by model hooks when a document breaks one of its invariants."""

    def __init__(self, field, message):
        super().__init__(message)
        self.field = field
        self.message = message


def error_response(message, status_code, errors=None):
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status_code


def format_validation_errors(exc):
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def register_error_handlers(app):
    from school_admin.extensions import db

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        db.session.rollback()
        if error.status_code >= 500:
            current_app.logger.error("API error: %s", error.message)
        return error_response(error.message, error.status_code, error.errors)

    @app.errorhandler(ModelValidationError)
    def handle_model_validation(error):
        db.session.rollback()
        return error_response("Validation error", 400, [{"field": error.field, "message": error.message}])

    @app.errorhandler(ValidationError)
    def handle_pydantic_validation(error):
        db.session.rollback()
        return error_response("Validation error", 400, format_validation_errors(error))

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        db.session.rollback()
        current_app.logger.info("Integrity error: %s", error.orig)
        reason = str(error.orig).lower()
        if "unique" in reason or "duplicate" in reason:
            return error_response("Duplicate entry", 400)
        return error_response("Database constraint violated", 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        db.session.rollback()
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        db.session.rollback()
        current_app.logger.exception("Unhandled error: %s", error)
        internal = ApiError.internal()
        return error_response(internal.message, internal.status_code)
