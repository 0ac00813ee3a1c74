# /bhishak/utils/error_handlers.py
from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from bhishak.extensions import db, jwt


class ApiError(Exception):
    """Base for errors that map onto a JSON error response."""
    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message, code=None, status_code=None, extra=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_response(self):
        body = {'success': False, 'message': self.message, 'code': self.code}
        body.update(self.extra)
        return jsonify(body), self.status_code


class ValidationError(ApiError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class AuthenticationError(ApiError):
    status_code = 401
    code = 'AUTH_REQUIRED'


class AuthorizationError(ApiError):
    status_code = 403
    code = 'FORBIDDEN'


class NotFoundError(ApiError):
    status_code = 404
    code = 'NOT_FOUND'


class ConflictError(ApiError):
    status_code = 409
    code = 'CONFLICT'


class FeatureDisabledError(ApiError):
    status_code = 403
    code = 'FEATURE_DISABLED'


class RateLimitError(ApiError):
    status_code = 429
    code = 'RATE_LIMITED'


def _error(message, code, status):
    return jsonify({'success': False, 'message': message, 'code': code}), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def api_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            current_app.logger.error(f"{error.code}: {error.message}")
        return error.to_response()

    @app.errorhandler(404)
    def not_found(error):
        return _error('Resource not found', 'NOT_FOUND', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error('Method not allowed', 'METHOD_NOT_ALLOWED', 405)

    @app.errorhandler(429)
    def ratelimit_handler(error):
        return _error(f"Too many requests: {error.description}", 'RATE_LIMITED', 429)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return _error(error.description, error.name.upper().replace(' ', '_'), error.code)

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        current_app.logger.exception(f"Internal server error: {error}")
        return _error('Internal server error', 'INTERNAL_ERROR', 500)


def register_jwt_handlers():
    """Maps Flask-JWT-Extended failures onto stable, distinct error codes."""

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error('No token provided. Please login.', 'AUTH_REQUIRED', 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error('Token expired. Please login again.', 'TOKEN_EXPIRED', 401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _error('Invalid token. Please login again.', 'TOKEN_INVALID', 401)
