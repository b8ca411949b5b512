"""
Error types raised by the services and mapped to JSON responses by the
error handler registered in the app factory.
"""

from flask import jsonify, current_app


class APIError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        body = dict(self.payload)
        body["error"] = self.message
        return body


class ValidationError(APIError):
    status_code = 400


class NotFoundError(APIError):
    status_code = 404


class AuthorizationError(APIError):
    status_code = 403


class ConflictError(APIError):
    status_code = 409


class SignatureError(APIError):
    status_code = 400


class GatewayError(APIError):
    """Payment provider unreachable or returned a failure."""
    status_code = 502


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(error):
        if error.status_code >= 500:
            current_app.logger.error(f"{type(error).__name__}: {error.message}")
        else:
            current_app.logger.warning(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code
