"""
Error taxonomy and the JSON error envelope.

Every failure reaches the client as ``{"message": "..."}`` with a fixed,
human-readable message; underlying exception text is only logged.
"""

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from bloodbridge.extensions import db


class APIError(Exception):
    status_code = 500
    message = 'Server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(APIError):
    status_code = 400
    message = 'Invalid request'


class Unauthenticated(APIError):
    status_code = 401
    message = 'Unauthorized access'


class Forbidden(APIError):
    status_code = 403
    message = 'Forbidden access'


class NotFound(APIError):
    status_code = 404
    message = 'Not found'


class StoreUnavailable(APIError):
    status_code = 500
    message = 'Server error'


HTTP_MESSAGES = {
    400: 'Bad request',
    401: 'Unauthorized access',
    403: 'Forbidden access',
    404: 'Not found',
    405: 'Method not allowed',
}


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", type(error).__name__, error.__cause__ or error)
        return jsonify({'message': error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        message = HTTP_MESSAGES.get(error.code, error.name)
        return jsonify({'message': message}), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error):
        db.session.rollback()
        app.logger.exception("Database error")
        return jsonify({'message': StoreUnavailable.message}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception("Unhandled error")
        return jsonify({'message': 'Server error'}), 500
