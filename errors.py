import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'message': self.message}


class ValidationError(AppError):
    status_code = 400
    message = 'Invalid data'

    def __init__(self, errors, message=None):
        super().__init__(message)
        # [{'field': ..., 'message': ...}, ...]
        self.errors = list(errors)

    def to_dict(self):
        return {'message': self.message, 'errors': self.errors}


class ConflictError(AppError):
    status_code = 400
    message = 'Resource already exists'


class AuthenticationError(AppError):
    status_code = 401
    message = 'Not authenticated'


class InvalidCredentialsError(AuthenticationError):
    """Bad username/password pair; answered with 400 like other login input errors."""
    status_code = 400
    message = 'Username or password is incorrect'


class NotFoundError(AppError):
    status_code = 404
    message = 'Not found'


class InternalError(AppError):
    pass


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error("Request failed: %s", error, exc_info=error)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error")
        return jsonify(InternalError().to_dict()), 500
