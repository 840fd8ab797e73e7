# ======================================
# API errors and their JSON handlers
# ======================================

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from models import db
from responses import error_response


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class ConflictError(ApiError):
    status_code = 409


class NotFoundError(ApiError):
    status_code = 404


def register_error_handlers(app):

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if e.status_code < 500:
            current_app.logger.warning('%s: %s', e.status_code, e.message)
        return error_response(e.message, e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return error_response(e.description, e.code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        # Unique constraint lost a race with a concurrent insert
        db.session.rollback()
        current_app.logger.warning('Integrity error: %s', e.orig)
        return error_response('Record already exists', 409)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        current_app.logger.exception('Database error')
        return error_response(f'Database error: {e}', 500)
