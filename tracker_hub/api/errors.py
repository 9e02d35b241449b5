"""
API Error Translation
Maps handler and persistence errors to HTTP responses in one place.
"""

import json
from typing import List, Optional

from flask import Flask, jsonify
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    """Base class for errors rendered as JSON failures."""

    status_code = 500

    def __init__(self, message: str, details: Optional[List] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class BindError(ApiError):
    """Request body could not be parsed or validated."""

    status_code = 400

    @classmethod
    def from_validation(cls, error: ValidationError) -> 'BindError':
        details = json.loads(error.json(include_url=False))
        return cls('Validation failed', details)


class NotFound(ApiError):
    status_code = 404


class NotAuthenticated(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


def _failure(message: str, status_code: int, details: Optional[List] = None):
    body = {
        'success': False,
        'error': message
    }
    if details is not None:
        body['details'] = details
    response = jsonify(body)
    response.status_code = status_code
    return response


def register_error_handlers(app: Flask) -> None:
    """Register the shared error translation table on the app."""

    @app.errorhandler(ApiError)
    def api_error(error: ApiError):
        response = _failure(error.message, error.status_code, error.details)
        if isinstance(error, NotAuthenticated):
            response.headers['WWW-Authenticate'] = 'Bearer'
        return response

    @app.errorhandler(IntegrityError)
    def conflict(error: IntegrityError):
        logger.error(f"Constraint violation: {error.orig}")
        return _failure(f"Conflict: {error.orig}", 409)

    @app.errorhandler(SQLAlchemyError)
    def persistence_failed(error: SQLAlchemyError):
        logger.error(f"Database error: {error}")
        return _failure('Database error', 500)

    @app.errorhandler(404)
    def not_found(error):
        return _failure('Not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _failure('Method not allowed', 405)

    @app.errorhandler(500)
    def internal_error(error):
        return _failure('Internal server error', 500)
