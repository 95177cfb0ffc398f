"""Error taxonomy shared by the publish path, the broadcast gateway and the HTTP layer.

Every domain error carries the HTTP status the API renders it with, so
routes can simply let them propagate.
"""
from typing import Optional

from flask import jsonify


class DrawBoardError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(DrawBoardError):
    status_code = 400
    default_message = 'Invalid request'


class AuthorizationError(DrawBoardError):
    status_code = 403
    default_message = 'Only administrators can perform this action'


class NotFoundError(DrawBoardError):
    status_code = 404
    default_message = 'Not found'


class GameNotFoundError(NotFoundError):
    default_message = 'Game not found'


class ResultNotFoundError(NotFoundError):
    default_message = 'Result not found'


class AlreadyPublishedError(DrawBoardError):
    status_code = 409
    default_message = 'A result for this game already exists on this date'


class RepositoryError(DrawBoardError):
    status_code = 500
    default_message = 'Storage failure'


class TransportError(DrawBoardError):
    """A broadcast sink could not accept a frame. Never leaves the gateway."""
    status_code = 500
    default_message = 'Connection write failed'


def register_error_handlers(flask_app) -> None:
    @flask_app.errorhandler(DrawBoardError)
    def handle_domain_error(exc):
        if exc.status_code >= 500:
            flask_app.logger.error(f"[error] {type(exc).__name__}: {exc.message}")
        return jsonify(exc.to_dict()), exc.status_code
