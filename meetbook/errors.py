"""Error taxonomy shared by the services and the HTTP layer."""

import traceback

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class MeetbookError(Exception):
    status_code = 500
    kind = 'error'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class ValidationError(MeetbookError):
    status_code = 400
    kind = 'validation_error'


class AuthorizationError(MeetbookError):
    status_code = 401
    kind = 'authorization_error'


class NotFoundError(MeetbookError):
    status_code = 404
    kind = 'not_found'


class ConflictError(MeetbookError):
    status_code = 409
    kind = 'conflict'


class StoreError(MeetbookError):
    status_code = 500
    kind = 'store_error'


class RevisionConflict(Exception):
    """Raised by a document store when a conditional write loses a race."""

    def __init__(self, key, expected_revision):
        super().__init__(f"Revision conflict on {key} (expected {expected_revision!r})")
        self.key = key
        self.expected_revision = expected_revision


def register_error_handlers(app):
    @app.errorhandler(MeetbookError)
    def handle_meetbook_error(e):
        if e.status_code >= 500:
            current_app.logger.error(f"{e.kind}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        # Let werkzeug render its own HTTP errors (404 on unknown routes, 405...)
        if isinstance(e, HTTPException):
            return jsonify({'error': e.description, 'kind': 'http_error'}), e.code
        current_app.logger.error(f"Unhandled error: {e}\n{traceback.format_exc()}")
        return jsonify({'error': 'Internal Server Error', 'kind': 'internal_error'}), 500
