"""Error taxonomy shared by the REST routes and the Socket.IO handlers."""

from typing import Any

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError


class TalesError(Exception):
    status = 500
    code = 'server_error'

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}

    def to_dict(self) -> dict:
        return build_error_payload(code=self.code, message=self.message, details=self.details)


class ValidationError(TalesError):
    status = 400
    code = 'validation_error'

    def __init__(self, message: str, field: str = None):
        super().__init__(message, {'field': field} if field else None)
        self.field = field


class ForbiddenError(TalesError):
    status = 403
    code = 'forbidden'


class NotFoundError(TalesError):
    status = 404
    code = 'not_found'


class ConflictError(TalesError):
    status = 409
    code = 'conflict'


class CollaboratorUnavailable(TalesError):
    status = 503
    code = 'store_unavailable'


def build_error_payload(*, code: str, message: str, details: Any = None) -> dict:
    payload = {
        'code': str(code).strip() or 'unknown_error',
        'message': str(message).strip() or 'Unknown error.',
        'details': details if details is not None else {},
    }
    # Older clients read "error"
    payload['error'] = payload['message']
    return payload


def error_response(*, status: int, code: str, message: str, details: Any = None):
    return jsonify(build_error_payload(code=code, message=message, details=details)), int(status)


def require_field(data: dict, field: str, kind=str):
    """Return data[field] or raise ValidationError naming the field."""
    if data is not None and not isinstance(data, dict):
        raise ValidationError('payload must be an object', field='payload')
    value = (data or {}).get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f'{field} is required', field=field)
    if kind is int:
        if isinstance(value, bool):
            raise ValidationError(f'{field} must be an integer', field=field)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f'{field} must be an integer', field=field)
    if not isinstance(value, kind):
        raise ValidationError(f'{field} must be a {kind.__name__}', field=field)
    return value


def register_error_handlers(flask_app) -> None:
    from tales import db

    @flask_app.errorhandler(TalesError)
    def handle_tales_error(exc):
        return error_response(status=exc.status, code=exc.code, message=exc.message, details=exc.details)

    @flask_app.errorhandler(SQLAlchemyError)
    def handle_store_error(exc):
        db.session.rollback()
        flask_app.logger.exception(f"[store-error] {exc.__class__.__name__}")
        return error_response(status=500, code='server_error', message='Internal server error')
